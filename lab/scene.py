import logging
from pathlib import Path
from typing import Optional

import pygame

from analytics.export import export_session
from config.settings import LabConfig
from data.errors import ExportError
from data.models import (
    PHASE_COMPLETE,
    PHASE_READY,
    PHASE_RUNNING,
    TEST_SACCADE,
    TEST_STROOP,
    AnalysisResult,
    SaccadeTarget,
    StroopStimulus,
)
from lab.input import (
    CMD_ABORT,
    CMD_EXPORT,
    CMD_RESTART,
    CMD_START_SACCADE,
    CMD_START_STROOP,
    InputManager,
)
from lab.renderer import Renderer
from lab.responses import Viewport
from lab.runtime.results_store import save_test_result
from lab.scheduler import TrialScheduler

logger = logging.getLogger(__name__)


class LabScene:
    """
    LabScene = "экран лаборатории".

    Она объединяет:
    - scheduler (вся логика теста)
    - ввод (input)
    - отрисовку (renderer)
    - сохранение итогов и экспорт отчётов

    В main.py создаём сцену и каждый кадр:
    - прокидываем ей события pygame
    - вызываем update()
    """

    def __init__(
        self,
        screen: pygame.Surface,
        renderer: Renderer,
        input_manager: InputManager,
        config: LabConfig,
        results_path: Path,
        export_dir: Path,
    ):
        self.screen = screen
        self.renderer = renderer
        self.input = input_manager
        self.config = config
        self.results_path = results_path
        self.export_dir = export_dir

        w, h = screen.get_size()
        self.viewport = Viewport(width=w, height=h)
        self.scheduler = TrialScheduler(config, on_complete=self._on_complete)
        self.message: Optional[str] = None

    def start(self, test_type: str) -> None:
        self.input.reset()
        self.message = None
        self.scheduler.start(test_type, pygame.time.get_ticks())

    def handle_event(self, event) -> None:
        self.input.process_pygame_event(event)

    def update(self) -> None:
        now_ms = pygame.time.get_ticks()

        # 1) таймеры: ответ после дедлайна не должен засчитаться
        self.scheduler.update(now_ms)

        # 2) ввод: команды и ответы, по порядку
        for action in self.input.poll_actions():
            if action.kind == "COMMAND":
                self._handle_command(action.value, now_ms)
            elif action.kind == "COLOR":
                self.scheduler.submit_choice(action.value, now_ms)
            elif action.kind == "CLICK":
                self._handle_click(action.pos, now_ms)

        # 3) рисуем
        self._render()

    def _handle_command(self, command: str, now_ms: int) -> None:
        if command == CMD_START_SACCADE:
            self.start(TEST_SACCADE)
        elif command == CMD_START_STROOP:
            self.start(TEST_STROOP)
        elif command == CMD_RESTART:
            self.scheduler.restart(now_ms)
        elif command == CMD_ABORT:
            self.scheduler.abort()
        elif command == CMD_EXPORT:
            self.export()

    def _handle_click(self, pos, now_ms: int) -> None:
        spec = self.scheduler.session.active_spec
        if spec is None:
            return
        if isinstance(spec.stimulus, SaccadeTarget):
            self.scheduler.submit_click(pos[0], pos[1], now_ms, self.viewport)
            return
        choice = self.renderer.choice_at(pos)
        if choice is not None:
            self.scheduler.submit_choice(choice, now_ms)

    def _on_complete(self, analysis: AnalysisResult) -> None:
        try:
            save_test_result(self.results_path, analysis)
        except OSError as exc:
            logger.error("Error saving %s test result: %s", analysis.test_type, exc)

    def export(self) -> None:
        if not self.scheduler.has_report():
            self.message = "Nothing to export yet"
            return
        session = self.scheduler.session
        try:
            json_path, csv_path = export_session(
                self.export_dir, session.test_type, session.results, self.scheduler.analysis.summary
            )
        except ExportError as exc:
            self.message = f"Export failed: {exc}"
            return
        self.message = f"Saved {json_path.name} and {csv_path.name}"

    def _render(self) -> None:
        session = self.scheduler.session
        self.renderer.clear()
        self.renderer.draw_status(self.message or self.scheduler.status_text())

        if session.phase == PHASE_READY:
            self.renderer.draw_menu()
        elif session.phase == PHASE_RUNNING:
            spec = session.active_spec
            if spec is None:
                # пауза между trial-ами
                self.renderer.draw_fixation()
            elif isinstance(spec.stimulus, SaccadeTarget):
                self.renderer.draw_fixation()
                self.renderer.draw_saccade_target(spec.stimulus)
            elif isinstance(spec.stimulus, StroopStimulus):
                self.renderer.draw_stroop(spec.stimulus)
        elif session.phase == PHASE_COMPLETE and self.scheduler.analysis is not None:
            self.renderer.draw_analysis(self.scheduler.analysis)

        self.renderer.draw_progress(session.progress_percent)
        self.renderer.present()

    def get_results(self):
        return self.scheduler.completed
