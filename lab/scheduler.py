import logging
import random
from typing import Callable, Dict, Optional, Tuple

from analytics.pipeline import analyze_session
from analytics.ruleset import DEFAULT_RULESET, Ruleset
from config.settings import LabConfig
from data.models import (
    PHASE_COMPLETE,
    PHASE_INSTRUCTIONS,
    PHASE_READY,
    PHASE_RUNNING,
    AnalysisResult,
    TestSession,
    TrialResult,
)
from lab.responses import Click, ColorChoice, Viewport, color_for_key
from lab.state_machine import (
    Abort,
    Event,
    InstructionsElapsed,
    InterStimulusElapsed,
    Response,
    StartTest,
    Step,
    TrialTimeout,
    is_idle,
    transition,
)
from lab.timers import (
    TIMER_ANALYSIS,
    TIMER_INSTRUCTIONS,
    TIMER_INTER_STIMULUS,
    TIMER_TRIAL_TIMEOUT,
    TimerRequest,
    TimerSlot,
)
from lab.trial_generator import generate_trials

logger = logging.getLogger(__name__)

INSTRUCTIONS = {
    "saccade": "Focus on the center. A dot will appear around the screen - click it as fast as possible. "
               "Clicks anywhere else won't count.",
    "stroop": "Select the INK COLOR of the word (not the text). Use keys R/B/G/Y or click.",
}

_TIMER_EVENTS = {
    TIMER_INSTRUCTIONS: InstructionsElapsed,
    TIMER_TRIAL_TIMEOUT: TrialTimeout,
    TIMER_INTER_STIMULUS: InterStimulusElapsed,
}


class TrialScheduler:
    """
    Один экземпляр = одна активная сессия.

    Идея:
    - сессией владеет только scheduler, меняется она через transition()
    - таймер всегда один (TimerSlot); перед новым взводом старый снимается
    - update(now_ms) вызывается каждый кадр и "стреляет" сработавшим таймером
    - ответы приходят через submit_click / submit_choice / submit_key
    """

    def __init__(
        self,
        config: LabConfig = LabConfig(),
        rng: Optional[random.Random] = None,
        ruleset: Ruleset = DEFAULT_RULESET,
        on_trial: Optional[Callable[[TrialResult], None]] = None,
        on_complete: Optional[Callable[[AnalysisResult], None]] = None,
    ) -> None:
        self.config = config
        self.rng = rng if rng is not None else random.Random(config.session.seed)
        self.ruleset = ruleset
        self.on_trial = on_trial
        self.on_complete = on_complete

        self.session = TestSession()
        self.timer = TimerSlot()
        self.analysis: Optional[AnalysisResult] = None

        # последние завершённые результаты по каждому тесту
        self.completed: Dict[str, Tuple[TrialResult, ...]] = {}
        self._last_test_type: Optional[str] = None

    # -------------------------
    # Управление
    # -------------------------

    def start(self, test_type: str, now_ms: int, n_trials: Optional[int] = None) -> TestSession:
        # генерация может упасть (ConfigurationError), тогда старая сессия не трогается
        specs = generate_trials(
            test_type,
            n_trials if n_trials is not None else self.config.session.n_trials,
            rng=self.rng,
            palette=self.config.stroop.palette,
            bounds=(self.config.saccade.min_percent, self.config.saccade.max_percent),
        )
        self.analysis = None
        self._last_test_type = test_type
        self._dispatch(StartTest(test_type=test_type, trial_specs=tuple(specs)), now_ms)
        logger.info("Started %s test with %d trials", test_type, len(specs))
        return self.session

    def restart(self, now_ms: int) -> Optional[TestSession]:
        if self._last_test_type is None:
            return None
        return self.start(self._last_test_type, now_ms)

    def abort(self) -> TestSession:
        self.analysis = None
        self._dispatch(Abort(), now_ms=0)
        logger.info("Test aborted")
        return self.session

    def update(self, now_ms: int) -> None:
        fired = self.timer.pop_due(now_ms)
        if fired is None:
            return
        if fired.kind == TIMER_ANALYSIS:
            self._run_analysis()
            return
        self._dispatch(_TIMER_EVENTS[fired.kind](now_ms=now_ms), now_ms)

    # -------------------------
    # Ответы
    # -------------------------

    def submit_click(self, x: float, y: float, now_ms: int, viewport: Viewport) -> Optional[TrialResult]:
        return self._respond(Click(x=x, y=y, viewport=viewport), now_ms)

    def submit_choice(self, color: str, now_ms: int) -> Optional[TrialResult]:
        return self._respond(ColorChoice(color=color), now_ms)

    def submit_key(self, key: str, now_ms: int) -> Optional[TrialResult]:
        color = color_for_key(key, self.config.stroop.key_to_color)
        if color is None or self.session.phase != PHASE_RUNNING:
            return None
        return self.submit_choice(color, now_ms)

    # -------------------------
    # Для интерфейса
    # -------------------------

    @property
    def phase(self) -> str:
        return self.session.phase

    def status_text(self) -> str:
        s = self.session
        if s.phase == PHASE_READY:
            return "Select a cognitive test to begin assessment"
        if s.phase == PHASE_INSTRUCTIONS:
            return f"Instructions: {INSTRUCTIONS.get(s.test_type, '')}"
        if s.phase == PHASE_RUNNING:
            shown = min(s.current_trial + 1, s.n_trials)
            return f"Running {s.test_type} - Trial {shown}/{s.n_trials}"
        if self.analysis is None:
            return "Test complete! Generating comprehensive cognitive analysis..."
        return "Advanced cognitive analysis complete!"

    def has_report(self) -> bool:
        """Есть ли готовый анализ, который можно экспортировать (тест не идёт)."""
        return self.analysis is not None and is_idle(self.session)

    # -------------------------
    # Внутреннее
    # -------------------------

    def _respond(self, answer, now_ms: int) -> Optional[TrialResult]:
        # сначала таймеры: просроченный trial закрывается как Miss, ответ отбрасывается
        self.update(now_ms)
        step = self._dispatch(Response(now_ms=now_ms, answer=answer), now_ms)
        return step.recorded

    def _dispatch(self, event: Event, now_ms: int) -> Step:
        previous_phase = self.session.phase
        step = transition(self.session, event, self.config)

        # сначала снимаем старый таймер, потом взводим новый
        if step.cancel:
            self.timer.clear()
        self.session = step.session
        if step.arm is not None:
            self.timer.arm(step.arm, now_ms)

        if step.session.phase != previous_phase:
            logger.debug("Phase %s -> %s (%s)", previous_phase, step.session.phase, type(event).__name__)

        if step.recorded is not None and self.on_trial is not None:
            self.on_trial(step.recorded)

        if previous_phase != PHASE_COMPLETE and step.session.phase == PHASE_COMPLETE:
            self._finish(now_ms)
        return step

    def _finish(self, now_ms: int) -> None:
        s = self.session
        self.completed[s.test_type] = s.results
        logger.info("%s test complete: %d/%d trials recorded", s.test_type, len(s.results), s.n_trials)

        delay = self.config.timing.analysis_delay_ms
        if delay > 0:
            self.timer.arm(TimerRequest(TIMER_ANALYSIS, delay), now_ms)
        else:
            self._run_analysis()

    def _run_analysis(self) -> None:
        s = self.session
        if s.phase != PHASE_COMPLETE:
            return
        self.analysis = analyze_session(s.test_type, s.results, self.ruleset, self.config.session)
        logger.info(
            "Analysis ready: %s quality=%.0f risk=%s",
            s.test_type,
            self.analysis.quality_score,
            self.analysis.risk_level,
        )
        if self.on_complete is not None:
            self.on_complete(self.analysis)
