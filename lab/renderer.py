import pygame
from typing import Dict, List, Optional, Tuple

from config.settings import StroopConfig
from data.models import AnalysisResult, SaccadeTarget, StroopStimulus


class Renderer:
    """
    Renderer отвечает ТОЛЬКО за рисование.
    Он не считает RT, не решает правильность, не управляет фазами.
    Ему дают данные, он их рисует.
    """

    def __init__(self, screen: pygame.Surface, target_radius_px: int = 22, stroop: StroopConfig = StroopConfig()):
        self.screen = screen
        self.w, self.h = screen.get_size()

        self.font_big = pygame.font.SysFont(None, 96)
        self.font_mid = pygame.font.SysFont(None, 36)
        self.font_small = pygame.font.SysFont(None, 26)

        self.center = (self.w // 2, self.h // 2)
        self.target_radius = target_radius_px

        self.bg_color = (15, 15, 20)
        self.ui_color = (230, 230, 230)
        self.accent_color = (0, 210, 210)
        self.alert_color = (240, 120, 40)

        self.palette = tuple(stroop.palette)
        self.key_labels = {color: key.upper() for key, color in stroop.key_map}

        # RGB для отрисовки; цвет палитры без записи рисуется ui_color
        self.color_map = {
            "red": (220, 60, 60),
            "green": (60, 200, 120),
            "blue": (70, 120, 240),
            "yellow": (240, 210, 60),
        }

        # прямоугольники кнопок ответа для Stroop: цвет -> Rect
        self.choice_rects: Dict[str, pygame.Rect] = {}
        self._layout_choices()

    def _layout_choices(self) -> None:
        names = list(self.palette)
        btn_w, btn_h, gap = 150, 54, 24
        total_w = len(names) * btn_w + (len(names) - 1) * gap
        x = (self.w - total_w) // 2
        y = int(self.h * 0.75)
        for name in names:
            self.choice_rects[name] = pygame.Rect(x, y, btn_w, btn_h)
            x += btn_w + gap

    # -----------------------
    # Базовые методы экрана
    # -----------------------

    def clear(self) -> None:
        self.screen.fill(self.bg_color)

    def present(self) -> None:
        pygame.display.flip()

    def choice_at(self, pos: Tuple[int, int]) -> Optional[str]:
        """Какая кнопка цвета под курсором (или None)."""
        for name, rect in self.choice_rects.items():
            if rect.collidepoint(pos):
                return name
        return None

    # -----------------------
    # Рисование элементов
    # -----------------------

    def draw_status(self, text: str) -> None:
        self._blit_wrapped(text, self.font_small, self.ui_color, top=16)

    def draw_progress(self, percent: float) -> None:
        bar = pygame.Rect(20, self.h - 28, self.w - 40, 10)
        pygame.draw.rect(self.screen, (50, 55, 70), bar)
        filled = bar.copy()
        filled.width = int(bar.width * max(0.0, min(100.0, percent)) / 100.0)
        pygame.draw.rect(self.screen, self.accent_color, filled)

    def draw_menu(self) -> None:
        lines = [
            "1 - Saccade test (click the dot)",
            "2 - Stroop test (answer the INK color)",
            "SPACE - restart, ESC - abort, E - export last report",
        ]
        y = self.h // 2 - 40
        for line in lines:
            surf = self.font_mid.render(line, True, self.ui_color)
            self.screen.blit(surf, surf.get_rect(center=(self.center[0], y)))
            y += 44

    def draw_fixation(self) -> None:
        cx, cy = self.center
        pygame.draw.line(self.screen, self.ui_color, (cx - 12, cy), (cx + 12, cy), 3)
        pygame.draw.line(self.screen, self.ui_color, (cx, cy - 12), (cx, cy + 12), 3)

    def draw_saccade_target(self, target: SaccadeTarget) -> None:
        pos = (int(target.x / 100.0 * self.w), int(target.y / 100.0 * self.h))
        pygame.draw.circle(self.screen, self.alert_color, pos, self.target_radius)

    def draw_stroop(self, stimulus: StroopStimulus) -> None:
        ink = self.color_map.get(stimulus.color, self.ui_color)
        surf = self.font_big.render(stimulus.word.upper(), True, ink)
        self.screen.blit(surf, surf.get_rect(center=(self.center[0], int(self.h * 0.42))))

        for name, rect in self.choice_rects.items():
            pygame.draw.rect(self.screen, self.color_map.get(name, self.ui_color), rect, border_radius=8)
            key = self.key_labels.get(name)
            text = f"{name} ({key})" if key else name
            label = self.font_small.render(text, True, self.bg_color)
            self.screen.blit(label, label.get_rect(center=rect.center))

    def draw_analysis(self, analysis: AnalysisResult) -> None:
        lines: List[Tuple[str, Tuple[int, int, int]]] = [
            (analysis.interpretation, self.ui_color),
            (f"Quality score: {analysis.quality_score:.0f}/100   Risk level: {analysis.risk_level}", self.accent_color),
        ]
        for f in analysis.findings:
            color = self.ui_color if f.severity == "Normal" else self.alert_color
            lines.append((f"[{f.severity}] {f.category}: {f.description}", color))
        for r in analysis.risks:
            lines.append((f"{r.condition}: {r.risk_level} ({r.confidence:.0f}%)", self.alert_color))
        for rec in analysis.recommendations[:4]:
            lines.append((f"- {rec}", self.ui_color))

        y = 70
        for text, color in lines:
            surf = self.font_small.render(text, True, color)
            self.screen.blit(surf, (40, y))
            y += surf.get_height() + 8

    def _blit_wrapped(self, text: str, font: pygame.font.Font, color, top: int) -> None:
        max_w = self.w - 40
        line = ""
        y = top
        for word in text.split():
            candidate = f"{line} {word}".strip()
            if font.size(candidate)[0] <= max_w:
                line = candidate
                continue
            if line:
                surf = font.render(line, True, color)
                self.screen.blit(surf, (20, y))
                y += surf.get_height() + 2
            line = word
        if line:
            self.screen.blit(font.render(line, True, color), (20, y))
