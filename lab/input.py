import pygame
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from config.settings import StroopConfig

CMD_START_SACCADE = "START_SACCADE"
CMD_START_STROOP = "START_STROOP"
CMD_RESTART = "RESTART"
CMD_ABORT = "ABORT"
CMD_EXPORT = "EXPORT"


@dataclass(frozen=True)
class InputAction:
    """
    Одно действие пользователя за кадр:
    - kind: "CLICK" / "COLOR" / "COMMAND"
    - pos: координаты клика (для CLICK)
    - value: цвет или команда
    """
    kind: str
    pos: Optional[Tuple[int, int]] = None
    value: Optional[str] = None


class InputManager:
    """
    InputManager: прослойка между pygame и scheduler-ом.

    - KEYDOWN R/B/G/Y -> ответ цветом (Stroop)
    - MOUSEBUTTONDOWN -> клик (саккады или кнопка цвета)
    - 1/2/SPACE/E -> команды запуска, перезапуска, экспорта
    - ESC -> прервать тест

    В отличие от одиночного "последнего нажатия", копим действия по порядку:
    scheduler сам отбросит лишние ответы на один trial.
    """

    def __init__(self, key_map: Sequence[Tuple[str, str]] = StroopConfig.key_map):
        self._queue: List[InputAction] = []
        self.key_to_color = {key.lower(): color for key, color in key_map}

        self.key_to_command = {
            pygame.K_1: CMD_START_SACCADE,
            pygame.K_2: CMD_START_STROOP,
            pygame.K_SPACE: CMD_RESTART,
            pygame.K_ESCAPE: CMD_ABORT,
            pygame.K_e: CMD_EXPORT,
        }

    def process_pygame_event(self, event) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._queue.append(InputAction(kind="CLICK", pos=tuple(event.pos)))
            return

        if event.type != pygame.KEYDOWN:
            return

        if event.key in self.key_to_command:
            self._queue.append(InputAction(kind="COMMAND", value=self.key_to_command[event.key]))
            return

        char = (event.unicode or pygame.key.name(event.key) or "").lower()
        if char in self.key_to_color:
            self._queue.append(InputAction(kind="COLOR", value=self.key_to_color[char]))

    def poll_actions(self) -> List[InputAction]:
        """Забираем всё, что накопилось за кадр, и очищаем очередь."""
        actions = self._queue
        self._queue = []
        return actions

    def reset(self) -> None:
        self._queue = []
