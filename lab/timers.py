from dataclasses import dataclass
from typing import Optional

from data.errors import SchedulerError

TIMER_INSTRUCTIONS = "INSTRUCTIONS"
TIMER_TRIAL_TIMEOUT = "TRIAL_TIMEOUT"
TIMER_INTER_STIMULUS = "INTER_STIMULUS"
TIMER_ANALYSIS = "ANALYSIS"


@dataclass(frozen=True)
class TimerRequest:
    """Что взвести: тип таймера и задержка в мс."""
    kind: str
    delay_ms: int


@dataclass(frozen=True)
class PendingTimer:
    kind: str
    fire_at_ms: int


class TimerSlot:
    """
    Одноразовый таймер. Одновременно может ждать только один.

    Время не берётся из системы: его передаёт главный цикл (pygame ticks)
    или тест (фальшивые часы), как и в state machine.
    """

    def __init__(self) -> None:
        self._pending: Optional[PendingTimer] = None

    @property
    def pending(self) -> Optional[PendingTimer]:
        return self._pending

    def is_pending(self) -> bool:
        return self._pending is not None

    def arm(self, request: TimerRequest, now_ms: int) -> PendingTimer:
        if self._pending is not None:
            raise SchedulerError(
                f"Cannot arm {request.kind}: {self._pending.kind} is still pending"
            )
        self._pending = PendingTimer(kind=request.kind, fire_at_ms=now_ms + max(0, request.delay_ms))
        return self._pending

    def clear(self) -> Optional[PendingTimer]:
        cleared = self._pending
        self._pending = None
        return cleared

    def pop_due(self, now_ms: int) -> Optional[PendingTimer]:
        """Если таймер сработал, снимаем его и возвращаем."""
        if self._pending is None or now_ms < self._pending.fire_at_ms:
            return None
        fired = self._pending
        self._pending = None
        return fired
