import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from config.settings import LabConfig
from data.models import (
    PHASE_COMPLETE,
    PHASE_INSTRUCTIONS,
    PHASE_READY,
    PHASE_RUNNING,
    TEST_SACCADE,
    TestSession,
    TrialResult,
    TrialSpec,
)
from lab.responses import Click, ColorChoice, is_valid_response, timeout_result, validate_response
from lab.timers import (
    TIMER_INSTRUCTIONS,
    TIMER_INTER_STIMULUS,
    TIMER_TRIAL_TIMEOUT,
    TimerRequest,
)

logger = logging.getLogger(__name__)


# События, которые двигают сессию
@dataclass(frozen=True)
class StartTest:
    test_type: str
    trial_specs: Tuple[TrialSpec, ...]


@dataclass(frozen=True)
class InstructionsElapsed:
    now_ms: int


@dataclass(frozen=True)
class TrialTimeout:
    now_ms: int


@dataclass(frozen=True)
class Response:
    now_ms: int
    answer: Union[Click, ColorChoice]


@dataclass(frozen=True)
class InterStimulusElapsed:
    now_ms: int


@dataclass(frozen=True)
class Abort:
    pass


Event = Union[StartTest, InstructionsElapsed, TrialTimeout, Response, InterStimulusElapsed, Abort]


@dataclass(frozen=True)
class Step:
    """
    Результат перехода:
    - session: новая сессия
    - arm: какой таймер взвести (или None)
    - cancel: снять ли текущий таймер до этого
    - recorded: TrialResult, если в этом шаге записали результат
    """
    session: TestSession
    arm: Optional[TimerRequest] = None
    cancel: bool = False
    recorded: Optional[TrialResult] = None


def trial_timeout_ms(test_type: str, config: LabConfig) -> int:
    if test_type == TEST_SACCADE:
        return config.timing.saccade_timeout_ms
    return config.timing.stroop_timeout_ms


def _past_deadline(session: TestSession, now_ms: int, config: LabConfig) -> bool:
    if session.stimulus_onset_ms is None:
        return False
    return now_ms - session.stimulus_onset_ms >= trial_timeout_ms(session.test_type, config)


def _present(session: TestSession, now_ms: int, config: LabConfig) -> Step:
    # показываем trial current_trial и ждём ответ
    presented = replace(session, phase=PHASE_RUNNING, awaiting_response=True, stimulus_onset_ms=now_ms)
    timeout = TimerRequest(TIMER_TRIAL_TIMEOUT, trial_timeout_ms(session.test_type, config))
    return Step(session=presented, arm=timeout)


def _record_and_advance(session: TestSession, result: TrialResult, config: LabConfig) -> Step:
    results = session.results + (result,)
    next_index = session.current_trial + 1

    if next_index >= len(session.trial_specs):
        finished = replace(
            session,
            phase=PHASE_COMPLETE,
            results=results,
            current_trial=len(session.trial_specs),
            awaiting_response=False,
            stimulus_onset_ms=None,
        )
        return Step(session=finished, cancel=True, recorded=result)

    advanced = replace(
        session,
        results=results,
        current_trial=next_index,
        awaiting_response=False,
        stimulus_onset_ms=None,
    )
    isi = TimerRequest(TIMER_INTER_STIMULUS, config.timing.inter_stimulus_ms)
    return Step(session=advanced, arm=isi, cancel=True, recorded=result)


def transition(session: TestSession, event: Event, config: LabConfig) -> Step:
    """
    Чистая функция: (session, event) -> Step.

    Ничего не знает про pygame и реальное время. События, которые не подходят
    к текущей фазе, просто игнорируются (сессия не меняется, таймер не трогаем).
    """
    if isinstance(event, Abort):
        return Step(session=TestSession(), cancel=True)

    if isinstance(event, StartTest):
        fresh = TestSession(
            test_type=event.test_type,
            phase=PHASE_INSTRUCTIONS,
            trial_specs=tuple(event.trial_specs),
        )
        return Step(
            session=fresh,
            arm=TimerRequest(TIMER_INSTRUCTIONS, config.timing.instructions_ms),
            cancel=True,
        )

    if isinstance(event, InstructionsElapsed):
        if session.phase != PHASE_INSTRUCTIONS:
            return Step(session=session)
        return _present(replace(session, current_trial=0), event.now_ms, config)

    if isinstance(event, InterStimulusElapsed):
        if session.phase != PHASE_RUNNING or session.awaiting_response:
            return Step(session=session)
        return _present(session, event.now_ms, config)

    if isinstance(event, TrialTimeout):
        if session.phase != PHASE_RUNNING or not session.awaiting_response:
            return Step(session=session)
        spec = session.trial_specs[session.current_trial]
        return _record_and_advance(session, timeout_result(spec), config)

    if isinstance(event, Response):
        if session.phase != PHASE_RUNNING or not session.awaiting_response:
            logger.debug("Response discarded: no trial is waiting for an answer")
            return Step(session=session)
        spec = session.trial_specs[session.current_trial]
        if _past_deadline(session, event.now_ms, config):
            # таймаут ещё не опрошен, но ответ уже опоздал: это Miss
            logger.debug("Late response at %d discarded for trial %d", event.now_ms, spec.trial_index)
            return _record_and_advance(session, timeout_result(spec), config)
        if not is_valid_response(spec, event.answer, config.stroop.palette):
            logger.debug("Response %r does not fit trial %d", event.answer, spec.trial_index)
            return Step(session=session)
        result = validate_response(
            spec,
            event.answer,
            onset_ms=session.stimulus_onset_ms,
            now_ms=event.now_ms,
            cfg=config.saccade,
        )
        return _record_and_advance(session, result, config)

    # Если событие вдруг неизвестное, это ошибка в коде
    raise ValueError(f"Unknown event: {event!r}")


def is_idle(session: TestSession) -> bool:
    return session.phase in (PHASE_READY, PHASE_COMPLETE)
