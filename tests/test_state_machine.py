"""
Pure transition tests: (session, event) -> Step, no clock and no pygame.
"""

import pytest

from data.models import (
    OUTCOME_HIT,
    OUTCOME_MISS,
    PHASE_COMPLETE,
    PHASE_INSTRUCTIONS,
    PHASE_READY,
    PHASE_RUNNING,
    TEST_SACCADE,
    TEST_STROOP,
    TestSession,
)
from lab.responses import Click, ColorChoice
from lab.state_machine import (
    Abort,
    InstructionsElapsed,
    InterStimulusElapsed,
    Response,
    StartTest,
    TrialTimeout,
    is_idle,
    transition,
    trial_timeout_ms,
)
from lab.timers import TIMER_INSTRUCTIONS, TIMER_INTER_STIMULUS, TIMER_TRIAL_TIMEOUT
from lab.trial_generator import generate_trials


def started(config, test_type=TEST_SACCADE, n=3, seed=1):
    specs = tuple(generate_trials(test_type, n, seed=seed))
    return transition(TestSession(), StartTest(test_type, specs), config).session


def running(config, test_type=TEST_SACCADE, n=3, now_ms=4000):
    return transition(started(config, test_type, n), InstructionsElapsed(now_ms), config).session


class TestStart:

    def test_start_enters_instructions(self, config):
        specs = tuple(generate_trials(TEST_STROOP, 4, seed=2))
        step = transition(TestSession(), StartTest(TEST_STROOP, specs), config)
        assert step.session.phase == PHASE_INSTRUCTIONS
        assert step.session.test_type == TEST_STROOP
        assert step.session.trial_specs == specs
        assert step.session.results == ()
        assert step.cancel is True
        assert step.arm.kind == TIMER_INSTRUCTIONS
        assert step.arm.delay_ms == 4000

    def test_start_while_running_discards_progress(self, config, viewport):
        s = running(config)
        s = transition(s, TrialTimeout(6000), config).session
        assert len(s.results) == 1

        specs = tuple(generate_trials(TEST_STROOP, 5, seed=9))
        step = transition(s, StartTest(TEST_STROOP, specs), config)
        assert step.cancel is True
        assert step.session.phase == PHASE_INSTRUCTIONS
        assert step.session.results == ()
        assert step.session.current_trial == 0


class TestPresentation:

    def test_instructions_elapsed_presents_first_trial(self, config):
        step = transition(started(config), InstructionsElapsed(4000), config)
        s = step.session
        assert s.phase == PHASE_RUNNING
        assert s.current_trial == 0
        assert s.awaiting_response is True
        assert s.stimulus_onset_ms == 4000
        assert step.arm.kind == TIMER_TRIAL_TIMEOUT
        assert step.arm.delay_ms == 2000

    def test_stroop_uses_longer_timeout(self, config):
        step = transition(started(config, TEST_STROOP), InstructionsElapsed(4000), config)
        assert step.arm.delay_ms == 3000
        assert trial_timeout_ms(TEST_STROOP, config) == 3000
        assert trial_timeout_ms(TEST_SACCADE, config) == 2000

    def test_instructions_elapsed_out_of_phase_is_ignored(self, config):
        s = running(config)
        step = transition(s, InstructionsElapsed(5000), config)
        assert step.session is s
        assert step.arm is None
        assert step.cancel is False


class TestResponses:

    def test_hit_records_and_arms_isi(self, config, viewport):
        s = running(config)
        target = s.active_spec.stimulus
        click = Click(target.x / 100 * 1280, target.y / 100 * 720, viewport)

        step = transition(s, Response(4250, click), config)
        assert step.recorded.outcome_type == OUTCOME_HIT
        assert step.recorded.reaction_time_ms == 250
        assert step.cancel is True
        assert step.arm.kind == TIMER_INTER_STIMULUS
        assert step.arm.delay_ms == 400
        assert step.session.current_trial == 1
        assert step.session.awaiting_response is False
        assert step.session.active_spec is None

    def test_second_response_is_debounced(self, config, viewport):
        s = running(config)
        first = transition(s, Response(4200, Click(0, 0, viewport)), config).session
        step = transition(first, Response(4210, Click(0, 0, viewport)), config)
        assert step.session is first
        assert step.recorded is None
        assert len(first.results) == 1

    def test_late_response_records_miss(self, config, viewport):
        s = running(config)
        target = s.active_spec.stimulus
        click = Click(target.x / 100 * 1280, target.y / 100 * 720, viewport)

        step = transition(s, Response(6000, click), config)
        assert step.recorded.outcome_type == OUTCOME_MISS
        assert step.recorded.reaction_time_ms is None
        assert step.recorded.response is None
        assert step.arm.kind == TIMER_INTER_STIMULUS
        assert step.session.current_trial == 1

    def test_late_stroop_choice_records_miss(self, config):
        s = running(config, TEST_STROOP)
        ink = s.active_spec.stimulus.color
        step = transition(s, Response(9000, ColorChoice(ink)), config)
        assert step.recorded.outcome_type == OUTCOME_MISS
        assert step.recorded.correct is False

    def test_response_that_does_not_fit_is_ignored(self, config):
        s = running(config)
        step = transition(s, Response(4200, ColorChoice("red")), config)
        assert step.session is s
        assert step.recorded is None

    def test_response_before_running_is_ignored(self, config, viewport):
        s = started(config)
        step = transition(s, Response(100, Click(1, 1, viewport)), config)
        assert step.session is s

    def test_isi_presents_next_trial(self, config, viewport):
        s = transition(running(config), Response(4200, Click(0, 0, viewport)), config).session
        step = transition(s, InterStimulusElapsed(4600), config)
        assert step.session.awaiting_response is True
        assert step.session.stimulus_onset_ms == 4600
        assert step.session.active_spec.trial_index == 1
        assert step.arm.kind == TIMER_TRIAL_TIMEOUT


class TestTimeoutAndCompletion:

    def test_timeout_records_miss(self, config):
        step = transition(running(config), TrialTimeout(6000), config)
        assert step.recorded.outcome_type == OUTCOME_MISS
        assert step.recorded.reaction_time_ms is None
        assert step.session.current_trial == 1

    def test_timeout_while_not_awaiting_is_ignored(self, config):
        s = transition(running(config), TrialTimeout(6000), config).session
        step = transition(s, TrialTimeout(6001), config)
        assert step.session is s

    def test_last_trial_completes_session(self, config):
        s = running(config, n=2)
        s = transition(s, TrialTimeout(6000), config).session
        s = transition(s, InterStimulusElapsed(6400), config).session
        step = transition(s, TrialTimeout(8400), config)

        done = step.session
        assert done.phase == PHASE_COMPLETE
        assert done.current_trial == 2
        assert len(done.results) == 2
        assert [r.trial_index for r in done.results] == [0, 1]
        assert step.cancel is True
        assert step.arm is None
        assert done.progress_percent == 100.0
        assert is_idle(done)

    def test_results_never_exceed_trials(self, config):
        s = running(config, n=1)
        s = transition(s, TrialTimeout(6000), config).session
        for event in (TrialTimeout(7000), InterStimulusElapsed(7000), InstructionsElapsed(7000)):
            s = transition(s, event, config).session
        assert len(s.results) == 1
        assert s.phase == PHASE_COMPLETE


class TestAbort:

    def test_abort_resets_everything(self, config):
        step = transition(running(config), Abort(), config)
        assert step.session == TestSession()
        assert step.session.phase == PHASE_READY
        assert step.cancel is True

    def test_unknown_event_raises(self, config):
        with pytest.raises(ValueError):
            transition(TestSession(), object(), config)
