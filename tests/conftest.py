import random
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import LabConfig, TimingConfig  # noqa: E402
from data.models import (  # noqa: E402
    OUTCOME_FALSE_ALARM,
    OUTCOME_HIT,
    OUTCOME_MISS,
    SaccadeTarget,
    StroopStimulus,
    TrialResult,
)
from lab.responses import Viewport  # noqa: E402
from lab.scheduler import TrialScheduler  # noqa: E402


@pytest.fixture
def config():
    return LabConfig()


@pytest.fixture
def viewport():
    return Viewport(width=1280, height=720)


@pytest.fixture
def scheduler(config):
    return TrialScheduler(config, rng=random.Random(7))


def make_result(index, rt, outcome=OUTCOME_HIT, stimulus=None, response="hit"):
    return TrialResult(
        trial_index=index,
        reaction_time_ms=rt,
        correct=outcome == OUTCOME_HIT,
        outcome_type=outcome,
        stimulus=stimulus or SaccadeTarget(x=50.0, y=50.0),
        response=None if outcome == OUTCOME_MISS else response,
    )


def hit(index, rt, stimulus=None):
    return make_result(index, rt, OUTCOME_HIT, stimulus)


def miss(index, stimulus=None):
    return make_result(index, None, OUTCOME_MISS, stimulus)


def false_alarm(index, rt, stimulus=None):
    return make_result(index, rt, OUTCOME_FALSE_ALARM, stimulus, response="outside_click")


def stroop(word, color):
    return StroopStimulus(word=word, color=color)


def delayed_config(analysis_delay_ms):
    return LabConfig(timing=TimingConfig(analysis_delay_ms=analysis_delay_ms))
