import random
from typing import Optional, Sequence

from config.settings import StroopConfig
from data.errors import ConfigurationError
from data.models import (
    TEST_SACCADE,
    TEST_STROOP,
    SaccadeTarget,
    StroopStimulus,
    TrialSpec,
)

COLORS = StroopConfig.palette


def sample_saccade_target(rng: random.Random, low: float = 10.0, high: float = 90.0) -> SaccadeTarget:
    # цель никогда не появляется у самого края экрана
    return SaccadeTarget(x=rng.uniform(low, high), y=rng.uniform(low, high))


def sample_incongruent(rng: random.Random, palette: Sequence[str]) -> StroopStimulus:
    word = rng.choice(palette)
    color = rng.choice([c for c in palette if c != word])
    return StroopStimulus(word=word, color=color)


def make_saccade_trials(n_trials: int, rng: random.Random, low: float = 10.0, high: float = 90.0) -> list[TrialSpec]:
    return [
        TrialSpec(trial_index=i, test_type=TEST_SACCADE, stimulus=sample_saccade_target(rng, low, high))
        for i in range(n_trials)
    ]


def make_stroop_trials(n_trials: int, rng: random.Random, palette: Sequence[str] = COLORS) -> list[TrialSpec]:
    """
    Ровно n // 2 конгруэнтных trial-ов, остальные неконгруэнтные.
    Потом всё перемешиваем, чтобы конгруэнтность не шла блоками.
    """
    if len(palette) < 2:
        raise ConfigurationError("Stroop palette needs at least two colors")

    half = n_trials // 2
    stimuli: list[StroopStimulus] = []
    for _ in range(half):
        color = rng.choice(palette)
        stimuli.append(StroopStimulus(word=color, color=color))
    for _ in range(half, n_trials):
        stimuli.append(sample_incongruent(rng, palette))

    rng.shuffle(stimuli)

    return [
        TrialSpec(trial_index=i, test_type=TEST_STROOP, stimulus=stimulus)
        for i, stimulus in enumerate(stimuli)
    ]


def generate_trials(
    test_type: str,
    n_trials: int = 20,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    palette: Sequence[str] = COLORS,
    bounds: tuple = (10.0, 90.0),
) -> list[TrialSpec]:
    """
    Генерирует весь список TrialSpec заранее, до старта теста.

    - rng можно передать снаружи; иначе создаём random.Random(seed)
    - одинаковый seed даёт одинаковую последовательность
    - после генерации случайность больше не используется
    """
    if isinstance(n_trials, bool) or not isinstance(n_trials, int) or n_trials <= 0:
        raise ConfigurationError(f"n_trials must be a positive integer, got {n_trials!r}")
    if test_type not in (TEST_SACCADE, TEST_STROOP):
        raise ConfigurationError(f"Unsupported test_type: {test_type!r}")

    if rng is None:
        rng = random.Random(seed)

    if test_type == TEST_SACCADE:
        return make_saccade_trials(n_trials, rng, bounds[0], bounds[1])
    return make_stroop_trials(n_trials, rng, palette)
