import math
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from config.settings import SaccadeConfig, StroopConfig
from data.models import (
    OUTCOME_FALSE_ALARM,
    OUTCOME_HIT,
    OUTCOME_MISS,
    SaccadeTarget,
    StroopStimulus,
    TrialResult,
    TrialSpec,
)

KEY_TO_COLOR = dict(StroopConfig.key_map)


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class Click:
    x: float
    y: float
    viewport: Viewport


@dataclass(frozen=True)
class ColorChoice:
    color: str


def color_for_key(key: str, key_map: Optional[Mapping[str, str]] = None) -> Optional[str]:
    mapping = KEY_TO_COLOR if key_map is None else key_map
    return mapping.get((key or "").lower())


def hit_radius(viewport: Viewport, cfg: SaccadeConfig) -> float:
    scale = min(viewport.width / cfg.reference_width, viewport.height / cfg.reference_height)
    return cfg.hit_radius_px * scale


def target_to_pixels(target: SaccadeTarget, viewport: Viewport) -> Tuple[float, float]:
    return target.x / 100.0 * viewport.width, target.y / 100.0 * viewport.height


def classify_click(target: SaccadeTarget, click: Click, cfg: SaccadeConfig) -> Tuple[bool, str, str]:
    target_x, target_y = target_to_pixels(target, click.viewport)
    dist = math.hypot(click.x - target_x, click.y - target_y)
    within = dist <= hit_radius(click.viewport, cfg)
    if within:
        return True, OUTCOME_HIT, "hit"
    return False, OUTCOME_FALSE_ALARM, "outside_click"


def classify_choice(stimulus: StroopStimulus, choice: ColorChoice) -> Tuple[bool, str, str]:
    # отвечать надо цветом чернил, а не словом
    if choice.color == stimulus.color:
        return True, OUTCOME_HIT, choice.color
    return False, OUTCOME_FALSE_ALARM, choice.color


def reaction_time(onset_ms: Optional[int], response_ms: int) -> int:
    start = onset_ms if onset_ms is not None else response_ms
    return max(0, int(round(response_ms - start)))


def is_valid_response(spec: TrialSpec, response, palette) -> bool:
    if isinstance(spec.stimulus, SaccadeTarget):
        return isinstance(response, Click)
    if isinstance(spec.stimulus, StroopStimulus):
        return isinstance(response, ColorChoice) and response.color in palette
    return False


def validate_response(
    spec: TrialSpec,
    response,
    onset_ms: Optional[int],
    now_ms: int,
    cfg: SaccadeConfig,
) -> TrialResult:
    """
    Превращает один ответ испытуемого в TrialResult.
    Ответ должен подходить к типу trial-а (проверяется is_valid_response).
    """
    if isinstance(spec.stimulus, SaccadeTarget):
        correct, outcome, label = classify_click(spec.stimulus, response, cfg)
    else:
        correct, outcome, label = classify_choice(spec.stimulus, response)

    return TrialResult(
        trial_index=spec.trial_index,
        reaction_time_ms=reaction_time(onset_ms, now_ms),
        correct=correct,
        outcome_type=outcome,
        stimulus=spec.stimulus,
        response=label,
    )


def timeout_result(spec: TrialSpec) -> TrialResult:
    return TrialResult(
        trial_index=spec.trial_index,
        reaction_time_ms=None,
        correct=False,
        outcome_type=OUTCOME_MISS,
        stimulus=spec.stimulus,
        response=None,
    )
