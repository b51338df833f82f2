from dataclasses import dataclass, field

RULESET_VERSION = "cognition-rules-1.0"


@dataclass(frozen=True)
class SaccadeRules:
    delayed_rt_ms: float = 800
    moderate_rt_ms: float = 1000
    severe_rt_ms: float = 1200
    anticipatory_rt_ms: float = 150

    parkinson_rt_ms: float = 600
    parkinson_medium_rt_ms: float = 800
    parkinson_high_rt_ms: float = 1000
    parkinson_precision_accuracy: float = 80
    parkinson_confidence_base: float = 60
    parkinson_confidence_cap: float = 95

    # (RT - offset) / divisor
    processing_speed: tuple = (200, 10)
    attentional_control: tuple = (300, 8)
    executive_accuracy_bonus: float = 10


@dataclass(frozen=True)
class StroopRules:
    delayed_rt_ms: float = 1500
    moderate_rt_ms: float = 1800
    severe_rt_ms: float = 2000

    alzheimer_accuracy: float = 75
    alzheimer_high_accuracy: float = 60
    alzheimer_confidence_base: float = 50
    alzheimer_confidence_cap: float = 90

    adhd_rt_ms: float = 1500
    adhd_accuracy: float = 80
    adhd_high_rt_ms: float = 1800
    adhd_high_accuracy: float = 70
    adhd_confidence_base: float = 40
    adhd_confidence_rt_divisor: float = 30
    adhd_confidence_cap: float = 85

    executive_function: tuple = (800, 15)
    response_inhibition: tuple = (900, 12)
    cognitive_flexibility: tuple = (1000, 10)
    attentional_accuracy_bonus: float = 5


@dataclass(frozen=True)
class AccuracyRules:
    impaired: float = 70
    moderate: float = 60
    severe: float = 50
    excellent: float = 90


@dataclass(frozen=True)
class Ruleset:
    """
    Все пороги клинических правил в одном месте.
    Правила иллюстративные, это не медицинское изделие.
    """
    version: str = RULESET_VERSION
    saccade: SaccadeRules = field(default_factory=SaccadeRules)
    stroop: StroopRules = field(default_factory=StroopRules)
    accuracy: AccuracyRules = field(default_factory=AccuracyRules)
    baseline_score: int = 75
    low_profile_score: int = 50


DEFAULT_RULESET = Ruleset()
