from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


TEST_SACCADE = "saccade"
TEST_STROOP = "stroop"
TEST_TYPES = (TEST_SACCADE, TEST_STROOP)

PHASE_READY = "ready"
PHASE_INSTRUCTIONS = "instructions"
PHASE_RUNNING = "running"
PHASE_COMPLETE = "complete"

OUTCOME_HIT = "hit"
OUTCOME_MISS = "miss"
OUTCOME_FALSE_ALARM = "false_alarm"
OUTCOME_CORRECT_REJECTION = "correct_rejection"

SEVERITY_NORMAL = "Normal"
SEVERITY_MILD = "Mild"
SEVERITY_MODERATE = "Moderate"
SEVERITY_SEVERE = "Severe"

RISK_LOW = "Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"


@dataclass(frozen=True)
class SaccadeTarget:
    """Позиция цели в процентах от ширины/высоты экрана."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class StroopStimulus:
    """Слово-цвет и цвет чернил, которым оно нарисовано."""
    word: str
    color: str

    @property
    def congruent(self) -> bool:
        return self.word == self.color

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "color": self.color}


Stimulus = Union[SaccadeTarget, StroopStimulus]


@dataclass(frozen=True)
class TrialSpec:
    """
    Что нужно показать в конкретном trial-е. Создаётся до старта теста.
    """
    trial_index: int
    test_type: str
    stimulus: Stimulus


@dataclass(frozen=True)
class TrialResult:
    """
    Результат одного trial-а. reaction_time_ms = None, если ответа не было.
    """
    trial_index: int
    reaction_time_ms: Optional[int]
    correct: bool
    outcome_type: str
    stimulus: Stimulus
    response: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trial": self.trial_index + 1,
            "rt": self.reaction_time_ms,
            "correct": self.correct,
            "type": self.outcome_type,
            "stimulus": self.stimulus.to_dict(),
            "response": self.response,
        }


@dataclass(frozen=True)
class TestSession:
    """
    Состояние одного прохождения теста. Меняется только через state_machine.transition.
    """
    test_type: Optional[str] = None
    phase: str = PHASE_READY
    trial_specs: Tuple[TrialSpec, ...] = ()
    results: Tuple[TrialResult, ...] = ()
    current_trial: int = 0

    # ждём ли ответ на текущий trial (debounce)
    awaiting_response: bool = False
    stimulus_onset_ms: Optional[int] = None

    # pytest не должен собирать этот класс как тест
    __test__ = False

    @property
    def n_trials(self) -> int:
        return len(self.trial_specs)

    @property
    def active_spec(self) -> Optional[TrialSpec]:
        if not self.awaiting_response or self.current_trial >= len(self.trial_specs):
            return None
        return self.trial_specs[self.current_trial]

    @property
    def progress_percent(self) -> float:
        if not self.trial_specs:
            return 0.0
        if self.phase == PHASE_COMPLETE:
            return 100.0
        return len(self.results) / len(self.trial_specs) * 100.0


@dataclass(frozen=True)
class SummaryStatistics:
    trimmed_mean_rt: Optional[float]
    accuracy_percent: float
    hits: int
    misses: int
    false_alarms: int
    correct_rejections: int
    d_prime: Optional[float]
    data_quality_score: float
    total_trials: int = 0
    valid_rt_count: int = 0
    mean_rt: Optional[float] = None
    median_rt: Optional[float] = None
    rt_sd: Optional[float] = None
    interference_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClinicalFinding:
    category: str
    description: str
    severity: str
    significance: str


@dataclass(frozen=True)
class RiskAssessment:
    condition: str
    risk_level: str
    risk_factors: Tuple[str, ...]
    confidence: float
    clinical_markers: Tuple[str, ...]


@dataclass(frozen=True)
class CognitiveProfile:
    executive_function: int = 75
    processing_speed: int = 75
    attentional_control: int = 75
    working_memory: int = 75
    cognitive_flexibility: int = 75
    response_inhibition: int = 75


@dataclass(frozen=True)
class AnalysisResult:
    """
    Итог анализа одного завершённого теста. Отдаётся экспортёру и интерфейсу.
    """
    timestamp: str
    test_type: str
    summary: SummaryStatistics
    findings: Tuple[ClinicalFinding, ...]
    risks: Tuple[RiskAssessment, ...]
    profile: CognitiveProfile
    quality_score: float
    risk_level: str
    recommendations: Tuple[str, ...]
    ruleset_version: str
    interpretation: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["findings"] = [asdict(f) for f in self.findings]
        payload["risks"] = [asdict(r) for r in self.risks]
        payload["recommendations"] = list(self.recommendations)
        return payload
