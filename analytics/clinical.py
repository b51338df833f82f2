from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from analytics.ruleset import DEFAULT_RULESET, Ruleset
from data.models import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    SEVERITY_MILD,
    SEVERITY_MODERATE,
    SEVERITY_NORMAL,
    SEVERITY_SEVERE,
    TEST_SACCADE,
    TEST_STROOP,
    ClinicalFinding,
    CognitiveProfile,
    RiskAssessment,
)

CATEGORY_OCULOMOTOR = "Oculomotor Function"
CATEGORY_EXECUTIVE = "Executive Function"
CATEGORY_RESPONSE_PATTERN = "Response Pattern"
CATEGORY_PERFORMANCE = "Cognitive Performance"
CATEGORY_WORKING_MEMORY = "Working Memory"

RT_CATEGORIES = (CATEGORY_OCULOMOTOR, CATEGORY_EXECUTIVE)

GENERAL_RECOMMENDATIONS = (
    "Regular cognitive monitoring and follow-up assessments",
    "Maintain healthy sleep, exercise, and nutrition habits for optimal cognitive function",
)
CONTINUE_MONITORING = "Continue regular cognitive assessments to maintain current performance levels"


@dataclass(frozen=True)
class ClinicalReport:
    findings: Tuple[ClinicalFinding, ...]
    risks: Tuple[RiskAssessment, ...]
    profile: CognitiveProfile
    recommendations: Tuple[str, ...]
    risk_level: str


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _graded(value: float, moderate: float, severe: float) -> str:
    if value > severe:
        return SEVERITY_SEVERE
    if value > moderate:
        return SEVERITY_MODERATE
    return SEVERITY_MILD


def generate_findings(
    test_type: str,
    avg_rt: Optional[float],
    accuracy: float,
    ruleset: Ruleset = DEFAULT_RULESET,
) -> List[ClinicalFinding]:
    findings: List[ClinicalFinding] = []

    if avg_rt is not None:
        if test_type == TEST_SACCADE:
            rules = ruleset.saccade
            if avg_rt > rules.delayed_rt_ms:
                findings.append(ClinicalFinding(
                    category=CATEGORY_OCULOMOTOR,
                    description=f"Significantly delayed saccadic reaction time ({round(avg_rt)}ms)",
                    severity=_graded(avg_rt, rules.moderate_rt_ms, rules.severe_rt_ms),
                    significance="May indicate oculomotor dysfunction, cerebellar involvement, or basal ganglia disorders",
                ))
            elif avg_rt < rules.anticipatory_rt_ms:
                findings.append(ClinicalFinding(
                    category=CATEGORY_RESPONSE_PATTERN,
                    description=f"Unusually fast responses ({round(avg_rt)}ms)",
                    severity=SEVERITY_MILD,
                    significance="Possible anticipatory responses or impulsive behavior pattern",
                ))
            else:
                findings.append(ClinicalFinding(
                    category=CATEGORY_OCULOMOTOR,
                    description=f"Normal saccadic reaction time ({round(avg_rt)}ms)",
                    severity=SEVERITY_NORMAL,
                    significance="Intact oculomotor control and visual-motor integration",
                ))
        elif test_type == TEST_STROOP:
            rules = ruleset.stroop
            if avg_rt > rules.delayed_rt_ms:
                findings.append(ClinicalFinding(
                    category=CATEGORY_EXECUTIVE,
                    description=f"Prolonged Stroop interference resolution ({round(avg_rt)}ms)",
                    severity=_graded(avg_rt, rules.moderate_rt_ms, rules.severe_rt_ms),
                    significance="Suggests impaired cognitive control and interference resolution",
                ))
            else:
                findings.append(ClinicalFinding(
                    category=CATEGORY_EXECUTIVE,
                    description=f"Efficient cognitive control ({round(avg_rt)}ms)",
                    severity=SEVERITY_NORMAL,
                    significance="Good executive function and attentional control",
                ))

    acc = ruleset.accuracy
    if accuracy < acc.impaired:
        if accuracy < acc.severe:
            severity = SEVERITY_SEVERE
        elif accuracy < acc.moderate:
            severity = SEVERITY_MODERATE
        else:
            severity = SEVERITY_MILD
        findings.append(ClinicalFinding(
            category=CATEGORY_PERFORMANCE,
            description=f"Significantly impaired accuracy ({accuracy:.1f}%)",
            severity=severity,
            significance="May indicate attention deficits, cognitive impairment, or neurological dysfunction",
        ))
    elif accuracy >= acc.excellent:
        findings.append(ClinicalFinding(
            category=CATEGORY_PERFORMANCE,
            description=f"Excellent cognitive accuracy ({accuracy:.1f}%)",
            severity=SEVERITY_NORMAL,
            significance="Intact cognitive processing and attention mechanisms",
        ))

    return findings


def assess_risks(
    test_type: str,
    avg_rt: Optional[float],
    accuracy: float,
    ruleset: Ruleset = DEFAULT_RULESET,
) -> List[RiskAssessment]:
    assessments: List[RiskAssessment] = []

    sac = ruleset.saccade
    if test_type == TEST_SACCADE and avg_rt is not None and avg_rt > sac.parkinson_rt_ms:
        factors = []
        if avg_rt > sac.parkinson_medium_rt_ms:
            factors.append("Significantly delayed saccadic initiation")
        if accuracy < sac.parkinson_precision_accuracy:
            factors.append("Reduced oculomotor precision")
        markers = ["Oculomotor dysfunction"]
        if avg_rt > sac.parkinson_high_rt_ms:
            markers.append("Severe bradykinesia markers")

        if avg_rt > sac.parkinson_high_rt_ms:
            level = RISK_HIGH
        elif avg_rt > sac.parkinson_medium_rt_ms:
            level = RISK_MEDIUM
        else:
            level = RISK_LOW
        confidence = min(sac.parkinson_confidence_cap, sac.parkinson_confidence_base + (avg_rt - sac.parkinson_rt_ms) / 10)
        assessments.append(RiskAssessment(
            condition="Parkinson's Disease",
            risk_level=level,
            risk_factors=tuple(factors),
            confidence=clamp(confidence),
            clinical_markers=tuple(markers),
        ))

    st = ruleset.stroop
    if test_type == TEST_STROOP and accuracy < st.alzheimer_accuracy:
        factors = ["Impaired cognitive accuracy"]
        if avg_rt is not None and avg_rt > st.delayed_rt_ms:
            factors.append("Executive dysfunction")
        confidence = min(st.alzheimer_confidence_cap, st.alzheimer_confidence_base + abs(st.alzheimer_accuracy - accuracy))
        assessments.append(RiskAssessment(
            condition="Alzheimer's Disease",
            risk_level=RISK_HIGH if accuracy < st.alzheimer_high_accuracy else RISK_MEDIUM,
            risk_factors=tuple(factors),
            confidence=clamp(confidence),
            clinical_markers=("Cognitive decline markers",),
        ))

    if test_type == TEST_STROOP and avg_rt is not None:
        slow = avg_rt > st.adhd_rt_ms
        inaccurate = accuracy < st.adhd_accuracy
        if slow or inaccurate:
            factors = []
            if slow:
                factors.append("Prolonged interference resolution")
            if inaccurate:
                factors.append("Attention and inhibition deficits")
            high = avg_rt > st.adhd_high_rt_ms and accuracy < st.adhd_high_accuracy
            confidence = min(st.adhd_confidence_cap, st.adhd_confidence_base + avg_rt / st.adhd_confidence_rt_divisor)
            assessments.append(RiskAssessment(
                condition="ADHD",
                risk_level=RISK_HIGH if high else RISK_MEDIUM,
                risk_factors=tuple(factors),
                confidence=clamp(confidence),
                clinical_markers=("Executive function impairment", "Cognitive control difficulties"),
            ))

    return assessments


def _rt_score(avg_rt: float, transform: tuple) -> float:
    offset, divisor = transform
    return clamp(100 - (avg_rt - offset) / divisor)


def build_profile(
    test_type: str,
    avg_rt: Optional[float],
    accuracy: float,
    ruleset: Ruleset = DEFAULT_RULESET,
) -> CognitiveProfile:
    base = float(ruleset.baseline_score)
    scores = {
        "executive_function": base,
        "processing_speed": base,
        "attentional_control": base,
        "working_memory": base,
        "cognitive_flexibility": base,
        "response_inhibition": base,
    }

    if test_type == TEST_SACCADE:
        rules = ruleset.saccade
        if avg_rt is not None:
            scores["processing_speed"] = _rt_score(avg_rt, rules.processing_speed)
            scores["attentional_control"] = _rt_score(avg_rt, rules.attentional_control)
        scores["executive_function"] = clamp(accuracy + rules.executive_accuracy_bonus)
    elif test_type == TEST_STROOP:
        rules = ruleset.stroop
        if avg_rt is not None:
            scores["executive_function"] = _rt_score(avg_rt, rules.executive_function)
            scores["response_inhibition"] = _rt_score(avg_rt, rules.response_inhibition)
            scores["cognitive_flexibility"] = _rt_score(avg_rt, rules.cognitive_flexibility)
        scores["attentional_control"] = clamp(accuracy + rules.attentional_accuracy_bonus)
        scores["processing_speed"] = clamp(accuracy)

    return CognitiveProfile(**{name: int(round(value)) for name, value in scores.items()})


def generate_recommendations(
    findings: Sequence[ClinicalFinding],
    risks: Sequence[RiskAssessment],
    profile: CognitiveProfile,
    ruleset: Ruleset = DEFAULT_RULESET,
) -> List[str]:
    recommendations: List[str] = []

    delayed_rt = any(f.category in RT_CATEGORIES and f.severity != SEVERITY_NORMAL for f in findings)
    accuracy_issues = any(f.category == CATEGORY_PERFORMANCE and f.severity != SEVERITY_NORMAL for f in findings)
    memory_issues = any(f.category == CATEGORY_WORKING_MEMORY and f.severity != SEVERITY_NORMAL for f in findings)

    if delayed_rt:
        recommendations.append("Consider neurological evaluation for motor and cognitive processing speed assessment")
        recommendations.append("Implement cognitive training exercises focusing on reaction time and processing speed")

    if accuracy_issues:
        recommendations.append("Recommend attention and concentration enhancement strategies")
        recommendations.append("Consider evaluation for attention-related disorders")

    if memory_issues:
        recommendations.append("Implement working memory training programs")
        recommendations.append("Consider cognitive rehabilitation therapy")

    high_risk = [r.condition for r in risks if r.risk_level == RISK_HIGH]
    if high_risk:
        recommendations.append(f"Urgent referral recommended for {', '.join(high_risk)} screening")
        recommendations.append("Comprehensive neuropsychological evaluation advised")

    low = ruleset.low_profile_score
    if profile.executive_function < low:
        recommendations.append("Executive function training and cognitive behavioral interventions")
    if profile.processing_speed < low:
        recommendations.append("Processing speed enhancement through targeted cognitive exercises")
    if profile.working_memory < low:
        recommendations.append("Memory enhancement strategies and cognitive training programs")

    if not recommendations:
        recommendations.append(CONTINUE_MONITORING)
    recommendations.extend(GENERAL_RECOMMENDATIONS)
    return recommendations


def overall_risk_level(risks: Sequence[RiskAssessment]) -> str:
    if any(r.risk_level == RISK_HIGH for r in risks):
        return RISK_HIGH
    if any(r.risk_level == RISK_MEDIUM for r in risks):
        return RISK_MEDIUM
    return RISK_LOW


def evaluate(
    test_type: str,
    avg_rt: Optional[float],
    accuracy: float,
    d_prime: Optional[float] = None,
    ruleset: Ruleset = DEFAULT_RULESET,
) -> ClinicalReport:
    """
    Правила по (тип теста, trimmed mean RT, точность, d').
    avg_rt = None: правила по RT пропускаются, остальные работают.
    d' сейчас ни одно правило не использует, он нужен только для quality score.
    """
    findings = generate_findings(test_type, avg_rt, accuracy, ruleset)
    risks = assess_risks(test_type, avg_rt, accuracy, ruleset)
    profile = build_profile(test_type, avg_rt, accuracy, ruleset)
    recommendations = generate_recommendations(findings, risks, profile, ruleset)
    return ClinicalReport(
        findings=tuple(findings),
        risks=tuple(risks),
        profile=profile,
        recommendations=tuple(recommendations),
        risk_level=overall_risk_level(risks),
    )
