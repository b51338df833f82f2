from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from analytics.clinical import evaluate
from analytics.metrics import (
    assess_data_quality,
    overall_quality_score,
    reliability_score,
    robust_statistics,
    summarize,
    valid_reaction_times,
)
from analytics.ruleset import DEFAULT_RULESET, Ruleset
from config.settings import SessionConfig
from data.models import (
    OUTCOME_MISS,
    TEST_SACCADE,
    TEST_TYPES,
    AnalysisResult,
    SaccadeTarget,
    StroopStimulus,
    TrialResult,
)

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def interpretation(test_type: str, accuracy: float, avg_rt: Optional[float]) -> str:
    title = "Saccade" if test_type == TEST_SACCADE else "Stroop"
    return f"{title} Test - Accuracy: {accuracy:.1f}% | Avg RT: {avg_rt or 0:.0f}ms"


def analyze_session(
    test_type: str,
    results: Sequence[TrialResult],
    ruleset: Ruleset = DEFAULT_RULESET,
    session_cfg: SessionConfig = SessionConfig(),
    timestamp: Optional[str] = None,
) -> AnalysisResult:
    """
    Завершённая сессия -> AnalysisResult.
    Не падает, если валидных RT нет совсем: поля по RT будут None/0.
    """
    rts = valid_reaction_times(results)
    stats = robust_statistics(rts, session_cfg.trimmed_proportion)
    quality = assess_data_quality(rts, session_cfg.min_valid_samples, session_cfg.max_cv_percent)
    reliability = reliability_score(stats, quality, session_cfg.min_valid_samples)

    summary = summarize(
        results,
        test_type,
        proportion=session_cfg.trimmed_proportion,
        min_samples=session_cfg.min_valid_samples,
        max_cv=session_cfg.max_cv_percent,
        stats=stats,
        quality=quality,
    )
    report = evaluate(test_type, summary.trimmed_mean_rt, summary.accuracy_percent, summary.d_prime, ruleset)
    quality_score = overall_quality_score(test_type, summary, quality, reliability)

    if quality.issues:
        logger.info("Data quality issues for %s: %s", test_type, "; ".join(quality.issues))

    return AnalysisResult(
        timestamp=timestamp or _utc_now_iso(),
        test_type=test_type,
        summary=summary,
        findings=report.findings,
        risks=report.risks,
        profile=report.profile,
        quality_score=quality_score,
        risk_level=report.risk_level,
        recommendations=report.recommendations,
        ruleset_version=ruleset.version,
        interpretation=interpretation(test_type, summary.accuracy_percent, summary.trimmed_mean_rt),
        details={
            "reliability": reliability,
            "data_quality_issues": list(quality.issues),
            "rt_cv_percent": quality.cv_percent,
            "rt_outliers": stats.outlier_count,
            "rt_ci95": [stats.ci_low, stats.ci_high],
        },
    )


def result_from_dict(row: dict[str, Any], test_type: str) -> TrialResult:
    stim = row.get("stimulus") or {}
    if test_type == TEST_SACCADE:
        stimulus = SaccadeTarget(x=float(stim.get("x", 50.0)), y=float(stim.get("y", 50.0)))
    else:
        stimulus = StroopStimulus(word=str(stim.get("word", "")), color=str(stim.get("color", "")))
    rt = row.get("rt")
    return TrialResult(
        trial_index=int(row.get("trial", 1)) - 1,
        reaction_time_ms=None if rt is None else int(rt),
        correct=bool(row.get("correct", False)),
        outcome_type=str(row.get("type") or OUTCOME_MISS),
        stimulus=stimulus,
        response=row.get("response"),
    )


def load_report(path: Path) -> tuple[str, list[TrialResult]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    test_type = payload.get("test")
    if test_type not in TEST_TYPES:
        raise ValueError(f"Unsupported test in {path}: {test_type!r}")
    trials = [result_from_dict(row, test_type) for row in payload.get("trials", []) if isinstance(row, dict)]
    return test_type, trials


def print_report(analysis: AnalysisResult) -> None:
    s = analysis.summary
    rt = f"{s.trimmed_mean_rt:.0f} ms" if s.trimmed_mean_rt is not None else "n/a"
    d = f"{s.d_prime:.2f}" if s.d_prime is not None else "n/a"
    print(f"{analysis.interpretation}")
    print(
        f"- rt={rt} acc={s.accuracy_percent:.1f}% "
        f"hits={s.hits} misses={s.misses} fa={s.false_alarms} cr={s.correct_rejections} "
        f"d'={d} data_quality={s.data_quality_score:.0f}"
    )
    print(f"- quality={analysis.quality_score:.0f} risk={analysis.risk_level} rules={analysis.ruleset_version}")

    print("\nFindings:")
    for f in analysis.findings:
        print(f"- [{f.severity}] {f.category}: {f.description}")

    print("\nRisk assessment:")
    if not analysis.risks:
        print("- none")
    for r in analysis.risks:
        print(f"- {r.condition}: {r.risk_level} ({r.confidence:.0f}%)")

    print("\nRecommendations:")
    for line in analysis.recommendations:
        print(f"- {line}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Re-analyse an exported lab report")
    parser.add_argument("report", type=Path, help="eye-lab-<test>-report.json")
    args = parser.parse_args(argv)

    try:
        test_type, trials = load_report(args.report)
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise SystemExit(f"Cannot read report: {exc}")
    if not trials:
        raise SystemExit(f"No trials found in {args.report}")

    print_report(analyze_session(test_type, trials))


if __name__ == "__main__":
    main()
