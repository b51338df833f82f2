import math
import statistics
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from data.models import (
    OUTCOME_CORRECT_REJECTION,
    OUTCOME_FALSE_ALARM,
    OUTCOME_HIT,
    OUTCOME_MISS,
    TEST_SACCADE,
    TEST_STROOP,
    StroopStimulus,
    SummaryStatistics,
    TrialResult,
)

_NORMAL = statistics.NormalDist()


@dataclass(frozen=True)
class RobustStats:
    sample_count: int
    mean: Optional[float]
    median: Optional[float]
    std: Optional[float]
    trimmed_mean: Optional[float]
    mad: Optional[float]
    iqr: Optional[float]
    outlier_count: int
    ci_low: Optional[float]
    ci_high: Optional[float]


@dataclass(frozen=True)
class DataQuality:
    quality_score: float
    sufficient_samples: bool
    cv_percent: Optional[float]
    outlier_count: int
    issues: tuple


def valid_reaction_times(results: Iterable[TrialResult]) -> List[float]:
    return [float(r.reaction_time_ms) for r in results if r.reaction_time_ms is not None]


def trimmed_mean(values: Sequence[float], proportion: float = 0.1) -> Optional[float]:
    """
    Среднее после отбрасывания floor(n * proportion) значений с каждого края.
    [100, 150, 160, 170, 9000] при 0.2 -> 160.
    """
    if not values:
        return None
    ordered = sorted(values)
    k = int(math.floor(len(ordered) * proportion))
    if k > 0 and len(ordered) - 2 * k > 0:
        ordered = ordered[k:len(ordered) - k]
    return sum(ordered) / len(ordered)


def _quartiles(ordered: Sequence[float]):
    if len(ordered) < 2:
        return ordered[0], ordered[0]
    q1, _, q3 = statistics.quantiles(ordered, n=4, method="inclusive")
    return q1, q3


def robust_statistics(values: Sequence[float], proportion: float = 0.1) -> RobustStats:
    if not values:
        return RobustStats(0, None, None, None, None, None, None, 0, None, None)

    ordered = sorted(values)
    n = len(ordered)
    mean = statistics.fmean(ordered)
    median = statistics.median(ordered)
    std = statistics.pstdev(ordered) if n > 1 else 0.0
    mad = statistics.median([abs(v - median) for v in ordered])

    q1, q3 = _quartiles(ordered)
    iqr = q3 - q1
    low_fence, high_fence = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    outliers = sum(1 for v in ordered if v < low_fence or v > high_fence)

    if n > 1:
        half_width = 1.96 * statistics.stdev(ordered) / math.sqrt(n)
    else:
        half_width = 0.0

    return RobustStats(
        sample_count=n,
        mean=mean,
        median=median,
        std=std,
        trimmed_mean=trimmed_mean(ordered, proportion),
        mad=mad,
        iqr=iqr,
        outlier_count=outliers,
        ci_low=mean - half_width,
        ci_high=mean + half_width,
    )


def assess_data_quality(values: Sequence[float], min_samples: int = 5, max_cv: float = 40.0) -> DataQuality:
    """
    Оценка качества данных 0..100: мало валидных RT -> низкое доверие,
    большой разброс (CV) и много выбросов -> штраф.
    """
    stats = robust_statistics(values)
    issues: List[str] = []
    score = 100.0

    sufficient = stats.sample_count >= min_samples
    if stats.sample_count == 0:
        return DataQuality(0.0, False, None, 0, ("No valid reaction times",))
    if not sufficient:
        score -= 40.0 * (1 - stats.sample_count / min_samples) + 10.0
        issues.append(f"Only {stats.sample_count} valid reaction times (minimum {min_samples})")

    cv = None
    if stats.mean:
        cv = stats.std / stats.mean * 100.0
        if cv > max_cv:
            score -= min(40.0, cv - max_cv)
            issues.append(f"High reaction-time variability (CV {cv:.1f}%)")

    if stats.outlier_count:
        share = stats.outlier_count / stats.sample_count
        score -= min(20.0, share * 100.0)
        issues.append(f"{stats.outlier_count} outlier reaction time(s)")

    return DataQuality(
        quality_score=max(0.0, min(100.0, score)),
        sufficient_samples=sufficient,
        cv_percent=cv,
        outlier_count=stats.outlier_count,
        issues=tuple(issues),
    )


def reliability_score(stats: RobustStats, quality: DataQuality, min_samples: int = 5) -> float:
    if stats.sample_count == 0:
        return 0.0
    coverage = min(1.0, stats.sample_count / (min_samples * 2))
    return max(0.0, min(100.0, quality.quality_score * (0.5 + 0.5 * coverage)))


def _inv_norm(p: float) -> float:
    return _NORMAL.inv_cdf(p)


def d_prime(hits: int, misses: int, false_alarms: int, correct_rejections: int) -> Optional[float]:
    """
    d' = Φ⁻¹(H) − Φ⁻¹(F).

    Если есть correct rejections (go/no-go), F считается по noise-trial-ам.
    В тестах без no-go trial-ов F = false_alarms / все trial-ы.
    Доли зажимаются в [1/(2n), 1 − 1/(2n)], чтобы не получить бесконечность.
    """
    total = hits + misses + false_alarms + correct_rejections
    if total == 0 or hits + false_alarms == 0:
        return None

    if correct_rejections > 0:
        signal_n = hits + misses
        noise_n = false_alarms + correct_rejections
    else:
        signal_n = total
        noise_n = total
    if signal_n == 0 or noise_n == 0:
        return None

    def _clamp(count: int, n: int) -> float:
        return min(1.0 - 1.0 / (2 * n), max(1.0 / (2 * n), count / n))

    hit_rate = _clamp(hits, signal_n)
    fa_rate = _clamp(false_alarms, noise_n)
    return _inv_norm(hit_rate) - _inv_norm(fa_rate)


def stroop_interference(results: Sequence[TrialResult], proportion: float = 0.1) -> Optional[float]:
    congruent = []
    incongruent = []
    for r in results:
        if r.reaction_time_ms is None or not isinstance(r.stimulus, StroopStimulus):
            continue
        if r.stimulus.congruent:
            congruent.append(r.reaction_time_ms)
        else:
            incongruent.append(r.reaction_time_ms)
    if not congruent or not incongruent:
        return None
    return trimmed_mean(incongruent, proportion) - trimmed_mean(congruent, proportion)


def summarize(
    results: Sequence[TrialResult],
    test_type: str,
    proportion: float = 0.1,
    min_samples: int = 5,
    max_cv: float = 40.0,
    stats: Optional[RobustStats] = None,
    quality: Optional[DataQuality] = None,
) -> SummaryStatistics:
    """
    stats и quality можно передать уже посчитанными (так делает analyze_session),
    тогда сводка и детали анализа опираются на одни и те же числа.
    """
    rts = valid_reaction_times(results)
    if stats is None:
        stats = robust_statistics(rts, proportion)
    if quality is None:
        quality = assess_data_quality(rts, min_samples, max_cv)

    total = len(results)
    correct = sum(1 for r in results if r.correct)
    hits = sum(1 for r in results if r.outcome_type == OUTCOME_HIT)
    misses = sum(1 for r in results if r.outcome_type == OUTCOME_MISS)
    false_alarms = sum(1 for r in results if r.outcome_type == OUTCOME_FALSE_ALARM)
    correct_rejections = sum(1 for r in results if r.outcome_type == OUTCOME_CORRECT_REJECTION)

    return SummaryStatistics(
        trimmed_mean_rt=stats.trimmed_mean,
        accuracy_percent=(correct / total * 100.0) if total else 0.0,
        hits=hits,
        misses=misses,
        false_alarms=false_alarms,
        correct_rejections=correct_rejections,
        d_prime=d_prime(hits, misses, false_alarms, correct_rejections),
        data_quality_score=quality.quality_score,
        total_trials=total,
        valid_rt_count=stats.sample_count,
        mean_rt=stats.mean,
        median_rt=stats.median,
        rt_sd=stats.std,
        interference_ms=stroop_interference(results, proportion) if test_type == TEST_STROOP else None,
    )


def overall_quality_score(
    test_type: str,
    summary: SummaryStatistics,
    quality: DataQuality,
    reliability: float,
) -> float:
    score = max(70.0, reliability)

    accuracy = summary.accuracy_percent
    if accuracy >= 90:
        score += 15
    elif accuracy >= 80:
        score += 8
    elif accuracy < 60:
        score -= 20

    rt = summary.trimmed_mean_rt
    if rt is not None:
        if test_type == TEST_SACCADE and rt < 400:
            score += 10
        elif test_type == TEST_STROOP and rt < 1200:
            score += 10

    if summary.d_prime is not None and summary.d_prime > 1.5:
        score += 15

    if quality.quality_score >= 90:
        score += 5
    elif quality.quality_score < 70:
        score -= 10

    return max(0.0, min(100.0, score))
