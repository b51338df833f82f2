"""
Robust reaction-time statistics, data quality and signal-detection metrics.
"""

import pytest

from analytics.metrics import (
    DataQuality,
    RobustStats,
    assess_data_quality,
    d_prime,
    overall_quality_score,
    reliability_score,
    robust_statistics,
    stroop_interference,
    summarize,
    trimmed_mean,
    valid_reaction_times,
)
from data.models import TEST_SACCADE, TEST_STROOP

from conftest import false_alarm, hit, miss, stroop


class TestTrimmedMean:

    def test_drops_one_value_from_each_tail(self):
        assert trimmed_mean([100, 150, 160, 170, 9000], 0.2) == pytest.approx(160.0)

    def test_small_sample_keeps_everything(self):
        # floor(5 * 0.1) = 0
        assert trimmed_mean([100, 150, 160, 170, 9000], 0.1) == pytest.approx(1916.0)

    def test_order_does_not_matter(self):
        assert trimmed_mean([9000, 160, 100, 170, 150], 0.2) == pytest.approx(160.0)

    def test_empty(self):
        assert trimmed_mean([]) is None

    def test_single_value(self):
        assert trimmed_mean([420]) == pytest.approx(420.0)


class TestRobustStatistics:

    def test_tukey_outliers(self):
        stats = robust_statistics([100, 150, 160, 170, 9000])
        assert stats.sample_count == 5
        assert stats.median == 160
        assert stats.iqr == pytest.approx(20.0)
        assert stats.outlier_count == 2

    def test_confidence_interval_brackets_mean(self):
        stats = robust_statistics([300, 320, 340, 360, 380])
        assert stats.ci_low < stats.mean < stats.ci_high
        assert stats.mean == pytest.approx(340.0)
        assert stats.mad == pytest.approx(20.0)

    def test_empty(self):
        stats = robust_statistics([])
        assert stats.sample_count == 0
        assert stats.mean is None
        assert stats.outlier_count == 0

    def test_valid_reaction_times_skip_misses(self):
        assert valid_reaction_times([hit(0, 300), miss(1), false_alarm(2, 500)]) == [300.0, 500.0]


class TestDataQuality:

    def test_no_samples(self):
        quality = assess_data_quality([])
        assert quality.quality_score == 0.0
        assert quality.sufficient_samples is False
        assert quality.issues == ("No valid reaction times",)

    def test_stable_sample_is_perfect(self):
        quality = assess_data_quality([300] * 10)
        assert quality.quality_score == 100.0
        assert quality.sufficient_samples is True
        assert quality.cv_percent == pytest.approx(0.0)
        assert quality.issues == ()

    def test_too_few_samples_are_penalised(self):
        quality = assess_data_quality([300, 300, 300], min_samples=5)
        # 100 - (40 * (1 - 3 / 5) + 10)
        assert quality.quality_score == pytest.approx(74.0)
        assert quality.sufficient_samples is False
        assert len(quality.issues) == 1

    def test_high_variability_is_penalised(self):
        quality = assess_data_quality([100, 900, 100, 900, 100, 900])
        assert quality.cv_percent > 40
        assert quality.quality_score < 100
        assert any("variability" in issue for issue in quality.issues)

    def test_reliability_scales_with_sample_count(self):
        few = [300] * 5
        many = [300] * 10
        r_few = reliability_score(robust_statistics(few), assess_data_quality(few))
        r_many = reliability_score(robust_statistics(many), assess_data_quality(many))
        assert r_few == pytest.approx(75.0)
        assert r_many == pytest.approx(100.0)

    def test_reliability_without_samples(self):
        assert reliability_score(robust_statistics([]), assess_data_quality([])) == 0.0


class TestDPrime:

    def test_mostly_hits(self):
        assert d_prime(hits=18, misses=1, false_alarms=1, correct_rejections=0) == pytest.approx(2.926, abs=1e-3)

    def test_perfect_run_is_clamped(self):
        assert d_prime(hits=20, misses=0, false_alarms=0, correct_rejections=0) == pytest.approx(3.92, abs=1e-2)

    def test_go_no_go_uses_noise_trials(self):
        assert d_prime(hits=8, misses=2, false_alarms=1, correct_rejections=9) == pytest.approx(2.123, abs=1e-3)

    @pytest.mark.parametrize("counts", [(0, 0, 0, 0), (0, 20, 0, 0)])
    def test_undefined(self, counts):
        assert d_prime(*counts) is None


class TestSummaries:

    def test_stroop_interference(self):
        results = [
            hit(0, 500, stroop("red", "red")),
            hit(1, 600, stroop("blue", "blue")),
            hit(2, 800, stroop("red", "green")),
            hit(3, 900, stroop("yellow", "blue")),
            miss(4, stroop("green", "red")),
        ]
        assert stroop_interference(results) == pytest.approx(300.0)

    def test_interference_needs_both_conditions(self):
        assert stroop_interference([hit(0, 500, stroop("red", "red"))]) is None

    def test_summarize_counts(self):
        results = [hit(i, 300 + i) for i in range(6)] + [miss(6), false_alarm(7, 450)]
        summary = summarize(results, TEST_SACCADE)
        assert summary.total_trials == 8
        assert summary.hits == 6
        assert summary.misses == 1
        assert summary.false_alarms == 1
        assert summary.correct_rejections == 0
        assert summary.accuracy_percent == pytest.approx(75.0)
        assert summary.valid_rt_count == 7
        assert summary.d_prime is not None
        assert summary.interference_ms is None

    def test_summarize_all_misses(self):
        summary = summarize([miss(i) for i in range(5)], TEST_SACCADE)
        assert summary.trimmed_mean_rt is None
        assert summary.accuracy_percent == 0.0
        assert summary.d_prime is None
        assert summary.data_quality_score == 0.0

    def test_summarize_reuses_precomputed_numbers(self):
        results = [hit(i, 300 + i) for i in range(6)]
        stats = RobustStats(6, 302.5, 302.5, 1.9, 123.0, 1.5, 2.5, 0, 301.0, 304.0)
        quality = DataQuality(55.0, True, 0.6, 0, ("custom",))

        summary = summarize(results, TEST_SACCADE, stats=stats, quality=quality)
        assert summary.trimmed_mean_rt == 123.0
        assert summary.data_quality_score == 55.0
        assert summary.valid_rt_count == 6
        assert summary.hits == 6


class TestOverallQuality:

    def test_all_misses(self):
        summary = summarize([miss(i) for i in range(5)], TEST_SACCADE)
        quality = assess_data_quality([])
        assert overall_quality_score(TEST_SACCADE, summary, quality, 0.0) == pytest.approx(40.0)

    def test_clamped_to_hundred(self):
        results = [hit(i, 900, stroop("red", "red")) for i in range(20)]
        summary = summarize(results, TEST_STROOP)
        quality = assess_data_quality([900] * 20)
        assert overall_quality_score(TEST_STROOP, summary, quality, 100.0) == 100.0

    def test_slow_inaccurate_run(self):
        results = [hit(i, 1500, stroop("red", "red")) for i in range(5)] + [false_alarm(i, 1500) for i in range(5, 10)]
        summary = summarize(results, TEST_STROOP)
        quality = DataQuality(60.0, True, 0.0, 0, ())
        # 70 - 20 (точность 50%) - 10 (качество < 70)
        assert overall_quality_score(TEST_STROOP, summary, quality, 50.0) == pytest.approx(40.0)
