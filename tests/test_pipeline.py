"""
End-to-end analysis of a finished session and the report re-analysis CLI.
"""

import json

import pytest

from analytics.export import write_json
from analytics.metrics import assess_data_quality, valid_reaction_times
from analytics.pipeline import analyze_session, interpretation, load_report, main, result_from_dict
from analytics.ruleset import RULESET_VERSION
from config.settings import SessionConfig
from data.models import (
    OUTCOME_MISS,
    RISK_LOW,
    TEST_SACCADE,
    TEST_STROOP,
    SaccadeTarget,
    StroopStimulus,
)

from conftest import hit, miss, stroop

COLORS = ("red", "blue", "green", "yellow")


def healthy_stroop_run(n=20, rt=900):
    results = []
    for i in range(n):
        word = COLORS[i % 4]
        ink = word if i % 2 == 0 else COLORS[(i + 1) % 4]
        results.append(hit(i, rt, stroop(word, ink)))
    return results


class TestAnalyzeSession:

    def test_all_misses_does_not_crash(self):
        analysis = analyze_session(TEST_SACCADE, [miss(i) for i in range(5)])
        assert analysis.summary.trimmed_mean_rt is None
        assert analysis.summary.d_prime is None
        assert analysis.quality_score == pytest.approx(40.0)
        assert analysis.risk_level == RISK_LOW
        assert analysis.interpretation.endswith("Avg RT: 0ms")
        assert analysis.details["reliability"] == 0.0
        assert analysis.details["data_quality_issues"] == ["No valid reaction times"]

    def test_healthy_stroop(self):
        analysis = analyze_session(TEST_STROOP, healthy_stroop_run(), timestamp="2024-01-01T00:00:00Z")
        assert analysis.timestamp == "2024-01-01T00:00:00Z"
        assert analysis.ruleset_version == RULESET_VERSION
        assert analysis.summary.accuracy_percent == 100.0
        assert analysis.summary.trimmed_mean_rt == pytest.approx(900.0)
        assert analysis.summary.d_prime == pytest.approx(3.92, abs=1e-2)
        assert analysis.summary.interference_ms == pytest.approx(0.0)
        assert analysis.quality_score == 100.0
        assert analysis.risk_level == RISK_LOW
        assert analysis.interpretation == "Stroop Test - Accuracy: 100.0% | Avg RT: 900ms"

    def test_summary_and_details_share_quality(self):
        results = [hit(i, 350 + 10 * i) for i in range(6)] + [miss(6)]
        cfg = SessionConfig(min_valid_samples=10)
        analysis = analyze_session(TEST_SACCADE, results, session_cfg=cfg)

        expected = assess_data_quality(valid_reaction_times(results), 10, cfg.max_cv_percent)
        assert analysis.summary.data_quality_score == expected.quality_score
        assert analysis.details["data_quality_issues"] == list(expected.issues)
        assert analysis.details["data_quality_issues"]

    def test_to_dict_is_json_serialisable(self):
        analysis = analyze_session(TEST_SACCADE, [hit(i, 350) for i in range(6)])
        payload = json.loads(json.dumps(analysis.to_dict()))
        assert payload["test_type"] == TEST_SACCADE
        assert payload["summary"]["hits"] == 6
        assert isinstance(payload["findings"], list)
        assert payload["profile"]["processing_speed"] == 85

    def test_interpretation_rounds(self):
        assert interpretation(TEST_SACCADE, 87.5, 412.4) == "Saccade Test - Accuracy: 87.5% | Avg RT: 412ms"


class TestReportRoundTrip:

    def test_result_from_dict(self):
        row = {"trial": 3, "rt": None, "correct": False, "type": "miss", "stimulus": {"x": 12.5, "y": 80.0}, "response": None}
        result = result_from_dict(row, TEST_SACCADE)
        assert result.trial_index == 2
        assert result.reaction_time_ms is None
        assert result.outcome_type == OUTCOME_MISS
        assert result.stimulus == SaccadeTarget(12.5, 80.0)

    def test_stroop_row(self):
        row = {"trial": 1, "rt": 812, "correct": True, "type": "hit", "stimulus": {"word": "red", "color": "blue"}, "response": "blue"}
        result = result_from_dict(row, TEST_STROOP)
        assert result.stimulus == StroopStimulus("red", "blue")
        assert result.reaction_time_ms == 812

    def test_load_exported_report(self, tmp_path):
        results = healthy_stroop_run(6)
        analysis = analyze_session(TEST_STROOP, results)
        path = write_json(tmp_path / "report.json", TEST_STROOP, results, analysis.summary)

        test_type, trials = load_report(path)
        assert test_type == TEST_STROOP
        assert trials == results

    def test_unsupported_test_is_rejected(self, tmp_path):
        path = tmp_path / "report.json"
        path.write_text(json.dumps({"test": "nback", "trials": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_report(path)


class TestCli:

    def test_prints_report(self, tmp_path, capsys):
        results = [hit(i, 1300) for i in range(8)]
        analysis = analyze_session(TEST_SACCADE, results)
        path = write_json(tmp_path / "eye-lab-saccade-report.json", TEST_SACCADE, results, analysis.summary)

        main([str(path)])
        out = capsys.readouterr().out
        assert "Saccade Test - Accuracy: 100.0% | Avg RT: 1300ms" in out
        assert "Parkinson's Disease: High" in out

    def test_missing_file_exits(self, tmp_path):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "nope.json")])

    def test_empty_report_exits(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"test": "saccade", "trials": []}), encoding="utf-8")
        with pytest.raises(SystemExit):
            main([str(path)])
