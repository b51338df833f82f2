from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from data.errors import ExportError
from data.models import SummaryStatistics, TrialResult

logger = logging.getLogger(__name__)

CSV_HEADER = ("trial", "rt_ms", "correct", "type", "stimulus", "response")


def build_json_payload(
    test_type: str,
    results: Sequence[TrialResult],
    summary: SummaryStatistics,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "test": test_type,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "trials": [r.to_dict() for r in results],
        "summary": summary.to_dict(),
    }


def to_json(test_type: str, results: Sequence[TrialResult], summary: SummaryStatistics, timestamp: Optional[str] = None) -> str:
    return json.dumps(build_json_payload(test_type, results, summary, timestamp), ensure_ascii=False, indent=2)


def csv_row(result: TrialResult) -> list:
    return [
        result.trial_index + 1,
        "" if result.reaction_time_ms is None else result.reaction_time_ms,
        1 if result.correct else 0,
        result.outcome_type,
        json.dumps(result.stimulus.to_dict()),
        result.response or "",
    ]


def to_csv(results: Sequence[TrialResult]) -> str:
    """Заголовок + по строке на trial, без перевода строки в конце."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in results:
        writer.writerow(csv_row(r))
    return buf.getvalue().rstrip("\n")


def _write_text(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        logger.warning("Export to %s failed: %s", path, exc)
        raise ExportError(f"Cannot write {path}: {exc}") from exc
    return path


def write_json(path: Path, test_type: str, results: Sequence[TrialResult], summary: SummaryStatistics) -> Path:
    return _write_text(path, to_json(test_type, results, summary))


def write_csv(path: Path, results: Sequence[TrialResult]) -> Path:
    return _write_text(path, to_csv(results))


def export_session(
    directory: Path,
    test_type: str,
    results: Sequence[TrialResult],
    summary: SummaryStatistics,
) -> tuple[Path, Path]:
    if not results:
        raise ExportError(f"Nothing to export for {test_type}: no trials recorded")
    directory = Path(directory)
    json_path = write_json(directory / f"eye-lab-{test_type}-report.json", test_type, results, summary)
    csv_path = write_csv(directory / f"eye-lab-{test_type}-trials.csv", results)
    logger.info("Exported %s session: %s, %s", test_type, json_path, csv_path)
    return json_path, csv_path
