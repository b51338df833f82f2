from __future__ import annotations

import json
import logging
import random
import time
from pathlib import Path
from typing import Any, Optional

from data.models import AnalysisResult

logger = logging.getLogger(__name__)


def generate_result_id(test_type: str, now_ms: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join((rng or random).choice("abcdefghijklmnopqrstuvwxyz0123456789") for _ in range(9))
    return f"{test_type}-{now_ms}-{suffix}"


def build_record(analysis: AnalysisResult, result_id: Optional[str] = None) -> dict[str, Any]:
    score = round(analysis.quality_score)
    return {
        "id": result_id or generate_result_id(analysis.test_type),
        "test_type": analysis.test_type,
        "category": "neurological",
        "test_date": analysis.timestamp,
        "timestamp": analysis.timestamp,
        "score": score,
        "max_score": 100,
        "score_percentage": analysis.quality_score,
        "risk_level": analysis.risk_level.lower(),
        "interpretation": analysis.interpretation,
        "recommendations": list(analysis.recommendations),
        "status": "final",
        "data": analysis.to_dict(),
    }


def load_test_results(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Result history at %s is unreadable, starting fresh", path)
        return []
    results = payload.get("results") if isinstance(payload, dict) else None
    if isinstance(results, list):
        return [r for r in results if isinstance(r, dict)]
    return []


def save_test_result(path: Path, analysis: AnalysisResult, result_id: Optional[str] = None) -> dict[str, Any]:
    record = build_record(analysis, result_id)
    results = load_test_results(path)
    results.append(record)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"results": results}, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logger.info("%s test result saved to %s", analysis.test_type, path)
    return record
