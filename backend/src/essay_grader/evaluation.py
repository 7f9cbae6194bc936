"""Calibration harness: score quality ladders and check they are monotonic.

Each ladder in the samples file lists answers to one question ordered from
worst to best by human judgement. A well-calibrated policy gives every
ladder non-decreasing percentages.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from time import perf_counter

from .config import settings
from .engine import EssayScoringEngine
from .models import AssessmentRequest, QuestionMetadata

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LadderResult:
    ladder_id: str
    levels: list[str]
    percentages: list[int]
    grades: list[str]
    monotonic: bool
    latency_ms: float


def load_ladders(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def evaluate_ladder(engine: EssayScoringEngine, ladder: dict) -> LadderResult:
    question = QuestionMetadata.from_payload(ladder.get("question"))
    start = perf_counter()
    results = engine.assess_many(
        AssessmentRequest(
            student_answer=answer["text"],
            reference_answer=ladder["reference"],
            max_marks=ladder.get("maxMarks", 10),
            question=question,
        )
        for answer in ladder["answers"]
    )
    latency = (perf_counter() - start) * 1000
    percentages = [result.percentage for result in results]
    monotonic = all(left <= right for left, right in zip(percentages, percentages[1:]))
    if not monotonic:
        logger.warning("Ladder %s is not monotonic: %s", ladder["id"], percentages)
    return LadderResult(
        ladder_id=ladder["id"],
        levels=[answer.get("level", str(index)) for index, answer in enumerate(ladder["answers"])],
        percentages=percentages,
        grades=[result.grade for result in results],
        monotonic=monotonic,
        latency_ms=round(latency, 3),
    )


def run_batch_evaluation(
    samples_path: Path | None = None,
    output_path: Path | None = None,
    engine: EssayScoringEngine | None = None,
) -> list[LadderResult]:
    samples_path = samples_path or settings.paths.samples_path
    output_path = output_path or settings.paths.data_dir / "evaluations" / "latest.json"
    engine = engine or EssayScoringEngine()

    results = [evaluate_ladder(engine, ladder) for ladder in load_ladders(samples_path)]
    summary = {
        "ladders": len(results),
        "monotonic": sum(1 for result in results if result.monotonic),
        "latency_ms": round(sum(result.latency_ms for result in results), 3),
    }
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"summary": summary, "results": [asdict(result) for result in results]}
    output_path.write_text(json.dumps(payload, indent=2))
    logger.info("Evaluated %d ladders, %d monotonic", summary["ladders"], summary["monotonic"])
    return results
