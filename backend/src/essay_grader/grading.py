"""Aggregation of dimension scores into marks, grades and feedback."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from .config import GradeBand, ScoringPolicy
from .models import (
    CONTENT_ACCURACY,
    CRITICAL_THINKING,
    DIMENSIONS,
    SEMANTIC_UNDERSTANDING,
    TECHNICAL_PRECISION,
    WRITING_QUALITY,
    DimensionScore,
)


def round_half_up(value: float, places: int = 0) -> float:
    """Round exact halves up rather than to the nearest even digit."""

    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def decimal_places(value: float) -> int:
    exponent = Decimal(str(value)).normalize().as_tuple().exponent
    return max(0, -exponent)


WEIGHT_FIELDS = {
    CONTENT_ACCURACY: "content_accuracy",
    SEMANTIC_UNDERSTANDING: "semantic_understanding",
    WRITING_QUALITY: "writing_quality",
    CRITICAL_THINKING: "critical_thinking",
    TECHNICAL_PRECISION: "technical_precision",
}


class Aggregator:
    """Weighted combination of the five dimensions under a scoring policy."""

    def __init__(self, policy: ScoringPolicy) -> None:
        self.policy = policy

    def weight(self, dimension: str) -> float:
        return getattr(self.policy.weights, WEIGHT_FIELDS[dimension])

    def breakdown(
        self, ratios: Mapping[str, float], max_marks: float, degraded: Iterable[str] = ()
    ) -> tuple[DimensionScore, ...]:
        degraded = set(degraded)
        scores = []
        for name in DIMENSIONS:
            ratio = max(0.0, min(1.0, ratios.get(name, 0.0)))
            dimension_max = round(self.weight(name) * max_marks, 2)
            scores.append(
                DimensionScore(
                    name=name,
                    raw_score=round(min(ratio * dimension_max, dimension_max), 2),
                    dimension_max=dimension_max,
                    ratio=ratio,
                    degraded=name in degraded,
                )
            )
        return tuple(scores)

    def percentage(self, ratios: Mapping[str, float]) -> float:
        total = sum(self.weight(name) * max(0.0, min(1.0, ratios.get(name, 0.0))) for name in DIMENSIONS)
        return max(0.0, min(100.0, total * 100))

    def total_score(self, percentage: float, max_marks: float) -> float:
        # fractional maxMarks need enough places for a full-marks answer to reach them
        places = max(self.policy.score_precision, decimal_places(max_marks))
        marks = round_half_up(percentage / 100 * max_marks, places)
        return max(0, min(marks, max_marks))

    @staticmethod
    def reported_percentage(total_score: float, max_marks: float) -> int:
        return max(0, min(100, round_half_up(100 * total_score / max_marks)))

    def grade_for(self, percentage: float) -> GradeBand:
        for band in self.policy.grade_bands:
            if percentage >= band.min_percentage:
                return band
        return self.policy.grade_bands[-1]

    def assessment_for(self, percentage: float) -> str:
        for tier in self.policy.assessment_labels:
            if percentage >= tier.min_percentage:
                return tier.label
        return self.policy.assessment_labels[-1].label


DIMENSION_LABELS = {
    CONTENT_ACCURACY: "content accuracy",
    SEMANTIC_UNDERSTANDING: "semantic understanding",
    WRITING_QUALITY: "writing quality",
    CRITICAL_THINKING: "critical thinking",
    TECHNICAL_PRECISION: "technical precision",
}
STRENGTHS = {
    CONTENT_ACCURACY: "Strong grasp of the core concepts",
    SEMANTIC_UNDERSTANDING: "Clear understanding of how the key ideas relate",
    WRITING_QUALITY: "Well-structured, readable writing",
    CRITICAL_THINKING: "Good use of examples and reasoning",
    TECHNICAL_PRECISION: "Precise use of technical terminology",
}
GAPS = {
    CONTENT_ACCURACY: "several key concepts from the model answer are missing",
    SEMANTIC_UNDERSTANDING: "the explanation drifts away from the meaning of the model answer",
    WRITING_QUALITY: "sentence structure and clarity need work",
    CRITICAL_THINKING: "weak use of supporting examples and reasoning",
    TECHNICAL_PRECISION: "technical terms are missing or used imprecisely",
}
OPENINGS = (
    (90, "Excellent work."),
    (75, "Good answer."),
    (60, "Satisfactory answer that covers the basics."),
    (40, "Partial answer with noticeable gaps."),
    (0, "The answer does not adequately address the question."),
)
NO_ANSWER = "No answer submitted. Write a response to the question to receive credit."


class FeedbackGenerator:
    """Template-based feedback naming the strongest and weakest dimensions."""

    STRENGTH_FLOOR = 0.3
    GAP_CEILING = 0.85

    def unanswered(self) -> str:
        return NO_ANSWER

    def render(
        self,
        breakdown: Iterable[DimensionScore],
        percentage: float,
        misused_terms: Iterable[str] = (),
        degraded: Iterable[str] = (),
    ) -> str:
        scores = list(breakdown)
        opening = next(text for floor, text in OPENINGS if percentage >= floor)
        parts = [opening]

        strongest = max(scores, key=lambda score: score.ratio)
        weakest = min(scores, key=lambda score: score.ratio)
        strength = STRENGTHS[strongest.name] if strongest.ratio >= self.STRENGTH_FLOOR else None
        gap = GAPS[weakest.name] if weakest.ratio < self.GAP_CEILING and weakest is not strongest else None
        if strength and gap:
            parts.append(f"{strength}; {gap}.")
        elif strength:
            parts.append(f"{strength}.")
        elif gap:
            parts.append(f"Main gap: {gap}.")

        misused = sorted(set(misused_terms))
        if misused:
            parts.append(f"Check how these terms are used: {', '.join(misused)}.")
        degraded = [DIMENSION_LABELS[name] for name in degraded]
        if degraded:
            parts.append(f"Some aspects could not be assessed automatically: {', '.join(degraded)}.")
        return " ".join(parts)
