"""Core domain models for the essay grader."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import InvalidRequestError

CONTENT_ACCURACY = "contentAccuracy"
SEMANTIC_UNDERSTANDING = "semanticUnderstanding"
WRITING_QUALITY = "writingQuality"
CRITICAL_THINKING = "criticalThinking"
TECHNICAL_PRECISION = "technicalPrecision"

DIMENSIONS: tuple[str, ...] = (
    CONTENT_ACCURACY,
    SEMANTIC_UNDERSTANDING,
    WRITING_QUALITY,
    CRITICAL_THINKING,
    TECHNICAL_PRECISION,
)


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        if value is None or value == "":
            return cls.MEDIUM
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise InvalidRequestError("questionData.difficulty", f"unknown difficulty {value!r}") from exc


@dataclass(frozen=True, slots=True)
class QuestionMetadata:
    text: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    type: str = "ESSAY"
    marks: float | None = None
    id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "QuestionMetadata":
        payload = payload or {}
        return cls(
            text=str(payload.get("text") or ""),
            difficulty=Difficulty.parse(payload.get("difficulty")),
            type=str(payload.get("type") or "ESSAY"),
            marks=payload.get("marks"),
            id=payload.get("id"),
        )


@dataclass(frozen=True, slots=True)
class AssessmentRequest:
    student_answer: str
    reference_answer: str
    max_marks: float
    question: QuestionMetadata = field(default_factory=QuestionMetadata)


@dataclass(frozen=True, slots=True)
class KeyConcept:
    """A salient unigram (one stem) or bigram (two stems) of the reference answer."""

    stems: tuple[str, ...]
    surface: str
    weight: float
    base_salience: float
    technical: bool = False

    @property
    def is_phrase(self) -> bool:
        return len(self.stems) > 1

    @property
    def key(self) -> str:
        return " ".join(self.stems)


@dataclass(frozen=True, slots=True)
class KeyConceptSet:
    concepts: tuple[KeyConcept, ...]

    @property
    def total_weight(self) -> float:
        return sum(concept.weight for concept in self.concepts)

    def unigrams(self) -> dict[str, KeyConcept]:
        return {concept.stems[0]: concept for concept in self.concepts if not concept.is_phrase}

    def technical_terms(self) -> list[KeyConcept]:
        return [concept for concept in self.concepts if concept.technical and not concept.is_phrase]

    def __len__(self) -> int:
        return len(self.concepts)

    def __iter__(self):
        return iter(self.concepts)


@dataclass(frozen=True, slots=True)
class DimensionScore:
    name: str
    raw_score: float
    dimension_max: float
    ratio: float
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class DetailedMetrics:
    keyword_coverage: int = 0
    semantic_similarity: int = 0
    sentence_structure: int = 0
    grammar: int = 0
    vocabulary: int = 0
    topic_consistency: int = 0
    degraded_dimensions: tuple[str, ...] = ()
    misused_terms: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AssessmentResult:
    total_score: float
    percentage: int
    grade: str
    band: str
    assessment: str
    feedback: str
    breakdown: tuple[DimensionScore, ...]
    metrics: DetailedMetrics

    def dimension(self, name: str) -> DimensionScore:
        for score in self.breakdown:
            if score.name == name:
                return score
        raise KeyError(name)

    def to_payload(self) -> dict[str, Any]:
        """Render the response shape expected by the exam workflow."""

        analysis: dict[str, Any] = {
            "keywordAnalysis": {"keywordCoverage": self.metrics.keyword_coverage},
            "semanticSimilarity": {"similarity": self.metrics.semantic_similarity},
            "contentStructure": {"sentenceStructure": self.metrics.sentence_structure},
            "languageQuality": {"grammar": self.metrics.grammar, "vocabulary": self.metrics.vocabulary},
            "coherence": {"topicConsistency": self.metrics.topic_consistency},
        }
        if self.metrics.degraded_dimensions:
            analysis["degradedDimensions"] = list(self.metrics.degraded_dimensions)
        return {
            "totalScore": self.total_score,
            "percentage": self.percentage,
            "grade": self.grade,
            "band": self.band,
            "assessment": self.assessment,
            "detailedBreakdown": {
                score.name: {"score": score.raw_score, "maxScore": score.dimension_max} for score in self.breakdown
            },
            "detailedAnalysis": analysis,
            "feedback": self.feedback,
        }
