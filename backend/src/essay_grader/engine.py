"""The essay assessment operation: validate, fan out to scorers, aggregate."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from numbers import Real

from .concepts import KeyConceptCache, KeyConceptExtractor
from .config import AppSettings, settings
from .errors import ScoringConfigurationError
from .grading import Aggregator, FeedbackGenerator
from .models import (
    CONTENT_ACCURACY,
    DIMENSIONS,
    SEMANTIC_UNDERSTANDING,
    TECHNICAL_PRECISION,
    WRITING_QUALITY,
    AssessmentRequest,
    AssessmentResult,
    DetailedMetrics,
    KeyConceptSet,
    QuestionMetadata,
)
from .observability import record_assessment, record_dimension_failure, traced_span
from .scorers import (
    ContentAccuracyScorer,
    CriticalThinkingScorer,
    DimensionOutcome,
    DimensionScorer,
    ScoringContext,
    SemanticUnderstandingScorer,
    TechnicalPrecisionChecker,
    WritingQualityScorer,
)
from .semantic import SimilarityEstimator, build_estimator
from .text import LexicalNormalizer, NormalizedText

logger = logging.getLogger(__name__)


def default_scorers(estimator: SimilarityEstimator) -> list[DimensionScorer]:
    return [
        ContentAccuracyScorer(),
        SemanticUnderstandingScorer(estimator),
        WritingQualityScorer(),
        CriticalThinkingScorer(),
        TechnicalPrecisionChecker(),
    ]


def _percent(value: float) -> int:
    return max(0, min(100, round(value * 100)))


class EssayScoringEngine:
    """Scores free-text answers against a reference answer.

    The engine holds no per-request state; the only shared structure is the
    key-concept cache, which is safe to use from several threads.
    """

    def __init__(
        self,
        app_settings: AppSettings | None = None,
        cache: KeyConceptCache | None = None,
        estimator: SimilarityEstimator | None = None,
        scorers: Sequence[DimensionScorer] | None = None,
    ) -> None:
        self.settings = app_settings or settings
        self.policy = self.settings.scoring
        self.normalizer = LexicalNormalizer(self.settings.text)
        self.extractor = KeyConceptExtractor(self.normalizer, self.settings.concepts)
        self.fingerprint = "|".join(
            (
                self.settings.text.model_dump_json(),
                self.settings.concepts.model_dump_json(exclude={"cache_max_entries"}),
            )
        )
        self.cache = cache if cache is not None else KeyConceptCache(self.settings.concepts.cache_max_entries)
        self.estimator = estimator or build_estimator(self.settings.semantic)
        self.scorers = list(scorers) if scorers is not None else default_scorers(self.estimator)
        missing = set(DIMENSIONS) - {scorer.name for scorer in self.scorers}
        if missing:
            raise ValueError(f"no scorer registered for {', '.join(sorted(missing))}")
        self.aggregator = Aggregator(self.policy)
        self.feedback = FeedbackGenerator()

    def validate(self, request: AssessmentRequest) -> None:
        if not isinstance(request.reference_answer, str) or not request.reference_answer.strip():
            raise ScoringConfigurationError("correctAnswer", "a reference answer is required")
        max_marks = request.max_marks
        if isinstance(max_marks, bool) or not isinstance(max_marks, Real) or not math.isfinite(max_marks):
            raise ScoringConfigurationError("maxMarks", f"must be a finite number, got {max_marks!r}")
        if max_marks <= 0:
            raise ScoringConfigurationError("maxMarks", f"must be positive, got {max_marks!r}")

    def concepts_for(self, reference: NormalizedText, question: QuestionMetadata) -> KeyConceptSet:
        key = KeyConceptCache.key_for(reference.raw, question.text, self.fingerprint)
        concepts = self.cache.get_or_compute(key, lambda: self.extractor.extract(reference, question.text))
        if not len(concepts):
            raise ScoringConfigurationError("correctAnswer", "the reference answer has no gradable content")
        return concepts

    def _run_scorers(self, context: ScoringContext) -> tuple[dict[str, DimensionOutcome], list[str]]:
        outcomes: dict[str, DimensionOutcome] = {}
        degraded: list[str] = []
        for scorer in self.scorers:
            try:
                outcomes[scorer.name] = scorer.score(context)
            except Exception:
                logger.exception("Scoring %s failed; using the neutral score", scorer.name)
                record_dimension_failure(scorer.name)
                outcomes[scorer.name] = DimensionOutcome(self.policy.neutral_ratio)
                degraded.append(scorer.name)
        return outcomes, degraded

    def _unanswered(self, request: AssessmentRequest) -> AssessmentResult:
        breakdown = self.aggregator.breakdown({}, request.max_marks)
        band = self.aggregator.grade_for(0)
        return AssessmentResult(
            total_score=0,
            percentage=0,
            grade=band.grade,
            band=band.band,
            assessment=self.aggregator.assessment_for(0),
            feedback=self.feedback.unanswered(),
            breakdown=breakdown,
            metrics=DetailedMetrics(),
        )

    def _result(
        self, request: AssessmentRequest, outcomes: dict[str, DimensionOutcome], degraded: list[str]
    ) -> AssessmentResult:
        ratios = {name: outcome.ratio for name, outcome in outcomes.items()}
        breakdown = self.aggregator.breakdown(ratios, request.max_marks, degraded)
        total = self.aggregator.total_score(self.aggregator.percentage(ratios), request.max_marks)
        percentage = self.aggregator.reported_percentage(total, request.max_marks)
        band = self.aggregator.grade_for(percentage)

        content = outcomes[CONTENT_ACCURACY].metrics
        semantic = outcomes[SEMANTIC_UNDERSTANDING].metrics
        writing = outcomes[WRITING_QUALITY].metrics
        misused = outcomes[TECHNICAL_PRECISION].notes
        metrics = DetailedMetrics(
            keyword_coverage=_percent(content.get("keywordCoverage", 0.0)),
            semantic_similarity=_percent(semantic.get("semanticSimilarity", 0.0)),
            sentence_structure=_percent(writing.get("sentenceStructure", 0.0)),
            grammar=_percent(writing.get("grammar", 0.0)),
            vocabulary=_percent(writing.get("vocabulary", 0.0)),
            topic_consistency=_percent(semantic.get("topicConsistency", 0.0)),
            degraded_dimensions=tuple(degraded),
            misused_terms=misused,
        )
        return AssessmentResult(
            total_score=total,
            percentage=percentage,
            grade=band.grade,
            band=band.band,
            assessment=self.aggregator.assessment_for(percentage),
            feedback=self.feedback.render(breakdown, percentage, misused, degraded),
            breakdown=breakdown,
            metrics=metrics,
        )

    def assess(self, request: AssessmentRequest) -> AssessmentResult:
        """Score one answer. Raises ``ScoringConfigurationError`` for unusable questions."""

        self.validate(request)
        with traced_span("essay.assess"):
            reference = self.normalizer.normalize(request.reference_answer)
            concepts = self.concepts_for(reference, request.question)
            student = self.normalizer.normalize(request.student_answer)
            if student.is_empty:
                result = self._unanswered(request)
            else:
                context = ScoringContext(
                    request=request,
                    student=student,
                    reference=reference,
                    concepts=concepts,
                    normalizer=self.normalizer,
                )
                outcomes, degraded = self._run_scorers(context)
                result = self._result(request, outcomes, degraded)

        record_assessment(result.band)
        logger.info(
            "Assessed question=%s words=%d max_marks=%s percentage=%d band=%s",
            request.question.id or "-",
            len(student.words),
            request.max_marks,
            result.percentage,
            result.band,
        )
        return result

    def assess_many(self, requests: Iterable[AssessmentRequest]) -> list[AssessmentResult]:
        """Score several answers in order; questions sharing a reference share concepts."""

        return [self.assess(request) for request in requests]

    def score_essay(
        self,
        student_answer: str | None,
        correct_answer: str,
        max_marks: float,
        question_data: dict | None = None,
    ) -> dict:
        """Convenience wrapper taking and returning the exam workflow's field names."""

        request = AssessmentRequest(
            student_answer=student_answer or "",
            reference_answer=correct_answer,
            max_marks=max_marks,
            question=QuestionMetadata.from_payload(question_data),
        )
        return self.assess(request).to_payload()
