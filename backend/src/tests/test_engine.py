import math

import pytest
from conftest import OFF_TOPIC, OOP_LADDER, OOP_PARAPHRASE, OOP_REFERENCE
from prometheus_client import REGISTRY

from essay_grader.concepts import KeyConceptCache
from essay_grader.config import AppSettings, ConceptSettings
from essay_grader.engine import EssayScoringEngine, default_scorers
from essay_grader.errors import InvalidRequestError, ScoringConfigurationError
from essay_grader.grading import round_half_up
from essay_grader.models import DIMENSIONS, WRITING_QUALITY, AssessmentRequest, QuestionMetadata
from essay_grader.semantic import LexicalSimilarityEstimator


def test_empty_answer_scores_zero(engine, make_request):
    for blank in ("", "   \n  "):
        result = engine.assess(make_request(blank))
        assert result.total_score == 0
        assert result.percentage == 0
        assert all(score.raw_score == 0 for score in result.breakdown)
        assert "no answer submitted" in result.feedback.lower()


def test_reference_against_itself_scores_excellent(engine, make_request):
    result = engine.assess(make_request(OOP_REFERENCE))
    assert result.percentage >= 90
    assert result.grade == "A"


@pytest.mark.parametrize("max_marks", [0.5, 0.6, 2.5])
def test_reference_against_itself_with_fractional_max_marks(engine, make_request, max_marks):
    result = engine.assess(make_request(OOP_REFERENCE, max_marks=max_marks))
    assert result.total_score <= max_marks
    assert result.percentage >= 90
    assert result.grade == "A"


def test_paraphrase_scores_close_to_reference(engine, make_request):
    result = engine.assess(make_request(OOP_PARAPHRASE))
    assert 70 <= result.percentage <= 95


def test_off_topic_answer_scores_low(engine, make_request):
    result = engine.assess(make_request(OFF_TOPIC))
    assert result.percentage < 30
    assert result.band == "Poor"


def test_padding_off_topic_answer_does_not_help(engine, make_request):
    padded = " ".join([OFF_TOPIC] * 12)
    result = engine.assess(make_request(padded))
    assert result.band == "Poor"
    concise = engine.assess(make_request(OOP_LADDER[2]))
    assert concise.percentage > result.percentage


def test_quality_ladder_is_monotonic(engine, make_request):
    percentages = [engine.assess(make_request(answer)).percentage for answer in OOP_LADDER]
    assert percentages == sorted(percentages)
    assert percentages[0] < percentages[-1]


def test_scoring_is_deterministic(make_request):
    first = EssayScoringEngine(cache=KeyConceptCache()).assess(make_request(OOP_PARAPHRASE))
    second = EssayScoringEngine(cache=KeyConceptCache()).assess(make_request(OOP_PARAPHRASE))
    assert first == second
    assert first.to_payload() == second.to_payload()


@pytest.mark.parametrize("max_marks", [0.5, 0.6, 1, 2.5, 7, 10, 25.5, 100])
@pytest.mark.parametrize("answer", ["x", "OOP.", OFF_TOPIC, OOP_PARAPHRASE, OOP_REFERENCE * 3])
def test_scores_stay_in_bounds(engine, make_request, answer, max_marks):
    result = engine.assess(make_request(answer, max_marks=max_marks))
    assert 0 <= result.total_score <= max_marks
    assert 0 <= result.percentage <= 100
    assert result.percentage == round_half_up(100 * result.total_score / max_marks)
    for score in result.breakdown:
        assert 0 <= score.raw_score <= score.dimension_max


def test_payload_shape(engine, make_request):
    payload = engine.assess(make_request(OOP_PARAPHRASE)).to_payload()
    assert set(payload) == {
        "totalScore", "percentage", "grade", "band", "assessment", "detailedBreakdown", "detailedAnalysis", "feedback"
    }
    assert list(payload["detailedBreakdown"]) == list(DIMENSIONS)
    assert payload["detailedBreakdown"]["contentAccuracy"]["maxScore"] == 3.0
    assert set(payload["detailedAnalysis"]) == {
        "keywordAnalysis", "semanticSimilarity", "contentStructure", "languageQuality", "coherence"
    }
    assert set(payload["detailedAnalysis"]["languageQuality"]) == {"grammar", "vocabulary"}


@pytest.mark.parametrize("reference", ["", "   ", None])
def test_missing_reference_fails_fast(engine, reference):
    request = AssessmentRequest(student_answer="OOP uses objects.", reference_answer=reference, max_marks=10)
    with pytest.raises(ScoringConfigurationError) as excinfo:
        engine.assess(request)
    assert excinfo.value.field == "correctAnswer"


def test_reference_without_content_words_is_rejected(engine, make_request):
    with pytest.raises(ScoringConfigurationError):
        engine.assess(make_request("Something.", reference="It is what it is."))



def test_rejected_reference_still_records_latency(engine, make_request):
    before = REGISTRY.get_sample_value("essay_scoring_latency_ms_count") or 0
    with pytest.raises(ScoringConfigurationError):
        engine.assess(make_request("Something.", reference="It is what it is."))
    assert REGISTRY.get_sample_value("essay_scoring_latency_ms_count") == before + 1

@pytest.mark.parametrize("max_marks", [0, -5, math.nan, math.inf])
def test_invalid_max_marks_rejected_before_scoring(engine, make_request, max_marks):
    with pytest.raises(ScoringConfigurationError) as excinfo:
        engine.assess(make_request("", max_marks=max_marks))
    assert excinfo.value.field == "maxMarks"
    assert len(engine.cache) == 0


def test_unknown_difficulty_is_invalid(engine):
    with pytest.raises(InvalidRequestError):
        engine.score_essay("answer", OOP_REFERENCE, 10, {"difficulty": "IMPOSSIBLE"})


class ExplodingScorer:
    name = WRITING_QUALITY

    def score(self, context):
        raise RuntimeError("cannot decode input")


def test_failing_dimension_degrades_to_neutral(make_request):
    estimator = LexicalSimilarityEstimator()
    scorers = [scorer for scorer in default_scorers(estimator) if scorer.name != WRITING_QUALITY]
    engine = EssayScoringEngine(cache=KeyConceptCache(), estimator=estimator, scorers=[*scorers, ExplodingScorer()])

    result = engine.assess(make_request(OOP_PARAPHRASE))

    writing = result.dimension(WRITING_QUALITY)
    assert writing.degraded
    assert writing.raw_score == pytest.approx(0.5 * writing.dimension_max)
    payload = result.to_payload()
    assert payload["detailedAnalysis"]["degradedDimensions"] == [WRITING_QUALITY]
    assert "writing quality" in result.feedback


def test_healthy_result_has_no_degraded_key(engine, make_request):
    payload = engine.assess(make_request(OOP_PARAPHRASE)).to_payload()
    assert "degradedDimensions" not in payload["detailedAnalysis"]


def test_engine_requires_every_dimension():
    with pytest.raises(ValueError):
        EssayScoringEngine(cache=KeyConceptCache(), scorers=[ExplodingScorer()])


def test_concepts_computed_once_per_question(engine, make_request):
    engine.assess(make_request("OOP uses objects."))
    engine.assess(make_request("Classes inherit methods."))
    assert engine.cache.stats() == {"size": 1, "hits": 1, "misses": 1}


def test_question_text_participates_in_cache_key(engine):
    engine.assess(AssessmentRequest("OOP uses objects.", OOP_REFERENCE, 10, QuestionMetadata(text="What is OOP?")))
    engine.assess(AssessmentRequest("OOP uses objects.", OOP_REFERENCE, 10, QuestionMetadata(text="Define OOP.")))
    assert len(engine.cache) == 2


def test_shared_cache_separates_concept_settings(cache, make_request):
    narrow = EssayScoringEngine(AppSettings(concepts=ConceptSettings(max_concepts=5)), cache=cache)
    wide = EssayScoringEngine(cache=cache)
    narrow.assess(make_request("OOP uses objects."))
    wide.assess(make_request("OOP uses objects."))
    assert len(cache) == 2
    reference = wide.normalizer.normalize(OOP_REFERENCE)
    question = make_request("").question
    assert len(narrow.concepts_for(reference, question)) == 5
    assert len(wide.concepts_for(reference, question)) > 5


def test_assess_many_preserves_order(engine, make_request):
    results = engine.assess_many([make_request(OFF_TOPIC), make_request(OOP_REFERENCE)])
    assert results[0].percentage < results[1].percentage


def test_score_essay_uses_workflow_field_names(engine):
    payload = engine.score_essay("", OOP_REFERENCE, 10, {"text": "Explain OOP.", "difficulty": "EASY", "marks": 10})
    assert payload["totalScore"] == 0
    assert payload["feedback"].startswith("No answer submitted.")
