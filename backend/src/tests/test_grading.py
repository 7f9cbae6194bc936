import pytest

from essay_grader.config import DimensionWeights, GradeBand, ScoringPolicy
from essay_grader.grading import NO_ANSWER, Aggregator, FeedbackGenerator, round_half_up
from essay_grader.models import (
    CONTENT_ACCURACY,
    CRITICAL_THINKING,
    DIMENSIONS,
    SEMANTIC_UNDERSTANDING,
    TECHNICAL_PRECISION,
    WRITING_QUALITY,
)


@pytest.fixture
def aggregator() -> Aggregator:
    return Aggregator(ScoringPolicy())


def test_breakdown_scales_and_clamps(aggregator):
    ratios = {CONTENT_ACCURACY: 1.5, SEMANTIC_UNDERSTANDING: 0.5, WRITING_QUALITY: -0.2}
    breakdown = {score.name: score for score in aggregator.breakdown(ratios, 10)}
    assert list(breakdown) == list(DIMENSIONS)
    assert breakdown[CONTENT_ACCURACY].dimension_max == 3.0
    assert breakdown[CONTENT_ACCURACY].raw_score == 3.0
    assert breakdown[SEMANTIC_UNDERSTANDING].raw_score == 1.25
    assert breakdown[WRITING_QUALITY].raw_score == 0
    assert breakdown[TECHNICAL_PRECISION].raw_score == 0


def test_percentage_is_weighted_sum(aggregator):
    ratios = dict.fromkeys(DIMENSIONS, 1.0)
    assert aggregator.percentage(ratios) == pytest.approx(100.0)
    ratios[CONTENT_ACCURACY] = 0.0
    assert aggregator.percentage(ratios) == pytest.approx(70.0)


def test_total_score_rounds_to_whole_marks(aggregator):
    assert aggregator.total_score(84.0, 10) == 8
    assert aggregator.total_score(86.0, 10) == 9
    assert aggregator.total_score(100.0, 7) == 7
    assert aggregator.reported_percentage(8, 10) == 80


def test_total_score_precision_is_configurable():
    aggregator = Aggregator(ScoringPolicy(score_precision=1))
    assert aggregator.total_score(84.0, 10) == pytest.approx(8.4)


def test_exact_halves_round_up(aggregator):
    assert round_half_up(12.5) == 13
    assert round_half_up(0.125, 2) == pytest.approx(0.13)
    assert aggregator.total_score(50.0, 1) == 1
    assert aggregator.total_score(25.0, 10) == 3
    assert aggregator.reported_percentage(1, 8) == 13


@pytest.mark.parametrize(
    ("percentage", "max_marks", "expected"), [(100.0, 0.5, 0.5), (100.0, 0.6, 0.6), (96.0, 2.5, 2.4), (40.0, 0.5, 0.2)]
)
def test_fractional_max_marks_keep_their_precision(aggregator, percentage, max_marks, expected):
    total = aggregator.total_score(percentage, max_marks)
    assert total == pytest.approx(expected)
    assert total <= max_marks
    assert aggregator.reported_percentage(total, max_marks) == round_half_up(percentage)


@pytest.mark.parametrize(
    ("percentage", "grade", "band"),
    [(100, "A", "Excellent"), (90, "A", "Excellent"), (89, "B", "Good"), (75, "B", "Good"),
     (60, "C", "Satisfactory"), (40, "D", "Weak"), (39, "F", "Poor"), (0, "F", "Poor")],
)
def test_default_grade_bands(aggregator, percentage, grade, band):
    chosen = aggregator.grade_for(percentage)
    assert (chosen.grade, chosen.band) == (grade, band)


def test_assessment_labels(aggregator):
    assert aggregator.assessment_for(95) == "Expert Level Answer"
    assert aggregator.assessment_for(55) == "Satisfactory Answer"
    assert aggregator.assessment_for(5) == "Inadequate Answer"


def test_custom_policy_changes_grades_without_touching_scorers():
    policy = ScoringPolicy(
        weights=DimensionWeights(
            content_accuracy=0.5,
            semantic_understanding=0.2,
            writing_quality=0.1,
            critical_thinking=0.1,
            technical_precision=0.1,
        ),
        grade_bands=[GradeBand(min_percentage=0, grade="Fail", band="Fail"),
                     GradeBand(min_percentage=50, grade="Pass", band="Pass")],
    )
    aggregator = Aggregator(policy)
    assert aggregator.grade_for(50).grade == "Pass"
    assert aggregator.percentage({CONTENT_ACCURACY: 1.0}) == pytest.approx(50.0)


def test_feedback_names_strength_and_gap(aggregator):
    ratios = {
        CONTENT_ACCURACY: 0.95,
        SEMANTIC_UNDERSTANDING: 0.8,
        WRITING_QUALITY: 0.9,
        CRITICAL_THINKING: 0.2,
        TECHNICAL_PRECISION: 0.7,
    }
    feedback = FeedbackGenerator().render(aggregator.breakdown(ratios, 10), 78)
    assert feedback.startswith("Good answer.")
    assert "Strong grasp of the core concepts; weak use of supporting examples and reasoning." in feedback


def test_feedback_omits_gap_when_everything_is_strong(aggregator):
    breakdown = aggregator.breakdown(dict.fromkeys(DIMENSIONS, 0.9), 10)
    feedback = FeedbackGenerator().render(breakdown, 90)
    assert feedback == "Excellent work. Strong grasp of the core concepts."


def test_feedback_lists_misused_and_degraded(aggregator):
    breakdown = aggregator.breakdown(dict.fromkeys(DIMENSIONS, 0.5), 10, degraded=[WRITING_QUALITY])
    feedback = FeedbackGenerator().render(breakdown, 50, ["stack", "fifo"], [WRITING_QUALITY])
    assert "Check how these terms are used: fifo, stack." in feedback
    assert "could not be assessed automatically: writing quality." in feedback


def test_feedback_is_deterministic(aggregator):
    breakdown = aggregator.breakdown({CONTENT_ACCURACY: 0.4, CRITICAL_THINKING: 0.1}, 10)
    generator = FeedbackGenerator()
    assert generator.render(breakdown, 20) == generator.render(breakdown, 20)


def test_unanswered_feedback():
    assert FeedbackGenerator().unanswered() == NO_ANSWER
    assert NO_ANSWER.startswith("No answer submitted.")
