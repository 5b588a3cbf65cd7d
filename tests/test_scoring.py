import pytest

from apps.api.app.services.answers import (
    MultiSelectAnswer,
    TextAnswer,
    format_question_label,
    parse_answer,
)
from apps.api.app.services.scoring import (
    STANDARD_RECOMMENDATIONS,
    STRENGTH_POLICY,
    STRENGTH_WASTE,
    WEAK_POLICY,
    WEAK_SCORE,
    build_assessment_analytics,
    compliance_percentage,
    evaluate_compliance,
    score_answer,
)


@pytest.mark.parametrize(
    ("answer", "expected"),
    [
        ("Yes", 2),
        ("Recycling program", 2),
        ("Yes, partially", 2),
        ("Partially implemented", 1),
        ("In development", 1),
        ("No", 0),
        ("", 0),
        (None, 0),
    ],
)
def test_score_answer_text_signals(answer, expected) -> None:
    assert score_answer(answer) == expected


def test_score_answer_industry_ranges_only_apply_to_industry_questions() -> None:
    assert score_answer("61-80%", industry_specific=True) == 2
    assert score_answer("21-40%", industry_specific=True) == 1
    assert score_answer("61-80%") == 0
    assert score_answer("21-40%") == 0


def test_score_answer_multi_select_counts_non_none_options() -> None:
    assert score_answer(["None"]) == 0
    assert score_answer(["ISO 14001"]) == 1
    assert score_answer(["ISO 14001", "None"]) == 1
    assert score_answer(["ISO 14001", "ISO 9001", "SA 8000"]) == 2
    assert score_answer([]) == 0


def test_score_answer_is_pure() -> None:
    answers = ["Yes", ["Solar power", "Wind power"], "moderate efficiency"]
    first = [score_answer(answer, industry_specific=True) for answer in answers]
    second = [score_answer(answer, industry_specific=True) for answer in answers]
    assert first == second


def test_parse_answer_produces_tagged_variants() -> None:
    assert parse_answer("Yes") == TextAnswer(text="Yes")
    assert parse_answer(["A", "B"]) == MultiSelectAnswer(options=("A", "B"))
    assert parse_answer(["A", "B"]).display() == "A, B"


def test_format_question_label_title_cases_underscored_keys() -> None:
    assert format_question_label("waste_management") == "Waste Management"
    assert format_question_label("industry_specific_1") == "Industry Specific 1"


def test_compliance_percentage_rounds_half_up_and_handles_zero() -> None:
    assert compliance_percentage(6, 4) == 75
    assert compliance_percentage(1, 3) == 17
    assert compliance_percentage(1, 4) == 13
    assert compliance_percentage(0, 0) == 0


def test_scenario_policy_and_recycling_scores_75() -> None:
    evaluation = evaluate_compliance(
        {"sustainability_policy": "Yes", "waste_management": "Recycling program"},
        {"production_waste": "12%", "water_usage": "High efficiency"},
        industry="Manufacturing",
    )

    assert evaluation.total_questions == 4
    assert evaluation.total_points == 6
    assert evaluation.score == 75
    assert evaluation.strengths == [STRENGTH_POLICY, STRENGTH_WASTE]
    assert evaluation.weak_areas == []
    assert evaluation.recommendations == list(STANDARD_RECOMMENDATIONS)
    assert "Manufacturing" in evaluation.industry_observations


def test_scenario_no_answers_scores_zero_without_error() -> None:
    evaluation = evaluate_compliance({}, None, industry="Other")

    assert evaluation.score == 0
    assert evaluation.total_questions == 0
    assert WEAK_SCORE in evaluation.weak_areas
    assert WEAK_POLICY in evaluation.weak_areas
    assert evaluation.strengths == []


def test_policy_strength_requires_exact_yes() -> None:
    evaluation = evaluate_compliance(
        {"sustainability_policy": "Yes, informally"}, {}, industry="Retail"
    )
    assert STRENGTH_POLICY not in evaluation.strengths
    assert WEAK_POLICY in evaluation.weak_areas


def test_recycling_strength_detected_in_multi_select() -> None:
    evaluation = evaluate_compliance(
        {"waste_management": ["Recycling program", "Waste reduction initiatives"]},
        {},
        industry="Retail",
    )
    assert STRENGTH_WASTE in evaluation.strengths


@pytest.mark.parametrize(
    "general",
    [
        {"a": "Yes", "b": ["x", "y", "z"]},
        {"a": "No", "b": "No"},
        {"a": "partial"},
    ],
)
def test_score_stays_within_bounds(general) -> None:
    evaluation = evaluate_compliance(general, {"c": "81-100%"}, industry="Finance")
    assert 0 <= evaluation.score <= 100


def test_analytics_buckets_match_answer_scores() -> None:
    analytics = build_assessment_analytics(
        {"sustainability_policy": "Yes", "company_size": "11-50 employees"},
        {"remote_work": "41-60%", "server_efficiency": "Partially"},
    )

    assert analytics.total_questions == 4
    assert analytics.total_general == 2
    assert analytics.total_industry == 2
    assert analytics.high_quality == 1
    assert analytics.medium_quality == 2
    assert analytics.basic_response == 1
