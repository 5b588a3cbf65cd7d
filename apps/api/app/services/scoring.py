"""Deterministic compliance scoring over questionnaire answers.

Scoring is a keyword/threshold heuristic, not semantic understanding: an
answer earns 2 points for a positive signal, 1 for a medium signal and 0
otherwise. The compliance score is the share of the maximum (2 points per
answered question) expressed as an integer percentage.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from apps.api.app.services.answers import (
    Answer,
    MultiSelectAnswer,
    TextAnswer,
    parse_answer,
    parse_answers,
)

POSITIVE_SIGNALS = (
    "yes",
    "comprehensive",
    "high",
    "fully",
    "reduction",
    "renewable",
    "recycling",
    "energy-efficient",
)
POSITIVE_INDUSTRY_RANGES = ("61-80", "81-100")
MEDIUM_SIGNALS = ("partial", "moderate", "planning", "development")
MEDIUM_INDUSTRY_RANGES = ("41-60", "21-40")

POLICY_QUESTION = "sustainability_policy"
POLICY_AFFIRMATIVE = "Yes"
WASTE_QUESTION = "waste_management"
RECYCLING_INDICATOR = "Recycling"

STRENGTH_POLICY = "Formal sustainability policy in place"
STRENGTH_WASTE = "Active waste management and recycling program"
WEAK_POLICY = "Lack of formal sustainability policy"
WEAK_SCORE = "Overall compliance score needs improvement"
LOW_SCORE_THRESHOLD = 50

STANDARD_RECOMMENDATIONS = (
    "Implement regular sustainability audits",
    "Develop measurable sustainability goals",
    "Consider industry-specific certifications",
    "Engage employees in sustainability initiatives",
)


def score_answer(answer: Any, *, industry_specific: bool = False) -> int:
    """Return 0, 1 or 2 points for one answer."""
    parsed = parse_answer(answer)
    if isinstance(parsed, MultiSelectAnswer):
        positive = len(parsed.positive_options)
        if positive >= 3:
            return 2
        if positive >= 1:
            return 1
        return 0

    text = parsed.text.lower()
    if not text:
        return 0
    if any(signal in text for signal in POSITIVE_SIGNALS):
        return 2
    if industry_specific and any(token in text for token in POSITIVE_INDUSTRY_RANGES):
        return 2
    if any(signal in text for signal in MEDIUM_SIGNALS):
        return 1
    if industry_specific and any(token in text for token in MEDIUM_INDUSTRY_RANGES):
        return 1
    return 0


def compliance_percentage(points: int, questions: int) -> int:
    """round(100 * points / (2 * questions)) with halves rounded up; 0 for no questions."""
    if questions <= 0:
        return 0
    return (100 * points + questions) // (2 * questions)


def industry_observations_for(industry: str) -> str:
    return (
        f"As a {industry} company, specific attention should be paid to "
        "industry-standard sustainability practices and regulatory compliance."
    )


@dataclass(frozen=True)
class ComplianceEvaluation:
    score: int
    total_points: int
    total_questions: int
    industry_observations: str
    strengths: list[str] = field(default_factory=list)
    weak_areas: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssessmentAnalytics:
    total_questions: int
    total_general: int
    total_industry: int
    high_quality: int
    medium_quality: int
    basic_response: int


def _mentions_recycling(answer: Answer | None) -> bool:
    if isinstance(answer, TextAnswer):
        return RECYCLING_INDICATOR in answer.text
    if isinstance(answer, MultiSelectAnswer):
        return any(RECYCLING_INDICATOR in option for option in answer.options)
    return False


def _policy_is_affirmative(answer: Answer | None) -> bool:
    return isinstance(answer, TextAnswer) and answer.text == POLICY_AFFIRMATIVE


def evaluate_compliance(
    general_answers: Mapping[str, Any] | None,
    industry_answers: Mapping[str, Any] | None,
    *,
    industry: str,
) -> ComplianceEvaluation:
    general = parse_answers(general_answers)
    specific = parse_answers(industry_answers)

    points = sum(score_answer(answer) for answer in general.values())
    points += sum(score_answer(answer, industry_specific=True) for answer in specific.values())
    questions = len(general) + len(specific)
    score = compliance_percentage(points, questions)

    strengths: list[str] = []
    weak_areas: list[str] = []
    if _policy_is_affirmative(general.get(POLICY_QUESTION)):
        strengths.append(STRENGTH_POLICY)
    else:
        weak_areas.append(WEAK_POLICY)
    if _mentions_recycling(general.get(WASTE_QUESTION)):
        strengths.append(STRENGTH_WASTE)
    if score < LOW_SCORE_THRESHOLD:
        weak_areas.append(WEAK_SCORE)

    return ComplianceEvaluation(
        score=score,
        total_points=points,
        total_questions=questions,
        industry_observations=industry_observations_for(industry),
        strengths=strengths,
        weak_areas=weak_areas,
        recommendations=list(STANDARD_RECOMMENDATIONS),
    )


def build_assessment_analytics(
    general_answers: Mapping[str, Any] | None,
    industry_answers: Mapping[str, Any] | None,
) -> AssessmentAnalytics:
    general = parse_answers(general_answers)
    specific = parse_answers(industry_answers)
    buckets = {0: 0, 1: 0, 2: 0}
    for answer in general.values():
        buckets[score_answer(answer)] += 1
    for answer in specific.values():
        buckets[score_answer(answer, industry_specific=True)] += 1
    return AssessmentAnalytics(
        total_questions=len(general) + len(specific),
        total_general=len(general),
        total_industry=len(specific),
        high_quality=buckets[2],
        medium_quality=buckets[1],
        basic_response=buckets[0],
    )
