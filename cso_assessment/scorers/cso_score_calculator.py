"""
CSO score calculation.

Section raw scores (5-point scale per question):
- LIKERT_SCALE: raw answer 1-5 (clamped)
- BOOLEAN: 5 for yes, 1 for no
- Other types: counted as answered, contribute 0 points

A partially answered section is extrapolated at the same average:
score * max_questions / answered. An unanswered section scores 0.

Overall level on total percentage:
- < 41: Emerging
- 41 to < 80: Strong Foundation
- >= 80: Leading

Usage:
    from cso_assessment.scorers.cso_score_calculator import calculate_cso_scores

    scores = calculate_cso_scores(assessment.responses)
    scores.overall_level  # OverallLevel.STRONG_FOUNDATION
"""

import logging
import math
from typing import Any, Iterable

from cso_assessment.constants import (
    BOOLEAN_FALSE_POINTS,
    BOOLEAN_TRUE_POINTS,
    EMERGING_UPPER_PERCENT,
    LEADING_LOWER_PERCENT,
    POINTS_PER_QUESTION,
    SECTION_KEYS,
    SECTION_MAX_POINTS,
    SECTION_MAX_QUESTIONS,
    TOTAL_MAX_POINTS,
    resolve_section_key,
)
from cso_assessment.schemas.enums import OverallLevel, QuestionType
from cso_assessment.schemas.scores import CSOScores
from cso_assessment.scorers.normalizer import as_bool, is_answered, likert_value

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def section_raw_score(responses: Iterable[tuple[Any, QuestionType]], max_questions: int) -> int:
    """
    Raw point total for one section.

    Args:
        responses: (value, question_type) pairs for the section
        max_questions: Fixed question count of the section

    Returns:
        Integer score in [0, max_questions * 5]
    """
    total = 0.0
    answered = 0

    for value, question_type in responses:
        if not is_answered(value):
            continue
        if question_type == QuestionType.LIKERT_SCALE:
            number = likert_value(value)
            if number is None:
                continue
            total += number
        elif question_type == QuestionType.BOOLEAN:
            total += BOOLEAN_TRUE_POINTS if as_bool(value) else BOOLEAN_FALSE_POINTS
        answered += 1

    # Extrapolate a partial section; zero answered stays 0
    if 0 < answered < max_questions:
        total *= max_questions / answered

    max_points = max_questions * POINTS_PER_QUESTION
    return min(_round_half_up(total), max_points)


def classify_level(total_percentage: float) -> OverallLevel:
    """Map total percentage onto the three tiers."""
    if total_percentage < EMERGING_UPPER_PERCENT:
        return OverallLevel.EMERGING
    if total_percentage < LEADING_LOWER_PERCENT:
        return OverallLevel.STRONG_FOUNDATION
    return OverallLevel.LEADING


def partition_by_section(responses: Iterable) -> dict[str, list[tuple[Any, QuestionType]]]:
    """Group (value, type) pairs by section key. Responses outside the four sections are dropped."""
    buckets: dict[str, list[tuple[Any, QuestionType]]] = {key: [] for key in SECTION_KEYS}
    for response in responses:
        question = response.question
        if question is None:
            logger.debug(f"Response {response.id} has no loaded question, ignoring")
            continue
        key = resolve_section_key(question.section_id)
        if key is None:
            logger.debug(f"Question {question.id} is in unscored section {question.section_id}")
            continue
        buckets[key].append((response.value, question.type))
    return buckets


def calculate_cso_scores(responses: Iterable) -> CSOScores:
    """
    Compute section scores, percentages and overall level for one assessment.

    Pure function of the responses; each response must carry its question.

    Args:
        responses: Response records with `question` loaded

    Returns:
        CSOScores
    """
    buckets = partition_by_section(responses)

    section_scores = {key: section_raw_score(buckets[key], SECTION_MAX_QUESTIONS[key]) for key in SECTION_KEYS}
    total_score = sum(section_scores.values())

    section_percentages = {key: section_scores[key] / SECTION_MAX_POINTS[key] * 100 for key in SECTION_KEYS}
    total_percentage = total_score / TOTAL_MAX_POINTS * 100

    return CSOScores(
        governance_score=section_scores["governance"],
        financial_score=section_scores["financial"],
        programme_score=section_scores["programme"],
        hr_score=section_scores["hr"],
        total_score=total_score,
        governance_percentage=section_percentages["governance"],
        financial_percentage=section_percentages["financial"],
        programme_percentage=section_percentages["programme"],
        hr_percentage=section_percentages["hr"],
        total_percentage=total_percentage,
        overall_level=classify_level(total_percentage),
    )
