"""
Condition evaluation for suggestion rules.

Score-level conditions are matched against `ScoreFacts` (composite scores,
optionally scoped to one section). Every present clause must pass; an empty
condition always matches. A clause whose fact is unavailable fails, and so
does a stored blob that fails validation (logged, never raised).

Question-level conditions compare one response's raw value with
`{value, operator}`.

Usage:
    facts = ScoreFacts.from_scores(scores, responses={"gov-q13": True})
    evaluate(facts, {"overallScore": {"min": 200}})
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from cso_assessment.constants import resolve_section_key
from cso_assessment.errors import InvalidConditionError
from cso_assessment.schemas.conditions import (
    Condition,
    QuestionCondition,
    QuestionPercentageClause,
    SectionCountClause,
    parse_condition,
    parse_question_condition,
)
from cso_assessment.schemas.enums import OverallLevel, QuestionType
from cso_assessment.schemas.scores import CSOScores
from cso_assessment.scorers.normalizer import is_answered

logger = logging.getLogger(__name__)


@dataclass
class ScoreFacts:
    """Facts a score-level condition can refer to."""

    total_score: Optional[float] = None
    overall_level: Optional[OverallLevel] = None
    section_scores: dict[str, float] = field(default_factory=dict)
    section_percentages: dict[str, float] = field(default_factory=dict)
    score: Optional[float] = None  # score the evaluation is scoped to (one section)
    responses: dict[str, Any] = field(default_factory=dict)  # question id -> raw value
    normalized_score: Optional[float] = None  # 0-1, same scope as `score` (whole assessment when unscoped)
    scoped_answers: list[tuple[Any, QuestionType]] = field(default_factory=list)  # (raw value, type) in scope

    @classmethod
    def from_scores(
        cls,
        scores: CSOScores,
        responses: Optional[dict[str, Any]] = None,
        section: Optional[str] = None,
        normalized_score: Optional[float] = None,
        scoped_answers: Optional[list[tuple[Any, QuestionType]]] = None,
    ) -> "ScoreFacts":
        """Build facts from composite scores, optionally scoped to one section (key or id).

        `normalized_score` and `scoped_answers` describe the same scope as
        `section`: that section's responses, or all of them when unscoped.
        """
        scoped_score = None
        if section is not None:
            key = resolve_section_key(section)
            if key is None:
                raise ValueError(f"Unknown section: {section!r}")
            scoped_score = scores.section_scores[key]
        return cls(
            total_score=scores.total_score,
            overall_level=scores.overall_level,
            section_scores=dict(scores.section_scores),
            section_percentages=dict(scores.section_percentages),
            score=scoped_score,
            responses=dict(responses or {}),
            normalized_score=normalized_score,
            scoped_answers=list(scoped_answers or []),
        )


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def values_equal(actual: Any, expected: Any) -> bool:
    """Equality across the string/number forms answers arrive in. Booleans only equal booleans."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if actual == expected:
        return True
    a, b = _to_number(actual), _to_number(expected)
    if a is not None and b is not None:
        return a == b
    return False


def _compare_count(operator: str, count: int, value: int) -> bool:
    if operator == "greater_than":
        return count > value
    if operator == "less_than":
        return count < value
    if operator == "equals":
        return count == value
    return False


def _section_count_matches(clause: SectionCountClause, facts: ScoreFacts) -> bool:
    if not facts.section_percentages:
        return False
    below = sum(1 for pct in facts.section_percentages.values() if pct < clause.below_threshold)
    return _compare_count(clause.operator, below, clause.value)


def _responses_match(expected: dict[str, Any], facts: ScoreFacts) -> bool:
    for question_id, expected_value in expected.items():
        actual = facts.responses.get(question_id)
        if not is_answered(actual):
            continue
        if not values_equal(actual, expected_value):
            return False
    return True


def _normalized_score_matches(condition: Condition, facts: ScoreFacts) -> bool:
    if facts.normalized_score is None:
        return False
    low = condition.min_score if condition.min_score is not None else 0.0
    high = condition.max_score if condition.max_score is not None else 1.0
    return low <= facts.normalized_score <= high


def _question_percentage_matches(clause: QuestionPercentageClause, facts: ScoreFacts) -> bool:
    if not facts.scoped_answers:
        return False
    matching = sum(
        1
        for value, question_type in facts.scoped_answers
        if (clause.question_type is None or question_type == clause.question_type)
        and (not clause.has_expected_value or values_equal(value, clause.expected_value))
    )
    percentage = matching / len(facts.scoped_answers) * 100
    if clause.operator == "equals":
        return abs(percentage - clause.value) < 1
    if clause.operator == "greater_than":
        return percentage > clause.value
    return percentage < clause.value


def evaluate(facts: ScoreFacts, condition: Union[Condition, dict, str, None]) -> bool:
    """
    Match a score-level condition against facts.

    Args:
        facts: Computed scores (and optionally raw responses)
        condition: Parsed Condition, or the stored JSON blob

    Returns:
        True when every present clause passes. False, with a warning, when
        a raw blob fails validation.
    """
    if not isinstance(condition, Condition):
        try:
            condition = parse_condition(condition)
        except InvalidConditionError as e:
            logger.warning(f"Condition does not match: {e}")
            return False

    if condition.overall_score is not None:
        if facts.total_score is None or not condition.overall_score.contains(facts.total_score):
            return False

    if condition.section_score is not None:
        actual = facts.section_scores.get(condition.section_score.section)
        if actual is None or not condition.section_score.contains(actual):
            return False

    if condition.score is not None:
        if facts.score is None or not condition.score.contains(facts.score):
            return False

    if condition.overall_level is not None:
        if facts.overall_level != condition.overall_level:
            return False

    if condition.section_percentages is not None:
        for key, bounds in condition.section_percentages.items():
            actual = facts.section_percentages.get(key)
            if actual is None or not bounds.contains(actual):
                return False

    if condition.responses is not None and not _responses_match(condition.responses, facts):
        return False

    if condition.section_count is not None and not _section_count_matches(condition.section_count, facts):
        return False

    if (condition.min_score is not None or condition.max_score is not None) and not _normalized_score_matches(
        condition, facts
    ):
        return False

    if condition.question_percentage is not None and not _question_percentage_matches(
        condition.question_percentage, facts
    ):
        return False

    return True


def evaluate_question(condition: Union[QuestionCondition, dict, str, None], response_value: Any) -> bool:
    """
    Match a question-level `{value, operator}` condition against one raw answer.

    Numeric operators compare numerically and fail on non-numeric input.
    `contains` checks list membership for multi-select answers and
    substring otherwise. A raw blob that fails validation never matches.
    """
    if not isinstance(condition, QuestionCondition):
        try:
            condition = parse_question_condition(condition)
        except InvalidConditionError as e:
            logger.warning(f"Question condition does not match: {e}")
            return False

    operator = condition.operator
    expected = condition.value

    if operator == "equals":
        return values_equal(response_value, expected)

    if operator == "contains":
        if response_value is None:
            return False
        if isinstance(response_value, (list, tuple)):
            return any(values_equal(item, expected) for item in response_value)
        return str(expected) in str(response_value)

    actual_number = _to_number(response_value)
    expected_number = _to_number(expected)
    if actual_number is None or expected_number is None:
        return False

    if operator == "greater_than":
        return actual_number > expected_number
    if operator == "less_than":
        return actual_number < expected_number
    if operator == "greater_than_or_equal":
        return actual_number >= expected_number
    if operator == "less_than_or_equal":
        return actual_number <= expected_number

    return False
