"""
Response normalization.

Maps a raw answer and its question type onto a common 0-1 scale:
- BOOLEAN: true = 1.0, anything else = 0.0
- LIKERT_SCALE: (value - 1) / 4, value clamped to 1-5
- SINGLE_CHOICE: weight of the chosen option, 0.5 without option weights
- MULTIPLE_CHOICE: mean weight of the selected options, 0.7 without option
  weights, 0.0 for an empty selection
- TEXT: neutral 0.5

Unanswered values (None or "") are excluded by callers, never scored as 0.
"""

import logging
from typing import Any, Iterable, Optional

from cso_assessment.constants import (
    LIKERT_MAX,
    LIKERT_MIN,
    MULTIPLE_CHOICE_DEFAULT,
    SINGLE_CHOICE_DEFAULT,
    TEXT_NEUTRAL,
)
from cso_assessment.schemas.enums import QuestionType

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes"}


def is_answered(value: Any) -> bool:
    """None and the empty string are unanswered. An empty list is an answer."""
    return value is not None and value != ""


def as_bool(value: Any) -> bool:
    """Strict truthiness for BOOLEAN answers: True, or "true"/"yes" from form posts."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def likert_value(value: Any) -> Optional[float]:
    """Parse a Likert answer and clamp it to the 1-5 scale.

    Returns:
        The clamped value, or None when the answer is not numeric
    """
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Skipping non-numeric Likert value {value!r}")
        return None
    if number != number:  # NaN
        logger.warning("Skipping NaN Likert value")
        return None

    clamped = min(max(number, LIKERT_MIN), LIKERT_MAX)
    if clamped != number:
        logger.warning(f"Clamped Likert value {number} to {clamped}")
    return clamped


def _option_weight(option: Any, option_weights: Optional[dict[str, float]], default: float) -> float:
    if not option_weights:
        return default
    weight = option_weights.get(str(option))
    if weight is None:
        return default
    return min(max(float(weight), 0.0), 1.0)


def normalize(value: Any, question_type: QuestionType, option_weights: Optional[dict[str, float]] = None) -> float:
    """Normalize one raw answer to [0, 1].

    Args:
        value: Raw response value (str, list, number, bool)
        question_type: The question's answer kind
        option_weights: Optional per-option weights for choice questions

    Returns:
        Float in [0, 1]. Unanswered or invalid values give 0.0.
    """
    normalized = normalize_answer(value, question_type, option_weights)
    return 0.0 if normalized is None else normalized


def normalize_answer(
    value: Any, question_type: QuestionType, option_weights: Optional[dict[str, float]] = None
) -> Optional[float]:
    """Like `normalize`, but None for answers that must be left out of aggregation."""
    if not is_answered(value):
        return None

    if question_type == QuestionType.BOOLEAN:
        return 1.0 if as_bool(value) else 0.0

    if question_type == QuestionType.LIKERT_SCALE:
        number = likert_value(value)
        if number is None:
            return None
        return (number - LIKERT_MIN) / (LIKERT_MAX - LIKERT_MIN)

    if question_type == QuestionType.SINGLE_CHOICE:
        return _option_weight(value, option_weights, SINGLE_CHOICE_DEFAULT)

    if question_type == QuestionType.MULTIPLE_CHOICE:
        selected = value if isinstance(value, (list, tuple)) else [value]
        if not selected:
            return 0.0
        if not option_weights:
            return MULTIPLE_CHOICE_DEFAULT
        weights = [_option_weight(option, option_weights, MULTIPLE_CHOICE_DEFAULT) for option in selected]
        return sum(weights) / len(weights)

    if question_type == QuestionType.TEXT:
        return TEXT_NEUTRAL

    return 0.0


def to_display_scale(normalized: float) -> float:
    """Map a 0-1 value back to the 1-5 display scale."""
    return 1 + 4 * normalized


def weighted_overall_score(responses: Iterable) -> float:
    """Question-weight x section-weight weighted mean of normalized answers (0-1).

    Responses without a loaded question, unanswered values and non-numeric
    Likert answers are left out.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for response in responses:
        question = response.question
        if question is None:
            continue
        normalized = normalize_answer(response.value, question.type, question.option_weights)
        if normalized is None:
            continue

        section_weight = question.section.weight if question.section is not None else 1.0
        weight = question.weight * section_weight
        if weight <= 0:
            continue
        weighted_sum += normalized * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0
    return weighted_sum / total_weight
