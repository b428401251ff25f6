"""Pydantic schemas for suggestion rule conditions.

Admin-authored conditions are stored as loose JSON. They are validated
into these models when rules are loaded, so evaluation never has to
duck-type field presence. A condition is a tagged union discriminated by
which clauses are present; all present clauses are ANDed together.

Supported clauses (JSON keys):
    overallScore        {min?, max?} on total raw score
    sectionScore        {section, min?, max?} on one section's raw score
    score               {min?, max?} on the score the evaluator is scoped to
    overallLevel        exact tier match
    sectionPercentages  {<section>: {min?, max?}, ...}
    responses           {<questionId>: <expected value>, ...}
    sectionCount        {operator, value, belowThreshold}
    minScore, maxScore  bounds (0-1) on the scoped normalized score
    questionPercentage  {operator, value, questionType?, expectedValue?}
                        on the share of scoped responses that match

A non-empty blob must contain at least one of these clauses.

Question-level rules use a separate shape: {value, operator}.
"""

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cso_assessment.constants import resolve_section_key
from cso_assessment.errors import InvalidConditionError
from cso_assessment.schemas.enums import OverallLevel, QuestionType

QuestionOperator = Literal[
    "equals",
    "contains",
    "greater_than",
    "less_than",
    "greater_than_or_equal",
    "less_than_or_equal",
]


class ScoreRange(BaseModel):
    """Inclusive numeric range. A missing bound is unbounded on that side."""

    model_config = ConfigDict(extra="ignore")

    min: Optional[float] = Field(default=None, description="Inclusive lower bound")
    max: Optional[float] = Field(default=None, description="Inclusive upper bound")

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScoreRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) is greater than max ({self.max})")
        return self

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


class SectionScoreClause(ScoreRange):
    """Range check on a named section's raw score."""

    section: str = Field(description="Section key or id (e.g. 'governance' or 'governance-section')")

    @field_validator("section")
    @classmethod
    def _resolve_section(cls, v: str) -> str:
        key = resolve_section_key(v)
        if key is None:
            raise ValueError(f"Unknown section: {v!r}")
        return key


class SectionCountClause(BaseModel):
    """Count of sections whose percentage is below a threshold, compared to a value."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    operator: Literal["greater_than", "less_than", "equals"]
    value: int
    below_threshold: float = Field(alias="belowThreshold", description="Section percentage threshold (0-100)")


class QuestionPercentageClause(BaseModel):
    """Share of in-scope responses matching a type and/or value, compared to a percentage.

    `equals` matches within one percentage point.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    operator: Literal["greater_than", "less_than", "equals"]
    value: float = Field(ge=0, le=100, description="Percentage of in-scope responses (0-100)")
    question_type: Optional[QuestionType] = Field(default=None, alias="questionType")
    expected_value: Any = Field(default=None, alias="expectedValue")

    @property
    def has_expected_value(self) -> bool:
        # An explicit null is a value to match
        return "expected_value" in self.model_fields_set


class Condition(BaseModel):
    """Score-level condition for section, assessment and strategic rules."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    overall_score: Optional[ScoreRange] = Field(default=None, alias="overallScore")
    section_score: Optional[SectionScoreClause] = Field(default=None, alias="sectionScore")
    score: Optional[ScoreRange] = None
    overall_level: Optional[OverallLevel] = Field(default=None, alias="overallLevel")
    section_percentages: Optional[dict[str, ScoreRange]] = Field(default=None, alias="sectionPercentages")
    responses: Optional[dict[str, Any]] = None
    section_count: Optional[SectionCountClause] = Field(default=None, alias="sectionCount")
    min_score: Optional[float] = Field(default=None, ge=0, le=1, alias="minScore")
    max_score: Optional[float] = Field(default=None, ge=0, le=1, alias="maxScore")
    question_percentage: Optional[QuestionPercentageClause] = Field(default=None, alias="questionPercentage")

    @model_validator(mode="after")
    def _check_normalized_bounds(self) -> "Condition":
        if self.min_score is not None and self.max_score is not None and self.min_score > self.max_score:
            raise ValueError(f"minScore ({self.min_score}) is greater than maxScore ({self.max_score})")
        return self

    @field_validator("overall_level", mode="before")
    @classmethod
    def _parse_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return OverallLevel.from_label(v)
        return v

    @field_validator("section_percentages")
    @classmethod
    def _resolve_percentage_keys(cls, v: Optional[dict[str, ScoreRange]]) -> Optional[dict[str, ScoreRange]]:
        if v is None:
            return v
        resolved = {}
        for name, bounds in v.items():
            key = resolve_section_key(name)
            if key is None:
                raise ValueError(f"Unknown section in sectionPercentages: {name!r}")
            resolved[key] = bounds
        return resolved

    @property
    def clauses(self) -> list[str]:
        """Names of the clauses present (the union tag). Empty means always true."""
        return [name for name, value in self if value is not None]

    def to_json(self) -> dict:
        """Serialize back to the stored JSON shape (camelCase keys)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class QuestionCondition(BaseModel):
    """Question-level condition compared against one response's raw value."""

    model_config = ConfigDict(extra="ignore")

    value: Any
    operator: QuestionOperator

    def to_json(self) -> dict:
        return self.model_dump(mode="json")


def _load_raw(raw: Any) -> dict:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidConditionError(f"Condition is not valid JSON: {e}", raw) from e
    if not isinstance(raw, dict):
        raise InvalidConditionError(f"Condition must be an object, got {type(raw).__name__}", raw)
    return raw


def parse_condition(raw: Any) -> Condition:
    """Validate a stored condition blob into a Condition.

    Raises:
        InvalidConditionError: If the blob is not an object, a clause is
            malformed, or a non-empty blob has no recognised clause
    """
    data = _load_raw(raw)
    try:
        condition = Condition.model_validate(data)
    except ValidationError as e:
        raise InvalidConditionError(f"Invalid condition: {e.error_count()} error(s): {e.errors()[0]['msg']}", raw) from e
    if data and not condition.clauses:
        raise InvalidConditionError(f"Condition has no recognised clause (keys: {sorted(data)})", raw)
    return condition


def parse_question_condition(raw: Any) -> QuestionCondition:
    """Validate a stored question-level condition blob."""
    data = _load_raw(raw)
    try:
        return QuestionCondition.model_validate(data)
    except ValidationError as e:
        raise InvalidConditionError(
            f"Invalid question condition: {e.error_count()} error(s): {e.errors()[0]['msg']}", raw
        ) from e
