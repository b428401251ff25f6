"""Enums shared by the scoring engine, the stores and the report payload."""

from enum import Enum


class QuestionType(str, Enum):
    """The five fixed answer kinds of the questionnaire."""

    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TEXT = "TEXT"
    LIKERT_SCALE = "LIKERT_SCALE"
    BOOLEAN = "BOOLEAN"


class AssessmentStatus(str, Enum):
    """Assessment lifecycle. IN_PROGRESS -> COMPLETED happens exactly once."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class SuggestionType(str, Enum):
    """Scope of a suggestion rule and of the suggestion it generates."""

    QUESTION = "QUESTION"
    SECTION = "SECTION"
    ASSESSMENT = "ASSESSMENT"


class OverallLevel(str, Enum):
    """3-tier classification derived from total percentage.

    The enum value is the canonical (dashboard) label. Reports use the
    longer organization labels from `report_label`.
    """

    EMERGING = "Emerging"
    STRONG_FOUNDATION = "Strong Foundation"
    LEADING = "Leading"

    @property
    def report_label(self) -> str:
        """Label used in the downloadable report."""
        return {
            "Emerging": "Emerging Organization",
            "Strong Foundation": "Strong Foundation",
            "Leading": "Leading Organization",
        }[self.value]

    @property
    def description(self) -> str:
        """Interpretation shown in the ratings explanation."""
        return {
            "Emerging": "Basic structures in place; needs significant development in accountability systems",
            "Strong Foundation": "Solid operational base; room to strengthen strategic and governance practices",
            "Leading": "Exemplary accountability; systems are mature, transparent, and stakeholder-driven",
        }[self.value]

    @classmethod
    def from_label(cls, label: str) -> "OverallLevel":
        """Accept either the canonical or the report label."""
        for level in cls:
            if label in (level.value, level.report_label):
                return level
        raise ValueError(f"Unknown overall level: {label!r}")
