"""Rule-based suggestion generation."""

from cso_assessment.suggestions.conditions import ScoreFacts, evaluate, evaluate_question
from cso_assessment.suggestions.engine import SuggestionEngine, sort_suggestions
from cso_assessment.suggestions.rules import SECTION_BAND_RULES, STRATEGIC_RULES, BuiltinRule

__all__ = [
    "BuiltinRule",
    "SECTION_BAND_RULES",
    "STRATEGIC_RULES",
    "ScoreFacts",
    "SuggestionEngine",
    "evaluate",
    "evaluate_question",
    "sort_suggestions",
]
