"""
Report payload for the PDF/Excel rendering sink.

Builds a rendering-neutral dict from computed scores and stored suggestions:
summary table, ratings explanation, and suggestions grouped by type.
Labels use the report wording ("Emerging Organization", ...).
"""

from cso_assessment.constants import (
    EMERGING_UPPER_PERCENT,
    LEADING_LOWER_PERCENT,
    SECTION_KEYS,
    SECTION_MAX_POINTS,
    SECTION_TITLES,
    TOTAL_MAX_POINTS,
)
from cso_assessment.db.repository import GeneratedSuggestion
from cso_assessment.schemas.enums import OverallLevel, SuggestionType
from cso_assessment.schemas.scores import CSOScores
from cso_assessment.scorers.cso_score_calculator import classify_level


def _first_total_at(percent: int) -> int:
    """Smallest point total whose percentage of TOTAL_MAX_POINTS reaches `percent`."""
    return -(-percent * TOTAL_MAX_POINTS // 100)


_STRONG_LOWER_POINTS = _first_total_at(EMERGING_UPPER_PERCENT)
_LEADING_LOWER_POINTS = _first_total_at(LEADING_LOWER_PERCENT)

# level -> (score range, percentage range), derived from the tier thresholds
RATING_RANGES = {
    OverallLevel.EMERGING: (f"0-{_STRONG_LOWER_POINTS - 1}", f"0-{EMERGING_UPPER_PERCENT - 1}%"),
    OverallLevel.STRONG_FOUNDATION: (
        f"{_STRONG_LOWER_POINTS}-{_LEADING_LOWER_POINTS - 1}",
        f"{EMERGING_UPPER_PERCENT}-{LEADING_LOWER_PERCENT - 1}%",
    ),
    OverallLevel.LEADING: (f"{_LEADING_LOWER_POINTS}-{TOTAL_MAX_POINTS}", f"{LEADING_LOWER_PERCENT}-100%"),
}


def _summary_row(area: str, max_score: int, actual: int, percentage: float, rating: OverallLevel) -> dict:
    return {
        "area": area,
        "maxScore": max_score,
        "actualScore": actual,
        "percentAchieved": round(percentage),
        "rating": rating.report_label,
    }


def ratings_table() -> list[dict]:
    """Explanation of the three tiers."""
    return [
        {
            "category": level.report_label,
            "scoreRange": f"{points} ({percent})",
            "interpretation": level.description,
        }
        for level, (points, percent) in RATING_RANGES.items()
    ]


def build_report_content(
    scores: CSOScores,
    suggestions: list[GeneratedSuggestion],
    organization_name: str | None = None,
) -> dict:
    """
    Assemble the report payload.

    Args:
        scores: Computed CSOScores
        suggestions: Stored suggestions, already in priority order
        organization_name: Used in the category note when given

    Returns:
        Dict with summary, total, ratings and grouped suggestions
    """
    summary = [
        _summary_row(
            SECTION_TITLES[key],
            SECTION_MAX_POINTS[key],
            scores.section_scores[key],
            scores.section_percentages[key],
            classify_level(scores.section_percentages[key]),
        )
        for key in SECTION_KEYS
    ]
    total = _summary_row("Total", TOTAL_MAX_POINTS, scores.total_score, scores.total_percentage, scores.overall_level)

    grouped: dict[str, list[dict]] = {kind.value: [] for kind in SuggestionType}
    section_highlights: dict[str, list[str]] = {}
    for suggestion in suggestions:
        grouped[suggestion.type.value].append(suggestion.to_dict())
        if suggestion.type == SuggestionType.SECTION:
            title = suggestion.metadata.get("sectionTitle") or suggestion.source_id
            section_highlights.setdefault(title, []).append(suggestion.suggestion)

    subject = organization_name or "The organization"
    return {
        "summary": summary,
        "total": total,
        "overallLevel": scores.overall_level.value,
        "categoryNote": (
            f"{subject} scored {scores.total_score}, placing it in the {scores.overall_level.report_label} category."
        ),
        "ratings": ratings_table(),
        "assessmentHighlights": [s["suggestion"] for s in grouped[SuggestionType.ASSESSMENT.value]],
        "sectionHighlights": section_highlights,
        "suggestions": grouped,
    }
