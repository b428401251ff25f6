"""Deterministic scoring for CSO self-assessments."""

from cso_assessment.scorers.cso_score_calculator import (
    calculate_cso_scores,
    classify_level,
    partition_by_section,
    section_raw_score,
)
from cso_assessment.scorers.normalizer import (
    is_answered,
    normalize,
    normalize_answer,
    to_display_scale,
    weighted_overall_score,
)

__all__ = [
    "calculate_cso_scores",
    "classify_level",
    "partition_by_section",
    "section_raw_score",
    "is_answered",
    "normalize",
    "normalize_answer",
    "to_display_scale",
    "weighted_overall_score",
]
