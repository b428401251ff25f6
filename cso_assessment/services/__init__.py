"""Assessment workflow and report assembly."""

from cso_assessment.services.assessment_service import (
    CompletionCheck,
    check_completion,
    save_section_responses,
    start_assessment,
)
from cso_assessment.services.report_builder import build_report_content, ratings_table

__all__ = [
    "CompletionCheck",
    "build_report_content",
    "check_completion",
    "ratings_table",
    "save_section_responses",
    "start_assessment",
]
