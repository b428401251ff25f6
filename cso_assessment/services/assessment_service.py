"""
Assessment workflow: start, save answers per section, detect completion.

An assessment becomes COMPLETED once every mandatory question has an answer
(None and "" are unanswered). Completion happens once and triggers
suggestion generation; a generation failure is logged and does not undo
the completion.

Usage:
    assessment = start_assessment(store, organization_id="org-1")
    save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 4, ...})
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from cso_assessment.db.repository import Assessment
from cso_assessment.errors import AssessmentCompletedError, AssessmentNotFoundError
from cso_assessment.schemas.enums import AssessmentStatus
from cso_assessment.scorers.normalizer import is_answered

logger = logging.getLogger(__name__)


@dataclass
class CompletionCheck:
    """Outcome of a completion check."""

    assessment_id: str
    previous_status: AssessmentStatus
    status: AssessmentStatus
    total_mandatory: int
    answered_mandatory: int
    missing_question_ids: list[str] = field(default_factory=list)
    suggestions_generated: Optional[int] = None  # None when generation did not run or failed

    @property
    def is_complete(self) -> bool:
        return self.total_mandatory > 0 and self.answered_mandatory == self.total_mandatory

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status

    def to_dict(self) -> dict:
        return {
            "assessmentId": self.assessment_id,
            "currentStatus": self.previous_status.value,
            "newStatus": self.status.value,
            "statusChanged": self.status_changed,
            "completionCheck": {
                "totalMandatoryQuestions": self.total_mandatory,
                "answeredMandatoryQuestions": self.answered_mandatory,
                "isCompleted": self.is_complete,
                "missingQuestionIds": self.missing_question_ids,
            },
            "suggestionsGenerated": self.suggestions_generated,
        }


def start_assessment(store, organization_id: str) -> Assessment:
    """Create an IN_PROGRESS assessment for an organization."""
    assessment = store.create_assessment(organization_id)
    logger.info(f"Started assessment [assessment_id={assessment.id} organization_id={organization_id}]")
    return assessment


def _require_assessment(store, assessment_id: str) -> Assessment:
    assessment = store.find_assessment(assessment_id)
    if assessment is None:
        raise AssessmentNotFoundError(assessment_id)
    return assessment


def save_section_responses(
    store,
    engine,
    assessment_id: str,
    section_id: str,
    answers: dict[str, Any],
    save_only: bool = False,
) -> Optional[CompletionCheck]:
    """
    Upsert one response per question of a section.

    Questions of the section missing from `answers` are stored as None.
    Answers for questions outside the section are ignored.

    Args:
        store: AssessmentStore
        engine: SuggestionEngine used when the save completes the assessment
        assessment_id: Target assessment
        section_id: Section being submitted
        answers: question id -> raw value
        save_only: Skip the completion check (draft save)

    Returns:
        CompletionCheck, or None when save_only

    Raises:
        AssessmentNotFoundError: Unknown assessment or section
        AssessmentCompletedError: Assessment is already COMPLETED
    """
    assessment = _require_assessment(store, assessment_id)
    if assessment.status is AssessmentStatus.COMPLETED:
        raise AssessmentCompletedError(assessment_id)

    section = next((s for s in store.list_sections() if s.id == section_id), None)
    if section is None:
        raise AssessmentNotFoundError(assessment_id, what=f"Section {section_id!r}")

    question_ids = [q.id for q in section.questions]
    ignored = set(answers) - set(question_ids)
    if ignored:
        logger.warning(f"Ignoring answers for questions outside {section_id}: {sorted(ignored)}")

    values = {qid: answers.get(qid) for qid in question_ids}
    saved = store.save_responses(assessment_id, values)
    logger.info(
        f"Saved section responses [assessment_id={assessment_id} section_id={section_id} "
        f"saved={saved} answered={sum(1 for v in values.values() if is_answered(v))}]"
    )

    if save_only:
        return None
    return check_completion(store, engine, assessment_id)


def check_completion(store, engine, assessment_id: str) -> CompletionCheck:
    """
    Mark the assessment COMPLETED when all mandatory questions are answered.

    Suggestion generation runs only on the IN_PROGRESS -> COMPLETED transition.
    """
    assessment = _require_assessment(store, assessment_id)
    answers = {r.question_id: r.value for r in assessment.responses}

    mandatory = [q for section in store.list_sections() for q in section.questions if q.mandatory]
    missing = [q.id for q in mandatory if not is_answered(answers.get(q.id))]

    check = CompletionCheck(
        assessment_id=assessment_id,
        previous_status=assessment.status,
        status=assessment.status,
        total_mandatory=len(mandatory),
        answered_mandatory=len(mandatory) - len(missing),
        missing_question_ids=missing,
    )

    if not check.is_complete:
        logger.info(f"Assessment {assessment_id} not completed yet. Missing {len(missing)} mandatory questions")
        return check
    if assessment.status is AssessmentStatus.COMPLETED:
        return check

    if not store.mark_completed(assessment_id, datetime.now()):
        # Another writer completed it first and owns generation
        check.status = AssessmentStatus.COMPLETED
        return check
    check.status = AssessmentStatus.COMPLETED
    logger.info(f"Marked assessment {assessment_id} as completed")

    try:
        check.suggestions_generated = len(engine.generate_suggestions(assessment_id))
    except Exception as e:
        logger.warning(f"Suggestion generation failed after completion [assessment_id={assessment_id} error={e}]")
    return check
