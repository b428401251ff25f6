"""Tests for the save-section / completion workflow."""

import pytest
from conftest import build_answers

from cso_assessment.errors import AssessmentCompletedError, AssessmentNotFoundError
from cso_assessment.schemas.enums import AssessmentStatus
from cso_assessment.services.assessment_service import (
    check_completion,
    save_section_responses,
    start_assessment,
)

SECTION_IDS = ["governance-section", "financial-section", "programme-section", "hr-section"]


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _section_answers(store, section_id, answers):
    """The subset of `answers` that belongs to one section."""
    section = next(s for s in store.list_sections() if s.id == section_id)
    return {q.id: answers[q.id] for q in section.questions if q.id in answers}


def _submit_all(store, engine, assessment_id, answers):
    """Submit every section in order; return the last completion check."""
    check = None
    for section_id in SECTION_IDS:
        check = save_section_responses(
            store, engine, assessment_id, section_id, _section_answers(store, section_id, answers)
        )
    return check


class _FailingEngine:
    """Engine stub whose generation always fails."""

    def __init__(self):
        self.calls = 0

    def generate_suggestions(self, assessment_id):
        self.calls += 1
        raise RuntimeError("rule store unavailable")


# ─── start / save ─────────────────────────────────────────────────────────────


class TestSaveSectionResponses:
    """Per-section saves."""

    def test_start(self, store):
        """A new assessment is IN_PROGRESS with no responses."""
        assessment = start_assessment(store, "org-1")
        loaded = store.find_assessment(assessment.id)
        assert loaded.status == AssessmentStatus.IN_PROGRESS
        assert loaded.organization_id == "org-1"
        assert loaded.responses == []

    def test_save_only_skips_check(self, store, engine):
        """save_only stores answers and returns no completion check."""
        assessment = start_assessment(store, "org-1")
        result = save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 4}, save_only=True)
        assert result is None
        values = {r.question_id: r.value for r in store.find_assessment(assessment.id).responses}
        assert values["hr-q1"] == 4

    def test_missing_answers_stored_as_none(self, store, engine):
        """Section questions absent from the payload are stored as None."""
        assessment = start_assessment(store, "org-1")
        save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 4}, save_only=True)
        values = {r.question_id: r.value for r in store.find_assessment(assessment.id).responses}
        assert set(values) == {"hr-q1", "hr-q2", "hr-q3", "hr-q4"}
        assert values["hr-q2"] is None

    def test_outside_answers_ignored(self, store, engine):
        """Answers for questions in another section are not stored."""
        assessment = start_assessment(store, "org-1")
        save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 4, "fin-q1": 5}, save_only=True)
        question_ids = {r.question_id for r in store.find_assessment(assessment.id).responses}
        assert "fin-q1" not in question_ids

    def test_resave_overwrites(self, store, engine):
        """Saving a section again replaces its answers."""
        assessment = start_assessment(store, "org-1")
        save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 2}, save_only=True)
        save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 5}, save_only=True)
        responses = [r for r in store.find_assessment(assessment.id).responses if r.question_id == "hr-q1"]
        assert len(responses) == 1
        assert responses[0].value == 5

    def test_partial_check(self, store, engine):
        """One section saved → not complete, missing ids listed."""
        assessment = start_assessment(store, "org-1")
        answers = build_answers()
        check = save_section_responses(
            store, engine, assessment.id, "hr-section", _section_answers(store, "hr-section", answers)
        )
        assert not check.is_complete
        assert check.status == AssessmentStatus.IN_PROGRESS
        assert check.total_mandatory == 43
        assert check.answered_mandatory == 4
        assert "gov-q1" in check.missing_question_ids
        assert check.suggestions_generated is None

    def test_unknown_assessment(self, store, engine):
        """Unknown assessment raises."""
        with pytest.raises(AssessmentNotFoundError):
            save_section_responses(store, engine, "missing", "hr-section", {"hr-q1": 4})

    def test_unknown_section(self, store, engine):
        """Unknown section raises."""
        assessment = start_assessment(store, "org-1")
        with pytest.raises(AssessmentNotFoundError):
            save_section_responses(store, engine, assessment.id, "marketing-section", {})


# ─── completion ───────────────────────────────────────────────────────────────


class TestCompletion:
    """IN_PROGRESS → COMPLETED transition."""

    def test_completes_and_generates(self, store, engine):
        """The save that answers the last mandatory question completes and generates."""
        assessment = start_assessment(store, "org-1")
        check = _submit_all(store, engine, assessment.id, build_answers())

        assert check.is_complete
        assert check.previous_status == AssessmentStatus.IN_PROGRESS
        assert check.status == AssessmentStatus.COMPLETED
        assert check.status_changed
        assert check.suggestions_generated == 7

        loaded = store.find_assessment(assessment.id)
        assert loaded.status == AssessmentStatus.COMPLETED
        assert loaded.completed_at is not None
        assert len(engine.get_assessment_suggestions(assessment.id)) == 7

    def test_false_answer_counts(self, store, engine):
        """A Boolean False answer is an answer."""
        assessment = start_assessment(store, "org-1")
        check = _submit_all(store, engine, assessment.id, build_answers(gov_q13=False))
        assert check.is_complete
        values = {r.question_id: r.value for r in store.find_assessment(assessment.id).responses}
        assert values["gov-q13"] is False

    def test_empty_string_not_an_answer(self, store, engine):
        """An empty string leaves the question missing."""
        assessment = start_assessment(store, "org-1")
        check = _submit_all(store, engine, assessment.id, build_answers(fin_q3=""))
        assert not check.is_complete
        assert check.missing_question_ids == ["fin-q3"]

    def test_completed_is_read_only(self, store, engine):
        """Writes after completion raise."""
        assessment = start_assessment(store, "org-1")
        _submit_all(store, engine, assessment.id, build_answers())
        with pytest.raises(AssessmentCompletedError):
            save_section_responses(store, engine, assessment.id, "hr-section", {"hr-q1": 1})

    def test_recheck_does_not_regenerate(self, store, engine):
        """A second check on a completed assessment does not generate again."""
        assessment = start_assessment(store, "org-1")
        _submit_all(store, engine, assessment.id, build_answers())
        check = check_completion(store, engine, assessment.id)
        assert check.status == AssessmentStatus.COMPLETED
        assert not check.status_changed
        assert check.suggestions_generated is None

    def test_generation_failure_keeps_completion(self, store):
        """A failing generator is logged; the assessment stays COMPLETED."""
        failing = _FailingEngine()
        assessment = start_assessment(store, "org-1")
        check = _submit_all(store, failing, assessment.id, build_answers())

        assert failing.calls == 1
        assert check.status == AssessmentStatus.COMPLETED
        assert check.suggestions_generated is None
        assert store.find_assessment(assessment.id).status == AssessmentStatus.COMPLETED

    def test_to_dict(self, store, engine):
        """Camel-cased completion payload."""
        assessment = start_assessment(store, "org-1")
        payload = _submit_all(store, engine, assessment.id, build_answers()).to_dict()
        assert payload["currentStatus"] == "IN_PROGRESS"
        assert payload["newStatus"] == "COMPLETED"
        assert payload["statusChanged"] is True
        assert payload["completionCheck"]["isCompleted"] is True
        assert payload["completionCheck"]["totalMandatoryQuestions"] == 43
        assert payload["suggestionsGenerated"] == 7
