"""In-process AssessmentStore.

Dictionaries guarded by one re-entrant lock. Returned records are copies,
so callers cannot mutate stored state behind the store's back.
"""

import copy
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any

from cso_assessment.schemas.enums import AssessmentStatus, SuggestionType

from .repository import Assessment, GeneratedSuggestion, Question, Report, Response, Section, SuggestionRule
from .store import attach_questions

logger = logging.getLogger(__name__)


class MemoryAssessmentStore:
    """AssessmentStore kept entirely in memory."""

    def __init__(self):
        self._lock = threading.RLock()
        self._sections: dict[str, Section] = {}
        self._questions: dict[str, Question] = {}
        self._rules: dict[str, SuggestionRule] = {}
        self._assessments: dict[str, Assessment] = {}
        self._responses: dict[str, dict[str, Response]] = {}  # assessment_id -> question_id -> Response
        self._reports: dict[str, Report] = {}  # assessment_id -> Report
        self._suggestions: dict[str, list[GeneratedSuggestion]] = {}  # report_id -> rows

    # --- Questionnaire ---

    def upsert_section(self, section: Section) -> None:
        with self._lock:
            self._sections[section.id] = replace(section, questions=[])

    def upsert_question(self, question: Question) -> None:
        with self._lock:
            self._questions[question.id] = replace(question, section=None, rules=[])

    def upsert_rule(self, rule: SuggestionRule) -> None:
        with self._lock:
            self._rules[rule.id] = copy.deepcopy(rule)

    def list_sections(self) -> list[Section]:
        with self._lock:
            sections = sorted((replace(s) for s in self._sections.values()), key=lambda s: s.order)
            questions = [replace(q) for q in self._questions.values()]
        return attach_questions(sections, questions)

    def find_active_rules(self, kind: SuggestionType, scope: str | None = None) -> list[SuggestionRule]:
        with self._lock:
            rules = [
                copy.deepcopy(rule)
                for rule in self._rules.values()
                if rule.is_active and rule.kind == kind and (scope is None or rule.scope_id == scope)
            ]
        return sorted(rules, key=lambda r: r.priority, reverse=True)

    # --- Assessments ---

    def create_assessment(self, organization_id: str) -> Assessment:
        assessment = Assessment(organization_id=organization_id)
        with self._lock:
            self._assessments[assessment.id] = assessment
            self._responses[assessment.id] = {}
        return replace(assessment, responses=[])

    def find_assessment(self, assessment_id: str) -> Assessment | None:
        with self._lock:
            stored = self._assessments.get(assessment_id)
            if stored is None:
                return None
            assessment = replace(stored, responses=[])
            stored_responses = [replace(r) for r in self._responses[assessment_id].values()]

        questions = {q.id: q for section in self.list_sections() for q in section.questions}
        question_rules: dict[str, list[SuggestionRule]] = {}
        for rule in self.find_active_rules(SuggestionType.QUESTION):
            question_rules.setdefault(rule.scope_id, []).append(rule)

        for response in stored_responses:
            question = questions.get(response.question_id)
            if question is not None:
                response.question = replace(question, rules=question_rules.get(question.id, []))
            response.value = copy.deepcopy(response.value)
            assessment.responses.append(response)
        return assessment

    def save_responses(self, assessment_id: str, answers: dict[str, Any]) -> int:
        with self._lock:
            if assessment_id not in self._assessments:
                raise KeyError(assessment_id)
            bucket = self._responses[assessment_id]
            for question_id, value in answers.items():
                existing = bucket.get(question_id)
                if existing is not None:
                    existing.value = copy.deepcopy(value)
                else:
                    bucket[question_id] = Response(
                        assessment_id=assessment_id, question_id=question_id, value=copy.deepcopy(value)
                    )
        return len(answers)

    def mark_completed(self, assessment_id: str, completed_at: datetime) -> bool:
        with self._lock:
            assessment = self._assessments.get(assessment_id)
            if assessment is None or assessment.status is AssessmentStatus.COMPLETED:
                return False
            assessment.status = AssessmentStatus.COMPLETED
            assessment.completed_at = completed_at
            return True

    # --- Reports and suggestions ---

    def find_report(self, assessment_id: str) -> Report | None:
        with self._lock:
            report = self._reports.get(assessment_id)
            return copy.deepcopy(report) if report else None

    def find_or_create_report(self, assessment_id: str) -> Report:
        with self._lock:
            report = self._reports.get(assessment_id)
            if report is None:
                report = Report(assessment_id=assessment_id)
                self._reports[assessment_id] = report
                self._suggestions[report.id] = []
            return copy.deepcopy(report)

    def update_report_content(self, report_id: str, content: dict) -> None:
        with self._lock:
            for report in self._reports.values():
                if report.id == report_id:
                    report.content = copy.deepcopy(content)
                    return
        raise KeyError(report_id)

    def replace_suggestions(self, report_id: str, suggestions: list[GeneratedSuggestion]) -> list[GeneratedSuggestion]:
        # Build the new rows before touching the old ones; the swap is a single assignment
        stored = [replace(s, report_id=report_id, metadata=copy.deepcopy(s.metadata)) for s in suggestions]
        with self._lock:
            self._suggestions[report_id] = stored
        return [replace(s) for s in stored]

    def list_suggestions(self, report_id: str) -> list[GeneratedSuggestion]:
        with self._lock:
            rows = [replace(s, metadata=copy.deepcopy(s.metadata)) for s in self._suggestions.get(report_id, [])]
        return sorted(rows, key=lambda s: (s.priority, s.weight), reverse=True)
