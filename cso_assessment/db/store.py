"""Entity store interface and its MySQL implementation.

The suggestion engine and the assessment workflow receive a store instance;
nothing imports a module-level client. Tests use `MemoryAssessmentStore`.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Protocol

from cso_assessment.schemas.enums import SuggestionType

from .client import transaction
from .repository import (
    Assessment,
    AssessmentRepository,
    GeneratedSuggestion,
    Question,
    QuestionRepository,
    Report,
    ReportRepository,
    ReportSuggestionRepository,
    Response,
    ResponseRepository,
    Section,
    SectionRepository,
    SuggestionRule,
    SuggestionRuleRepository,
)
from .schema import create_schema

logger = logging.getLogger(__name__)


class AssessmentStore(Protocol):
    """What the scoring engine and workflow need from persistence."""

    def find_assessment(self, assessment_id: str) -> Assessment | None:
        """Assessment with responses, each response's question, its section and active question rules."""
        ...

    def find_active_rules(self, kind: SuggestionType, scope: str | None = None) -> list[SuggestionRule]: ...

    def find_report(self, assessment_id: str) -> Report | None: ...

    def find_or_create_report(self, assessment_id: str) -> Report: ...

    def replace_suggestions(self, report_id: str, suggestions: list[GeneratedSuggestion]) -> list[GeneratedSuggestion]:
        """Delete the report's suggestions and insert `suggestions` atomically."""
        ...

    def list_suggestions(self, report_id: str) -> list[GeneratedSuggestion]: ...

    def update_report_content(self, report_id: str, content: dict) -> None: ...

    def upsert_section(self, section: Section) -> None: ...

    def upsert_question(self, question: Question) -> None: ...

    def upsert_rule(self, rule: SuggestionRule) -> None: ...

    def list_sections(self) -> list[Section]:
        """Sections in order, each with its ordered questions."""
        ...

    def create_assessment(self, organization_id: str) -> Assessment: ...

    def save_responses(self, assessment_id: str, answers: dict[str, Any]) -> int: ...

    def mark_completed(self, assessment_id: str, completed_at: datetime) -> bool: ...


def attach_questions(sections: list[Section], questions: list[Question]) -> list[Section]:
    """Group questions under their sections (both lists keep their order)."""
    by_id = {section.id: section for section in sections}
    for section in sections:
        section.questions = []
    for question in sorted(questions, key=lambda q: q.order):
        section = by_id.get(question.section_id)
        if section is None:
            logger.warning(f"Question {question.id} references unknown section {question.section_id}")
            continue
        question.section = section
        section.questions.append(question)
    return sections


class SqlAssessmentStore:
    """AssessmentStore over PyMySQL repositories."""

    def __init__(self):
        self.sections = SectionRepository()
        self.questions = QuestionRepository()
        self.assessments = AssessmentRepository()
        self.responses = ResponseRepository()
        self.rules = SuggestionRuleRepository()
        self.reports = ReportRepository()
        self.report_suggestions = ReportSuggestionRepository()

    def create_schema(self) -> list[str]:
        return create_schema()

    # --- Questionnaire ---

    def upsert_section(self, section: Section) -> None:
        self.sections.upsert(section)

    def upsert_question(self, question: Question) -> None:
        self.questions.upsert(question)

    def upsert_rule(self, rule: SuggestionRule) -> None:
        self.rules.upsert(rule)

    def list_sections(self) -> list[Section]:
        return attach_questions(self.sections.get_all(), self.questions.get_all())

    def find_active_rules(self, kind: SuggestionType, scope: str | None = None) -> list[SuggestionRule]:
        return self.rules.get_active(kind, scope)

    # --- Assessments ---

    def create_assessment(self, organization_id: str) -> Assessment:
        assessment = Assessment(organization_id=organization_id)
        self.assessments.create(assessment)
        return assessment

    def find_assessment(self, assessment_id: str) -> Assessment | None:
        assessment = self.assessments.get(assessment_id)
        if assessment is None:
            return None

        questions = {q.id: q for section in self.list_sections() for q in section.questions}
        question_rules: dict[str, list[SuggestionRule]] = {}
        for rule in self.rules.get_active(SuggestionType.QUESTION):
            question_rules.setdefault(rule.scope_id, []).append(rule)

        for response in self.responses.get_for_assessment(assessment_id):
            question = questions.get(response.question_id)
            if question is not None:
                response.question = replace(question, rules=question_rules.get(question.id, []))
            assessment.responses.append(response)
        return assessment

    def save_responses(self, assessment_id: str, answers: dict[str, Any]) -> int:
        rows = [Response(assessment_id=assessment_id, question_id=qid, value=value) for qid, value in answers.items()]
        with transaction():
            return self.responses.upsert_many(rows)

    def mark_completed(self, assessment_id: str, completed_at: datetime) -> bool:
        return self.assessments.mark_completed(assessment_id, completed_at)

    # --- Reports and suggestions ---

    def find_report(self, assessment_id: str) -> Report | None:
        return self.reports.get_by_assessment(assessment_id)

    def find_or_create_report(self, assessment_id: str) -> Report:
        report = self.reports.get_by_assessment(assessment_id)
        if report is not None:
            return report
        self.reports.create(Report(assessment_id=assessment_id))
        # Re-read: a concurrent creator may have won the unique key
        return self.reports.get_by_assessment(assessment_id)

    def update_report_content(self, report_id: str, content: dict) -> None:
        self.reports.update_content(report_id, content)

    def replace_suggestions(self, report_id: str, suggestions: list[GeneratedSuggestion]) -> list[GeneratedSuggestion]:
        stored = [replace(s, report_id=report_id) for s in suggestions]
        with transaction():
            self.report_suggestions.delete_for_report(report_id)
            self.report_suggestions.insert_many(report_id, stored)
        logger.debug(f"Replaced suggestions for report {report_id} ({len(stored)} rows)")
        return stored

    def list_suggestions(self, report_id: str) -> list[GeneratedSuggestion]:
        return self.report_suggestions.get_for_report(report_id)
