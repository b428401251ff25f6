"""Records and data access repositories.

Records are plain dataclasses shared by every store implementation.
Repositories are simple CRUD over the MySQL-compatible schema in
`cso_assessment.db.schema`; JSON columns are (de)serialized here.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from cso_assessment.schemas.enums import AssessmentStatus, QuestionType, SuggestionType

from .client import execute_many, execute_query, get_cursor


def _json_default(obj: Any) -> Any:
    """Handle non-serializable objects for JSON encoding."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _serialize_json(value: Any) -> str | None:
    """Serialize a value to JSON string for storage."""
    if value is None:
        return None
    return json.dumps(value, default=_json_default)


def _deserialize_json(value: str | bytes | None) -> Any:
    """Deserialize a JSON string from storage."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value  # Already parsed by driver


def _generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


# =============================================================================
# Records
# =============================================================================


@dataclass
class SuggestionRule:
    """Admin-configured suggestion rule (question, section or assessment scope)."""

    kind: SuggestionType
    condition: dict
    suggestion: str
    priority: int = 5
    weight: float = 1.0
    is_active: bool = True
    scope_id: str | None = None  # question id (QUESTION) or section id (SECTION)
    category: str | None = None
    id: str = field(default_factory=_generate_uuid)


@dataclass
class Question:
    """Questionnaire item. Immutable during an assessment."""

    id: str
    section_id: str
    text: str
    type: QuestionType
    description: str | None = None
    order: int = 0
    options: list[str] | None = None
    option_weights: dict[str, float] | None = None  # option -> weight in [0, 1]
    weight: float = 1.0
    mandatory: bool = True
    # Populated when loaded as part of an assessment graph
    section: "Section | None" = field(default=None, compare=False, repr=False)
    rules: list[SuggestionRule] = field(default_factory=list, compare=False, repr=False)


@dataclass
class Section:
    """Questionnaire section (governance, financial, programme, hr)."""

    id: str
    title: str
    description: str | None = None
    order: int = 0
    weight: float = 1.0
    questions: list[Question] = field(default_factory=list, compare=False, repr=False)


@dataclass
class Response:
    """One answer to one question within one assessment."""

    assessment_id: str
    question_id: str
    value: Any = None
    id: str = field(default_factory=_generate_uuid)
    created_at: datetime = field(default_factory=datetime.now)
    question: Question | None = field(default=None, compare=False, repr=False)


@dataclass
class Assessment:
    """An organization's run through the questionnaire."""

    organization_id: str
    status: AssessmentStatus = AssessmentStatus.IN_PROGRESS
    id: str = field(default_factory=_generate_uuid)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    responses: list[Response] = field(default_factory=list)


@dataclass
class Report:
    """Report record that owns an assessment's generated suggestions."""

    assessment_id: str
    content: dict = field(default_factory=dict)
    id: str = field(default_factory=_generate_uuid)
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class GeneratedSuggestion:
    """A suggestion produced for one assessment report."""

    type: SuggestionType
    suggestion: str
    priority: int
    weight: float = 1.0
    metadata: dict = field(default_factory=dict)
    source_id: str | None = None
    report_id: str | None = None
    id: str = field(default_factory=_generate_uuid)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "id": self.id,
            "type": self.type.value,
            "sourceId": self.source_id,
            "suggestion": self.suggestion,
            "priority": self.priority,
            "weight": self.weight,
            "metadata": self.metadata,
        }


# =============================================================================
# Repositories
# =============================================================================


class SectionRepository:
    """Section table operations."""

    def upsert(self, section: Section) -> None:
        execute_query(
            """
            INSERT INTO sections (`id`, `title`, `description`, `order`, `weight`)
            VALUES (%s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                `title` = VALUES(`title`), `description` = VALUES(`description`),
                `order` = VALUES(`order`), `weight` = VALUES(`weight`)
            """,
            (section.id, section.title, section.description, section.order, section.weight),
            fetch="none",
        )

    def get_all(self) -> list[Section]:
        rows = execute_query("SELECT * FROM sections ORDER BY `order`") or []
        return [
            Section(
                id=row["id"],
                title=row["title"],
                description=row.get("description"),
                order=row.get("order") or 0,
                weight=float(row.get("weight") or 1.0),
            )
            for row in rows
        ]


class QuestionRepository:
    """Question table operations."""

    def upsert(self, question: Question) -> None:
        execute_query(
            """
            INSERT INTO questions
                (`id`, `section_id`, `text`, `description`, `type`, `order`,
                 `options`, `option_weights`, `weight`, `mandatory`)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                `section_id` = VALUES(`section_id`), `text` = VALUES(`text`),
                `description` = VALUES(`description`), `type` = VALUES(`type`),
                `order` = VALUES(`order`), `options` = VALUES(`options`),
                `option_weights` = VALUES(`option_weights`), `weight` = VALUES(`weight`),
                `mandatory` = VALUES(`mandatory`)
            """,
            (
                question.id,
                question.section_id,
                question.text,
                question.description,
                question.type.value,
                question.order,
                _serialize_json(question.options),
                _serialize_json(question.option_weights),
                question.weight,
                question.mandatory,
            ),
            fetch="none",
        )

    def get_all(self) -> list[Question]:
        rows = execute_query("SELECT * FROM questions ORDER BY `section_id`, `order`") or []
        return [self._from_row(row) for row in rows]

    def _from_row(self, row: dict) -> Question:
        return Question(
            id=row["id"],
            section_id=row["section_id"],
            text=row["text"],
            type=QuestionType(row["type"]),
            description=row.get("description"),
            order=row.get("order") or 0,
            options=_deserialize_json(row.get("options")),
            option_weights=_deserialize_json(row.get("option_weights")),
            weight=float(row.get("weight") or 1.0),
            mandatory=bool(row.get("mandatory")),
        )


class AssessmentRepository:
    """Assessment table operations."""

    def create(self, assessment: Assessment) -> None:
        execute_query(
            """
            INSERT INTO assessments (`id`, `organization_id`, `status`, `started_at`, `completed_at`)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (
                assessment.id,
                assessment.organization_id,
                assessment.status.value,
                assessment.started_at,
                assessment.completed_at,
            ),
            fetch="none",
        )

    def get(self, assessment_id: str) -> Assessment | None:
        row = execute_query("SELECT * FROM assessments WHERE id = %s", (assessment_id,), fetch="one")
        if not row:
            return None
        return Assessment(
            id=row["id"],
            organization_id=row["organization_id"],
            status=AssessmentStatus(row["status"]),
            started_at=row["started_at"],
            completed_at=row.get("completed_at"),
        )

    def mark_completed(self, assessment_id: str, completed_at: datetime) -> bool:
        """Transition IN_PROGRESS -> COMPLETED. Returns False if already completed."""
        with get_cursor() as cursor:
            cursor.execute(
                "UPDATE assessments SET status = %s, completed_at = %s WHERE id = %s AND status = %s",
                (AssessmentStatus.COMPLETED.value, completed_at, assessment_id, AssessmentStatus.IN_PROGRESS.value),
            )
            return cursor.rowcount == 1


class ResponseRepository:
    """Response table operations (one row per question per assessment)."""

    def upsert_many(self, responses: list[Response]) -> int:
        rows = [
            (r.id, r.assessment_id, r.question_id, _serialize_json(r.value), r.created_at) for r in responses
        ]
        return execute_many(
            """
            INSERT INTO responses (`id`, `assessment_id`, `question_id`, `value`, `created_at`)
            VALUES (%s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE `value` = VALUES(`value`)
            """,
            rows,
        )

    def get_for_assessment(self, assessment_id: str) -> list[Response]:
        rows = execute_query("SELECT * FROM responses WHERE assessment_id = %s", (assessment_id,)) or []
        return [
            Response(
                id=row["id"],
                assessment_id=row["assessment_id"],
                question_id=row["question_id"],
                value=_deserialize_json(row.get("value")),
                created_at=row["created_at"],
            )
            for row in rows
        ]


class SuggestionRuleRepository:
    """Admin-configured suggestion rules."""

    def upsert(self, rule: SuggestionRule) -> None:
        execute_query(
            """
            INSERT INTO suggestion_rules
                (`id`, `kind`, `scope_id`, `condition`, `suggestion`, `category`,
                 `priority`, `weight`, `is_active`)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                `kind` = VALUES(`kind`), `scope_id` = VALUES(`scope_id`),
                `condition` = VALUES(`condition`), `suggestion` = VALUES(`suggestion`),
                `category` = VALUES(`category`), `priority` = VALUES(`priority`),
                `weight` = VALUES(`weight`), `is_active` = VALUES(`is_active`)
            """,
            (
                rule.id,
                rule.kind.value,
                rule.scope_id,
                _serialize_json(rule.condition),
                rule.suggestion,
                rule.category,
                rule.priority,
                rule.weight,
                rule.is_active,
            ),
            fetch="none",
        )

    def get_active(self, kind: SuggestionType, scope_id: str | None = None) -> list[SuggestionRule]:
        if scope_id is None:
            rows = execute_query(
                "SELECT * FROM suggestion_rules WHERE kind = %s AND is_active = TRUE ORDER BY priority DESC",
                (kind.value,),
            )
        else:
            rows = execute_query(
                """
                SELECT * FROM suggestion_rules
                WHERE kind = %s AND scope_id = %s AND is_active = TRUE
                ORDER BY priority DESC
                """,
                (kind.value, scope_id),
            )
        return [self._from_row(row) for row in rows or []]

    def _from_row(self, row: dict) -> SuggestionRule:
        return SuggestionRule(
            id=row["id"],
            kind=SuggestionType(row["kind"]),
            scope_id=row.get("scope_id"),
            condition=_deserialize_json(row.get("condition")) or {},
            suggestion=row["suggestion"],
            category=row.get("category"),
            priority=int(row["priority"]),
            weight=float(row.get("weight") or 1.0),
            is_active=bool(row.get("is_active")),
        )


class ReportRepository:
    """Report table operations."""

    def get_by_assessment(self, assessment_id: str) -> Report | None:
        row = execute_query("SELECT * FROM reports WHERE assessment_id = %s", (assessment_id,), fetch="one")
        if not row:
            return None
        return Report(
            id=row["id"],
            assessment_id=row["assessment_id"],
            content=_deserialize_json(row.get("content")) or {},
            created_at=row["created_at"],
        )

    def create(self, report: Report) -> None:
        # INSERT IGNORE keeps the first report if two writers race on the unique assessment_id
        execute_query(
            "INSERT IGNORE INTO reports (`id`, `assessment_id`, `content`, `created_at`) VALUES (%s, %s, %s, %s)",
            (report.id, report.assessment_id, _serialize_json(report.content), report.created_at),
            fetch="none",
        )

    def update_content(self, report_id: str, content: dict) -> None:
        execute_query(
            "UPDATE reports SET content = %s WHERE id = %s",
            (_serialize_json(content), report_id),
            fetch="none",
        )


class ReportSuggestionRepository:
    """Generated suggestions attached to a report."""

    def delete_for_report(self, report_id: str) -> None:
        execute_query("DELETE FROM report_suggestions WHERE report_id = %s", (report_id,), fetch="none")

    def insert_many(self, report_id: str, suggestions: list[GeneratedSuggestion]) -> int:
        rows = [
            (
                s.id,
                report_id,
                s.type.value,
                s.source_id,
                s.suggestion,
                s.priority,
                s.weight,
                _serialize_json(s.metadata),
                s.created_at,
            )
            for s in suggestions
        ]
        return execute_many(
            """
            INSERT INTO report_suggestions
                (`id`, `report_id`, `type`, `source_id`, `suggestion`, `priority`, `weight`, `metadata`, `created_at`)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            rows,
        )

    def get_for_report(self, report_id: str) -> list[GeneratedSuggestion]:
        rows = execute_query(
            "SELECT * FROM report_suggestions WHERE report_id = %s ORDER BY priority DESC, weight DESC",
            (report_id,),
        )
        return [
            GeneratedSuggestion(
                id=row["id"],
                report_id=row["report_id"],
                type=SuggestionType(row["type"]),
                source_id=row.get("source_id"),
                suggestion=row["suggestion"],
                priority=int(row["priority"]),
                weight=float(row["weight"]),
                metadata=_deserialize_json(row.get("metadata")) or {},
                created_at=row["created_at"],
            )
            for row in rows or []
        ]
