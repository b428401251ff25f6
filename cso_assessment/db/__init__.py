"""Entity store: records, repositories and store implementations.

Provides:
- Thread-local PyMySQL connections with a transaction context manager
- Dataclass records shared by every store
- SqlAssessmentStore (MySQL-compatible) and MemoryAssessmentStore (in-process)
- YAML questionnaire and rule seeding
"""

from .client import check_connection, execute_query, get_connection, get_cursor, transaction
from .memory import MemoryAssessmentStore
from .repository import (
    Assessment,
    GeneratedSuggestion,
    Question,
    Report,
    Response,
    Section,
    SuggestionRule,
)
from .seed import load_assessment_rules, load_questionnaire, seed_store
from .store import AssessmentStore, SqlAssessmentStore

__all__ = [
    # Client
    "get_connection",
    "get_cursor",
    "execute_query",
    "transaction",
    "check_connection",
    # Records
    "Assessment",
    "GeneratedSuggestion",
    "Question",
    "Report",
    "Response",
    "Section",
    "SuggestionRule",
    # Stores
    "AssessmentStore",
    "MemoryAssessmentStore",
    "SqlAssessmentStore",
    # Seeding
    "load_assessment_rules",
    "load_questionnaire",
    "seed_store",
]
