"""Shared fixtures for assessment engine tests.

All tests run against the in-memory store seeded with the bundled
questionnaire. The SQL store tests use a fake PyMySQL connection.
"""

import pytest

from cso_assessment.db.memory import MemoryAssessmentStore
from cso_assessment.db.seed import load_questionnaire, seed_store
from cso_assessment.schemas.enums import QuestionType
from cso_assessment.suggestions.engine import SuggestionEngine
from cso_assessment.utils.assessment_locks import AssessmentLockRegistry


def build_answers(likert=5, boolean=True, **overrides) -> dict:
    """Answers for all 43 questions: one Likert value, one Boolean value, per-question overrides."""
    answers = {}
    for section in load_questionnaire():
        for question in section.questions:
            answers[question.id] = boolean if question.type == QuestionType.BOOLEAN else likert
    for question_id, value in overrides.items():
        answers[question_id.replace("_", "-")] = value
    return answers


def build_tier_answers(total: int) -> dict:
    """Answers totalling 87, 88, 171 or 172 points, either side of the tier thresholds."""
    if total in (87, 88):
        overrides = {f"gov_q{i}": 5 for i in range(1, 12)}  # governance 67, everything else at the minimum
        if total == 88:
            overrides["gov_q12"] = 2
        return build_answers(likert=1, boolean=False, **overrides)
    if total == 171:
        return build_answers(**{f"gov_q{i}": 1 for i in range(1, 12)})  # 215 - 44
    if total == 172:
        return build_answers(gov_q11=2, **{f"gov_q{i}": 1 for i in range(1, 11)})  # 215 - 43
    raise ValueError(f"No fixture answers for total {total}")


def create_answered_assessment(store, answers: dict, organization_id: str = "org-test") -> str:
    """Create an assessment and store the given answers directly (no completion check)."""
    assessment = store.create_assessment(organization_id)
    store.save_responses(assessment.id, answers)
    return assessment.id


@pytest.fixture
def store():
    """MemoryAssessmentStore seeded with the questionnaire and the overall-tier rules."""
    memory_store = MemoryAssessmentStore()
    seed_store(memory_store)
    return memory_store


@pytest.fixture
def engine(store):
    """SuggestionEngine with its own lock registry."""
    return SuggestionEngine(store, locks=AssessmentLockRegistry())


@pytest.fixture
def perfect_assessment_id(store):
    """Every Likert answer 5 and every Boolean true (215/215)."""
    return create_answered_assessment(store, build_answers())
