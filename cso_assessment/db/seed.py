"""Questionnaire and rule seed loader.

Reads the bundled YAML files and upserts them into any AssessmentStore,
so seeding is repeatable.

Usage:
    from cso_assessment.db.seed import load_questionnaire, seed_store

    sections = load_questionnaire()  # 4 sections, 43 questions
    seed_store(store)
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from cso_assessment.config import get_assessment_rules_path, get_questionnaire_path
from cso_assessment.constants import SECTION_IDS, SECTION_MAX_QUESTIONS, resolve_section_key
from cso_assessment.schemas.conditions import parse_condition
from cso_assessment.schemas.enums import QuestionType, SuggestionType

from .repository import Question, Section, SuggestionRule

logger = logging.getLogger(__name__)

# Module-level cache, keyed by resolved path
_questionnaire_cache: dict[Path, list[Section]] = {}


def _read_yaml(path: Path) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _validate_section_counts(sections: list[Section]) -> None:
    """Each fixed section must be present with exactly its domain question count."""
    by_key = {resolve_section_key(s.id): s for s in sections}
    missing = set(SECTION_IDS) - set(by_key)
    if missing:
        raise ValueError(f"Questionnaire missing sections: {sorted(missing)}")
    for key, expected in SECTION_MAX_QUESTIONS.items():
        actual = len(by_key[key].questions)
        if actual != expected:
            raise ValueError(f"Section {key} has {actual} questions, expected {expected}")


def load_questionnaire(path: Optional[Path] = None) -> list[Section]:
    """Load and cache the questionnaire.

    Raises:
        ValueError: If a section is missing or has the wrong question count
    """
    path = Path(path or get_questionnaire_path()).resolve()
    if path in _questionnaire_cache:
        return _questionnaire_cache[path]

    raw = _read_yaml(path)
    sections: list[Section] = []
    for s_index, data in enumerate(raw.get("sections", []), start=1):
        section = Section(
            id=data["id"],
            title=data["title"],
            description=data.get("description"),
            order=data.get("order", s_index),
            weight=float(data.get("weight", 1.0)),
        )
        for q_index, q in enumerate(data.get("questions", []), start=1):
            question = Question(
                id=q["id"],
                section_id=section.id,
                text=q["text"],
                type=QuestionType(q["type"]),
                description=q.get("description"),
                order=q.get("order", q_index),
                options=q.get("options"),
                option_weights=q.get("option_weights"),
                weight=float(q.get("weight", 1.0)),
                mandatory=bool(q.get("mandatory", True)),
                section=section,
            )
            section.questions.append(question)
        sections.append(section)

    _validate_section_counts(sections)
    _questionnaire_cache[path] = sections
    logger.info(f"Loaded questionnaire: {len(sections)} sections, {sum(len(s.questions) for s in sections)} questions")
    return sections


def load_assessment_rules(path: Optional[Path] = None) -> list[SuggestionRule]:
    """Load assessment-level rules. Conditions are validated before they are returned."""
    path = Path(path or get_assessment_rules_path())
    raw = _read_yaml(path)
    rules = []
    for data in raw.get("rules", []):
        condition = parse_condition(data.get("condition"))
        rules.append(
            SuggestionRule(
                id=data["id"],
                kind=SuggestionType.ASSESSMENT,
                condition=condition.to_json(),
                suggestion=" ".join(data["suggestion"].split()),
                category=data.get("category"),
                priority=int(data.get("priority", 5)),
                weight=float(data.get("weight", 1.0)),
                is_active=bool(data.get("is_active", True)),
            )
        )
    return rules


def seed_store(store, questionnaire_path: Optional[Path] = None, rules_path: Optional[Path] = None) -> dict:
    """Upsert the questionnaire and assessment rules into a store.

    Returns:
        Counts of seeded sections, questions and rules
    """
    sections = load_questionnaire(questionnaire_path)
    rules = load_assessment_rules(rules_path)

    question_count = 0
    for section in sections:
        store.upsert_section(section)
        for question in section.questions:
            store.upsert_question(question)
            question_count += 1
    for rule in rules:
        store.upsert_rule(rule)

    counts = {"sections": len(sections), "questions": question_count, "rules": len(rules)}
    logger.info(f"Seeded store [sections={counts['sections']} questions={counts['questions']} rules={counts['rules']}]")
    return counts
