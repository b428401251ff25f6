"""
Suggestion engine.

Generation pipeline for one assessment:
1. Load the assessment graph from the store
2. Compute CSOScores
3. Assessment pass: admin ASSESSMENT rules against composite scores
   (normalized score and response shares over every response)
4. Section pass: built-in score bands plus admin SECTION rules, per section
   (score, normalized score and response shares scoped to that section)
5. Strategic pass: built-in cross-cutting rules (isStrategic)
6. Question pass: each response against its question's admin rules
7. Replace the report's suggestions in one store transaction

Regeneration is a full replacement. Runs for the same assessment are
serialized; different assessments run in parallel.

Usage:
    engine = SuggestionEngine(store)
    suggestions = engine.generate_suggestions(assessment_id)
"""

import logging
from typing import Any, Iterable, Optional

from cso_assessment.constants import SECTION_IDS, SECTION_KEYS, SECTION_TITLES, resolve_section_key
from cso_assessment.db.repository import Assessment, GeneratedSuggestion, SuggestionRule
from cso_assessment.errors import AssessmentNotFoundError, InvalidConditionError
from cso_assessment.schemas.conditions import Condition, QuestionCondition, parse_condition, parse_question_condition
from cso_assessment.schemas.enums import QuestionType, SuggestionType
from cso_assessment.schemas.scores import CSOScores
from cso_assessment.scorers.cso_score_calculator import calculate_cso_scores, partition_by_section
from cso_assessment.scorers.normalizer import is_answered, weighted_overall_score
from cso_assessment.suggestions.conditions import ScoreFacts, evaluate, evaluate_question
from cso_assessment.suggestions.rules import SECTION_BAND_RULES, STRATEGIC_RULES
from cso_assessment.utils.assessment_locks import AssessmentLockRegistry, assessment_locks
from cso_assessment.utils.logger import timed_operation

logger = logging.getLogger(__name__)


def sort_suggestions(suggestions: Iterable[GeneratedSuggestion]) -> list[GeneratedSuggestion]:
    """Priority descending, then weight descending. Ties keep their input order."""
    return sorted(suggestions, key=lambda s: (-s.priority, -s.weight))


def _parse_rule(rule: SuggestionRule) -> Optional[Condition]:
    try:
        return parse_condition(rule.condition)
    except InvalidConditionError as e:
        logger.warning(f"Skipping {rule.kind.value} rule {rule.id}: {e}")
        return None


def _parse_question_rule(rule: SuggestionRule) -> Optional[QuestionCondition]:
    try:
        return parse_question_condition(rule.condition)
    except InvalidConditionError as e:
        logger.warning(f"Skipping QUESTION rule {rule.id}: {e}")
        return None


class SuggestionEngine:
    """Rule-based suggestion generator over an injected AssessmentStore."""

    def __init__(self, store, locks: Optional[AssessmentLockRegistry] = None):
        self.store = store
        self.locks = locks if locks is not None else assessment_locks

    # --- Public API ---

    def generate_suggestions(self, assessment_id: str) -> list[GeneratedSuggestion]:
        """
        Generate and persist suggestions for an assessment, replacing prior ones.

        Returns:
            Stored suggestions, priority desc then weight desc

        Raises:
            AssessmentNotFoundError: If the assessment or its report is missing
        """
        with self.locks.hold(assessment_id), timed_operation(
            logger, "suggestion generation", assessment_id=assessment_id
        ):
            assessment = self.store.find_assessment(assessment_id)
            if assessment is None:
                raise AssessmentNotFoundError(assessment_id)

            suggestions = self.build_suggestions(assessment)

            report = self.store.find_or_create_report(assessment_id)
            if report is None:
                raise AssessmentNotFoundError(assessment_id, what="Report")

            stored = self.store.replace_suggestions(report.id, suggestions)
            logger.info(f"Generated {len(stored)} suggestions [assessment_id={assessment_id} report_id={report.id}]")
            return sort_suggestions(stored)

    def get_assessment_suggestions(self, assessment_id: str) -> list[GeneratedSuggestion]:
        """
        Previously generated suggestions, priority desc then weight desc.

        Returns an empty list when the assessment has no report yet.

        Raises:
            AssessmentNotFoundError: If the assessment is missing
        """
        report = self.store.find_report(assessment_id)
        if report is None:
            if self.store.find_assessment(assessment_id) is None:
                raise AssessmentNotFoundError(assessment_id)
            return []
        return sort_suggestions(self.store.list_suggestions(report.id))

    def get_cso_scores(self, assessment_id: str) -> Optional[CSOScores]:
        """Scores for an assessment, or None if it does not exist."""
        assessment = self.store.find_assessment(assessment_id)
        if assessment is None:
            return None
        return calculate_cso_scores(assessment.responses)

    # --- Generation passes ---

    def build_suggestions(self, assessment: Assessment) -> list[GeneratedSuggestion]:
        """Run every pass over a loaded assessment. No persistence."""
        scores = calculate_cso_scores(assessment.responses)
        answers = {r.question_id: r.value for r in assessment.responses}
        normalized = round(weighted_overall_score(assessment.responses), 4)
        buckets = partition_by_section(assessment.responses)
        overall_facts = ScoreFacts.from_scores(
            scores,
            responses=answers,
            normalized_score=normalized,
            scoped_answers=[pair for key in SECTION_KEYS for pair in buckets[key]],
        )

        suggestions: list[GeneratedSuggestion] = []
        suggestions.extend(self._assessment_suggestions(scores, overall_facts))
        suggestions.extend(self._section_suggestions(assessment, scores, answers, buckets))
        suggestions.extend(self._strategic_suggestions(scores, overall_facts))
        suggestions.extend(self._question_suggestions(assessment))

        logger.debug(
            f"Built suggestions [assessment_id={assessment.id} total_score={scores.total_score} "
            f"level={scores.overall_level.value} count={len(suggestions)}]"
        )
        return suggestions

    def _assessment_suggestions(self, scores: CSOScores, facts: ScoreFacts) -> list[GeneratedSuggestion]:
        results = []
        for rule in self.store.find_active_rules(SuggestionType.ASSESSMENT):
            condition = _parse_rule(rule)
            if condition is None or not evaluate(facts, condition):
                continue
            metadata = scores.to_metadata()
            metadata.update(
                {
                    "normalizedScore": facts.normalized_score,
                    "condition": condition.to_json(),
                    "category": rule.category,
                }
            )
            results.append(
                GeneratedSuggestion(
                    type=SuggestionType.ASSESSMENT,
                    source_id=rule.id,
                    suggestion=rule.suggestion,
                    priority=rule.priority,
                    weight=rule.weight,
                    metadata=metadata,
                )
            )
        return results

    def _section_suggestions(
        self,
        assessment: Assessment,
        scores: CSOScores,
        answers: dict[str, Any],
        buckets: dict[str, list[tuple[Any, QuestionType]]],
    ) -> list[GeneratedSuggestion]:
        titles = self._section_titles(assessment)
        results = []
        for key in SECTION_KEYS:
            section_responses = [
                r
                for r in assessment.responses
                if r.question is not None and resolve_section_key(r.question.section_id) == key
            ]
            facts = ScoreFacts.from_scores(
                scores,
                responses=answers,
                section=key,
                normalized_score=round(weighted_overall_score(section_responses), 4),
                scoped_answers=buckets[key],
            )
            section_id = SECTION_IDS[key]

            # (rule, parsed condition): built-in bands first, then admin rules for this section
            candidates = [(rule, rule.condition) for rule in SECTION_BAND_RULES if rule.section == key]
            for rule in self.store.find_active_rules(SuggestionType.SECTION, section_id):
                condition = _parse_rule(rule)
                if condition is not None:
                    candidates.append((rule, condition))

            for rule, condition in candidates:
                if not evaluate(facts, condition):
                    continue
                results.append(
                    GeneratedSuggestion(
                        type=SuggestionType.SECTION,
                        source_id=section_id,
                        suggestion=rule.suggestion,
                        priority=rule.priority,
                        weight=rule.weight,
                        metadata={
                            "ruleId": rule.id,
                            "sectionTitle": titles[key],
                            "sectionScore": scores.section_scores[key],
                            "sectionPercentage": scores.section_percentages[key],
                            "category": rule.category,
                            "condition": condition.to_json(),
                        },
                    )
                )
        return results

    def _strategic_suggestions(self, scores: CSOScores, facts: ScoreFacts) -> list[GeneratedSuggestion]:
        results = []
        for rule in STRATEGIC_RULES:
            if not evaluate(facts, rule.condition):
                continue
            metadata = scores.to_metadata()
            metadata.update(
                {
                    "normalizedScore": facts.normalized_score,
                    "condition": rule.condition.to_json(),
                    "category": rule.category,
                    "isStrategic": True,
                }
            )
            results.append(
                GeneratedSuggestion(
                    type=SuggestionType.ASSESSMENT,
                    source_id=rule.id,
                    suggestion=rule.suggestion,
                    priority=rule.priority,
                    weight=rule.weight,
                    metadata=metadata,
                )
            )
        return results

    def _question_suggestions(self, assessment: Assessment) -> list[GeneratedSuggestion]:
        results = []
        for response in assessment.responses:
            question = response.question
            if question is None or not question.rules or not is_answered(response.value):
                continue
            for rule in question.rules:
                condition = _parse_question_rule(rule)
                if condition is None or not evaluate_question(condition, response.value):
                    continue
                results.append(
                    GeneratedSuggestion(
                        type=SuggestionType.QUESTION,
                        source_id=question.id,
                        suggestion=rule.suggestion,
                        priority=rule.priority,
                        weight=rule.weight,
                        metadata={
                            "ruleId": rule.id,
                            "questionText": question.text,
                            "responseValue": response.value,
                            "condition": condition.to_json(),
                        },
                    )
                )
        return results

    @staticmethod
    def _section_titles(assessment: Assessment) -> dict[str, str]:
        titles = dict(SECTION_TITLES)
        for response in assessment.responses:
            section = response.question.section if response.question is not None else None
            if section is not None:
                key = resolve_section_key(section.id)
                if key is not None:
                    titles[key] = section.title
        return titles
