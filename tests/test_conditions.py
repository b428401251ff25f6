"""Tests for condition parsing and evaluation."""

import logging

import pytest

from cso_assessment.errors import InvalidConditionError
from cso_assessment.schemas.conditions import parse_condition, parse_question_condition
from cso_assessment.schemas.enums import OverallLevel, QuestionType
from cso_assessment.schemas.scores import CSOScores
from cso_assessment.suggestions.conditions import ScoreFacts, evaluate, evaluate_question, values_equal

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _scores(governance=92, financial=30, programme=12, hr=8, level=None) -> CSOScores:
    """CSOScores from section raw scores; percentages and level are derived."""
    total = governance + financial + programme + hr
    total_pct = total / 215 * 100
    if level is None:
        level = (
            OverallLevel.EMERGING
            if total_pct < 41
            else OverallLevel.STRONG_FOUNDATION if total_pct < 80 else OverallLevel.LEADING
        )
    return CSOScores(
        governance_score=governance,
        financial_score=financial,
        programme_score=programme,
        hr_score=hr,
        total_score=total,
        governance_percentage=governance / 115 * 100,
        financial_percentage=financial / 50 * 100,
        programme_percentage=programme / 30 * 100,
        hr_percentage=hr / 20 * 100,
        total_percentage=total_pct,
        overall_level=level,
    )


def _facts(**kwargs) -> ScoreFacts:
    responses = kwargs.pop("responses", None)
    section = kwargs.pop("section", None)
    return ScoreFacts.from_scores(_scores(**kwargs), responses=responses, section=section)


# ─── Parsing ──────────────────────────────────────────────────────────────────


class TestParseCondition:
    """Stored JSON → Condition."""

    def test_empty_condition(self):
        """{} and None parse to a clause-less condition."""
        assert parse_condition({}).clauses == []
        assert parse_condition(None).clauses == []

    def test_json_string(self):
        """Conditions stored as JSON text are accepted."""
        condition = parse_condition('{"overallScore": {"min": 100}}')
        assert condition.clauses == ["overall_score"]
        assert condition.overall_score.min == 100

    def test_round_trip_keys(self):
        """to_json emits camelCase keys and drops absent clauses."""
        condition = parse_condition({"sectionScore": {"section": "hr-section", "max": 8}})
        assert condition.to_json() == {"sectionScore": {"section": "hr", "max": 8.0}}

    def test_unknown_keys_ignored(self):
        """Unrecognised keys next to a known clause do not invalidate a condition."""
        assert parse_condition({"overallScore": {"min": 1}, "note": "x"}).clauses == ["overall_score"]

    def test_normalized_range_clause(self):
        """minScore/maxScore parse as bounds on the 0-1 normalized score."""
        condition = parse_condition({"minScore": 0, "maxScore": 1})
        assert condition.clauses == ["min_score", "max_score"]
        assert condition.to_json() == {"minScore": 0.0, "maxScore": 1.0}

    def test_question_percentage_clause(self):
        """questionPercentage keeps its type filter and an explicit expected value."""
        raw = {"operator": "less_than", "value": 30, "questionType": "BOOLEAN", "expectedValue": True}
        clause = parse_condition({"questionPercentage": raw}).question_percentage
        assert clause.question_type == QuestionType.BOOLEAN
        assert clause.has_expected_value

        untyped = parse_condition({"questionPercentage": {"operator": "equals", "value": 50}}).question_percentage
        assert untyped.question_type is None
        assert not untyped.has_expected_value

    @pytest.mark.parametrize(
        "raw",
        [
            {"overallScore": {"min": 200, "max": 100}},
            {"sectionScore": {"section": "marketing", "min": 1}},
            {"sectionScore": {"min": 1}},
            {"overallLevel": "Excellent"},
            {"sectionPercentages": {"marketing": {"max": 40}}},
            {"sectionCount": {"operator": "between", "value": 1, "belowThreshold": 40}},
            {"overallScore": {"min": "high"}},
            {"minScore": 0.8, "maxScore": 0.2},
            {"maxScore": 40},
            {"questionPercentage": {"operator": "between", "value": 50}},
            {"questionPercentage": {"operator": "less_than", "value": 150}},
            {"questionPercentage": {"operator": "less_than", "value": 10, "questionType": "RATING"}},
            {"note": "x"},
            {"minscore": 0, "maxscore": 0.4},
            "[1, 2]",
            "not json",
            42,
        ],
    )
    def test_invalid(self, raw):
        """Malformed conditions raise InvalidConditionError."""
        with pytest.raises(InvalidConditionError):
            parse_condition(raw)

    def test_invalid_keeps_raw(self):
        """The offending blob is attached to the error."""
        raw = {"overallScore": {"min": 5, "max": 1}}
        with pytest.raises(InvalidConditionError) as exc_info:
            parse_condition(raw)
        assert exc_info.value.raw == raw

    def test_question_condition_operator_checked(self):
        """Unknown question operators are rejected."""
        assert parse_question_condition({"value": 3, "operator": "less_than"}).operator == "less_than"
        with pytest.raises(InvalidConditionError):
            parse_question_condition({"value": 3, "operator": "between"})
        with pytest.raises(InvalidConditionError):
            parse_question_condition({"value": 3})


# ─── evaluate ─────────────────────────────────────────────────────────────────


class TestEvaluate:
    """Score-level clauses, ANDed."""

    def test_empty_always_true(self):
        """An empty condition matches any facts."""
        assert evaluate(_facts(), {})
        assert evaluate(ScoreFacts(), {})

    def test_overall_score_inclusive(self):
        """Bounds are inclusive; missing bounds are open."""
        facts = _facts()  # total 142
        assert evaluate(facts, {"overallScore": {"min": 142}})
        assert evaluate(facts, {"overallScore": {"max": 142}})
        assert evaluate(facts, {"overallScore": {"min": 87, "max": 170}})
        assert not evaluate(facts, {"overallScore": {"min": 143}})
        assert not evaluate(facts, {"overallScore": {"max": 141}})

    def test_section_score_accepts_key_or_id(self):
        """sectionScore resolves both "hr" and "hr-section"."""
        facts = _facts(hr=8)
        assert evaluate(facts, {"sectionScore": {"section": "hr", "min": 4, "max": 8}})
        assert evaluate(facts, {"sectionScore": {"section": "hr-section", "min": 4, "max": 8}})
        assert not evaluate(facts, {"sectionScore": {"section": "hr", "min": 9}})

    def test_scoped_score(self):
        """score applies to the section the facts are scoped to."""
        facts = _facts(hr=8, section="hr-section")
        assert facts.score == 8
        assert evaluate(facts, {"score": {"max": 10}})
        assert not evaluate(facts, {"score": {"min": 10}})

    def test_scoped_score_missing_fails(self):
        """score without a scoped section never matches."""
        assert not evaluate(_facts(), {"score": {"min": 0}})

    def test_unknown_scope_section_raises(self):
        """Scoping to an unknown section is a caller error."""
        with pytest.raises(ValueError):
            _facts(section="marketing")

    def test_overall_level(self):
        """Exact tier match, canonical or report label."""
        facts = _facts(level=OverallLevel.STRONG_FOUNDATION)
        assert evaluate(facts, {"overallLevel": "Strong Foundation"})
        assert not evaluate(facts, {"overallLevel": "Leading"})
        leading = _facts(governance=115, financial=50, programme=30, hr=20)
        assert evaluate(leading, {"overallLevel": "Leading Organization"})

    def test_section_percentages(self):
        """Every listed section must be in range."""
        facts = _facts(governance=92, hr=8)  # governance 80%, hr 40%
        assert evaluate(facts, {"sectionPercentages": {"hr": {"max": 40}}})
        assert evaluate(facts, {"sectionPercentages": {"governance-section": {"min": 80}, "hr": {"max": 40}}})
        assert not evaluate(facts, {"sectionPercentages": {"governance": {"max": 40}, "hr": {"max": 40}}})

    def test_responses_clause(self):
        """Answered questions must equal the expected value; unanswered ones are skipped."""
        facts = _facts(responses={"gov-q13": False, "hr-q1": "4", "fin-q1": None})
        assert evaluate(facts, {"responses": {"gov-q13": False}})
        assert evaluate(facts, {"responses": {"hr-q1": 4}})
        assert evaluate(facts, {"responses": {"fin-q1": 5, "prog-q1": 3}})
        assert not evaluate(facts, {"responses": {"gov-q13": True}})

    def test_section_count(self):
        """Counts section percentages below the threshold."""
        facts = _facts(governance=92, financial=30, programme=12, hr=8)  # 80, 60, 40, 40
        assert evaluate(facts, {"sectionCount": {"operator": "equals", "value": 2, "belowThreshold": 50}})
        assert evaluate(facts, {"sectionCount": {"operator": "greater_than", "value": 1, "belowThreshold": 50}})
        assert evaluate(facts, {"sectionCount": {"operator": "less_than", "value": 1, "belowThreshold": 40}})
        assert not evaluate(facts, {"sectionCount": {"operator": "equals", "value": 3, "belowThreshold": 50}})

    def test_section_count_without_facts(self):
        """No section percentages → sectionCount fails."""
        assert not evaluate(ScoreFacts(), {"sectionCount": {"operator": "less_than", "value": 5, "belowThreshold": 50}})

    def test_clauses_anded(self):
        """One failing clause fails the whole condition."""
        facts = _facts(hr=8)
        assert evaluate(facts, {"overallScore": {"min": 100}, "sectionScore": {"section": "hr", "max": 8}})
        assert not evaluate(facts, {"overallScore": {"min": 100}, "sectionScore": {"section": "hr", "min": 9}})

    @pytest.mark.parametrize(
        "raw",
        [{"overallScore": {"min": 10, "max": 5}}, {"note": "x"}, "not json", 42],
    )
    def test_invalid_raw_never_matches(self, raw, caplog):
        """A malformed blob evaluates to False and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="cso_assessment.suggestions.conditions"):
            assert evaluate(_facts(), raw) is False
        assert "does not match" in caplog.text

    def test_normalized_range(self):
        """Inclusive 0-1 bounds with open sides defaulting to 0 and 1."""
        facts = ScoreFacts(normalized_score=0.25)
        assert evaluate(facts, {"minScore": 0, "maxScore": 0.3})
        assert evaluate(facts, {"maxScore": 0.25})
        assert evaluate(facts, {"minScore": 0.25})
        assert evaluate(facts, {"minScore": 0, "maxScore": 1})
        assert not evaluate(facts, {"minScore": 0.3})
        assert not evaluate(facts, {"maxScore": 0.2})

    def test_normalized_range_without_facts(self):
        """No normalized score → the range fails, even the full one."""
        assert not evaluate(ScoreFacts(), {"minScore": 0, "maxScore": 1})

    def test_question_percentage(self):
        """Share of in-scope answers matching type and value; equals within one point."""
        facts = ScoreFacts(
            scoped_answers=[
                (5, QuestionType.LIKERT_SCALE),
                (1, QuestionType.LIKERT_SCALE),
                (False, QuestionType.BOOLEAN),
                ("1", QuestionType.LIKERT_SCALE),
            ]
        )
        booleans_false = {"questionType": "BOOLEAN", "expectedValue": False}
        assert evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 25, **booleans_false}})
        assert evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 24.5, **booleans_false}})
        assert not evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 26, **booleans_false}})
        assert evaluate(facts, {"questionPercentage": {"operator": "greater_than", "value": 20, **booleans_false}})
        assert not evaluate(facts, {"questionPercentage": {"operator": "less_than", "value": 25, **booleans_false}})

        ones = {"questionType": "LIKERT_SCALE", "expectedValue": 1}
        assert evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 50, **ones}})
        assert evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 75, "questionType": "LIKERT_SCALE"}})
        assert evaluate(facts, {"questionPercentage": {"operator": "equals", "value": 100}})

    def test_question_percentage_without_answers(self):
        """No in-scope answers → the clause fails."""
        assert not evaluate(ScoreFacts(), {"questionPercentage": {"operator": "less_than", "value": 50}})


# ─── evaluate_question ────────────────────────────────────────────────────────


class TestEvaluateQuestion:
    """Single-response operators."""

    def test_equals(self):
        """Equality tolerates numeric strings."""
        assert evaluate_question({"value": 2, "operator": "equals"}, 2)
        assert evaluate_question({"value": 2, "operator": "equals"}, "2")
        assert evaluate_question({"value": "Monthly", "operator": "equals"}, "Monthly")
        assert not evaluate_question({"value": 2, "operator": "equals"}, 3)

    def test_equals_boolean_strict(self):
        """Booleans only equal booleans."""
        assert evaluate_question({"value": False, "operator": "equals"}, False)
        assert not evaluate_question({"value": False, "operator": "equals"}, 0)
        assert not evaluate_question({"value": True, "operator": "equals"}, 1)

    def test_contains(self):
        """List membership for multi-select, substring otherwise."""
        assert evaluate_question({"value": "audit", "operator": "contains"}, ["budget", "audit"])
        assert not evaluate_question({"value": "payroll", "operator": "contains"}, ["budget", "audit"])
        assert evaluate_question({"value": "board", "operator": "contains"}, "The board meets monthly")
        assert not evaluate_question({"value": "board", "operator": "contains"}, None)

    @pytest.mark.parametrize(
        "operator,answer,expected",
        [
            ("greater_than", 4, True),
            ("greater_than", 3, False),
            ("less_than", 2, True),
            ("less_than", 3, False),
            ("greater_than_or_equal", 3, True),
            ("greater_than_or_equal", 2, False),
            ("less_than_or_equal", 3, True),
            ("less_than_or_equal", 4, False),
            ("less_than", "2", True),
        ],
    )
    def test_numeric_operators(self, operator, answer, expected):
        """Numeric comparisons against 3."""
        assert evaluate_question({"value": 3, "operator": operator}, answer) is expected

    def test_numeric_non_numeric_input(self):
        """Numeric operators fail on non-numeric answers."""
        assert not evaluate_question({"value": 3, "operator": "less_than"}, "rarely")
        assert not evaluate_question({"value": 3, "operator": "less_than"}, True)

    @pytest.mark.parametrize("raw", [{"value": 3, "operator": "between"}, {"value": 3}, "not json", None])
    def test_invalid_raw_never_matches(self, raw, caplog):
        """A malformed question condition evaluates to False and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="cso_assessment.suggestions.conditions"):
            assert evaluate_question(raw, 2) is False
        assert "does not match" in caplog.text

    def test_values_equal(self):
        """Mixed forms compare sensibly."""
        assert values_equal("4", 4.0)
        assert not values_equal("four", 4)
        assert not values_equal(True, "true")
