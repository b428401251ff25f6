"""
Domain constants for the CSO self-assessment.

Section sizes and point maximums are fixed by the questionnaire design
and are not derived from whatever happens to be stored.
"""

# Fixed sections: key -> (section id, max questions)
SECTION_KEYS = ["governance", "financial", "programme", "hr"]

SECTION_IDS = {
    "governance": "governance-section",
    "financial": "financial-section",
    "programme": "programme-section",
    "hr": "hr-section",
}

SECTION_TITLES = {
    "governance": "Governing Body Accountability",
    "financial": "Financial Management",
    "programme": "Programme/Project Accountability",
    "hr": "Human Resource Accountability",
}

SECTION_MAX_QUESTIONS = {
    "governance": 23,
    "financial": 10,
    "programme": 6,
    "hr": 4,
}

POINTS_PER_QUESTION = 5  # Likert 5 / Boolean true

SECTION_MAX_POINTS = {key: count * POINTS_PER_QUESTION for key, count in SECTION_MAX_QUESTIONS.items()}

TOTAL_MAX_POINTS = 215  # 43 questions * 5

# Overall level thresholds on total percentage
EMERGING_UPPER_PERCENT = 41  # < 41 -> Emerging
LEADING_LOWER_PERCENT = 80  # >= 80 -> Leading

# Likert scale bounds
LIKERT_MIN = 1
LIKERT_MAX = 5

# Boolean points on the raw 5-point scale
BOOLEAN_TRUE_POINTS = 5
BOOLEAN_FALSE_POINTS = 1

# Normalization defaults for question types without per-option weights
SINGLE_CHOICE_DEFAULT = 0.5
MULTIPLE_CHOICE_DEFAULT = 0.7
TEXT_NEUTRAL = 0.5

# Suggestion weighting
DEFAULT_RULE_WEIGHT = 1.0
STRATEGIC_WEIGHT = 1.5
STRATEGIC_SECTION_THRESHOLD_PERCENT = 40


def resolve_section_key(name: str) -> str | None:
    """Map a section key or section id ("governance" / "governance-section") to its key."""
    if name in SECTION_IDS:
        return name
    for key, section_id in SECTION_IDS.items():
        if section_id == name:
            return key
    return None
