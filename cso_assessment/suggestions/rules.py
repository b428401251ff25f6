"""
Built-in suggestion rules.

SECTION_BAND_RULES: three raw-score bands per section (Emerging, Strong,
Leading). Band ranges follow each section's point maximum; scores below the
Emerging band match nothing.

STRATEGIC_RULES: cross-cutting recommendations keyed on overall level and on
weak sections (percentage at or below 40). Emitted as ASSESSMENT suggestions
with `isStrategic` set and STRATEGIC_WEIGHT.
"""

from dataclasses import dataclass
from typing import Optional

from cso_assessment.constants import (
    SECTION_IDS,
    SECTION_KEYS,
    STRATEGIC_SECTION_THRESHOLD_PERCENT,
    STRATEGIC_WEIGHT,
)
from cso_assessment.schemas.conditions import Condition, parse_condition


@dataclass(frozen=True)
class BuiltinRule:
    """A rule shipped with the engine rather than configured by an admin."""

    id: str
    condition: Condition
    suggestion: str
    priority: int
    category: str
    section: Optional[str] = None  # section key for section-scoped rules
    weight: float = 1.0


SECTION_CATEGORIES = {
    "governance": "Governance",
    "financial": "Financial Management",
    "programme": "Programme/Project Accountability",
    "hr": "Human Resource Management",
}

# Band priorities
EMERGING_BAND_PRIORITY = 9
STRONG_BAND_PRIORITY = 7
LEADING_BAND_PRIORITY = 5

# section -> [(band, min, max, priority, text)]
SECTION_BANDS = {
    "governance": [
        (
            "emerging",
            23,
            46,
            EMERGING_BAND_PRIORITY,
            "It's time to get the fundamentals in place. Consider conducting a governance audit to identify "
            "critical gaps in oversight and board function. Provide training to ensure board members fully "
            "understand their fiduciary roles and responsibilities. For example, use a simple checklist to assess "
            "how often the board meets, if minutes are documented, and whether board members have signed a code "
            "of conduct.",
        ),
        (
            "strong",
            47,
            91,
            STRONG_BAND_PRIORITY,
            "Your board is functioning well. To stay on track, continue documenting decisions, refining practices, "
            "and mentoring new board members to maintain strong institutional knowledge and accountability. For "
            "example, develop a board orientation package and assign a mentor from the current board to support "
            "new members for their first six months.",
        ),
        (
            "leading",
            92,
            115,
            LEADING_BAND_PRIORITY,
            "Your board is functioning well. To stay on track, continue documenting decisions, refining practices, "
            "and mentoring new board members to maintain strong institutional knowledge and accountability. For "
            "example, develop a board orientation package and assign a mentor from the current board to support "
            "new members for their first six months.",
        ),
    ],
    "financial": [
        (
            "emerging",
            10,
            20,
            EMERGING_BAND_PRIORITY,
            "It's time to take some steps that will ensure improved financial accountability. For example, start "
            "using simple accounting tools (e.g. spreadsheets or free software), develop basic financial protocols "
            "like expense tracking and approval processes and do due diligence on your current and potential "
            "donors.",
        ),
        (
            "strong",
            21,
            40,
            STRONG_BAND_PRIORITY,
            "Now that you have a proven solid financial management base, press towards cutting-edge "
            "accountability. For example, proactively develop funding strategies to promote your organisation's "
            "sustainability.",
        ),
        (
            "leading",
            41,
            50,
            LEADING_BAND_PRIORITY,
            "Your reputation for rigorous financial accountability and transparency precedes you. You are also "
            "sought out as a reputable partner for multi-level programmes by international, regional, state and "
            "private sector funders. You are often regarded as an umbrella organization through which large "
            "numbers of CSOs could benefit from critical financial capacity-building initiatives. For example, "
            "your organization could focus on leading the research, adaptation and implementation of global best "
            "fiscal practice to be applied within the national and regional spheres.",
        ),
    ],
    "programme": [
        (
            "emerging",
            6,
            12,
            EMERGING_BAND_PRIORITY,
            "This is the opportune time to put systems in place for good programme and project accountability "
            "from the outset. For example ensure that programmes and projects are aligned with your mission, "
            "vision and strategic goals, and that monitoring and evaluation systems are in place.",
        ),
        (
            "strong",
            13,
            24,
            STRONG_BAND_PRIORITY,
            "The design of your programmes and projects is informed by systems analysis and strategic goals with "
            "project partners (donors, other CSOs) are proactively selected because of their alignment with your "
            "vision. Explore more sophisticated project tools to ensure and highlight documented project success. "
            "For example, utilize real-time, online project monitoring and evaluation software. Integrate lessons "
            "learned from previous projects for continuous improvement. Demonstrate your emerging leadership by "
            "initiating or joining multi-sectoral, collaborative interventions.",
        ),
        (
            "leading",
            25,
            30,
            LEADING_BAND_PRIORITY,
            "Your partnerships are solid. Now's the time to deepen those relationships through joint initiatives, "
            "co-hosted events, and regular strategy sessions to amplify impact. For example, consider sharing your "
            "success by publishing case studies and highlighting examples where stakeholder input directly "
            "influenced your work.",
        ),
    ],
    "hr": [
        (
            "emerging",
            4,
            8,
            EMERGING_BAND_PRIORITY,
            "Now is the time to start developing your volunteers and staff so they contribute effectively to the "
            "achievement of your CSO's goals. For example, draft an HR strategy that aligns with your CSO's vision, "
            "mission and goals, and reinforce the message that each member plays an integral role in upholding "
            "and bringing the vision to pass.",
        ),
        (
            "strong",
            9,
            16,
            STRONG_BAND_PRIORITY,
            "You have made good progress. You are well on your way to creating an enabling work environment, key "
            "for a civil society organization to thrive. To build on your achievements here are some concrete "
            "recommendations. For example, develop new policies to address remote work and enhanced cybersecurity "
            "in post COVID and AI contexts.",
        ),
        (
            "leading",
            17,
            20,
            LEADING_BAND_PRIORITY,
            "Congratulations, your organization attracts and retains highly skilled personnel who thrive. Share "
            "your success within the sector: For example, while maintaining the cutting edge in this area, "
            "encourage board, staff and volunteers to pay it forward by finding ways to generously share lessons "
            "learned about establishing and maintaining creative and motivating workspaces.",
        ),
    ],
}


def _build_section_band_rules() -> list[BuiltinRule]:
    rules = []
    for key in SECTION_KEYS:
        for band, low, high, priority, text in SECTION_BANDS[key]:
            rules.append(
                BuiltinRule(
                    id=f"{band}-{key}",
                    condition=parse_condition({"sectionScore": {"section": SECTION_IDS[key], "min": low, "max": high}}),
                    suggestion=text,
                    priority=priority,
                    category=SECTION_CATEGORIES[key],
                    section=key,
                )
            )
    return rules


SECTION_BAND_RULES = _build_section_band_rules()


# Weak-section recommendations (percentage <= threshold)
WEAK_SECTION_TEXT = {
    "governance": (
        "Governance is your weakest area. Make board oversight a standing agenda item: agree a meeting "
        "calendar, record minutes, and have every board member sign the code of conduct before the next "
        "assessment."
    ),
    "financial": (
        "Financial management needs urgent attention. Put written approval limits and monthly reconciliations "
        "in place, and arrange an independent review of your accounts within the year."
    ),
    "programme": (
        "Programme accountability is lagging. Define two or three measurable indicators for each active "
        "programme and schedule a review with beneficiaries at its midpoint."
    ),
    "hr": (
        "Human resource practices need strengthening. Document roles for staff and volunteers, and hold a short "
        "induction for every new member that links their work to your mission."
    ),
}

WEAK_SECTION_PRIORITY = 9


def _build_strategic_rules() -> list[BuiltinRule]:
    rules = [
        BuiltinRule(
            id="strategic-emerging",
            condition=parse_condition({"overallLevel": "Emerging"}),
            suggestion=(
                "Your organization shows significant opportunities for improvement. Consider implementing a "
                "comprehensive improvement plan with clear milestones and regular progress reviews."
            ),
            priority=8,
            category="Strategic",
            weight=STRATEGIC_WEIGHT,
        ),
        BuiltinRule(
            id="strategic-strong-foundation",
            condition=parse_condition({"overallLevel": "Strong Foundation"}),
            suggestion=(
                "Your organization demonstrates good practices with room for enhancement. Focus on specific areas "
                "of weakness to achieve excellence."
            ),
            priority=5,
            category="Strategic",
            weight=STRATEGIC_WEIGHT,
        ),
        BuiltinRule(
            id="strategic-leading",
            condition=parse_condition({"overallLevel": "Leading"}),
            suggestion=(
                "Excellent performance! Continue maintaining high standards and consider sharing best practices "
                "with other organizations."
            ),
            priority=2,
            category="Strategic",
            weight=STRATEGIC_WEIGHT,
        ),
    ]
    for key in SECTION_KEYS:
        rules.append(
            BuiltinRule(
                id=f"strategic-weak-{key}",
                condition=parse_condition(
                    {"sectionPercentages": {key: {"max": STRATEGIC_SECTION_THRESHOLD_PERCENT}}}
                ),
                suggestion=WEAK_SECTION_TEXT[key],
                priority=WEAK_SECTION_PRIORITY,
                category=SECTION_CATEGORIES[key],
                weight=STRATEGIC_WEIGHT,
            )
        )
    rules.append(
        BuiltinRule(
            id="strategic-general",
            condition=parse_condition({}),
            suggestion=(
                "Consider conducting regular assessments to track progress and identify areas for continuous "
                "improvement."
            ),
            priority=3,
            category="General",
            weight=STRATEGIC_WEIGHT,
        )
    )
    return rules


STRATEGIC_RULES = _build_strategic_rules()
