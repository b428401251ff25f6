"""CSO score value object.

Computed on demand from an assessment's responses; never persisted.
"""

from pydantic import BaseModel, ConfigDict, Field

from cso_assessment.constants import SECTION_KEYS, SECTION_MAX_POINTS, TOTAL_MAX_POINTS
from cso_assessment.schemas.enums import OverallLevel


class CSOScores(BaseModel):
    """Section raw scores, percentages and the overall tier.

    Max points: governance 115, financial 50, programme 30, hr 20 (total 215).
    Tiers on total percentage: <41 Emerging, 41-<80 Strong Foundation, >=80 Leading.
    """

    model_config = ConfigDict(frozen=True)

    governance_score: int = Field(ge=0, le=SECTION_MAX_POINTS["governance"])
    financial_score: int = Field(ge=0, le=SECTION_MAX_POINTS["financial"])
    programme_score: int = Field(ge=0, le=SECTION_MAX_POINTS["programme"])
    hr_score: int = Field(ge=0, le=SECTION_MAX_POINTS["hr"])
    total_score: int = Field(ge=0, le=TOTAL_MAX_POINTS)

    governance_percentage: float = Field(ge=0, le=100)
    financial_percentage: float = Field(ge=0, le=100)
    programme_percentage: float = Field(ge=0, le=100)
    hr_percentage: float = Field(ge=0, le=100)
    total_percentage: float = Field(ge=0, le=100)

    overall_level: OverallLevel

    @property
    def section_scores(self) -> dict[str, int]:
        return {key: getattr(self, f"{key}_score") for key in SECTION_KEYS}

    @property
    def section_percentages(self) -> dict[str, float]:
        return {key: getattr(self, f"{key}_percentage") for key in SECTION_KEYS}

    def to_metadata(self) -> dict:
        """Camel-cased summary used in suggestion metadata."""
        return {
            "overallScore": self.total_score,
            "overallPercentage": self.total_percentage,
            "overallLevel": self.overall_level.value,
            "sectionScores": self.section_scores,
            "sectionPercentages": self.section_percentages,
        }
