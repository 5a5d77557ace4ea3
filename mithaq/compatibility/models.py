"""
Compatibility Models

CompatibilityScore is the immutable, multi-dimensional outcome of an
assessment. It is recomputed on re-assessment, never patched.

Dimensions are bounded [0, 100]. risk_index is inverted: lower is better.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class InsightCategory(str, Enum):
    PERSONALITY = "personality"
    VALUES = "values"
    COMMUNICATION = "communication"
    CONFLICT_RESOLUTION = "conflict_resolution"
    FAMILY_GOALS = "family_goals"
    LIFESTYLE = "lifestyle"
    RELIGIOUS = "religious"
    FINANCIAL = "financial"


class Importance(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 = most important."""
        return IMPORTANCE_ORDER.index(self)


IMPORTANCE_ORDER = [
    Importance.CRITICAL,
    Importance.IMPORTANT,
    Importance.MODERATE,
    Importance.LOW,
]


class CompatibilityTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


def tier_for(score: float) -> CompatibilityTier:
    if score >= 80:
        return CompatibilityTier.EXCELLENT
    if score >= 60:
        return CompatibilityTier.GOOD
    if score >= 40:
        return CompatibilityTier.AVERAGE
    return CompatibilityTier.POOR


SCORE_DIMENSIONS = (
    "overall", "personality", "values", "lifestyle", "religious",
    "family", "goals", "risk_index", "growth_fit",
)


class CompatibilityInsight(BaseModel):
    category: InsightCategory
    score: float = Field(ge=0.0, le=100.0)
    description: str
    importance: Importance

    class Config:
        frozen = True


class CompatibilityScore(BaseModel):
    """
    Nine bounded dimensions plus ordered insights and recommendations.
    """
    overall: float = Field(ge=0.0, le=100.0)
    personality: float = Field(ge=0.0, le=100.0)
    values: float = Field(ge=0.0, le=100.0)
    lifestyle: float = Field(ge=0.0, le=100.0)
    religious: float = Field(ge=0.0, le=100.0)
    family: float = Field(ge=0.0, le=100.0)
    goals: float = Field(ge=0.0, le=100.0)
    risk_index: float = Field(ge=0.0, le=100.0, description="Lower is better")
    growth_fit: float = Field(ge=0.0, le=100.0)
    insights: List[CompatibilityInsight] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"

    @property
    def tier(self) -> CompatibilityTier:
        return tier_for(self.overall)

    def dimensions(self) -> dict:
        return {name: getattr(self, name) for name in SCORE_DIMENSIONS}
