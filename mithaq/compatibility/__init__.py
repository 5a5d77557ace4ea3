"""
Mithaq Compatibility Scoring

Nine-dimension compatibility scores with ordered insights.
The engine lives in mithaq.compatibility.engine.
"""

from .models import (
    CompatibilityInsight,
    CompatibilityScore,
    CompatibilityTier,
    Importance,
    InsightCategory,
)

__all__ = [
    "CompatibilityInsight",
    "CompatibilityScore",
    "CompatibilityTier",
    "Importance",
    "InsightCategory",
]
