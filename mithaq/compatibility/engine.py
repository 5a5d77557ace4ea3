"""
Compatibility Scoring Engine

assess(user_a, user_b) -> Result[CompatibilityScore]

Pipeline:
1. Ask the personality agent (via the dispatcher) for a structured
   CompatibilityAssessment of the pair
2. Derive the nine dimensions deterministically from that assessment and
   the two profiles
3. Combine into overall with the fixed DIMENSION_WEIGHTS minus a risk
   penalty
4. Order insights (importance, then score) and trim recommendations

Scoring is all-or-nothing: any dispatcher failure is returned verbatim and
no partial score is ever produced.
"""

import logging
from statistics import mean
from typing import TYPE_CHECKING, Dict, List, Optional

from mithaq.agents.models import CompatibilityAssessment, Severity
from mithaq.compatibility.models import CompatibilityInsight, CompatibilityScore
from mithaq.shared.result import Result
from mithaq.users.models import ReligiousPractice, User

if TYPE_CHECKING:
    from mithaq.agents.dispatcher import AgentDispatcher

logger = logging.getLogger(__name__)

# =============================================================================
# WEIGHTS (stable; changing these changes every stored overall)
# =============================================================================

DIMENSION_WEIGHTS: Dict[str, float] = {
    "personality": 0.20,
    "values": 0.20,
    "lifestyle": 0.10,
    "religious": 0.15,
    "family": 0.15,
    "goals": 0.10,
    "growth_fit": 0.10,
}

RISK_PENALTY = 0.20

RED_FLAG_WEIGHTS: Dict[Severity, float] = {
    Severity.LOW: 5.0,
    Severity.MEDIUM: 15.0,
    Severity.HIGH: 30.0,
    Severity.CRITICAL: 50.0,
}

MAX_RECOMMENDATIONS = 5

# Practice levels on one axis; distance 0/1/2 -> score
PRACTICE_LEVELS = [
    ReligiousPractice.PRACTICING,
    ReligiousPractice.MODERATELY_PRACTICING,
    ReligiousPractice.NOT_PRACTICING,
]
PRACTICE_DISTANCE_SCORES = {0: 100.0, 1: 60.0, 2: 20.0}


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return round(max(low, min(high, value)), 1)


def trait_similarity(assessment: CompatibilityAssessment) -> float:
    """100 minus the mean absolute Big Five difference."""
    diffs = [
        abs(a - b)
        for a, b in zip(assessment.traits_a.big_five(), assessment.traits_b.big_five())
    ]
    return clamp(100.0 - mean(diffs))


def practice_alignment(user_a: User, user_b: User) -> Optional[float]:
    """Score from the stated religious practices, None if either is unknown."""
    a = user_a.profile.religious_practice if user_a.profile else None
    b = user_b.profile.religious_practice if user_b.profile else None
    if a is None or b is None:
        return None
    distance = abs(PRACTICE_LEVELS.index(a) - PRACTICE_LEVELS.index(b))
    return PRACTICE_DISTANCE_SCORES[distance]


def risk_index(assessment: CompatibilityAssessment) -> float:
    return clamp(sum(RED_FLAG_WEIGHTS[flag.severity] for flag in assessment.red_flags))


def order_insights(insights: List[CompatibilityInsight]) -> List[CompatibilityInsight]:
    """Most important first; within an importance, highest score first."""
    return sorted(insights, key=lambda i: (i.importance.rank, -i.score))


def select_recommendations(recommendations: List[str]) -> List[str]:
    seen = set()
    selected = []
    for text in recommendations:
        cleaned = text.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        selected.append(cleaned)
        if len(selected) == MAX_RECOMMENDATIONS:
            break
    return selected


def overall_score(dimensions: Dict[str, float], risk: float) -> float:
    weighted = sum(dimensions[name] * weight for name, weight in DIMENSION_WEIGHTS.items())
    return clamp(weighted - RISK_PENALTY * risk)


def score_assessment(
    assessment: CompatibilityAssessment,
    user_a: User,
    user_b: User,
) -> CompatibilityScore:
    """Deterministically derive a CompatibilityScore from an assessment."""
    values = assessment.values_alignment

    religious = assessment.religious
    alignment = practice_alignment(user_a, user_b)
    if alignment is not None:
        religious = (religious + alignment) / 2

    dimensions = {
        "personality": trait_similarity(assessment),
        "values": clamp(mean(values.areas())),
        "lifestyle": clamp(mean([assessment.lifestyle, values.lifestyle])),
        "religious": clamp(religious),
        "family": clamp(mean([assessment.family_goals, values.family])),
        "goals": clamp(assessment.shared_goals),
        "growth_fit": clamp(mean([assessment.growth_potential, values.personal_growth])),
    }
    risk = risk_index(assessment)

    return CompatibilityScore(
        overall=overall_score(dimensions, risk),
        risk_index=risk,
        insights=order_insights(assessment.insights),
        recommendations=select_recommendations(assessment.recommendations),
        **dimensions,
    )


class CompatibilityEngine:
    """Computes compatibility scores through the agent dispatcher."""

    def __init__(self, dispatcher: "AgentDispatcher"):
        self.dispatcher = dispatcher

    async def assess(self, user_a: User, user_b: User) -> Result[CompatibilityScore]:
        result = await self.dispatcher.assess_compatibility(user_a, user_b)
        if not result.success:
            logger.warning(
                f"Compatibility assessment {user_a.id}/{user_b.id} failed: {result.error.kind.value}"
            )
            return Result.fail(result.error)

        score = score_assessment(result.value, user_a, user_b)
        logger.info(
            f"Compatibility {user_a.id}/{user_b.id}: overall={score.overall} tier={score.tier.value}"
        )
        return Result.ok(score)
