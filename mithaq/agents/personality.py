"""
Personality Analysis Agent

Two tasks:
- PersonalityAnalysisRequest    -> PersonalityAnalysis (Big Five + factors)
- CompatibilityAssessmentRequest -> CompatibilityAssessment (pair view that
  the scoring engine turns into a CompatibilityScore)

Only descriptive attributes reach the oracle; contact details never do.
"""

import uuid
from datetime import date
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, Field

from mithaq.agents.base import CapabilityAgent, Handler
from mithaq.agents.models import (
    AgentType,
    CompatibilityAssessment,
    CompatibilityAssessmentRequest,
    CompatibilityFactors,
    PersonalityAnalysis,
    PersonalityAnalysisRequest,
    PersonalityTraits,
)
from mithaq.users.models import User


class PersonalityFindings(BaseModel):
    """Oracle reply shape for a personality analysis."""
    traits: PersonalityTraits
    compatibility_factors: CompatibilityFactors
    confidence: float = Field(ge=0.0, le=1.0)


def describe_user(user: User, today: Optional[date] = None) -> str:
    """Plain-text profile summary used in prompts."""
    today = today or date.today()
    lines: List[str] = [
        f"Name: {user.name}",
        f"Gender: {user.gender.value}",
        f"Age: {user.age_on(today)}",
    ]
    profile = user.profile
    if profile is None:
        lines.append("Profile: not completed")
        return "\n".join(lines)

    if profile.marital_status:
        lines.append(f"Marital status: {profile.marital_status.value}")
    if profile.religious_practice:
        lines.append(f"Religious practice: {profile.religious_practice.value}")
    if profile.education:
        lines.append(f"Education: {profile.education.level.value}")
    if profile.occupation:
        lines.append(f"Occupation: {profile.occupation}")
    if profile.location:
        lines.append(
            f"Location: {profile.location.city}, {profile.location.country}"
            f" (willing to relocate: {'yes' if profile.location.willing_to_relocate else 'no'})"
        )
    if profile.lifestyle:
        lines.append(
            f"Lifestyle: diet {profile.lifestyle.diet.value}, "
            f"smoking {profile.lifestyle.smoking.value}, "
            f"drinking {profile.lifestyle.drinking.value}"
        )
    if profile.has_children is not None:
        lines.append(f"Has children: {'yes' if profile.has_children else 'no'}")
    if profile.wants_children is not None:
        lines.append(f"Wants children: {'yes' if profile.wants_children else 'no'}")
    if profile.interests:
        lines.append(f"Interests: {', '.join(profile.interests)}")
    if profile.bio:
        lines.append(f"Bio: {profile.bio}")
    return "\n".join(lines)


class PersonalityAnalysisAgent(CapabilityAgent):
    agent_type = AgentType.PERSONALITY
    max_tokens = 2000
    temperature = 0.2

    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        return {
            PersonalityAnalysisRequest: self.analyze_personality,
            CompatibilityAssessmentRequest: self.assess_compatibility,
        }

    async def analyze_personality(self, request: PersonalityAnalysisRequest) -> PersonalityAnalysis:
        responses_text = "\n".join(f"{r.question}: {r.answer}" for r in request.responses)
        instruction = (
            "Analyze these personality assessment responses:\n"
            f"{responses_text}\n\n"
            "Provide Big Five personality traits (scores 0-100), communication "
            "style, conflict resolution approach, love language, attachment "
            "style, values alignment (0-100 per area) and an overall "
            "confidence between 0 and 1."
        )
        findings = await self._ask_structured(instruction, PersonalityFindings)
        return PersonalityAnalysis(
            user_id=request.user_id,
            analysis_id=str(uuid.uuid4()),
            responses=request.responses,
            traits=findings.traits,
            compatibility_factors=findings.compatibility_factors,
            confidence=findings.confidence,
        )

    async def assess_compatibility(self, request: CompatibilityAssessmentRequest) -> CompatibilityAssessment:
        instruction = (
            "Assess compatibility between two people considering marriage.\n\n"
            f"Person A:\n{describe_user(request.user_a)}\n\n"
            f"Person B:\n{describe_user(request.user_b)}\n\n"
            "Estimate each person's Big Five traits (0-100), values alignment "
            "across family, career, religion, education, lifestyle, finances "
            "and personal growth (0-100), lifestyle and religious-practice "
            "compatibility, family goals, shared goals and growth potential "
            "(0-100). List red flags with a severity, category insights with "
            "an importance, and short actionable recommendations."
        )
        return await self._ask_structured(instruction, CompatibilityAssessment)
