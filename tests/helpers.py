"""
Shared test helpers: a scripted oracle and model factories.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

from mithaq.agents.oracle import TextOracle
from mithaq.shared.result import AgentError, Result
from mithaq.users.models import (
    Diet,
    DrinkingStatus,
    Education,
    EducationLevel,
    Guardian,
    GuardianPermissions,
    GuardianRelationship,
    Gender,
    Lifestyle,
    Location,
    MaritalStatus,
    ReligiousPractice,
    SmokingStatus,
    User,
    UserProfile,
)


class ScriptedOracle(TextOracle):
    """
    Returns queued replies in order; `always` answers once the queue is empty.

    A reply may be a str, a dict (sent as JSON) or an AgentError (failure).
    """

    def __init__(self, *replies: Any, always: Any = None):
        self.replies: List[Any] = list(replies)
        self.always = always
        self.prompts: List[str] = []
        self.closed = False

    async def complete(self, prompt, model=None, max_tokens=None, temperature=None) -> Result[str]:
        self.prompts.append(prompt)
        if self.replies:
            reply = self.replies.pop(0)
        elif self.always is not None:
            reply = self.always
        else:
            return Result.fail(AgentError.network("no scripted reply"))

        if isinstance(reply, AgentError):
            return Result.fail(reply)
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return Result.ok(reply)

    async def aclose(self) -> None:
        self.closed = True


def birth_date_for(age: int) -> date:
    """A date of birth giving exactly `age` today."""
    return date(date.today().year - age, 1, 1)


def make_guardian(
    guardian_id: str,
    user_id: str,
    require_approval: bool = True,
) -> Guardian:
    return Guardian(
        id=guardian_id,
        user_id=user_id,
        name="Guardian " + guardian_id,
        relationship=GuardianRelationship.FATHER,
        email=f"{guardian_id}@example.com",
        phone="+966500000000",
        is_verified=True,
        permissions=GuardianPermissions(require_approval_for_contact=require_approval),
    )


def make_user(
    user_id: str,
    age: int = 28,
    gender: Gender = Gender.FEMALE,
    guardian_id: Optional[str] = None,
    with_profile: bool = True,
    **profile_fields: Any,
) -> User:
    profile = None
    if with_profile:
        defaults: Dict[str, Any] = {
            "bio": "Enjoys reading and travel",
            "education": Education(level=EducationLevel.BACHELOR, field="Engineering"),
            "occupation": "Engineer",
            "location": Location(country="Saudi Arabia", city="Riyadh"),
            "marital_status": MaritalStatus.NEVER_MARRIED,
            "religious_practice": ReligiousPractice.PRACTICING,
            "lifestyle": Lifestyle(
                diet=Diet.HALAL,
                smoking=SmokingStatus.NEVER,
                drinking=DrinkingStatus.NEVER,
            ),
            "interests": ["reading", "travel"],
        }
        defaults.update(profile_fields)
        profile = UserProfile(user_id=user_id, **defaults)

    return User(
        id=user_id,
        name="User " + user_id,
        email=f"{user_id}@example.com",
        phone="+966511111111",
        date_of_birth=birth_date_for(age),
        gender=gender,
        is_verified=True,
        profile_completed=with_profile,
        profile=profile,
        guardian=make_guardian(guardian_id, user_id) if guardian_id else None,
    )


def traits(**overrides: float) -> Dict[str, float]:
    data = {
        "openness": 70.0,
        "conscientiousness": 70.0,
        "extraversion": 50.0,
        "agreeableness": 80.0,
        "neuroticism": 30.0,
    }
    data.update(overrides)
    return data


def values(level: float = 80.0) -> Dict[str, float]:
    return {
        "family": level,
        "career": level,
        "religion": level,
        "education": level,
        "lifestyle": level,
        "finances": level,
        "personal_growth": level,
    }


def assessment_payload(**overrides: Any) -> Dict[str, Any]:
    """Oracle JSON for a CompatibilityAssessment."""
    data: Dict[str, Any] = {
        "traits_a": traits(),
        "traits_b": traits(),
        "values_alignment": values(),
        "lifestyle": 80.0,
        "religious": 90.0,
        "family_goals": 85.0,
        "shared_goals": 75.0,
        "growth_potential": 70.0,
        "red_flags": [],
        "insights": [
            {"category": "lifestyle", "score": 70, "description": "Similar routines", "importance": "moderate"},
            {"category": "religious", "score": 95, "description": "Shared practice", "importance": "critical"},
            {"category": "values", "score": 85, "description": "Aligned values", "importance": "critical"},
        ],
        "recommendations": ["Discuss family plans", "Meet with families present"],
    }
    data.update(overrides)
    return data
