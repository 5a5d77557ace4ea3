"""
Authentication Agent

Risk-assesses login attempts and validates registrations. Credentials
themselves are out of scope: passwords never reach the oracle.
"""

from datetime import date
from typing import Dict, Optional, Type

from pydantic import BaseModel

from mithaq.agents.base import CapabilityAgent, Handler
from mithaq.agents.models import (
    AgentType,
    AuthAssessment,
    AuthRequest,
    RegisterRequest,
    RegistrationAssessment,
    RiskLevel,
)

MINIMUM_AGE = 18


def _age(date_of_birth: date, today: date) -> int:
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


class AuthenticationAgent(CapabilityAgent):
    agent_type = AgentType.AUTHENTICATION
    temperature = 0.0

    def __init__(self, oracle, today: Optional[date] = None):
        super().__init__(oracle)
        self._today = today

    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        return {
            AuthRequest: self.authenticate,
            RegisterRequest: self.register,
        }

    async def authenticate(self, request: AuthRequest) -> AuthAssessment:
        instruction = (
            "Analyze this authentication request for security and validity.\n"
            f"Email: {request.email}\n\n"
            "Check email format validity, security risks and anomalies. "
            "Give a security_score from 0 to 100, a risk_level, any flags, "
            "and whether the attempt should be allowed."
        )
        assessment = await self._ask_structured(instruction, AuthAssessment, email=request.email)

        # High risk is never allowed through, whatever the oracle said
        if assessment.risk_level == RiskLevel.HIGH and assessment.allowed:
            assessment = assessment.model_copy(update={"allowed": False})
        return assessment

    async def register(self, request: RegisterRequest) -> RegistrationAssessment:
        instruction = (
            "Analyze this registration request for validity and potential issues.\n"
            f"Name: {request.name}\n"
            f"Email: {request.email}\n"
            f"Phone: {request.phone}\n"
            f"Date of birth: {request.date_of_birth.isoformat()}\n"
            f"Gender: {request.gender.value}\n\n"
            "Check data completeness, fraud indicators, age appropriateness "
            "and consistency. Give a validation_score from 0 to 100, any "
            "flags, and whether the registration is accepted."
        )
        assessment = await self._ask_structured(
            instruction, RegistrationAssessment, email=request.email
        )

        today = self._today or date.today()
        if _age(request.date_of_birth, today) < MINIMUM_AGE:
            flags = list(assessment.flags)
            if "underage" not in flags:
                flags.append("underage")
            assessment = assessment.model_copy(update={"accepted": False, "flags": flags})
        return assessment
