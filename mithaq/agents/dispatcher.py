"""
Mithaq Agent Dispatcher
=======================
Routes typed requests to capability agents.

The registry maps AgentType -> agent instance. It is built once by the
application entry point (build_agent_registry) and injected; after
construction it is read-only and freely shared.

Usage:
    oracle = OracleClient()
    dispatcher = AgentDispatcher(build_agent_registry(oracle))

    result = await dispatcher.assess_compatibility(user_a, user_b)
    if result.success:
        assessment = result.value

Observability: is_processing / current_operation describe the most recent
call in flight. They are advisory only: concurrent execute() calls are
legal and independent, and nothing may use these fields for exclusion.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Type

from mithaq.agents.auth import AuthenticationAgent
from mithaq.agents.base import CapabilityAgent
from mithaq.agents.communication import CommunicationAgent
from mithaq.agents.models import (
    AgentType,
    CompatibilityAssessment,
    CompatibilityAssessmentRequest,
    DocumentType,
    MessageModerationRequest,
    ModeratedContent,
    PersonalityAnalysis,
    PersonalityAnalysisRequest,
    PersonalityResponse,
    VerificationRequest,
    VerificationResponse,
)
from mithaq.agents.oracle import TextOracle
from mithaq.agents.personality import PersonalityAnalysisAgent
from mithaq.agents.stubs import GuardianAgent, SecurityMonitoringAgent
from mithaq.agents.verification import VerificationAgent
from mithaq.shared.result import AgentError, Result
from mithaq.users.models import User

logger = logging.getLogger(__name__)


_AGENTS: Dict[AgentType, Type[CapabilityAgent]] = {
    AgentType.AUTHENTICATION: AuthenticationAgent,
    AgentType.VERIFICATION: VerificationAgent,
    AgentType.COMMUNICATION: CommunicationAgent,
    AgentType.GUARDIAN: GuardianAgent,
    AgentType.SECURITY: SecurityMonitoringAgent,
    AgentType.PERSONALITY: PersonalityAnalysisAgent,
}


def build_agent_registry(oracle: TextOracle) -> Mapping[AgentType, CapabilityAgent]:
    """Instantiate every known agent around one shared oracle."""
    return MappingProxyType({
        agent_type: agent_class(oracle)
        for agent_type, agent_class in _AGENTS.items()
    })


class AgentDispatcher:
    """Single entry point over the agent registry."""

    def __init__(self, registry: Mapping[AgentType, CapabilityAgent]):
        self._registry = MappingProxyType(dict(registry))
        self._in_flight = 0
        self.current_operation: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self._in_flight > 0

    @property
    def registry(self) -> Mapping[AgentType, CapabilityAgent]:
        return self._registry

    async def execute(self, agent_type: AgentType, request: Any) -> Result:
        agent = self._registry.get(agent_type)
        if agent is None:
            return Result.fail(AgentError.agent_not_found())

        self._in_flight += 1
        self.current_operation = agent_type.description
        try:
            return await agent.process(request)
        except Exception as e:
            # Agents report through Result; anything escaping is a defect
            logger.exception(f"Unhandled error in {agent_type.value} agent")
            return Result.fail(AgentError.processing(f"{type(e).__name__}: {e}"))
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.current_operation = None

    def list_agents(self) -> List[Dict[str, Any]]:
        """Registered agents and the request types they accept."""
        return [
            {
                "agent_type": agent_type.value,
                "label": agent_type.description,
                "accepts": [cls.__name__ for cls in agent.accepts],
            }
            for agent_type, agent in self._registry.items()
        ]

    # =========================================================
    # TYPED CONVENIENCE WRAPPERS
    # =========================================================

    @staticmethod
    def _expect(result: Result, expected: type) -> Result:
        if result.success and not isinstance(result.value, expected):
            return Result.fail(AgentError.invalid_response(
                f"expected {expected.__name__}, got {type(result.value).__name__}"
            ))
        return result

    async def analyze_personality(
        self,
        user_id: str,
        responses: List[PersonalityResponse],
    ) -> Result[PersonalityAnalysis]:
        if not responses:
            return Result.fail(AgentError.insufficient_data())
        result = await self.execute(
            AgentType.PERSONALITY,
            PersonalityAnalysisRequest(user_id=user_id, responses=responses),
        )
        return self._expect(result, PersonalityAnalysis)

    async def assess_compatibility(self, user_a: User, user_b: User) -> Result[CompatibilityAssessment]:
        result = await self.execute(
            AgentType.PERSONALITY,
            CompatibilityAssessmentRequest(user_a=user_a, user_b=user_b),
        )
        return self._expect(result, CompatibilityAssessment)

    async def moderate_message(self, content: str) -> Result[ModeratedContent]:
        result = await self.execute(
            AgentType.COMMUNICATION,
            MessageModerationRequest(content=content),
        )
        return self._expect(result, ModeratedContent)

    async def verify_identity(
        self,
        user_id: str,
        document_data: bytes,
        document_type: DocumentType,
        additional_info: Optional[Dict[str, str]] = None,
    ) -> Result[VerificationResponse]:
        result = await self.execute(
            AgentType.VERIFICATION,
            VerificationRequest(
                user_id=user_id,
                document_type=document_type,
                document_data=document_data,
                additional_info=additional_info,
            ),
        )
        return self._expect(result, VerificationResponse)
