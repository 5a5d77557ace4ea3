"""
Communication Agent

Message moderation. The oracle only locates violations; masking and the
review decision are computed here so they are deterministic.
"""

from typing import Dict, List, Type

from pydantic import BaseModel, Field

from mithaq.agents.base import CapabilityAgent, Handler
from mithaq.agents.models import (
    AgentType,
    ContentViolation,
    MessageModerationRequest,
    ModeratedContent,
    Severity,
)
from mithaq.shared.result import AgentError, AgentException

MASK_CHAR = "*"
REVIEW_SEVERITIES = {Severity.HIGH, Severity.CRITICAL}


class ModerationFindings(BaseModel):
    """Oracle reply shape."""
    violations: List[ContentViolation] = Field(default_factory=list)


def mask_spans(content: str, violations: List[ContentViolation]) -> str:
    """Replace every violating character with MASK_CHAR, keeping length."""
    chars = list(content)
    for violation in violations:
        for i in range(violation.start, violation.end):
            if not chars[i].isspace():
                chars[i] = MASK_CHAR
    return "".join(chars)


class CommunicationAgent(CapabilityAgent):
    agent_type = AgentType.COMMUNICATION
    temperature = 0.0

    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        return {MessageModerationRequest: self.moderate_message}

    async def moderate_message(self, request: MessageModerationRequest) -> ModeratedContent:
        if not request.content.strip():
            return ModeratedContent(
                original_content=request.content,
                filtered_content=request.content,
            )

        instruction = (
            "Analyze this message for content moderation.\n"
            f"Message: {request.content!r}\n\n"
            "Check for inappropriate language, harassment, personal "
            "information sharing, spam or promotional content, and "
            "cultural/religious sensitivity. Report each violation with its "
            "type, severity and the character offsets [start, end) of the "
            "offending text in the message."
        )
        findings = await self._ask_structured(instruction, ModerationFindings)

        length = len(request.content)
        for violation in findings.violations:
            if violation.end > length:
                raise AgentException(AgentError.invalid_response("violation span outside message"))

        violations = sorted(findings.violations, key=lambda v: (v.start, v.end))
        return ModeratedContent(
            original_content=request.content,
            filtered_content=mask_spans(request.content, violations),
            violations=violations,
            auto_filtered=bool(violations),
            requires_review=any(v.severity in REVIEW_SEVERITIES for v in violations),
        )
