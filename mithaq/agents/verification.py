"""
Verification Agent

Identity-document verification. The document payload itself is never sent
to the oracle; it is described by type, size and fingerprint.
"""

import uuid
from typing import Dict, Type

from pydantic import BaseModel

from mithaq.agents.base import CapabilityAgent, Handler
from mithaq.agents.models import (
    AgentType,
    VerificationRequest,
    VerificationResponse,
)
from mithaq.shared.hashing import bytes_fingerprint
from mithaq.shared.result import AgentError, AgentException

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024  # 10MB


class VerificationAgent(CapabilityAgent):
    agent_type = AgentType.VERIFICATION
    temperature = 0.0

    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        return {VerificationRequest: self.verify_document}

    async def verify_document(self, request: VerificationRequest) -> VerificationResponse:
        if not request.document_data:
            raise AgentException(AgentError.insufficient_data())
        if len(request.document_data) > MAX_DOCUMENT_BYTES:
            raise AgentException(AgentError.processing("document exceeds 10MB"))

        details = "\n".join(
            f"{key}: {value}" for key, value in sorted((request.additional_info or {}).items())
        )
        instruction = (
            "Analyze this identity verification request.\n"
            f"Document type: {request.document_type.value}\n"
            f"User ID: {request.user_id}\n"
            f"Document size: {len(request.document_data)} bytes\n"
            f"Document fingerprint: {bytes_fingerprint(request.document_data)}\n"
            f"{details}\n\n"
            "Assess document authenticity, image quality, data extraction "
            "accuracy and fraud indicators. Give a confidence between 0 and 1 "
            "and a verification status."
        )
        return await self._ask_structured(
            instruction,
            VerificationResponse,
            verification_id=str(uuid.uuid4()),
        )
