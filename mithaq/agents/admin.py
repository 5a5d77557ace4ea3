"""
Agent Endpoints

GET  /api/v1/agents/health
GET  /api/v1/agents                      - Registered agents
POST /api/v1/agents/moderation           - Moderate a chat message
POST /api/v1/agents/verification         - Verify an identity document (upload)
POST /api/v1/agents/personality          - Analyze questionnaire responses
POST /api/v1/agents/auth/login           - Risk-assess a login attempt
POST /api/v1/agents/auth/register        - Risk-assess a registration
"""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel, Field

from mithaq.agents.dispatcher import AgentDispatcher
from mithaq.agents.models import (
    AgentType,
    AuthAssessment,
    AuthRequest,
    DocumentType,
    ModeratedContent,
    PersonalityAnalysis,
    PersonalityResponse,
    RegisterRequest,
    RegistrationAssessment,
    VerificationResponse,
)
from mithaq.agents.verification import MAX_DOCUMENT_BYTES
from mithaq.shared.http import result_or_raise

router = APIRouter(
    prefix="/api/v1/agents",
    tags=["agents"],
)


def get_dispatcher(request: Request) -> AgentDispatcher:
    return request.app.state.dispatcher


class ModerationRequest(BaseModel):
    content: str = Field(max_length=10000)


class PersonalityRequest(BaseModel):
    user_id: str
    responses: List[PersonalityResponse]


@router.get("/health")
async def agents_health(request: Request, dispatcher: AgentDispatcher = Depends(get_dispatcher)):
    return {
        "status": "ok",
        "module": "agents",
        "anthropic_api": getattr(request.app.state.oracle, "is_configured", True),
        "agents": len(dispatcher.registry),
        "is_processing": dispatcher.is_processing,
        "current_operation": dispatcher.current_operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("")
async def list_agents(dispatcher: AgentDispatcher = Depends(get_dispatcher)):
    return {"agents": dispatcher.list_agents()}


@router.post("/moderation", response_model=ModeratedContent)
async def moderate(request: ModerationRequest, dispatcher: AgentDispatcher = Depends(get_dispatcher)):
    return result_or_raise(await dispatcher.moderate_message(request.content))


@router.post("/verification", response_model=VerificationResponse)
async def verify(
    user_id: str = Form(...),
    document_type: DocumentType = Form(...),
    file: UploadFile = File(...),
    dispatcher: AgentDispatcher = Depends(get_dispatcher),
):
    """
    Verify an identity document.

    Accepts any image/PDF upload up to the agent's size limit.
    """
    content = await file.read()
    if len(content) > MAX_DOCUMENT_BYTES:
        raise HTTPException(400, f"File too large. Max size: {MAX_DOCUMENT_BYTES // 1024 // 1024}MB")
    return result_or_raise(await dispatcher.verify_identity(
        user_id,
        content,
        document_type,
        {"filename": file.filename or "", "content_type": file.content_type or ""},
    ))


@router.post("/personality", response_model=PersonalityAnalysis)
async def analyze_personality(
    request: PersonalityRequest,
    dispatcher: AgentDispatcher = Depends(get_dispatcher),
):
    return result_or_raise(await dispatcher.analyze_personality(request.user_id, request.responses))


@router.post("/auth/login", response_model=AuthAssessment)
async def assess_login(request: AuthRequest, dispatcher: AgentDispatcher = Depends(get_dispatcher)):
    return result_or_raise(await dispatcher.execute(AgentType.AUTHENTICATION, request))


@router.post("/auth/register", response_model=RegistrationAssessment)
async def assess_registration(request: RegisterRequest, dispatcher: AgentDispatcher = Depends(get_dispatcher)):
    return result_or_raise(await dispatcher.execute(AgentType.AUTHENTICATION, request))
