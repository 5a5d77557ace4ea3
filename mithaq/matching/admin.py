"""
Matching Endpoints

GET  /api/v1/matching/health
PUT  /api/v1/matching/users/{user_id}                - Create or replace a user
GET  /api/v1/matching/users/{user_id}
GET  /api/v1/matching/users/{user_id}/preferences    - Defaults on first load
PUT  /api/v1/matching/users/{user_id}/preferences    - Wholesale overwrite
GET  /api/v1/matching/users/{user_id}/candidates
GET  /api/v1/matching/users/{user_id}/matches
GET  /api/v1/matching/compatibility/{a}/{b}
POST /api/v1/matching/swipes
GET  /api/v1/matching/matches/{match_id}
GET  /api/v1/matching/matches/{match_id}/approvals
POST /api/v1/matching/matches/{match_id}/approvals
POST /api/v1/matching/expire
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from mithaq.compatibility.models import CompatibilityScore
from mithaq.matching.models import ApprovalStatus, GuardianApproval, Match, MatchStatus, SwipeAction
from mithaq.matching.service import MatchingService
from mithaq.shared.http import result_or_raise
from mithaq.users.models import User, UserPreferences

router = APIRouter(
    prefix="/api/v1/matching",
    tags=["matching"],
)


def get_matching_service(request: Request) -> MatchingService:
    return request.app.state.matching_service


# Request / response models

class SwipeRequest(BaseModel):
    actor_id: str
    target_id: str
    action: SwipeAction

    class Config:
        extra = "forbid"


class SwipeResponse(BaseModel):
    success: bool = True
    action: SwipeAction
    match: Optional[Match] = None


class ApprovalRequest(BaseModel):
    guardian_id: str
    status: ApprovalStatus
    comment: Optional[str] = Field(default=None, max_length=2000)

    class Config:
        extra = "forbid"


class ExpireResponse(BaseModel):
    success: bool = True
    expired_count: int
    expired_ids: List[str]


class CompatibilityResponse(BaseModel):
    success: bool = True
    user_a_id: str
    user_b_id: str
    tier: str
    score: CompatibilityScore


# Endpoints

@router.get("/health")
async def matching_health():
    return {
        "status": "ok",
        "module": "matching",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.put("/users/{user_id}", response_model=User)
async def put_user(user_id: str, user: User, service: MatchingService = Depends(get_matching_service)):
    if user.id != user_id:
        raise HTTPException(400, "user id in path and body differ")
    return result_or_raise(await service.upsert_user(user))


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: str, service: MatchingService = Depends(get_matching_service)):
    return result_or_raise(await service.get_user(user_id))


@router.get("/users/{user_id}/preferences", response_model=UserPreferences)
async def get_preferences(user_id: str, service: MatchingService = Depends(get_matching_service)):
    return result_or_raise(await service.get_preferences(user_id))


@router.put("/users/{user_id}/preferences", response_model=UserPreferences)
async def put_preferences(
    user_id: str,
    preferences: UserPreferences,
    service: MatchingService = Depends(get_matching_service),
):
    if preferences.user_id != user_id:
        raise HTTPException(400, "user id in path and body differ")
    return result_or_raise(await service.save_preferences(preferences))


@router.get("/users/{user_id}/candidates", response_model=List[User])
async def list_candidates(user_id: str, service: MatchingService = Depends(get_matching_service)):
    return result_or_raise(await service.list_candidates(user_id))


@router.get("/users/{user_id}/matches", response_model=List[Match])
async def list_matches(
    user_id: str,
    status: Optional[MatchStatus] = None,
    service: MatchingService = Depends(get_matching_service),
):
    return result_or_raise(await service.list_matches(user_id, status))


@router.get("/compatibility/{user_a_id}/{user_b_id}", response_model=CompatibilityResponse)
async def assess_compatibility(
    user_a_id: str,
    user_b_id: str,
    service: MatchingService = Depends(get_matching_service),
):
    score = result_or_raise(await service.assess(user_a_id, user_b_id))
    return CompatibilityResponse(
        user_a_id=user_a_id,
        user_b_id=user_b_id,
        tier=score.tier.value,
        score=score,
    )


@router.post("/swipes", response_model=SwipeResponse)
async def swipe(request: SwipeRequest, service: MatchingService = Depends(get_matching_service)):
    match = result_or_raise(await service.swipe(request.actor_id, request.target_id, request.action))
    return SwipeResponse(action=request.action, match=match)


@router.get("/matches/{match_id}", response_model=Match)
async def get_match(match_id: str, service: MatchingService = Depends(get_matching_service)):
    return result_or_raise(await service.get_match(match_id))


@router.get("/matches/{match_id}/approvals", response_model=List[GuardianApproval])
async def list_approvals(match_id: str, service: MatchingService = Depends(get_matching_service)):
    return result_or_raise(await service.list_approvals(match_id))


@router.post("/matches/{match_id}/approvals", response_model=Match)
async def record_approval(
    match_id: str,
    request: ApprovalRequest,
    service: MatchingService = Depends(get_matching_service),
):
    return result_or_raise(await service.record_guardian_approval(
        request.guardian_id, match_id, request.status, request.comment
    ))


@router.post("/expire", response_model=ExpireResponse)
async def expire_stale(service: MatchingService = Depends(get_matching_service)):
    expired = result_or_raise(await service.expire_stale())
    return ExpireResponse(expired_count=len(expired), expired_ids=[m.id for m in expired])
