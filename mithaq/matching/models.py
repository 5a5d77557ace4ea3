"""
Matching Models

Pydantic models for swipes, matches and guardian approvals.

Invariants:
- Match.compatibility_score is a frozen snapshot taken at creation;
  score_hash fingerprints it
- guardian_approval_required / required_guardian_ids are computed once at
  creation and never recomputed
- status is the only Match field that changes after creation
- GuardianApproval records are appended, never overwritten; the latest
  record per guardian is authoritative
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from mithaq.compatibility.models import CompatibilityScore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class SwipeAction(str, Enum):
    PASS = "pass"
    LIKE = "like"
    SUPER_LIKE = "super_like"

    @property
    def is_positive(self) -> bool:
        return self in (SwipeAction.LIKE, SwipeAction.SUPER_LIKE)


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MORE_INFO = "needs_more_info"


class ReciprocityPolicy(str, Enum):
    """When does a like become an accepted match (no guardian gate)?"""
    MUTUAL = "mutual"          # only once the other side has liked too
    UNILATERAL = "unilateral"  # any like accepts immediately


class GuardianPolicy(str, Enum):
    """Whose guardians gate a match?"""
    INITIATOR_ONLY = "initiator_only"
    BOTH_PARTIES = "both_parties"


class SwipeRecord(BaseModel):
    actor_id: str
    target_id: str
    action: SwipeAction
    created_at: datetime = Field(default_factory=utcnow)


class GuardianApproval(BaseModel):
    id: str = Field(default_factory=new_id)
    guardian_id: str
    user_id: str = Field(description="The ward whose guardian decided")
    match_id: str
    status: ApprovalStatus
    comment: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        frozen = True


def latest_by_guardian(approvals: List[GuardianApproval]) -> Dict[str, GuardianApproval]:
    """Latest record per guardian; later entries win ties (append order)."""
    latest: Dict[str, GuardianApproval] = {}
    for approval in approvals:
        current = latest.get(approval.guardian_id)
        if current is None or approval.timestamp >= current.timestamp:
            latest[approval.guardian_id] = approval
    return latest


class Match(BaseModel):
    id: str = Field(default_factory=new_id)
    user1_id: str = Field(description="Initiating user")
    user2_id: str
    compatibility_score: CompatibilityScore
    score_hash: str
    status: MatchStatus = MatchStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    initiated_by: str
    guardian_approval_required: bool = False
    required_guardian_ids: List[str] = Field(default_factory=list)
    guardian_approvals: List[GuardianApproval] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @property
    def participants(self) -> tuple:
        return (self.user1_id, self.user2_id)

    def involves(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> str:
        return self.user2_id if user_id == self.user1_id else self.user1_id

    def latest_approvals(self) -> Dict[str, GuardianApproval]:
        return latest_by_guardian(self.guardian_approvals)

    def guardians_all_approved(self) -> bool:
        latest = self.latest_approvals()
        return all(
            gid in latest and latest[gid].status == ApprovalStatus.APPROVED
            for gid in self.required_guardian_ids
        )

    def guardian_rejected(self) -> bool:
        return any(
            a.status == ApprovalStatus.REJECTED
            for gid, a in self.latest_approvals().items()
            if gid in self.required_guardian_ids
        )


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"
