"""Swipes, matches and guardian approvals."""

from mithaq.matching.models import (
    ApprovalStatus,
    GuardianApproval,
    GuardianPolicy,
    Match,
    MatchStatus,
    ReciprocityPolicy,
    SwipeAction,
    SwipeRecord,
)

__all__ = [
    "ApprovalStatus",
    "GuardianApproval",
    "GuardianPolicy",
    "Match",
    "MatchStatus",
    "ReciprocityPolicy",
    "SwipeAction",
    "SwipeRecord",
]
