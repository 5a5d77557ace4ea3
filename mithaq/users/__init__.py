"""Mithaq user, profile, preference and guardian models."""

from .models import (
    User,
    UserProfile,
    UserPreferences,
    Guardian,
    GuardianPermissions,
    AgeRange,
    Gender,
)

__all__ = [
    "User",
    "UserProfile",
    "UserPreferences",
    "Guardian",
    "GuardianPermissions",
    "AgeRange",
    "Gender",
]
