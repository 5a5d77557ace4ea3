"""
User Models

Pydantic models for users, their descriptive profile, matching
preferences and guardian.

Ownership:
- User owns 0..1 UserProfile and 0..1 Guardian (embedded)
- UserPreferences is stored separately, keyed by user_id
- Identity fields never change; is_verified / profile_completed are only
  flipped by the verification and profile-completion workflows
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class MaritalStatus(str, Enum):
    NEVER_MARRIED = "never_married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class ReligiousPractice(str, Enum):
    PRACTICING = "practicing"
    MODERATELY_PRACTICING = "moderately_practicing"
    NOT_PRACTICING = "not_practicing"


class EducationLevel(str, Enum):
    HIGH_SCHOOL = "high_school"
    BACHELOR = "bachelor"
    MASTER = "master"
    PHD = "phd"
    OTHER = "other"


class Diet(str, Enum):
    HALAL = "halal"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    NO_RESTRICTION = "no_restriction"


class SmokingStatus(str, Enum):
    NEVER = "never"
    OCCASIONALLY = "occasionally"
    REGULARLY = "regularly"
    TRYING_TO_QUIT = "trying_to_quit"


class DrinkingStatus(str, Enum):
    NEVER = "never"
    SOCIALLY = "socially"
    RARELY = "rarely"


class GuardianRelationship(str, Enum):
    FATHER = "father"
    MOTHER = "mother"
    BROTHER = "brother"
    UNCLE = "uncle"
    OTHER = "other"


# =============================================================================
# PROFILE
# =============================================================================

class Education(BaseModel):
    level: EducationLevel
    field: Optional[str] = None
    institution: Optional[str] = None


class Location(BaseModel):
    country: str
    city: str
    willing_to_relocate: bool = False


class Lifestyle(BaseModel):
    diet: Diet
    smoking: SmokingStatus
    drinking: DrinkingStatus


class UserProfile(BaseModel):
    """
    Descriptive attributes, created at profile-completion time.

    Any field may be absent until the user supplies it.
    """
    user_id: str
    bio: Optional[str] = None
    education: Optional[Education] = None
    occupation: Optional[str] = None
    location: Optional[Location] = None
    height: Optional[float] = Field(default=None, gt=0)
    weight: Optional[float] = Field(default=None, gt=0)
    marital_status: Optional[MaritalStatus] = None
    has_children: Optional[bool] = None
    wants_children: Optional[bool] = None
    religious_practice: Optional[ReligiousPractice] = None
    lifestyle: Optional[Lifestyle] = None
    photos: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)


# =============================================================================
# GUARDIAN
# =============================================================================

class GuardianPermissions(BaseModel):
    can_approve_matches: bool = True
    can_view_conversations: bool = False
    can_manage_profile: bool = False
    require_approval_for_contact: bool = False


class Guardian(BaseModel):
    """A designated third party whose approval may gate a user's matches."""
    id: str
    user_id: str
    name: str
    relationship: GuardianRelationship
    email: str
    phone: str
    is_verified: bool = False
    permissions: GuardianPermissions = Field(default_factory=GuardianPermissions)


# =============================================================================
# USER
# =============================================================================

class User(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    date_of_birth: date
    gender: Gender
    is_verified: bool = False
    profile_completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    profile: Optional[UserProfile] = None
    guardian: Optional[Guardian] = None

    def age_on(self, today: date) -> int:
        """Whole years between date_of_birth and today."""
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years

    @property
    def requires_guardian_approval(self) -> bool:
        return bool(
            self.guardian is not None
            and self.guardian.permissions.require_approval_for_contact
        )


# =============================================================================
# PREFERENCES
# =============================================================================

DEFAULT_MIN_AGE = 18
DEFAULT_MAX_AGE = 50
DEFAULT_MAX_DISTANCE = 100


class AgeRange(BaseModel):
    """Closed interval [min_age, max_age]."""
    min_age: int = Field(default=DEFAULT_MIN_AGE, ge=18, le=120)
    max_age: int = Field(default=DEFAULT_MAX_AGE, ge=18, le=120)

    @model_validator(mode="after")
    def _check_bounds(self) -> "AgeRange":
        if self.min_age > self.max_age:
            raise ValueError(
                f"min_age ({self.min_age}) must be <= max_age ({self.max_age})"
            )
        return self

    def __contains__(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age


class LocationPreference(BaseModel):
    country: str
    cities: List[str] = Field(default_factory=list)


class LifestylePreferences(BaseModel):
    smoking_acceptable: List[SmokingStatus] = Field(default_factory=list)
    drinking_acceptable: List[DrinkingStatus] = Field(default_factory=list)
    diet_acceptable: List[Diet] = Field(default_factory=list)


class UserPreferences(BaseModel):
    """
    Per-user filter criteria.

    An empty list means "no constraint on this dimension".
    Saved wholesale; never partially merged.
    """
    user_id: str
    age_range: AgeRange = Field(default_factory=AgeRange)
    max_distance: Optional[int] = Field(default=DEFAULT_MAX_DISTANCE, ge=0)
    marital_status_preferences: List[MaritalStatus] = Field(default_factory=list)
    religious_practice_preferences: List[ReligiousPractice] = Field(default_factory=list)
    education_preferences: List[EducationLevel] = Field(default_factory=list)
    location_preferences: List[LocationPreference] = Field(default_factory=list)
    lifestyle_preferences: LifestylePreferences = Field(default_factory=LifestylePreferences)

    @classmethod
    def defaults_for(cls, user_id: str) -> "UserPreferences":
        return cls(user_id=user_id)
