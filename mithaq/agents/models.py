"""
Capability Agent Models

Typed requests and responses for every capability agent.

Each request class is routed by the agent that owns it (handler tables in
each agent, keyed by request class). Response models double as the schema
the oracle's JSON output is validated against: an oracle payload that
fails validation is an invalid_response, never a partial value.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from mithaq.compatibility.models import CompatibilityInsight
from mithaq.users.models import Gender, User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# AGENT TYPES
# =============================================================================

class AgentType(str, Enum):
    AUTHENTICATION = "authentication"
    VERIFICATION = "verification"
    COMMUNICATION = "communication"
    GUARDIAN = "guardian"
    SECURITY = "security"
    PERSONALITY = "personality"

    @property
    def description(self) -> str:
        """Human-readable label used for the current-operation signal."""
        return AGENT_LABELS[self]


AGENT_LABELS = {
    AgentType.AUTHENTICATION: "Authentication processing",
    AgentType.VERIFICATION: "Identity verification",
    AgentType.COMMUNICATION: "Communication monitoring",
    AgentType.GUARDIAN: "Guardian permission",
    AgentType.SECURITY: "Security monitoring",
    AgentType.PERSONALITY: "Personality analysis",
}


# =============================================================================
# AUTHENTICATION
# =============================================================================

class AuthRequest(BaseModel):
    email: str
    password: str = Field(repr=False)


class RegisterRequest(BaseModel):
    name: str
    email: str
    phone: str
    password: str = Field(repr=False)
    date_of_birth: date
    gender: Gender


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuthAssessment(BaseModel):
    """Oracle risk assessment of a login attempt."""
    email: str
    security_score: float = Field(ge=0.0, le=100.0)
    risk_level: RiskLevel
    flags: List[str] = Field(default_factory=list)
    allowed: bool


class RegistrationAssessment(BaseModel):
    """Oracle validation of a registration request."""
    email: str
    validation_score: float = Field(ge=0.0, le=100.0)
    flags: List[str] = Field(default_factory=list)
    accepted: bool


# =============================================================================
# VERIFICATION
# =============================================================================

class DocumentType(str, Enum):
    NATIONAL_ID = "national_id"
    PASSPORT = "passport"
    DRIVERS_LICENSE = "drivers_license"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REQUIRES_MORE_INFO = "requires_more_info"


class VerificationRequest(BaseModel):
    user_id: str
    document_type: DocumentType
    document_data: bytes = Field(repr=False)
    additional_info: Optional[Dict[str, str]] = None


class VerificationResponse(BaseModel):
    is_verified: bool
    verification_id: str
    status: VerificationStatus
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    message: Optional[str] = None

    @model_validator(mode="after")
    def _verified_means_approved(self) -> "VerificationResponse":
        if self.is_verified and self.status != VerificationStatus.APPROVED:
            raise ValueError("is_verified requires status 'approved'")
        return self


# =============================================================================
# COMMUNICATION
# =============================================================================

class ViolationType(str, Enum):
    INAPPROPRIATE_LANGUAGE = "inappropriate_language"
    HARASSMENT = "harassment"
    SPAM = "spam"
    PERSONAL_INFO = "personal_info"
    INAPPROPRIATE_CONTENT = "inappropriate_content"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MessageModerationRequest(BaseModel):
    content: str


class ContentViolation(BaseModel):
    type: ViolationType
    severity: Severity
    start: int = Field(ge=0, description="Start offset (inclusive) in the original message")
    end: int = Field(ge=0, description="End offset (exclusive)")

    @model_validator(mode="after")
    def _ordered_span(self) -> "ContentViolation":
        if self.end < self.start:
            raise ValueError("violation span end precedes start")
        return self

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end


class ModeratedContent(BaseModel):
    original_content: str
    filtered_content: str
    violations: List[ContentViolation] = Field(default_factory=list)
    auto_filtered: bool = False
    requires_review: bool = False


# =============================================================================
# PERSONALITY
# =============================================================================

class PersonalityResponse(BaseModel):
    question_id: str
    question: str
    answer: str
    response_time: float = Field(default=0.0, ge=0.0, description="Seconds")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


BIG_FIVE_TRAITS = ("openness", "conscientiousness", "extraversion", "agreeableness", "neuroticism")


class PersonalityTraits(BaseModel):
    """Big Five, each scored 0-100."""
    openness: float = Field(ge=0.0, le=100.0)
    conscientiousness: float = Field(ge=0.0, le=100.0)
    extraversion: float = Field(ge=0.0, le=100.0)
    agreeableness: float = Field(ge=0.0, le=100.0)
    neuroticism: float = Field(ge=0.0, le=100.0)
    additional_traits: Dict[str, float] = Field(default_factory=dict)

    def big_five(self) -> List[float]:
        return [getattr(self, name) for name in BIG_FIVE_TRAITS]


class CommunicationStyle(str, Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"
    ASSERTIVE = "assertive"
    PASSIVE = "passive"


class ConflictResolutionStyle(str, Enum):
    COLLABORATIVE = "collaborative"
    COMPETITIVE = "competitive"
    ACCOMMODATING = "accommodating"
    AVOIDING = "avoiding"
    COMPROMISING = "compromising"


class LoveLanguage(str, Enum):
    WORDS_OF_AFFIRMATION = "words_of_affirmation"
    QUALITY_TIME = "quality_time"
    RECEIVING_GIFTS = "receiving_gifts"
    ACTS_OF_SERVICE = "acts_of_service"
    PHYSICAL_TOUCH = "physical_touch"


class AttachmentStyle(str, Enum):
    SECURE = "secure"
    ANXIOUS = "anxious"
    AVOIDANT = "avoidant"
    DISORGANIZED = "disorganized"


class ValuesAlignment(BaseModel):
    """Alignment per life area, 0-100."""
    family: float = Field(ge=0.0, le=100.0)
    career: float = Field(ge=0.0, le=100.0)
    religion: float = Field(ge=0.0, le=100.0)
    education: float = Field(ge=0.0, le=100.0)
    lifestyle: float = Field(ge=0.0, le=100.0)
    finances: float = Field(ge=0.0, le=100.0)
    personal_growth: float = Field(ge=0.0, le=100.0)

    def areas(self) -> List[float]:
        return [
            self.family, self.career, self.religion, self.education,
            self.lifestyle, self.finances, self.personal_growth,
        ]


class CompatibilityFactors(BaseModel):
    communication_style: CommunicationStyle
    conflict_resolution: ConflictResolutionStyle
    love_language: LoveLanguage
    attachment_style: AttachmentStyle
    values_alignment: ValuesAlignment


class PersonalityAnalysisRequest(BaseModel):
    user_id: str
    responses: List[PersonalityResponse] = Field(min_length=1)


class PersonalityAnalysis(BaseModel):
    user_id: str
    analysis_id: str
    responses: List[PersonalityResponse]
    traits: PersonalityTraits
    compatibility_factors: CompatibilityFactors
    completed_at: datetime = Field(default_factory=utcnow)
    confidence: float = Field(ge=0.0, le=1.0)


class CompatibilityAssessmentRequest(BaseModel):
    user_a: User
    user_b: User


class RedFlag(BaseModel):
    description: str
    severity: Severity


class CompatibilityAssessment(BaseModel):
    """
    The oracle's structured view of a pair, before scoring.

    The scoring engine derives the nine CompatibilityScore dimensions from
    this deterministically.
    """
    traits_a: PersonalityTraits
    traits_b: PersonalityTraits
    values_alignment: ValuesAlignment
    lifestyle: float = Field(ge=0.0, le=100.0)
    religious: float = Field(ge=0.0, le=100.0)
    family_goals: float = Field(ge=0.0, le=100.0)
    shared_goals: float = Field(ge=0.0, le=100.0)
    growth_potential: float = Field(ge=0.0, le=100.0)
    red_flags: List[RedFlag] = Field(default_factory=list)
    insights: List[CompatibilityInsight] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
