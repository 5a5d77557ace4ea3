"""
Capability agent tests.

Each agent runs against a ScriptedOracle; assertions cover the deterministic
post-processing around the oracle reply.
"""

import asyncio
from datetime import date

import pytest

from helpers import ScriptedOracle, assessment_payload, make_user, traits, values
from mithaq.agents.auth import AuthenticationAgent
from mithaq.agents.communication import CommunicationAgent, mask_spans
from mithaq.agents.models import (
    AuthAssessment,
    AuthRequest,
    CompatibilityAssessment,
    CompatibilityAssessmentRequest,
    ContentViolation,
    DocumentType,
    MessageModerationRequest,
    PersonalityAnalysis,
    PersonalityAnalysisRequest,
    PersonalityResponse,
    RegisterRequest,
    Severity,
    VerificationRequest,
    ViolationType,
)
from mithaq.agents.parsing import extract_json
from mithaq.agents.personality import PersonalityAnalysisAgent, describe_user
from mithaq.agents.stubs import GuardianAgent, SecurityMonitoringAgent
from mithaq.agents.verification import MAX_DOCUMENT_BYTES, VerificationAgent
from mithaq.shared.result import AgentError, AgentException, ErrorKind
from mithaq.users.models import Gender


def run(coro):
    return asyncio.run(coro)


# ============================================================================
# Parsing
# ============================================================================

class TestExtractJson:

    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        text = 'Here you go:\n```json\n{"a": 2}\n```\nThanks'
        assert extract_json(text) == {"a": 2}

    def test_unlabelled_fence(self):
        assert extract_json('```\n{"a": 3}\n```') == {"a": 3}

    def test_object_inside_prose(self):
        assert extract_json('The result is {"a": 4} as requested.') == {"a": 4}

    def test_not_json(self):
        with pytest.raises(AgentException) as exc:
            extract_json("I cannot help with that")
        assert exc.value.error.kind == ErrorKind.INVALID_RESPONSE


# ============================================================================
# Dispatch within an agent
# ============================================================================

class TestHandlerTables:

    def test_unaccepted_request_is_invalid_response(self):
        agent = CommunicationAgent(ScriptedOracle())
        result = run(agent.process(AuthRequest(email="a@b.com", password="x")))
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_accepts_lists_request_classes(self):
        agent = PersonalityAnalysisAgent(ScriptedOracle())
        assert set(agent.accepts) == {PersonalityAnalysisRequest, CompatibilityAssessmentRequest}

    def test_oracle_error_passes_through(self):
        oracle = ScriptedOracle(AgentError(ErrorKind.RATE_LIMIT_EXCEEDED))
        agent = CommunicationAgent(oracle)
        result = run(agent.process(MessageModerationRequest(content="hello")))
        assert result.error.kind == ErrorKind.RATE_LIMIT_EXCEEDED

    def test_schema_mismatch_is_invalid_response(self):
        oracle = ScriptedOracle({"violations": [{"type": "unknown", "severity": "low", "start": 0, "end": 1}]})
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content="hello")))
        assert result.error.kind == ErrorKind.INVALID_RESPONSE


# ============================================================================
# Placeholder agents
# ============================================================================

class TestUnavailableAgents:

    @pytest.mark.parametrize("agent_class", [GuardianAgent, SecurityMonitoringAgent])
    def test_always_insufficient_data(self, agent_class):
        oracle = ScriptedOracle(always="{}")
        agent = agent_class(oracle)
        for request in (None, MessageModerationRequest(content="x"), "anything"):
            result = run(agent.process(request))
            assert result.error.kind == ErrorKind.INSUFFICIENT_DATA
        assert oracle.prompts == []


# ============================================================================
# Authentication
# ============================================================================

class TestAuthenticationAgent:

    def test_login_assessment(self):
        oracle = ScriptedOracle({
            "email": "ignored@x.com",
            "security_score": 92,
            "risk_level": "low",
            "flags": [],
            "allowed": True,
        })
        result = run(AuthenticationAgent(oracle).process(AuthRequest(email="a@b.com", password="secret")))
        assert isinstance(result.value, AuthAssessment)
        assert result.value.email == "a@b.com"
        assert result.value.allowed

    def test_password_never_reaches_oracle(self):
        oracle = ScriptedOracle({"security_score": 50, "risk_level": "medium", "allowed": True})
        run(AuthenticationAgent(oracle).process(AuthRequest(email="a@b.com", password="hunter2")))
        assert "hunter2" not in oracle.prompts[0]

    def test_high_risk_is_denied(self):
        oracle = ScriptedOracle({"security_score": 20, "risk_level": "high", "allowed": True})
        result = run(AuthenticationAgent(oracle).process(AuthRequest(email="a@b.com", password="x")))
        assert result.value.allowed is False

    def test_underage_registration_rejected(self):
        oracle = ScriptedOracle({"validation_score": 95, "flags": [], "accepted": True})
        agent = AuthenticationAgent(oracle, today=date(2026, 6, 1))
        request = RegisterRequest(
            name="Young",
            email="y@example.com",
            phone="+1555",
            password="x",
            date_of_birth=date(2010, 1, 1),
            gender=Gender.MALE,
        )
        result = run(agent.process(request))
        assert result.value.accepted is False
        assert "underage" in result.value.flags


# ============================================================================
# Verification
# ============================================================================

class TestVerificationAgent:

    def make_request(self, data: bytes) -> VerificationRequest:
        return VerificationRequest(user_id="u1", document_type=DocumentType.PASSPORT, document_data=data)

    def test_approved_document(self):
        oracle = ScriptedOracle({"is_verified": True, "status": "approved", "confidence": 0.93})
        result = run(VerificationAgent(oracle).process(self.make_request(b"%PDF-1.7 passport")))
        assert result.value.is_verified
        assert result.value.verification_id

    def test_document_bytes_not_in_prompt(self):
        oracle = ScriptedOracle({"is_verified": False, "status": "pending"})
        run(VerificationAgent(oracle).process(self.make_request(b"SECRET-PASSPORT-BYTES")))
        assert "SECRET-PASSPORT-BYTES" not in oracle.prompts[0]
        assert "sha256:" in oracle.prompts[0]

    def test_verified_without_approval_is_invalid(self):
        oracle = ScriptedOracle({"is_verified": True, "status": "pending"})
        result = run(VerificationAgent(oracle).process(self.make_request(b"doc")))
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_empty_document(self):
        oracle = ScriptedOracle()
        result = run(VerificationAgent(oracle).process(self.make_request(b"")))
        assert result.error.kind == ErrorKind.INSUFFICIENT_DATA
        assert oracle.prompts == []

    def test_oversized_document(self):
        result = run(VerificationAgent(ScriptedOracle()).process(
            self.make_request(b"x" * (MAX_DOCUMENT_BYTES + 1))
        ))
        assert result.error.kind == ErrorKind.PROCESSING_ERROR


# ============================================================================
# Communication
# ============================================================================

class TestCommunicationAgent:

    def test_clean_message(self):
        oracle = ScriptedOracle({"violations": []})
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content="Salam, how are you?")))
        assert result.value.filtered_content == "Salam, how are you?"
        assert not result.value.auto_filtered
        assert not result.value.requires_review

    def test_masks_violation_span(self):
        content = "call me at 0555123456 ok"
        oracle = ScriptedOracle({"violations": [
            {"type": "personal_info", "severity": "medium", "start": 11, "end": 21},
        ]})
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content=content)))
        assert result.value.filtered_content == "call me at ********** ok"
        assert len(result.value.filtered_content) == len(content)
        assert result.value.auto_filtered
        assert not result.value.requires_review

    def test_high_severity_requires_review(self):
        oracle = ScriptedOracle({"violations": [
            {"type": "harassment", "severity": "high", "start": 0, "end": 3},
        ]})
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content="bad words")))
        assert result.value.requires_review

    def test_span_outside_message(self):
        oracle = ScriptedOracle({"violations": [
            {"type": "spam", "severity": "low", "start": 2, "end": 50},
        ]})
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content="short")))
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_empty_message_skips_oracle(self):
        oracle = ScriptedOracle()
        result = run(CommunicationAgent(oracle).process(MessageModerationRequest(content="")))
        assert result.success
        assert oracle.prompts == []

    def test_mask_keeps_whitespace(self):
        violation = ContentViolation(type=ViolationType.SPAM, severity=Severity.LOW, start=0, end=7)
        assert mask_spans("buy now!", [violation]) == "*** ***!"


# ============================================================================
# Personality
# ============================================================================

class TestPersonalityAgent:

    def findings(self) -> dict:
        return {
            "traits": traits(),
            "compatibility_factors": {
                "communication_style": "direct",
                "conflict_resolution": "collaborative",
                "love_language": "quality_time",
                "attachment_style": "secure",
                "values_alignment": values(),
            },
            "confidence": 0.8,
        }

    def test_analysis(self):
        oracle = ScriptedOracle(self.findings())
        request = PersonalityAnalysisRequest(
            user_id="u1",
            responses=[PersonalityResponse(question_id="q1", question="Weekend?", answer="Family time")],
        )
        result = run(PersonalityAnalysisAgent(oracle).process(request))
        assert isinstance(result.value, PersonalityAnalysis)
        assert result.value.user_id == "u1"
        assert result.value.traits.openness == 70.0
        assert "Family time" in oracle.prompts[0]

    def test_compatibility_assessment(self):
        oracle = ScriptedOracle(assessment_payload())
        request = CompatibilityAssessmentRequest(user_a=make_user("a"), user_b=make_user("b"))
        result = run(PersonalityAnalysisAgent(oracle).process(request))
        assert isinstance(result.value, CompatibilityAssessment)

    def test_out_of_range_trait_rejected(self):
        oracle = ScriptedOracle(assessment_payload(traits_a=traits(openness=140)))
        request = CompatibilityAssessmentRequest(user_a=make_user("a"), user_b=make_user("b"))
        result = run(PersonalityAnalysisAgent(oracle).process(request))
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_describe_user_omits_contact_details(self):
        user = make_user("a")
        text = describe_user(user)
        assert user.email not in text
        assert user.phone not in text
        assert "Religious practice: practicing" in text
