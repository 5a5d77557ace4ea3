"""
Mithaq Result Envelope & Error Taxonomy
=======================================
Every cross-component call returns a Result: either a typed value or one
AgentError drawn from the closed ErrorKind set.

Inside a component, failures travel as AgentException (an exception that
carries the AgentError). Public boundaries catch it and hand back
Result.fail(error), so no untyped failure crosses a component boundary.

Usage:
    from mithaq.shared.result import Result, AgentError, ErrorKind

    result = await dispatcher.execute(AgentType.PERSONALITY, request)
    if not result.success:
        log(result.error.kind)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of failure kinds shared by every component."""
    AGENT_NOT_FOUND = "agent_not_found"
    INVALID_RESPONSE = "invalid_response"
    PROCESSING_ERROR = "processing_error"
    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ERROR = "authentication_error"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    CONTENT_POLICY_VIOLATION = "content_policy_violation"
    INSUFFICIENT_DATA = "insufficient_data"


# Stable default messages. The kind value is the localization key.
ERROR_MESSAGES = {
    ErrorKind.AGENT_NOT_FOUND: "Agent not found",
    ErrorKind.INVALID_RESPONSE: "Invalid response",
    ErrorKind.PROCESSING_ERROR: "Processing error",
    ErrorKind.NETWORK_ERROR: "Network error",
    ErrorKind.AUTHENTICATION_ERROR: "Authentication error",
    ErrorKind.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    ErrorKind.CONTENT_POLICY_VIOLATION: "Content policy violation",
    ErrorKind.INSUFFICIENT_DATA: "Insufficient data",
}

# HTTP status used by the routers when a Result fails
HTTP_STATUS = {
    ErrorKind.AGENT_NOT_FOUND: 404,
    ErrorKind.INVALID_RESPONSE: 502,
    ErrorKind.PROCESSING_ERROR: 422,
    ErrorKind.NETWORK_ERROR: 503,
    ErrorKind.AUTHENTICATION_ERROR: 502,
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.CONTENT_POLICY_VIOLATION: 422,
    ErrorKind.INSUFFICIENT_DATA: 501,
}


@dataclass(frozen=True)
class AgentError:
    """A taxonomy error. Only PROCESSING_ERROR is expected to carry detail."""
    kind: ErrorKind
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        base = ERROR_MESSAGES[self.kind]
        if self.detail:
            return f"{base}: {self.detail}"
        return base

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "detail": self.detail,
            "message": self.message,
        }

    @classmethod
    def agent_not_found(cls) -> "AgentError":
        return cls(ErrorKind.AGENT_NOT_FOUND)

    @classmethod
    def invalid_response(cls, detail: Optional[str] = None) -> "AgentError":
        return cls(ErrorKind.INVALID_RESPONSE, detail)

    @classmethod
    def processing(cls, detail: str) -> "AgentError":
        return cls(ErrorKind.PROCESSING_ERROR, detail)

    @classmethod
    def network(cls, detail: Optional[str] = None) -> "AgentError":
        return cls(ErrorKind.NETWORK_ERROR, detail)

    @classmethod
    def insufficient_data(cls) -> "AgentError":
        return cls(ErrorKind.INSUFFICIENT_DATA)


class AgentException(Exception):
    """Carries an AgentError through a component until a boundary catches it."""

    def __init__(self, error: AgentError):
        self.error = error
        super().__init__(f"{error.kind.value}: {error.message}")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Discriminated success/failure envelope.

    Exactly one of value/error is meaningful: error is None on success.
    A successful Result may still carry value=None (e.g. a pass swipe).
    """
    value: Optional[T] = None
    error: Optional[AgentError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: AgentError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error as AgentException."""
        if self.error is not None:
            raise AgentException(self.error)
        return self.value
