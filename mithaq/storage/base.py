"""
Persistent Store Interface

Async key-value style store for users, preferences, matches, swipes and
guardian approvals.

Atomicity:
- save_swipe(swipe, match) commits the swipe record and the created or
  updated Match together, or neither
- save_approval(approval, match) appends the approval and writes the
  re-evaluated Match together, or neither

Failures:
- describe_failure maps backend exceptions onto the error taxonomy
  (lost connection -> network_error, anything else -> processing_error)
- guarded() applies it at every public matching boundary
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, List, Optional, Tuple, TypeVar

from mithaq.matching.models import GuardianApproval, Match, MatchStatus, SwipeRecord
from mithaq.shared.result import AgentError, AgentException, Result
from mithaq.users.models import User, UserPreferences

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MatchStore(ABC):
    """Storage backend for the matching service."""

    # Backend exception types meaning the connection itself was lost
    connection_errors: Tuple[type, ...] = ()

    # ===== USERS =====

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def put_user(self, user: User) -> None:
        pass

    @abstractmethod
    async def list_users(self) -> List[User]:
        """All users in insertion order."""
        pass

    # ===== PREFERENCES =====

    @abstractmethod
    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        pass

    @abstractmethod
    async def put_preferences(self, preferences: UserPreferences) -> None:
        """Replace the stored preferences wholesale."""
        pass

    # ===== MATCHES =====

    @abstractmethod
    async def get_match(self, match_id: str) -> Optional[Match]:
        pass

    @abstractmethod
    async def put_match(self, match: Match) -> None:
        pass

    @abstractmethod
    async def find_match_for_pair(self, user_a: str, user_b: str) -> Optional[Match]:
        """The Match between two users, in either direction."""
        pass

    @abstractmethod
    async def list_matches(
        self,
        user_id: Optional[str] = None,
        status: Optional[MatchStatus] = None,
    ) -> List[Match]:
        pass

    # ===== SWIPES =====

    @abstractmethod
    async def list_swipes(self, actor_id: str) -> List[SwipeRecord]:
        pass

    @abstractmethod
    async def get_swipe(self, actor_id: str, target_id: str) -> Optional[SwipeRecord]:
        """Latest swipe by actor on target."""
        pass

    @abstractmethod
    async def save_swipe(self, swipe: SwipeRecord, match: Optional[Match] = None) -> None:
        pass

    # ===== GUARDIAN APPROVALS =====

    @abstractmethod
    async def save_approval(self, approval: GuardianApproval, match: Match) -> None:
        pass

    @abstractmethod
    async def list_approvals(self, match_id: str) -> List[GuardianApproval]:
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None

    def describe_failure(self, exc: Exception) -> AgentError:
        lost = (ConnectionError, TimeoutError, asyncio.TimeoutError) + self.connection_errors
        if isinstance(exc, lost):
            return AgentError.network(f"store unavailable: {exc}")
        return AgentError.processing(f"store failure: {type(exc).__name__}: {exc}")


async def guarded(store: MatchStore, operation: Awaitable[T]) -> Result[T]:
    """
    Await operation and wrap its outcome in a Result.

    AgentException carries its own error; any other exception is a backend
    failure described by the store. Cancellation propagates.
    """
    try:
        return Result.ok(await operation)
    except AgentException as e:
        return Result.fail(e.error)
    except Exception as e:
        logger.error(f"Store operation failed: {type(e).__name__}: {e}")
        return Result.fail(store.describe_failure(e))
