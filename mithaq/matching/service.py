"""
Matching Service

Caller-facing API over the store, the compatibility engine and the match
lifecycle. Every method returns a Result; lookups of unknown users or
matches fail with processing_error, and store failures are mapped by
the store (network_error or processing_error).

Usage:
    service = MatchingService(store, dispatcher)
    candidates = (await service.list_candidates("u1")).unwrap()
    result = await service.swipe("u1", candidates[0].id, SwipeAction.LIKE)
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from mithaq.agents.dispatcher import AgentDispatcher
from mithaq.compatibility.engine import CompatibilityEngine
from mithaq.compatibility.models import CompatibilityScore
from mithaq.matching.filter import filter_candidates
from mithaq.matching.lifecycle import MatchLifecycle
from mithaq.matching.models import ApprovalStatus, GuardianApproval, Match, MatchStatus, SwipeAction
from mithaq.shared.result import AgentError, AgentException, Result
from mithaq.storage.base import MatchStore, guarded
from mithaq.users.models import User, UserPreferences

logger = logging.getLogger(__name__)


class MatchingService:

    def __init__(
        self,
        store: MatchStore,
        dispatcher: AgentDispatcher,
        lifecycle: Optional[MatchLifecycle] = None,
        today: Optional[date] = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.engine = CompatibilityEngine(dispatcher)
        self.lifecycle = lifecycle or MatchLifecycle(store, self.engine)
        self.today = today

    async def _require_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise AgentException(AgentError.processing(f"user {user_id} not found"))
        return user

    async def _require_match(self, match_id: str) -> Match:
        match = await self.store.get_match(match_id)
        if match is None:
            raise AgentException(AgentError.processing(f"match {match_id} not found"))
        return match

    # =========================================================
    # USERS & PREFERENCES
    # =========================================================

    async def upsert_user(self, user: User) -> Result[User]:
        async def _upsert() -> User:
            await self.store.put_user(user)
            return user

        return await guarded(self.store, _upsert())

    async def get_user(self, user_id: str) -> Result[User]:
        return await guarded(self.store, self._require_user(user_id))

    async def _load_preferences(self, user_id: str) -> UserPreferences:
        await self._require_user(user_id)
        preferences = await self.store.get_preferences(user_id)
        if preferences is None:
            preferences = UserPreferences.defaults_for(user_id)
            await self.store.put_preferences(preferences)
            logger.info(f"Created default preferences for {user_id}")
        return preferences

    async def get_preferences(self, user_id: str) -> Result[UserPreferences]:
        """Stored preferences; defaults are created and saved on first load."""
        return await guarded(self.store, self._load_preferences(user_id))

    async def save_preferences(self, preferences: UserPreferences) -> Result[UserPreferences]:
        """Overwrite wholesale; no merge with what was stored."""
        async def _save() -> UserPreferences:
            await self._require_user(preferences.user_id)
            await self.store.put_preferences(preferences)
            return preferences

        return await guarded(self.store, _save())

    # =========================================================
    # CANDIDATES & SCORING
    # =========================================================

    async def list_candidates(self, user_id: str) -> Result[List[User]]:
        """
        Users that satisfy user_id's preferences, in store order.

        Excludes the user, anyone they already swiped on, and anyone they
        already share a Match with. A user who never stored preferences is
        not filtered.
        """
        return await guarded(self.store, self._list_candidates(user_id))

    async def _list_candidates(self, user_id: str) -> List[User]:
        await self._require_user(user_id)

        preferences = await self.store.get_preferences(user_id)
        excluded = {user_id}
        excluded.update(s.target_id for s in await self.store.list_swipes(user_id))
        excluded.update(
            m.other_participant(user_id) for m in await self.store.list_matches(user_id=user_id)
        )

        pool = [u for u in await self.store.list_users() if u.id not in excluded]
        return list(filter_candidates(pool, preferences, self.today))

    async def _require_pair(self, user_a_id: str, user_b_id: str) -> Tuple[User, User]:
        return await self._require_user(user_a_id), await self._require_user(user_b_id)

    async def assess(self, user_a_id: str, user_b_id: str) -> Result[CompatibilityScore]:
        users = await guarded(self.store, self._require_pair(user_a_id, user_b_id))
        if not users.success:
            return Result.fail(users.error)
        return await self.engine.assess(*users.value)

    # =========================================================
    # MATCHES
    # =========================================================

    async def swipe(self, actor_id: str, target_id: str, action: SwipeAction) -> Result[Optional[Match]]:
        users = await guarded(self.store, self._require_pair(actor_id, target_id))
        if not users.success:
            return Result.fail(users.error)
        actor, target = users.value
        return await self.lifecycle.apply(action, actor, target)

    async def record_guardian_approval(
        self,
        guardian_id: str,
        match_id: str,
        status: ApprovalStatus,
        comment: Optional[str] = None,
    ) -> Result[Match]:
        return await self.lifecycle.record_approval(guardian_id, match_id, status, comment)

    async def get_match(self, match_id: str) -> Result[Match]:
        return await guarded(self.store, self._require_match(match_id))

    async def list_matches(self, user_id: str, status: Optional[MatchStatus] = None) -> Result[List[Match]]:
        async def _list() -> List[Match]:
            await self._require_user(user_id)
            return await self.store.list_matches(user_id=user_id, status=status)

        return await guarded(self.store, _list())

    async def list_approvals(self, match_id: str) -> Result[List[GuardianApproval]]:
        async def _list() -> List[GuardianApproval]:
            await self._require_match(match_id)
            return await self.store.list_approvals(match_id)

        return await guarded(self.store, _list())

    async def expire_stale(self, now: Optional[datetime] = None) -> Result[List[Match]]:
        return await self.lifecycle.expire_stale(now)
