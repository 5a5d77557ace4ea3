"""
In-memory MatchStore.

Default backend for local runs and tests. Every model is deep-copied on the
way in and out so callers never share mutable state with the store.
"""

from typing import Dict, List, Optional, Tuple

from mithaq.matching.models import GuardianApproval, Match, MatchStatus, SwipeRecord, pair_key
from mithaq.storage.base import MatchStore
from mithaq.users.models import User, UserPreferences


class InMemoryStore(MatchStore):

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._preferences: Dict[str, UserPreferences] = {}
        self._matches: Dict[str, Match] = {}
        self._pairs: Dict[str, str] = {}
        self._swipes: Dict[Tuple[str, str], SwipeRecord] = {}
        self._approvals: Dict[str, List[GuardianApproval]] = {}

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def put_user(self, user: User) -> None:
        self._users[user.id] = user.model_copy(deep=True)

    async def list_users(self) -> List[User]:
        return [u.model_copy(deep=True) for u in self._users.values()]

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        prefs = self._preferences.get(user_id)
        return prefs.model_copy(deep=True) if prefs else None

    async def put_preferences(self, preferences: UserPreferences) -> None:
        self._preferences[preferences.user_id] = preferences.model_copy(deep=True)

    async def get_match(self, match_id: str) -> Optional[Match]:
        match = self._matches.get(match_id)
        return match.model_copy(deep=True) if match else None

    async def put_match(self, match: Match) -> None:
        self._matches[match.id] = match.model_copy(deep=True)
        self._pairs[pair_key(match.user1_id, match.user2_id)] = match.id

    async def find_match_for_pair(self, user_a: str, user_b: str) -> Optional[Match]:
        match_id = self._pairs.get(pair_key(user_a, user_b))
        if match_id is None:
            return None
        return await self.get_match(match_id)

    async def list_matches(
        self,
        user_id: Optional[str] = None,
        status: Optional[MatchStatus] = None,
    ) -> List[Match]:
        return [
            m.model_copy(deep=True)
            for m in self._matches.values()
            if (user_id is None or m.involves(user_id))
            and (status is None or m.status == status)
        ]

    async def list_swipes(self, actor_id: str) -> List[SwipeRecord]:
        return [s.model_copy() for (actor, _), s in self._swipes.items() if actor == actor_id]

    async def get_swipe(self, actor_id: str, target_id: str) -> Optional[SwipeRecord]:
        swipe = self._swipes.get((actor_id, target_id))
        return swipe.model_copy() if swipe else None

    async def save_swipe(self, swipe: SwipeRecord, match: Optional[Match] = None) -> None:
        # No await between the writes: both land in the same event-loop step
        self._swipes[(swipe.actor_id, swipe.target_id)] = swipe.model_copy()
        if match is not None:
            await self.put_match(match)

    async def save_approval(self, approval: GuardianApproval, match: Match) -> None:
        self._approvals.setdefault(approval.match_id, []).append(approval)
        await self.put_match(match)

    async def list_approvals(self, match_id: str) -> List[GuardianApproval]:
        return list(self._approvals.get(match_id, []))
