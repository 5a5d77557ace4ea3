"""
Match Lifecycle State Machine

Single MatchStatus enum is the source of truth.
State transitions:
    PENDING → ACCEPTED → REJECTED
    PENDING → REJECTED
    PENDING → EXPIRED
REJECTED and EXPIRED are terminal.

Guardian gating:
- A gated match (guardian_approval_required) can only be accepted once every
  required guardian's latest approval is APPROVED
- Any required guardian's latest REJECTED rejects the match
- Under MUTUAL reciprocity the non-initiator's like is also required; the
  match is accepted by whichever of the last approval or that like lands last

Swipe handling (MatchLifecycle.apply):
- pass: record the swipe, no Match
- like / super_like: one Match per pair. A new pair is scored once and the
  score is frozen into the Match; an existing pair reuses its Match.

Concurrency: all work on one pair runs under that pair's asyncio.Lock, and
every write is one atomic store call under asyncio.shield. Store failures
come back as Result errors (see storage.base.guarded).
"""

import asyncio
import logging
import os
import weakref
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Tuple

from mithaq.compatibility.engine import CompatibilityEngine
from mithaq.matching.models import (
    ApprovalStatus,
    GuardianApproval,
    GuardianPolicy,
    Match,
    MatchStatus,
    ReciprocityPolicy,
    SwipeAction,
    SwipeRecord,
    pair_key,
    utcnow,
)
from mithaq.shared.hashing import snapshot_hash
from mithaq.shared.result import AgentError, AgentException, Result
from mithaq.storage.base import MatchStore, guarded
from mithaq.users.models import User

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

MATCH_RETENTION_DAYS = int(os.getenv("MATCH_RETENTION_DAYS", "30"))
MATCH_RECIPROCITY = os.getenv("MATCH_RECIPROCITY", ReciprocityPolicy.MUTUAL.value)
GUARDIAN_POLICY = os.getenv("GUARDIAN_POLICY", GuardianPolicy.INITIATOR_ONLY.value)


# =============================================================================
# STATE MACHINE
# =============================================================================

class MatchEvent(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    EXPIRE = "expire"


class MatchStateMachineError(Exception):
    """Raised when a state transition is invalid."""
    pass


class MatchStateMachine:
    """
    Match state machine with guardian gating.

    Transitions are deterministic given the current state and event.
    ACCEPT additionally requires the guardian gate to be clear.
    """

    # (current_state, event) -> new_state
    TRANSITIONS = {
        (MatchStatus.PENDING, MatchEvent.ACCEPT): MatchStatus.ACCEPTED,
        (MatchStatus.PENDING, MatchEvent.REJECT): MatchStatus.REJECTED,
        (MatchStatus.ACCEPTED, MatchEvent.REJECT): MatchStatus.REJECTED,
        (MatchStatus.PENDING, MatchEvent.EXPIRE): MatchStatus.EXPIRED,
    }

    TERMINAL = frozenset({MatchStatus.REJECTED, MatchStatus.EXPIRED})

    def can_transition(
        self,
        current_state: MatchStatus,
        event: MatchEvent,
        guardian_cleared: bool = True,
    ) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            Tuple of (is_allowed, error_message)
        """
        if (current_state, event) not in self.TRANSITIONS:
            return False, f"Invalid transition: {current_state.value} + {event.value}"

        if event == MatchEvent.ACCEPT and not guardian_cleared:
            return False, "Guardian approval outstanding"

        return True, None

    def transition(
        self,
        current_state: MatchStatus,
        event: MatchEvent,
        guardian_cleared: bool = True,
    ) -> MatchStatus:
        is_allowed, error = self.can_transition(current_state, event, guardian_cleared)
        if not is_allowed:
            raise MatchStateMachineError(error)
        return self.TRANSITIONS[(current_state, event)]

    def get_available_events(self, current_state: MatchStatus) -> List[MatchEvent]:
        """Events defined from current_state, without gating checks."""
        return [event for (state, event) in self.TRANSITIONS if state == current_state]

    def is_terminal(self, state: MatchStatus) -> bool:
        return state in self.TERMINAL


def guardian_cleared(match: Match) -> bool:
    return not match.guardian_approval_required or match.guardians_all_approved()


def required_guardian_ids(actor: User, target: User, policy: GuardianPolicy) -> List[str]:
    """Guardians whose approval gates a new match, fixed at creation."""
    parties = [actor] if policy == GuardianPolicy.INITIATOR_ONLY else [actor, target]
    return [user.guardian.id for user in parties if user.requires_guardian_approval]


# =============================================================================
# LOCKS
# =============================================================================

class KeyedLocks:
    """One asyncio.Lock per key, dropped once nobody holds a reference."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


# =============================================================================
# LIFECYCLE
# =============================================================================

class MatchLifecycle:
    """
    Turns swipes and guardian decisions into persisted Match transitions.

    Public methods return Result; illegal or unauthorized requests fail with
    processing_error and leave the store untouched.
    """

    def __init__(
        self,
        store: MatchStore,
        engine: CompatibilityEngine,
        reciprocity: Optional[ReciprocityPolicy] = None,
        guardian_policy: Optional[GuardianPolicy] = None,
        retention_days: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.engine = engine
        self.reciprocity = reciprocity or ReciprocityPolicy(MATCH_RECIPROCITY)
        self.guardian_policy = guardian_policy or GuardianPolicy(GUARDIAN_POLICY)
        self.retention = timedelta(
            days=retention_days if retention_days is not None else MATCH_RETENTION_DAYS
        )
        self.clock = clock
        self.machine = MatchStateMachine()
        self._locks = KeyedLocks()

    def _advance(self, match: Match, event: MatchEvent) -> None:
        try:
            match.status = self.machine.transition(match.status, event, guardian_cleared(match))
        except MatchStateMachineError as e:
            raise AgentException(AgentError.processing(str(e)))
        match.updated_at = self.clock()
        logger.info(f"Match {match.id} -> {match.status.value} ({event.value})")

    # =========================================================
    # SWIPES
    # =========================================================

    async def apply(self, action: SwipeAction, actor: User, target: User) -> Result[Optional[Match]]:
        return await guarded(self.store, self._apply(action, actor, target))

    async def _apply(self, action: SwipeAction, actor: User, target: User) -> Optional[Match]:
        if actor.id == target.id:
            raise AgentException(AgentError.processing("cannot swipe on yourself"))

        swipe = SwipeRecord(
            actor_id=actor.id,
            target_id=target.id,
            action=action,
            created_at=self.clock(),
        )

        async with self._locks.get(pair_key(actor.id, target.id)):
            if not action.is_positive:
                await asyncio.shield(self.store.save_swipe(swipe))
                logger.info(f"{actor.id} passed on {target.id}")
                return None

            existing = await self.store.find_match_for_pair(actor.id, target.id)
            if existing is not None:
                match = self._reuse(existing, actor)
            else:
                match = await self._create(actor, target)

            await asyncio.shield(self.store.save_swipe(swipe, match))
            return match

    def _reuse(self, match: Match, actor: User) -> Match:
        """Existing pair: only a reciprocal like may promote a pending match."""
        if match.status != MatchStatus.PENDING:
            return match

        reciprocal = actor.id != match.initiated_by
        if reciprocal and guardian_cleared(match):
            self._advance(match, MatchEvent.ACCEPT)
        return match

    async def _create(self, actor: User, target: User) -> Match:
        result = await self.engine.assess(actor, target)
        score = result.unwrap()

        guardians = required_guardian_ids(actor, target, self.guardian_policy)
        now = self.clock()
        match = Match(
            user1_id=actor.id,
            user2_id=target.id,
            compatibility_score=score,
            score_hash=snapshot_hash(score),
            created_at=now,
            updated_at=now,
            initiated_by=actor.id,
            guardian_approval_required=bool(guardians),
            required_guardian_ids=guardians,
        )

        if not guardians and await self._reciprocated(match):
            self._advance(match, MatchEvent.ACCEPT)

        logger.info(
            f"Match {match.id} created {actor.id}->{target.id}: "
            f"status={match.status.value} overall={score.overall} guardians={len(guardians)}"
        )
        return match

    async def _reciprocated(self, match: Match) -> bool:
        """Under MUTUAL, the non-initiator must have a positive swipe on file."""
        if self.reciprocity == ReciprocityPolicy.UNILATERAL:
            return True
        other = match.other_participant(match.initiated_by)
        prior = await self.store.get_swipe(other, match.initiated_by)
        return prior is not None and prior.action.is_positive

    # =========================================================
    # GUARDIAN APPROVALS
    # =========================================================

    async def record_approval(
        self,
        guardian_id: str,
        match_id: str,
        status: ApprovalStatus,
        comment: Optional[str] = None,
    ) -> Result[Match]:
        return await guarded(self.store, self._record_approval(guardian_id, match_id, status, comment))

    async def _record_approval(
        self,
        guardian_id: str,
        match_id: str,
        status: ApprovalStatus,
        comment: Optional[str],
    ) -> Match:
        match = await self._require_match(match_id)

        async with self._locks.get(pair_key(match.user1_id, match.user2_id)):
            match = await self._require_match(match_id)

            if self.machine.is_terminal(match.status):
                raise AgentException(AgentError.processing(
                    f"match {match_id} is {match.status.value}"
                ))
            if guardian_id not in match.required_guardian_ids:
                raise AgentException(AgentError.processing(
                    f"guardian {guardian_id} is not a required approver for match {match_id}"
                ))

            approval = GuardianApproval(
                guardian_id=guardian_id,
                user_id=await self._ward_of(guardian_id, match),
                match_id=match_id,
                status=status,
                comment=comment,
                timestamp=self.clock(),
            )
            match.guardian_approvals.append(approval)

            if match.guardian_rejected():
                self._advance(match, MatchEvent.REJECT)
            elif (
                match.status == MatchStatus.PENDING
                and match.guardians_all_approved()
                and await self._reciprocated(match)
            ):
                self._advance(match, MatchEvent.ACCEPT)
            else:
                match.updated_at = self.clock()

            await asyncio.shield(self.store.save_approval(approval, match))
            logger.info(
                f"Guardian {guardian_id} recorded {status.value} on match {match_id}"
            )
            return match

    async def _require_match(self, match_id: str) -> Match:
        match = await self.store.get_match(match_id)
        if match is None:
            raise AgentException(AgentError.processing(f"match {match_id} not found"))
        return match

    async def _ward_of(self, guardian_id: str, match: Match) -> str:
        for user_id in match.participants:
            user = await self.store.get_user(user_id)
            if user and user.guardian and user.guardian.id == guardian_id:
                return user_id
        return match.initiated_by

    # =========================================================
    # EXPIRY
    # =========================================================

    async def expire_stale(self, now: Optional[datetime] = None) -> Result[List[Match]]:
        """Expire pending matches created before the retention cutoff. Idempotent."""
        return await guarded(self.store, self._expire_stale(now))

    async def _expire_stale(self, now: Optional[datetime]) -> List[Match]:
        now = now or self.clock()
        cutoff = now - self.retention
        expired: List[Match] = []

        for candidate in await self.store.list_matches(status=MatchStatus.PENDING):
            if candidate.created_at >= cutoff:
                continue
            async with self._locks.get(pair_key(candidate.user1_id, candidate.user2_id)):
                match = await self.store.get_match(candidate.id)
                if match is None or match.status != MatchStatus.PENDING:
                    continue
                self._advance(match, MatchEvent.EXPIRE)
                match.updated_at = now
                await asyncio.shield(self.store.put_match(match))
                expired.append(match)

        if expired:
            logger.info(f"Expired {len(expired)} stale matches (cutoff {cutoff.isoformat()})")
        return expired
