"""
Matching Service Tests

End-to-end scenarios over the in-memory store.
"""

import asyncio

import pytest

from helpers import ScriptedOracle, assessment_payload, make_user
from mithaq.agents.dispatcher import AgentDispatcher, build_agent_registry
from mithaq.matching.models import ApprovalStatus, MatchStatus, SwipeAction
from mithaq.matching.service import MatchingService
from mithaq.shared.result import ErrorKind
from mithaq.storage.memory import InMemoryStore
from mithaq.users.models import AgeRange, MaritalStatus, UserPreferences


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def oracle():
    return ScriptedOracle(always=assessment_payload())


@pytest.fixture
def service(oracle):
    store = InMemoryStore()
    service = MatchingService(store, AgentDispatcher(build_agent_registry(oracle)))
    for user in (
        make_user("a", age=30),
        make_user("b", age=27),
        make_user("c", age=41, marital_status=MaritalStatus.WIDOWED),
        make_user("d", age=25, guardian_id="g-d"),
    ):
        run(service.upsert_user(user))
    return service


def candidate_ids(service, user_id):
    return [u.id for u in run(service.list_candidates(user_id)).value]


# ============================================================================
# Preferences
# ============================================================================

class TestPreferences:

    def test_defaults_created_on_first_load(self, service):
        prefs = run(service.get_preferences("a")).value
        assert prefs.age_range.min_age == 18
        assert prefs.age_range.max_age == 50
        assert prefs.max_distance == 100
        assert run(service.store.get_preferences("a")) == prefs

    def test_save_overwrites_wholesale(self, service):
        run(service.save_preferences(UserPreferences(
            user_id="a",
            marital_status_preferences=[MaritalStatus.WIDOWED],
            age_range=AgeRange(min_age=20, max_age=45),
        )))
        run(service.save_preferences(UserPreferences(user_id="a", age_range=AgeRange(min_age=25, max_age=35))))
        prefs = run(service.get_preferences("a")).value
        assert prefs.marital_status_preferences == []
        assert prefs.age_range.max_age == 35

    def test_unknown_user(self, service):
        result = run(service.get_preferences("nobody"))
        assert result.error.kind == ErrorKind.PROCESSING_ERROR


# ============================================================================
# Candidates
# ============================================================================

class TestCandidates:

    def test_excludes_self(self, service):
        assert candidate_ids(service, "a") == ["b", "c", "d"]

    def test_no_stored_preferences_means_no_filtering(self, service):
        run(service.upsert_user(make_user("old", age=60)))
        assert "old" in candidate_ids(service, "a")
        assert run(service.store.get_preferences("a")) is None

    def test_stored_defaults_do_filter(self, service):
        run(service.upsert_user(make_user("old", age=60)))
        run(service.get_preferences("a"))
        assert "old" not in candidate_ids(service, "a")

    def test_applies_preferences(self, service):
        run(service.save_preferences(UserPreferences(
            user_id="a",
            marital_status_preferences=[MaritalStatus.NEVER_MARRIED],
        )))
        assert candidate_ids(service, "a") == ["b", "d"]

    def test_pass_excludes_target(self, service):
        result = run(service.swipe("a", "b", SwipeAction.PASS))
        assert result.success
        assert result.value is None
        assert "b" not in candidate_ids(service, "a")
        assert run(service.list_matches("a")).value == []

    def test_matched_users_excluded_both_ways(self, service, oracle):
        run(service.swipe("a", "b", SwipeAction.LIKE))
        assert "b" not in candidate_ids(service, "a")
        assert "a" not in candidate_ids(service, "b")


# ============================================================================
# Scoring & swiping
# ============================================================================

class TestSwipeFlow:

    def test_assess(self, service):
        result = run(service.assess("a", "b"))
        assert 0 <= result.value.overall <= 100

    def test_assess_unknown_user(self, service):
        assert run(service.assess("a", "zzz")).error.kind == ErrorKind.PROCESSING_ERROR

    def test_mutual_like_accepts(self, service):
        pending = run(service.swipe("a", "b", SwipeAction.LIKE)).value
        assert pending.status == MatchStatus.PENDING

        accepted = run(service.swipe("b", "a", SwipeAction.SUPER_LIKE)).value
        assert accepted.id == pending.id
        assert accepted.status == MatchStatus.ACCEPTED

        matches = run(service.list_matches("b", MatchStatus.ACCEPTED)).value
        assert [m.id for m in matches] == [pending.id]

    def test_guardian_flow(self, service):
        match = run(service.swipe("d", "a", SwipeAction.LIKE)).value
        run(service.swipe("a", "d", SwipeAction.LIKE))
        assert run(service.get_match(match.id)).value.status == MatchStatus.PENDING

        result = run(service.record_guardian_approval("g-d", match.id, ApprovalStatus.APPROVED, "Approved"))
        assert result.value.status == MatchStatus.ACCEPTED
        approvals = run(service.list_approvals(match.id)).value
        assert [(a.guardian_id, a.user_id) for a in approvals] == [("g-d", "d")]

    def test_get_unknown_match(self, service):
        assert run(service.get_match("nope")).error.kind == ErrorKind.PROCESSING_ERROR

    def test_list_approvals_unknown_match(self, service):
        assert run(service.list_approvals("nope")).error.kind == ErrorKind.PROCESSING_ERROR

    def test_expire_stale_nothing_to_do(self, service):
        run(service.swipe("a", "b", SwipeAction.LIKE))
        assert run(service.expire_stale()).value == []


# ============================================================================
# Store failures
# ============================================================================

class UnreachableStore(InMemoryStore):
    """Every read after seeding raises a lost-connection error."""

    def __init__(self):
        super().__init__()
        self.down = False

    async def get_user(self, user_id):
        if self.down:
            raise ConnectionError("connection reset")
        return await super().get_user(user_id)

    async def get_match(self, match_id):
        if self.down:
            raise ConnectionError("connection reset")
        return await super().get_match(match_id)


class TestStoreFailures:

    @pytest.fixture
    def broken(self, oracle):
        store = UnreachableStore()
        service = MatchingService(store, AgentDispatcher(build_agent_registry(oracle)))
        run(service.upsert_user(make_user("a")))
        run(service.upsert_user(make_user("b")))
        store.down = True
        return service

    @pytest.mark.parametrize("call", [
        lambda s: s.get_user("a"),
        lambda s: s.get_preferences("a"),
        lambda s: s.list_candidates("a"),
        lambda s: s.list_matches("a"),
        lambda s: s.assess("a", "b"),
        lambda s: s.swipe("a", "b", SwipeAction.LIKE),
        lambda s: s.get_match("m-1"),
        lambda s: s.list_approvals("m-1"),
    ])
    def test_returns_network_error(self, broken, call):
        result = run(call(broken))
        assert not result.success
        assert result.error.kind == ErrorKind.NETWORK_ERROR
