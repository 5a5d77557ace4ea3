"""
Preference Filter Tests
"""

from datetime import date

import pytest

from helpers import make_user
from mithaq.matching.filter import filter_candidates
from mithaq.users.models import (
    AgeRange,
    Diet,
    DrinkingStatus,
    Education,
    EducationLevel,
    Lifestyle,
    LifestylePreferences,
    Location,
    LocationPreference,
    MaritalStatus,
    ReligiousPractice,
    SmokingStatus,
    UserPreferences,
)


def ids(users) -> list:
    return [u.id for u in users]


@pytest.fixture
def pool():
    return [
        make_user("a", age=25),
        make_user("b", age=35, marital_status=MaritalStatus.DIVORCED),
        make_user("c", age=45, religious_practice=ReligiousPractice.MODERATELY_PRACTICING),
        make_user("d", age=30, location=Location(country="Egypt", city="Cairo")),
        make_user("e", age=29, lifestyle=Lifestyle(
            diet=Diet.NO_RESTRICTION,
            smoking=SmokingStatus.OCCASIONALLY,
            drinking=DrinkingStatus.NEVER,
        )),
        make_user("f", age=33, education=Education(level=EducationLevel.PHD)),
    ]


# ============================================================================
# No constraints
# ============================================================================

class TestNoConstraints:

    def test_none_preferences_returns_input(self, pool):
        assert ids(filter_candidates(pool, None)) == ids(pool)

    def test_default_preferences_keep_everyone_in_age_range(self, pool):
        prefs = UserPreferences.defaults_for("me")
        assert ids(filter_candidates(pool, prefs)) == ids(pool)

    def test_idempotent(self, pool):
        prefs = UserPreferences(user_id="me", marital_status_preferences=[MaritalStatus.NEVER_MARRIED])
        once = list(filter_candidates(pool, prefs))
        twice = list(filter_candidates(once, prefs))
        assert ids(once) == ids(twice)

    def test_restartable(self, pool):
        prefs = UserPreferences(user_id="me", age_range=AgeRange(min_age=30, max_age=50))
        view = filter_candidates(pool, prefs)
        assert ids(view) == ids(view)
        assert ids(view) == ["b", "c", "d", "f"]

    def test_lazy_over_generator(self):
        consumed = []

        def source():
            for user_id in ("a", "b", "c"):
                consumed.append(user_id)
                yield make_user(user_id)

        view = filter_candidates(source(), UserPreferences.defaults_for("me"))
        assert consumed == []
        assert next(iter(view)).id == "a"
        assert consumed == ["a"]


# ============================================================================
# Dimensions
# ============================================================================

class TestDimensions:

    def test_age_range_inclusive(self, pool):
        prefs = UserPreferences(user_id="me", age_range=AgeRange(min_age=25, max_age=30))
        assert ids(filter_candidates(pool, prefs)) == ["a", "d", "e"]

    def test_age_uses_today(self):
        user = make_user("x")
        user = user.model_copy(update={"date_of_birth": date(2000, 6, 15)})
        prefs = UserPreferences(user_id="me", age_range=AgeRange(min_age=26, max_age=26))
        assert ids(filter_candidates([user], prefs, today=date(2026, 6, 14))) == []
        assert ids(filter_candidates([user], prefs, today=date(2026, 6, 15))) == ["x"]

    def test_marital_status(self, pool):
        prefs = UserPreferences(user_id="me", marital_status_preferences=[MaritalStatus.DIVORCED])
        assert ids(filter_candidates(pool, prefs)) == ["b"]

    def test_religious_practice(self, pool):
        prefs = UserPreferences(
            user_id="me",
            religious_practice_preferences=[ReligiousPractice.MODERATELY_PRACTICING],
        )
        assert ids(filter_candidates(pool, prefs)) == ["c"]

    def test_education(self, pool):
        prefs = UserPreferences(user_id="me", education_preferences=[EducationLevel.PHD, EducationLevel.MASTER])
        assert ids(filter_candidates(pool, prefs)) == ["f"]

    def test_smoking(self, pool):
        prefs = UserPreferences(
            user_id="me",
            lifestyle_preferences=LifestylePreferences(smoking_acceptable=[SmokingStatus.NEVER]),
        )
        assert "e" not in ids(filter_candidates(pool, prefs))

    def test_diet(self, pool):
        prefs = UserPreferences(
            user_id="me",
            lifestyle_preferences=LifestylePreferences(diet_acceptable=[Diet.NO_RESTRICTION]),
        )
        assert ids(filter_candidates(pool, prefs)) == ["e"]

    def test_location_country(self, pool):
        prefs = UserPreferences(user_id="me", location_preferences=[LocationPreference(country="egypt")])
        assert ids(filter_candidates(pool, prefs)) == ["d"]

    def test_location_cities(self, pool):
        prefs = UserPreferences(
            user_id="me",
            location_preferences=[LocationPreference(country="Saudi Arabia", cities=["Jeddah"])],
        )
        assert ids(filter_candidates(pool, prefs)) == []

    def test_missing_attribute_rejected_when_constrained(self):
        bare = make_user("bare", with_profile=False)
        prefs = UserPreferences(user_id="me", marital_status_preferences=[MaritalStatus.NEVER_MARRIED])
        assert ids(filter_candidates([bare], prefs)) == []

    def test_missing_attribute_kept_when_unconstrained(self):
        bare = make_user("bare", with_profile=False)
        assert ids(filter_candidates([bare], UserPreferences.defaults_for("me"))) == ["bare"]

    def test_preserves_order(self, pool):
        reversed_pool = list(reversed(pool))
        prefs = UserPreferences(user_id="me", age_range=AgeRange(min_age=30, max_age=50))
        assert ids(filter_candidates(reversed_pool, prefs)) == ["f", "d", "c", "b"]
