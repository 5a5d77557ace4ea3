"""
Preference Filter

filter_candidates(candidates, preferences) keeps the candidates that satisfy
every non-empty preference dimension. The result is lazy and restartable:
each iteration re-walks the source in its original order.

Rules:
- An empty allowed list places no constraint on that dimension
- A candidate missing an attribute that a non-empty preference constrains
  is rejected
- max_distance is carried on UserPreferences but not applied (profiles have
  no coordinates)
"""

from datetime import date
from typing import Callable, Iterable, Iterator, List, Optional

from mithaq.users.models import User, UserPreferences

Rule = Callable[[User], bool]


def _age_rule(preferences: UserPreferences, today: date) -> Rule:
    age_range = preferences.age_range
    return lambda user: user.age_on(today) in age_range


def _marital_rule(allowed) -> Rule:
    def rule(user: User) -> bool:
        profile = user.profile
        return bool(profile and profile.marital_status in allowed)
    return rule


def _practice_rule(allowed) -> Rule:
    def rule(user: User) -> bool:
        profile = user.profile
        return bool(profile and profile.religious_practice in allowed)
    return rule


def _education_rule(allowed) -> Rule:
    def rule(user: User) -> bool:
        profile = user.profile
        return bool(profile and profile.education and profile.education.level in allowed)
    return rule


def _lifestyle_rule(attribute: str, allowed) -> Rule:
    def rule(user: User) -> bool:
        profile = user.profile
        if not profile or not profile.lifestyle:
            return False
        return getattr(profile.lifestyle, attribute) in allowed
    return rule


def _location_rule(preferences: UserPreferences) -> Rule:
    wanted = preferences.location_preferences

    def rule(user: User) -> bool:
        profile = user.profile
        if not profile or not profile.location:
            return False
        location = profile.location
        for pref in wanted:
            if pref.country.casefold() != location.country.casefold():
                continue
            if not pref.cities:
                return True
            if location.city.casefold() in {c.casefold() for c in pref.cities}:
                return True
        return False
    return rule


def build_rules(preferences: UserPreferences, today: date) -> List[Rule]:
    """One predicate per constrained dimension."""
    rules: List[Rule] = [_age_rule(preferences, today)]

    if preferences.marital_status_preferences:
        rules.append(_marital_rule(set(preferences.marital_status_preferences)))
    if preferences.religious_practice_preferences:
        rules.append(_practice_rule(set(preferences.religious_practice_preferences)))
    if preferences.education_preferences:
        rules.append(_education_rule(set(preferences.education_preferences)))

    lifestyle = preferences.lifestyle_preferences
    if lifestyle.smoking_acceptable:
        rules.append(_lifestyle_rule("smoking", set(lifestyle.smoking_acceptable)))
    if lifestyle.drinking_acceptable:
        rules.append(_lifestyle_rule("drinking", set(lifestyle.drinking_acceptable)))
    if lifestyle.diet_acceptable:
        rules.append(_lifestyle_rule("diet", set(lifestyle.diet_acceptable)))

    if preferences.location_preferences:
        rules.append(_location_rule(preferences))

    return rules


class FilteredCandidates:
    """Lazy, restartable, order-preserving view over a candidate pool."""

    def __init__(
        self,
        candidates: Iterable[User],
        preferences: Optional[UserPreferences],
        today: Optional[date] = None,
    ):
        self._candidates = candidates
        self._preferences = preferences
        self._today = today

    def __iter__(self) -> Iterator[User]:
        if self._preferences is None:
            yield from self._candidates
            return
        rules = build_rules(self._preferences, self._today or date.today())
        for user in self._candidates:
            if all(rule(user) for rule in rules):
                yield user


def filter_candidates(
    candidates: Iterable[User],
    preferences: Optional[UserPreferences],
    today: Optional[date] = None,
) -> FilteredCandidates:
    return FilteredCandidates(candidates, preferences, today)
