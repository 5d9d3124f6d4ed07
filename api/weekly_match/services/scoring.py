from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from ..catalog import ALL_MAJORS, SCHOOLS, year_rank
from ..config import DEFAULT_SCORING_CONFIG, MAX_MATCH_AGE, MIN_MATCH_AGE, MUTUAL_SCORE_THRESHOLD, RELAXED_AGE_SLACK


@dataclass(frozen=True)
class Profile:
    user_id: str
    gender: str
    birthdate: date
    year: str
    school: str
    majors: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()
    clubs: tuple[str, ...] = ()


@dataclass(frozen=True)
class Preferences:
    user_id: str
    age_min: int
    age_max: int
    genders: tuple[str, ...] = ()
    years: tuple[str, ...] = ()
    excluded_schools: tuple[str, ...] = ()
    excluded_majors: tuple[str, ...] = ()


@dataclass(frozen=True)
class UserData:
    profile: Profile | None = None
    preferences: Preferences | None = None

    @property
    def complete(self) -> bool:
        return self.profile is not None and self.preferences is not None


def _cfg_value(cfg: dict[str, Any] | None, key: str) -> float:
    merged = cfg or DEFAULT_SCORING_CONFIG
    return float(merged.get(key, DEFAULT_SCORING_CONFIG[key]))


def calculate_age(birthdate: date, today: date | None = None) -> int:
    today = today or date.today()
    age = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        age -= 1
    return age


def _exclusion_active(excluded: tuple[str, ...], universe: tuple[str, ...]) -> bool:
    # Excluding every option is treated as no filter at all.
    if not excluded or len(excluded) >= len(universe):
        return False
    return not set(universe) <= set(excluded)


def preference_match_score(
    profile: Profile,
    preferences: Preferences,
    relaxed: bool = False,
    *,
    today: date | None = None,
    cfg: dict[str, Any] | None = None,
) -> float:
    """How well ``profile`` satisfies ``preferences``, 0-100.

    0 means a hard requirement failed: gender always, and age in relaxed mode
    once it falls outside the widened range.
    """
    score = 100.0

    if preferences.genders and profile.gender not in preferences.genders:
        return 0.0

    age = calculate_age(profile.birthdate, today)
    outside_range = age < preferences.age_min or age > preferences.age_max
    if relaxed:
        relaxed_min = max(MIN_MATCH_AGE, preferences.age_min - RELAXED_AGE_SLACK)
        relaxed_max = min(MAX_MATCH_AGE, preferences.age_max + RELAXED_AGE_SLACK)
        if age < relaxed_min or age > relaxed_max:
            return 0.0
        if outside_range:
            score -= _cfg_value(cfg, "AGE_PENALTY_RELAXED")
        return max(0.0, score)

    if outside_range:
        score -= _cfg_value(cfg, "AGE_PENALTY_STRICT")

    if preferences.years and profile.year not in preferences.years:
        score -= _cfg_value(cfg, "YEAR_PENALTY")

    if _exclusion_active(preferences.excluded_schools, SCHOOLS) and profile.school in preferences.excluded_schools:
        score -= _cfg_value(cfg, "SCHOOL_PENALTY")

    if _exclusion_active(preferences.excluded_majors, ALL_MAJORS):
        if any(major in preferences.excluded_majors for major in profile.majors):
            score -= _cfg_value(cfg, "MAJOR_PENALTY")

    return max(0.0, score)


def mutual_score(
    profile_a: Profile,
    prefs_a: Preferences,
    profile_b: Profile,
    prefs_b: Preferences,
    relaxed: bool = False,
    *,
    today: date | None = None,
    cfg: dict[str, Any] | None = None,
) -> float:
    a_likes_b = preference_match_score(profile_b, prefs_a, relaxed, today=today, cfg=cfg)
    b_likes_a = preference_match_score(profile_a, prefs_b, relaxed, today=today, cfg=cfg)
    if a_likes_b == 0 or b_likes_a == 0:
        return 0.0

    score = (a_likes_b + b_likes_a) / 2.0
    threshold = _cfg_value(cfg, "STRONG_INTEREST_THRESHOLD")
    if a_likes_b > threshold and b_likes_a > threshold:
        return min(100.0, score * _cfg_value(cfg, "STRONG_INTEREST_MULTIPLIER"))
    return score


def is_mutually_compatible(
    profile_a: Profile,
    prefs_a: Preferences,
    profile_b: Profile,
    prefs_b: Preferences,
    relaxed: bool = False,
    *,
    today: date | None = None,
    cfg: dict[str, Any] | None = None,
) -> bool:
    return mutual_score(profile_a, prefs_a, profile_b, prefs_b, relaxed, today=today, cfg=cfg) > MUTUAL_SCORE_THRESHOLD


def _overlap(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    return sum(1 for item in a if item in b)


def attractiveness_score(profile_a: Profile, profile_b: Profile, *, today: date | None = None) -> float:
    """Preference-free similarity used only to rank already eligible candidates."""
    score = 0.0

    if profile_a.school == profile_b.school:
        score += 20

    score += min(15, _overlap(profile_a.majors, profile_b.majors) * 5)

    year_diff = abs(year_rank(profile_a.year) - year_rank(profile_b.year))
    score += max(0, 15 - year_diff * 3)

    age_diff = abs(calculate_age(profile_a.birthdate, today) - calculate_age(profile_b.birthdate, today))
    score += max(0, 15 - age_diff * 2)

    score += min(20, _overlap(profile_a.interests, profile_b.interests) * 4)
    score += min(15, _overlap(profile_a.clubs, profile_b.clubs) * 5)
    return score
