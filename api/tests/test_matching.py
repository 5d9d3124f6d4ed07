import random
from datetime import date

from weekly_match.catalog import GENDERS, SCHOOLS, YEARS
from weekly_match.services import matching
from weekly_match.services.matching import (
    find_candidates,
    generate_weekly_matches,
    match_distribution,
    reconcile_mutual_pairs,
)
from weekly_match.services.scoring import Preferences, Profile, UserData

TODAY = date(2026, 1, 15)


def _user(
    user_id: str,
    gender: str = "female",
    age: int = 22,
    year: str = "Senior",
    school: str = "College of Arts and Sciences",
    majors: tuple[str, ...] = ("Economics",),
    interests: tuple[str, ...] = (),
    seeking: tuple[str, ...] = (),
    age_min: int = 18,
    age_max: int = 30,
    years: tuple[str, ...] = (),
    excluded_schools: tuple[str, ...] = (),
    excluded_majors: tuple[str, ...] = (),
) -> UserData:
    return UserData(
        profile=Profile(
            user_id=user_id,
            gender=gender,
            birthdate=date(TODAY.year - age, 1, 1),
            year=year,
            school=school,
            majors=majors,
            interests=interests,
        ),
        preferences=Preferences(
            user_id=user_id,
            age_min=age_min,
            age_max=age_max,
            genders=seeking,
            years=years,
            excluded_schools=excluded_schools,
            excluded_majors=excluded_majors,
        ),
    )


def test_find_candidates_ranks_by_attractiveness_with_stable_ties():
    users = {
        "a": _user("a", interests=("jazz",)),
        "b": _user("b", school="Law School"),
        "c": _user("c", interests=("jazz",)),
        "d": _user("d"),
        "e": _user("e"),
    }
    # d and e tie, so they keep input order.
    assert find_candidates("a", users, today=TODAY) == ["c", "d", "e"]


def test_find_candidates_skips_self_blocked_incomplete_and_history():
    users = {
        "a": _user("a"),
        "b": _user("b"),
        "c": _user("c"),
        "d": UserData(profile=None, preferences=None),
        "e": _user("e"),
    }
    out = find_candidates("a", users, history={"c"}, blocked={"b"}, today=TODAY)
    assert out == ["e"]


def test_find_candidates_returns_nothing_for_incomplete_viewer():
    users = {"a": UserData(profile=None), "b": _user("b")}
    assert find_candidates("a", users, today=TODAY) == []


def test_history_partner_never_proposed_in_strict_or_relaxed_mode():
    users = {"a": _user("a", interests=("jazz",)), "b": _user("b", interests=("jazz",)), "c": _user("c")}
    for relaxed in (False, True):
        out = find_candidates("a", users, history={"b"}, relaxed=relaxed, today=TODAY)
        assert "b" not in out
        assert out == ["c"]


def test_excluded_gender_never_appears_in_candidates():
    users = {
        "viewer": _user("viewer", gender="male", seeking=("female",)),
        "m1": _user("m1", gender="male"),
        "f1": _user("f1", gender="female"),
        "nb": _user("nb", gender="non-binary"),
    }
    for relaxed in (False, True):
        assert find_candidates("viewer", users, relaxed=relaxed, today=TODAY) == ["f1"]


def test_reconcile_keeps_only_mutual_pairs():
    final, stats = reconcile_mutual_pairs(
        ["a", "b", "c"],
        {"a": ["b", "c"], "b": ["a"], "c": []},
    )
    assert final == {"a": ["b"], "b": ["a"], "c": []}
    assert stats == {"mutual_pairs": 1, "non_mutual_skipped": 1, "capacity_skipped": 0}


def test_reconcile_drops_mutual_pair_when_user_is_full():
    events = []
    final, stats = reconcile_mutual_pairs(
        ["a", "b", "c", "d", "e"],
        {"a": ["b", "c", "d", "e"], "b": ["a"], "c": ["a"], "d": ["a"], "e": ["a"]},
        capacity=3,
        emit=lambda name, payload: events.append((name, payload)),
    )
    assert final["a"] == ["b", "c", "d"]
    assert final["e"] == []
    assert stats["capacity_skipped"] == 1
    assert ("mutual_pair_capacity_skipped", {"user_a": "a", "user_b": "e", "a_count": 3, "b_count": 0}) in events


def test_reconcile_priority_follows_user_order():
    potential = {"x": ["a"], "y": ["a"], "a": ["y", "x"]}
    final, _ = reconcile_mutual_pairs(["x", "y", "a"], potential, capacity=1)
    assert final == {"x": ["a"], "y": [], "a": ["x"]}

    final, _ = reconcile_mutual_pairs(["a", "x", "y"], potential, capacity=1)
    assert final == {"a": ["y"], "x": [], "y": ["a"]}


def test_match_distribution_counts_every_bucket():
    assert match_distribution({"a": ["b"], "b": ["a"], "c": []}, capacity=3) == {0: 1, 1: 2, 2: 0, 3: 0}


def test_relaxed_retry_rescues_users_with_no_strict_candidates():
    users = {
        "a": _user(
            "a",
            school="College of Engineering",
            majors=("Computer Science",),
            age_min=18,
            age_max=25,
            years=("Freshman",),
            excluded_schools=("College of Engineering",),
        ),
        "b": _user(
            "b",
            age=26,
            school="College of Engineering",
            majors=("Computer Science",),
            years=("Freshman",),
            excluded_schools=("College of Engineering",),
            excluded_majors=("Computer Science",),
        ),
    }
    result = generate_weekly_matches(["a", "b"], users, today=TODAY)
    assert result.relaxed_retried == 2
    assert result.relaxed_found == 2
    assert result.final == {"a": ["b"], "b": ["a"]}
    assert result.matched_user_ids == ["a", "b"]


def test_generate_skips_incomplete_users_and_reports_them():
    users = {"a": _user("a"), "b": _user("b"), "c": UserData(profile=None)}
    events = []
    result = generate_weekly_matches(
        ["a", "b", "c", "ghost"],
        users,
        today=TODAY,
        emit=lambda name, payload: events.append(name),
    )
    assert result.skipped_users == ["c", "ghost"]
    assert result.final["a"] == ["b"]
    assert result.final["c"] == []
    assert result.relaxed_retried == 0
    assert events[0] == "respondents_loaded"
    assert events[-1] == "distribution"
    assert events.count("user_skipped") == 2

    report = result.as_report()
    assert report["respondents"] == 4
    assert report["mutual_pairs"] == 1
    assert report["distribution"] == {"0": 2, "1": 2, "2": 0, "3": 0}


def test_candidate_error_for_one_user_does_not_abort_run(monkeypatch):
    users = {"a": _user("a"), "b": _user("b"), "c": _user("c")}
    real = matching.find_candidates

    def flaky(user_id, *args, **kwargs):
        if user_id == "b":
            raise RuntimeError("boom")
        return real(user_id, *args, **kwargs)

    monkeypatch.setattr(matching, "find_candidates", flaky)
    result = generate_weekly_matches(["a", "b", "c"], users, today=TODAY)

    assert "b" in result.candidate_errors
    assert "boom" in result.candidate_errors["b"]
    assert result.final["b"] == []
    assert result.final["a"] == ["c"]
    assert result.final["c"] == ["a"]


def test_generate_is_deterministic():
    users = {uid: _user(uid) for uid in ["a", "b", "c", "d", "e", "f"]}
    first = generate_weekly_matches(list(users), users, today=TODAY)
    second = generate_weekly_matches(list(users), users, today=TODAY)
    assert first.final == second.final


def _population(seed: int = 7, n: int = 60):
    rnd = random.Random(seed)
    users: dict[str, UserData] = {}
    for i in range(n):
        uid = f"u{i:03d}"
        min_age = rnd.randint(18, 24)
        users[uid] = _user(
            uid,
            gender=rnd.choice(GENDERS),
            age=rnd.randint(18, 30),
            year=rnd.choice(YEARS),
            school=rnd.choice(SCHOOLS),
            interests=tuple(rnd.sample(["jazz", "chess", "hiking", "film", "food", "tennis"], 2)),
            seeking=tuple(rnd.sample(GENDERS, rnd.randint(0, 2))),
            age_min=min_age,
            age_max=min_age + rnd.randint(2, 8),
            years=tuple(rnd.sample(YEARS, rnd.randint(0, 3))),
            excluded_schools=tuple(rnd.sample(SCHOOLS, rnd.randint(0, 2))),
        )
    ids = list(users)
    history = {uid: set(rnd.sample(ids, 3)) - {uid} for uid in ids}
    blocks = {uid: set(rnd.sample(ids, 2)) - {uid} for uid in ids}
    return ids, users, history, blocks


def test_population_properties_hold():
    ids, users, history, blocks = _population()
    result = generate_weekly_matches(ids, users, history, blocks, today=TODAY)
    final = result.final

    assert result.mutual_pairs > 0
    for a, partners in final.items():
        assert len(partners) <= 3
        assert len(set(partners)) == len(partners)
        assert a not in partners
        prefs_a = users[a].preferences
        for b in partners:
            assert a in final[b]
            assert b not in history.get(a, set())
            assert b not in blocks.get(a, set())
            assert a not in blocks.get(b, set())
            if prefs_a.genders:
                assert users[b].profile.gender in prefs_a.genders

    assert sum(result.distribution.values()) == len(ids)
    assert sum(len(p) for p in final.values()) == 2 * result.mutual_pairs
