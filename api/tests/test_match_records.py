from datetime import datetime, timezone

import pytest

from weekly_match.errors import RevealIndexOutOfRange
from weekly_match.services.match_records import (
    clean_partners,
    merge_partners,
    next_friday_midnight,
    record_to_response,
    reveal_at,
)


def test_next_friday_midnight_from_midweek():
    # Wednesday 2026-01-14 15:00 UTC is 10:00 in New York.
    out = next_friday_midnight(datetime(2026, 1, 14, 15, 0, tzinfo=timezone.utc), "America/New_York")
    assert out.date().isoformat() == "2026-01-16"
    assert (out.hour, out.minute) == (0, 0)
    assert out.utcoffset().total_seconds() == -5 * 3600


def test_next_friday_midnight_on_friday_is_a_week_out():
    out = next_friday_midnight(datetime(2026, 1, 16, 18, 0, tzinfo=timezone.utc), "America/New_York")
    assert out.date().isoformat() == "2026-01-23"


def test_next_friday_uses_local_date():
    # Saturday 03:00 UTC is still Friday evening in New York.
    out = next_friday_midnight(datetime(2026, 1, 17, 3, 0, tzinfo=timezone.utc), "America/New_York")
    assert out.date().isoformat() == "2026-01-23"


def test_clean_partners_drops_self_blank_duplicates_and_caps():
    assert clean_partners("a", ["b", "a", "", "  ", None, "b", "c", "d", "e"]) == ["b", "c", "d"]


def test_merge_partners_appends_up_to_capacity():
    matches, revealed, added = merge_partners("a", ["b"], [True], ["b", "c", "d", "e"], capacity=3)
    assert matches == ["b", "c", "d"]
    assert revealed == [True, False, False]
    assert added == ["c", "d"]


def test_merge_partners_noop_when_full():
    matches, revealed, added = merge_partners("a", ["b", "c", "d"], [False, False, False], ["e"], capacity=3)
    assert matches == ["b", "c", "d"]
    assert revealed == [False, False, False]
    assert added == []


def test_reveal_at_sets_one_flag():
    assert reveal_at(["b", "c"], [False, False], 1) == [False, True]


def test_reveal_at_pads_short_revealed_list():
    assert reveal_at(["b", "c"], [], 0) == [True, False]


@pytest.mark.parametrize("index", [-1, 2, 3])
def test_reveal_at_rejects_out_of_range(index):
    with pytest.raises(RevealIndexOutOfRange):
        reveal_at(["b", "c"], [False, False], index)


def test_record_to_response_serializes_timestamps():
    created = datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc)
    out = record_to_response(
        {
            "user_id": "a",
            "prompt_id": "p1",
            "matches": ["b"],
            "revealed": [False],
            "created_at": created,
            "expires_at": None,
        }
    )
    assert out == {
        "user_id": "a",
        "prompt_id": "p1",
        "matches": ["b"],
        "revealed": [False],
        "created_at": created.isoformat(),
        "expires_at": None,
    }
