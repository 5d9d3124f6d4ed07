from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from ..config import MATCHES_PER_USER
from ..errors import RevealIndexOutOfRange

FRIDAY = 4


def next_friday_midnight(now: datetime, tz: str = "America/New_York") -> datetime:
    """Midnight starting the next Friday in ``tz``; a week out when ``now`` is a Friday."""
    local_now = now.astimezone(ZoneInfo(tz))
    days = (FRIDAY - local_now.weekday()) % 7 or 7
    target = local_now.date() + timedelta(days=days)
    return datetime.combine(target, time.min, tzinfo=ZoneInfo(tz))


def clean_partners(owner: str, partners: list[Any], capacity: int = MATCHES_PER_USER) -> list[str]:
    out: list[str] = []
    for partner in partners:
        if not isinstance(partner, str) or not partner.strip() or partner == owner:
            continue
        if partner in out:
            continue
        out.append(partner)
    return out[:capacity]


def merge_partners(
    owner: str,
    existing: list[str],
    existing_revealed: list[bool],
    new_partners: list[Any],
    capacity: int = MATCHES_PER_USER,
) -> tuple[list[str], list[bool], list[str]]:
    """Append new partners to an existing record, up to ``capacity``.

    Returns the merged partner list, the matching revealed flags and the
    partners that were actually added.
    """
    matches = list(existing)
    revealed = list(existing_revealed)
    added: list[str] = []
    for partner in clean_partners(owner, new_partners, capacity=len(new_partners)):
        if partner in matches or len(matches) >= capacity:
            continue
        matches.append(partner)
        revealed.append(False)
        added.append(partner)
    return matches, revealed, added


def reveal_at(matches: list[str], revealed: list[bool], index: int) -> list[bool]:
    if index < 0 or index >= MATCHES_PER_USER or index >= len(matches):
        raise RevealIndexOutOfRange(index, len(matches))
    out = list(revealed) + [False] * max(0, len(matches) - len(revealed))
    out[index] = True
    return out


def record_to_response(row: dict[str, Any]) -> dict[str, Any]:
    def _iso(value: Any) -> str | None:
        return value.isoformat() if isinstance(value, datetime) else value

    return {
        "user_id": str(row["user_id"]),
        "prompt_id": str(row["prompt_id"]),
        "matches": list(row.get("matches") or []),
        "revealed": list(row.get("revealed") or []),
        "created_at": _iso(row.get("created_at")),
        "expires_at": _iso(row.get("expires_at")),
    }
