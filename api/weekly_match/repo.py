import json
from datetime import date, datetime
from typing import Any

from sqlalchemy import text

from .config import MATCHES_PER_USER
from .errors import MatchesAlreadyExist, MatchNotFound
from .services.match_records import clean_partners, merge_partners, reveal_at
from .services.scoring import Preferences, Profile, UserData


def _stored_tuple(values: Any) -> tuple[str, ...]:
    # Repeats are kept so the list reaches scoring at its stored length.
    if not isinstance(values, list):
        return ()
    return tuple(v for v in (str(value or "").strip() for value in values) if v)


def _str_tuple(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    out: list[str] = []
    for value in values:
        v = str(value or "").strip()
        if v and v not in out:
            out.append(v)
    return tuple(out)


def _to_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def profile_from_row(row: dict[str, Any]) -> Profile | None:
    birthdate = _to_date(row.get("birthdate"))
    gender = str(row.get("gender") or "").strip().lower()
    if birthdate is None or not gender:
        return None
    return Profile(
        user_id=str(row["user_id"]),
        gender=gender,
        birthdate=birthdate,
        year=str(row.get("year") or ""),
        school=str(row.get("school") or ""),
        majors=_str_tuple(row.get("majors")),
        interests=_str_tuple(row.get("interests")),
        clubs=_str_tuple(row.get("clubs")),
    )


def preferences_from_row(row: dict[str, Any]) -> Preferences | None:
    if row.get("age_min") is None or row.get("age_max") is None:
        return None
    return Preferences(
        user_id=str(row["user_id"]),
        age_min=int(row["age_min"]),
        age_max=int(row["age_max"]),
        genders=tuple(g.lower() for g in _str_tuple(row.get("genders"))),
        years=_str_tuple(row.get("years")),
        excluded_schools=_stored_tuple(row.get("excluded_schools")),
        excluded_majors=_stored_tuple(row.get("excluded_majors")),
    )


def get_prompt(db, prompt_id: str) -> dict[str, Any] | None:
    row = db.execute(
        text("SELECT * FROM weekly_prompt WHERE id=:prompt_id"),
        {"prompt_id": prompt_id},
    ).mappings().first()
    return dict(row) if row else None


def mark_prompt_completed(db, prompt_id: str, now: datetime) -> None:
    db.execute(
        text(
            """
            UPDATE weekly_prompt
            SET status='completed', active=FALSE, matches_generated_at=:now
            WHERE id=:prompt_id
            """
        ),
        {"prompt_id": prompt_id, "now": now},
    )


def get_respondents(db, prompt_id: str) -> list[str]:
    rows = db.execute(
        text(
            """
            SELECT user_id
            FROM prompt_answer
            WHERE prompt_id=:prompt_id
            ORDER BY answered_at ASC, user_id ASC
            """
        ),
        {"prompt_id": prompt_id},
    ).mappings().all()
    out: list[str] = []
    for r in rows:
        uid = str(r["user_id"] or "").strip()
        if uid and uid not in out:
            out.append(uid)
    return out


def load_profiles_and_preferences(db, user_ids: list[str]) -> dict[str, UserData]:
    if not user_ids:
        return {}
    profile_rows = db.execute(
        text(
            """
            SELECT user_id, gender, birthdate, year, school, majors, interests, clubs
            FROM profile
            WHERE user_id = ANY(:user_ids)
            """
        ),
        {"user_ids": list(user_ids)},
    ).mappings().all()
    pref_rows = db.execute(
        text(
            """
            SELECT user_id, age_min, age_max, genders, years, excluded_schools, excluded_majors
            FROM dating_preferences
            WHERE user_id = ANY(:user_ids)
            """
        ),
        {"user_ids": list(user_ids)},
    ).mappings().all()

    profiles = {str(r["user_id"]): profile_from_row(dict(r)) for r in profile_rows}
    preferences = {str(r["user_id"]): preferences_from_row(dict(r)) for r in pref_rows}
    return {uid: UserData(profile=profiles.get(uid), preferences=preferences.get(uid)) for uid in user_ids}


def load_history(db, user_ids: list[str], exclude_prompt_id: str) -> dict[str, set[str]]:
    history: dict[str, set[str]] = {uid: set() for uid in user_ids}
    if not user_ids:
        return history
    rows = db.execute(
        text(
            """
            SELECT user_id, matches
            FROM weekly_match
            WHERE user_id = ANY(:user_ids)
              AND prompt_id <> :prompt_id
            """
        ),
        {"user_ids": list(user_ids), "prompt_id": exclude_prompt_id},
    ).mappings().all()
    for r in rows:
        history.setdefault(str(r["user_id"]), set()).update(_str_tuple(r.get("matches")))
    return history


def load_blocks(db, user_ids: list[str]) -> dict[str, set[str]]:
    blocks: dict[str, set[str]] = {uid: set() for uid in user_ids}
    if not user_ids:
        return blocks
    rows = db.execute(
        text(
            """
            SELECT user_id, blocked_user_id
            FROM user_block
            WHERE user_id = ANY(:user_ids)
               OR blocked_user_id = ANY(:user_ids)
            """
        ),
        {"user_ids": list(user_ids)},
    ).mappings().all()
    for r in rows:
        a = str(r["user_id"])
        b = str(r["blocked_user_id"])
        blocks.setdefault(a, set()).add(b)
        blocks.setdefault(b, set()).add(a)
    return blocks


def count_match_records(db, prompt_id: str) -> int:
    row = db.execute(
        text("SELECT COUNT(1) AS c FROM weekly_match WHERE prompt_id=:prompt_id"),
        {"prompt_id": prompt_id},
    ).mappings().first()
    return int((row or {}).get("c") or 0)


def delete_match_records(db, prompt_id: str) -> int:
    res = db.execute(
        text("DELETE FROM weekly_match WHERE prompt_id=:prompt_id"),
        {"prompt_id": prompt_id},
    )
    return int(res.rowcount or 0)


def get_match_record(db, user_id: str, prompt_id: str, *, for_update: bool = False) -> dict[str, Any] | None:
    lock = " FOR UPDATE" if for_update else ""
    row = db.execute(
        text(f"SELECT * FROM weekly_match WHERE user_id=:user_id AND prompt_id=:prompt_id{lock}"),
        {"user_id": user_id, "prompt_id": prompt_id},
    ).mappings().first()
    return dict(row) if row else None


def write_match_record(
    db,
    user_id: str,
    prompt_id: str,
    partners: list[str],
    *,
    expires_at: datetime,
    append: bool = False,
) -> dict[str, Any]:
    """Create or append to one user's record with a single statement."""
    existing = get_match_record(db, user_id, prompt_id, for_update=True)
    if existing:
        current = list(existing.get("matches") or [])
        if not append:
            raise MatchesAlreadyExist(user_id, prompt_id, current)
        matches, revealed, added = merge_partners(
            user_id,
            current,
            list(existing.get("revealed") or []),
            partners,
            capacity=MATCHES_PER_USER,
        )
        if not added:
            return existing
        row = db.execute(
            text(
                """
                UPDATE weekly_match
                SET matches=CAST(:matches AS jsonb), revealed=CAST(:revealed AS jsonb)
                WHERE user_id=:user_id AND prompt_id=:prompt_id
                RETURNING *
                """
            ),
            {
                "user_id": user_id,
                "prompt_id": prompt_id,
                "matches": json.dumps(matches),
                "revealed": json.dumps(revealed),
            },
        ).mappings().first()
        return dict(row)

    matches = clean_partners(user_id, partners)
    row = db.execute(
        text(
            """
            INSERT INTO weekly_match (user_id, prompt_id, matches, revealed, expires_at)
            VALUES (:user_id, :prompt_id, CAST(:matches AS jsonb), CAST(:revealed AS jsonb), :expires_at)
            RETURNING *
            """
        ),
        {
            "user_id": user_id,
            "prompt_id": prompt_id,
            "matches": json.dumps(matches),
            "revealed": json.dumps([False] * len(matches)),
            "expires_at": expires_at,
        },
    ).mappings().first()
    return dict(row)


def reveal_match(db, user_id: str, prompt_id: str, index: int) -> dict[str, Any]:
    """Flip one revealed flag; the row stays locked until the caller commits."""
    row = get_match_record(db, user_id, prompt_id, for_update=True)
    if not row:
        raise MatchNotFound(user_id, prompt_id)
    revealed = reveal_at(list(row.get("matches") or []), list(row.get("revealed") or []), index)
    updated = db.execute(
        text(
            """
            UPDATE weekly_match
            SET revealed=CAST(:revealed AS jsonb)
            WHERE user_id=:user_id AND prompt_id=:prompt_id
            RETURNING *
            """
        ),
        {"user_id": user_id, "prompt_id": prompt_id, "revealed": json.dumps(revealed)},
    ).mappings().first()
    return dict(updated)


def list_match_records(db, prompt_id: str) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT *
            FROM weekly_match
            WHERE prompt_id=:prompt_id
            ORDER BY created_at, user_id
            """
        ),
        {"prompt_id": prompt_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def list_match_history(db, user_id: str, now: datetime, limit: int = 10) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT *
            FROM weekly_match
            WHERE user_id=:user_id
              AND expires_at > :now
            ORDER BY expires_at DESC, created_at DESC
            LIMIT :limit
            """
        ),
        {"user_id": user_id, "now": now, "limit": int(limit)},
    ).mappings().all()
    return [dict(r) for r in rows]


def create_user_block(db, user_id: str, blocked_user_id: str) -> bool:
    if not blocked_user_id or str(user_id) == str(blocked_user_id):
        return False
    res = db.execute(
        text(
            """
            INSERT INTO user_block (user_id, blocked_user_id)
            VALUES (:user_id, :blocked_user_id)
            ON CONFLICT (user_id, blocked_user_id) DO NOTHING
            """
        ),
        {"user_id": user_id, "blocked_user_id": blocked_user_id},
    )
    return int(res.rowcount or 0) > 0


def remove_user_block(db, user_id: str, blocked_user_id: str) -> int:
    res = db.execute(
        text(
            """
            DELETE FROM user_block
            WHERE user_id=:user_id
              AND blocked_user_id=:blocked_user_id
            """
        ),
        {"user_id": user_id, "blocked_user_id": blocked_user_id},
    )
    return int(res.rowcount or 0)


def list_user_blocks(db, user_id: str) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT blocked_user_id, created_at
            FROM user_block
            WHERE user_id=:user_id
            ORDER BY created_at DESC
            """
        ),
        {"user_id": user_id},
    ).mappings().all()
    return [dict(r) for r in rows]
