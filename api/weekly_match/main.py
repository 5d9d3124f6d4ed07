import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .config import (
    ADMIN_TOKEN,
    DEFAULT_SCORING_CONFIG,
    MATCH_HISTORY_LIMIT,
    MATCH_TIMEZONE,
    MATCHES_PER_USER,
)
from .database import SessionLocal
from .deps import validate_admin_token as _validate_admin_token_impl
from .errors import MatchCapacityExceeded, MatchesAlreadyExist, MatchNotFound, PromptNotFound
from .routes import include_modular_routers
from . import repo
from .services.events import log_match_event, logging_emitter
from .services.match_records import next_friday_midnight, record_to_response
from .services.matching import generate_weekly_matches, match_distribution
from .services.validation import validate_mutuality

logger = logging.getLogger(__name__)

app = FastAPI(title="Weekly Match API")
include_modular_routers(app)


def run_migrations() -> None:
    env_dir = os.getenv("MIGRATIONS_DIR", "").strip()
    docker_dir = Path("/app/migrations")
    local_dir = Path(__file__).resolve().parents[1] / "migrations"

    if env_dir:
        migrations_dir = Path(env_dir)
    elif docker_dir.exists():
        migrations_dir = docker_dir
    else:
        migrations_dir = local_dir

    if not migrations_dir.exists() or not migrations_dir.is_dir():
        raise FileNotFoundError(
            "Migrations directory not found. Checked: "
            f"MIGRATIONS_DIR={env_dir or '<unset>'}, {docker_dir}, {local_dir}"
        )

    files = sorted([f.name for f in migrations_dir.iterdir() if f.is_file() and f.suffix == ".sql"])
    with SessionLocal() as db:
        for fname in files:
            sql = (migrations_dir / fname).read_text(encoding="utf-8")
            db.execute(text(sql))
        db.commit()


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    run_migrations()


def _validate_admin_token(token: str | None) -> None:
    _validate_admin_token_impl(token, ADMIN_TOKEN)


def _local_today(now: datetime):
    return now.astimezone(ZoneInfo(MATCH_TIMEZONE)).date()


def repo_generate_matches_for_prompt(
    prompt_id: str,
    force: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Run the full weekly pipeline for one prompt and persist the result.

    Loading failures propagate. A failed write for one user is logged and
    reported under ``write_errors`` without touching anyone else's record.
    """
    now = now or datetime.now(timezone.utc)
    expires_at = next_friday_midnight(now, MATCH_TIMEZONE)
    deleted = 0

    with SessionLocal() as db:
        if not repo.get_prompt(db, prompt_id):
            raise PromptNotFound(prompt_id)

        existing = repo.count_match_records(db, prompt_id)
        if existing > 0:
            if not force:
                return {
                    "prompt_id": prompt_id,
                    "matched_user_count": 0,
                    "existing_records": existing,
                    "message": "Matches already exist",
                }
            deleted = repo.delete_match_records(db, prompt_id)
            db.commit()
            logger.info("[MATCHING] force regeneration prompt_id=%s deleted=%s", prompt_id, deleted)

        user_ids = repo.get_respondents(db, prompt_id)
        users = repo.load_profiles_and_preferences(db, user_ids)
        history = repo.load_history(db, user_ids, exclude_prompt_id=prompt_id)
        blocks = repo.load_blocks(db, user_ids)

    result = generate_weekly_matches(
        user_ids,
        users,
        history,
        blocks,
        today=_local_today(now),
        cfg=DEFAULT_SCORING_CONFIG,
        capacity=MATCHES_PER_USER,
        emit=logging_emitter(),
    )

    written: list[str] = []
    write_errors: dict[str, str] = {}
    for uid in result.matched_user_ids:
        partners = result.final[uid]
        try:
            with SessionLocal() as db:
                repo.write_match_record(db, uid, prompt_id, partners, expires_at=expires_at)
                log_match_event(db, uid, prompt_id, "match_created", {"matches": partners})
                db.commit()
            written.append(uid)
        except Exception as exc:
            logger.exception("[MATCH_WRITE] failed user_id=%s prompt_id=%s", uid, prompt_id)
            write_errors[uid] = str(exc)

    unmatched = [uid for uid in result.user_ids if not result.final.get(uid)]
    try:
        with SessionLocal() as db:
            for uid in unmatched:
                log_match_event(db, uid, prompt_id, "no_match", {"skipped": uid in result.skipped_users})
            repo.mark_prompt_completed(db, prompt_id, now)
            db.commit()
    except SQLAlchemyError:
        logger.warning("[MATCHING] could not mark prompt completed prompt_id=%s", prompt_id, exc_info=True)

    logger.info(
        "[MATCHING] prompt_id=%s respondents=%s matched=%s write_errors=%s",
        prompt_id,
        len(result.user_ids),
        len(written),
        len(write_errors),
    )

    return {
        "prompt_id": prompt_id,
        "matched_user_count": len(written),
        **result.as_report(),
        "no_match_count": len(unmatched),
        "write_errors": write_errors,
        "deleted_records": deleted,
        "expires_at": expires_at.isoformat(),
    }


def repo_validate_match_mutuality(prompt_id: str) -> dict[str, Any]:
    with SessionLocal() as db:
        rows = repo.list_match_records(db, prompt_id)
    records = {str(r["user_id"]): list(r.get("matches") or []) for r in rows}
    revealed = {str(r["user_id"]): list(r.get("revealed") or []) for r in rows}
    out = validate_mutuality(records, revealed)
    if out["is_valid"]:
        logger.info("[VALIDATION] prompt_id=%s records=%s all mutual", prompt_id, out["records_checked"])
    else:
        logger.warning("[VALIDATION] prompt_id=%s errors=%s", prompt_id, len(out["errors"]))
    return {"prompt_id": prompt_id, **out}


def repo_list_prompt_matches(prompt_id: str) -> dict[str, Any]:
    with SessionLocal() as db:
        rows = repo.list_match_records(db, prompt_id)
    records = [record_to_response(r) for r in rows]
    final = {r["user_id"]: r["matches"] for r in records}
    return {
        "prompt_id": prompt_id,
        "count": len(records),
        "distribution": {str(k): v for k, v in match_distribution(final, MATCHES_PER_USER).items()},
        "records": records,
    }


def repo_get_match_record(user_id: str, prompt_id: str) -> dict[str, Any]:
    with SessionLocal() as db:
        row = repo.get_match_record(db, user_id, prompt_id)
    if not row:
        raise MatchNotFound(user_id, prompt_id)
    return record_to_response(row)


def repo_list_match_history(user_id: str, now: datetime, limit: int = MATCH_HISTORY_LIMIT) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = repo.list_match_history(db, user_id, now, limit)
    return [record_to_response(r) for r in rows]


def repo_reveal_match(user_id: str, prompt_id: str, index: int) -> dict[str, Any]:
    with SessionLocal() as db:
        row = repo.reveal_match(db, user_id, prompt_id, index)
        log_match_event(db, user_id, prompt_id, "match_revealed", {"index": index, "partner": row["matches"][index]})
        db.commit()
    logger.info("[REVEAL] user_id=%s prompt_id=%s index=%s", user_id, prompt_id, index)
    return record_to_response(row)


def repo_create_manual_match(
    user_a: str,
    user_b: str,
    prompt_id: str,
    append: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Pair two users for a prompt, writing both sides in one transaction."""
    if not user_a or not user_b or user_a == user_b:
        raise ValueError("Manual match needs two distinct users")
    now = now or datetime.now(timezone.utc)
    expires_at = next_friday_midnight(now, MATCH_TIMEZONE)

    with SessionLocal() as db:
        if not repo.get_prompt(db, prompt_id):
            raise PromptNotFound(prompt_id)

        for owner, partner in ((user_a, user_b), (user_b, user_a)):
            row = repo.get_match_record(db, owner, prompt_id, for_update=True)
            if not row:
                continue
            matches = list(row.get("matches") or [])
            if not append:
                raise MatchesAlreadyExist(owner, prompt_id, matches)
            if partner not in matches and len(matches) >= MATCHES_PER_USER:
                raise MatchCapacityExceeded(owner, prompt_id, MATCHES_PER_USER)

        record_a = repo.write_match_record(db, user_a, prompt_id, [user_b], expires_at=expires_at, append=append)
        record_b = repo.write_match_record(db, user_b, prompt_id, [user_a], expires_at=expires_at, append=append)
        log_match_event(db, user_a, prompt_id, "match_created", {"matches": [user_b], "manual": True})
        log_match_event(db, user_b, prompt_id, "match_created", {"matches": [user_a], "manual": True})
        db.commit()

    logger.info("[MATCH_WRITE] manual pair prompt_id=%s users=%s,%s append=%s", prompt_id, user_a, user_b, append)
    return {
        "prompt_id": prompt_id,
        "records": [record_to_response(record_a), record_to_response(record_b)],
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
