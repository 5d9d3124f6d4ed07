import json
import logging
from typing import Any, Callable

from sqlalchemy import text

logger = logging.getLogger(__name__)

EventEmitter = Callable[[str, dict[str, Any]], None]

_DEBUG_EVENTS = {"candidates_found", "non_mutual_pair_skipped", "mutual_pair_created"}


def logging_emitter(log: logging.Logger | None = None) -> EventEmitter:
    target = log or logger

    def emit(event_name: str, payload: dict[str, Any]) -> None:
        fields = " ".join(f"{k}={v}" for k, v in payload.items())
        level = logging.DEBUG if event_name in _DEBUG_EVENTS else logging.INFO
        target.log(level, "[MATCHING] %s %s", event_name, fields)

    return emit


def null_emitter(event_name: str, payload: dict[str, Any]) -> None:
    return None


def log_match_event(
    db,
    user_id: str,
    prompt_id: str,
    event_type: str,
    payload: dict[str, Any] | None = None,
) -> None:
    payload = payload or {}
    db.execute(
        text(
            """
            INSERT INTO match_event (user_id, prompt_id, event_type, payload)
            VALUES (:user_id, :prompt_id, :event_type, CAST(:payload AS jsonb))
            """
        ),
        {
            "user_id": user_id,
            "prompt_id": prompt_id,
            "event_type": event_type,
            "payload": json.dumps(payload),
        },
    )
