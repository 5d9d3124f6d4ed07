from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import MATCH_HISTORY_LIMIT
from ..deps import current_user_id
from ..errors import MatchingError
from ..http_helpers import http_error_for, validate_identifier
from ..schemas import MatchHistoryResponse, MatchRecordResponse, RevealRequest

router = APIRouter()


@router.get("/matches/history", response_model=MatchHistoryResponse)
def get_match_history(
    limit: int = Query(default=MATCH_HISTORY_LIMIT, ge=1, le=52),
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    from .. import main as m

    rows = m.repo_list_match_history(user_id, now=datetime.now(timezone.utc), limit=limit)
    return {"matches": rows}


@router.get("/matches/{prompt_id}", response_model=MatchRecordResponse)
def get_prompt_matches(prompt_id: str, user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    from .. import main as m

    prompt_id = validate_identifier(prompt_id, "prompt_id")
    try:
        return m.repo_get_match_record(user_id, prompt_id)
    except MatchingError as exc:
        raise http_error_for(exc) from exc


@router.post("/matches/{prompt_id}/reveal", response_model=MatchRecordResponse)
def reveal_prompt_match(
    prompt_id: str,
    payload: RevealRequest,
    user_id: str = Depends(current_user_id),
) -> dict[str, Any]:
    from .. import main as m

    prompt_id = validate_identifier(prompt_id, "prompt_id")
    if payload.index < 0:
        raise HTTPException(status_code=400, detail="index must be >= 0")
    try:
        return m.repo_reveal_match(user_id, prompt_id, payload.index)
    except MatchingError as exc:
        raise http_error_for(exc) from exc
