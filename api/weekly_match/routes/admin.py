from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder

from ..deps import require_admin
from ..errors import MatchingError
from ..http_helpers import http_error_for, validate_identifier
from ..schemas import ManualMatchRequest, ValidationResponse

router = APIRouter(dependencies=[Depends(require_admin)])


def _json(data: Any) -> Any:
    return jsonable_encoder(data)


@router.post("/admin/prompts/{prompt_id}/generate-matches")
def generate_prompt_matches(prompt_id: str, force: bool = False) -> dict[str, Any]:
    from .. import main as m

    prompt_id = validate_identifier(prompt_id, "prompt_id")
    try:
        out = m.repo_generate_matches_for_prompt(prompt_id, force=force)
    except MatchingError as exc:
        raise http_error_for(exc) from exc
    return _json(out)


@router.get("/admin/prompts/{prompt_id}/validate-matches", response_model=ValidationResponse)
def validate_prompt_matches(prompt_id: str) -> dict[str, Any]:
    from .. import main as m

    prompt_id = validate_identifier(prompt_id, "prompt_id")
    return m.repo_validate_match_mutuality(prompt_id)


@router.get("/admin/prompts/{prompt_id}/matches")
def list_prompt_matches(prompt_id: str) -> dict[str, Any]:
    from .. import main as m

    prompt_id = validate_identifier(prompt_id, "prompt_id")
    return _json(m.repo_list_prompt_matches(prompt_id))


@router.post("/admin/matches/manual")
def create_manual_match(payload: ManualMatchRequest) -> dict[str, Any]:
    from .. import main as m

    user_a = validate_identifier(payload.user_a, "user_a")
    user_b = validate_identifier(payload.user_b, "user_b")
    prompt_id = validate_identifier(payload.prompt_id, "prompt_id")
    if user_a == user_b:
        raise HTTPException(status_code=400, detail="Cannot match a user with themselves")
    try:
        out = m.repo_create_manual_match(user_a, user_b, prompt_id, append=payload.append)
    except MatchingError as exc:
        raise http_error_for(exc) from exc
    return _json(out)
