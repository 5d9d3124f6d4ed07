from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder

from ..deps import current_user_id
from ..http_helpers import validate_identifier
from ..schemas import BlockRequest

router = APIRouter()


@router.post("/safety/blocks")
def safety_block(payload: BlockRequest, user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    from .. import main as m

    blocked_user_id = validate_identifier(payload.blocked_user_id, "blocked_user_id")
    if blocked_user_id == user_id:
        raise HTTPException(status_code=400, detail="Cannot block yourself")
    with m.SessionLocal() as db:
        created = m.repo.create_user_block(db, user_id, blocked_user_id)
        db.commit()
    return {"status": "blocked", "blocked_user_id": blocked_user_id, "created": created}


@router.delete("/safety/blocks/{blocked_user_id}")
def safety_unblock(blocked_user_id: str, user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    from .. import main as m

    blocked_user_id = validate_identifier(blocked_user_id, "blocked_user_id")
    with m.SessionLocal() as db:
        removed = m.repo.remove_user_block(db, user_id, blocked_user_id)
        db.commit()
    return {"status": "unblocked", "blocked_user_id": blocked_user_id, "removed": removed}


@router.get("/safety/blocks")
def safety_blocks(user_id: str = Depends(current_user_id)) -> dict[str, Any]:
    from .. import main as m

    with m.SessionLocal() as db:
        rows = m.repo.list_user_blocks(db, user_id)
    return jsonable_encoder({"blocks": rows})
