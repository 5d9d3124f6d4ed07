import re

from fastapi import HTTPException

from .errors import (
    MatchCapacityExceeded,
    MatchesAlreadyExist,
    MatchingError,
    MatchNotFound,
    PromptNotFound,
    RevealIndexOutOfRange,
)

_ID_RE = re.compile(r"[A-Za-z0-9_.:-]{1,128}")


def validate_identifier(value: str, field: str) -> str:
    v = str(value or "").strip()
    if not _ID_RE.fullmatch(v):
        raise HTTPException(status_code=400, detail=f"{field} must be 1-128 chars of letters, digits, _ . : -")
    return v


def http_error_for(exc: MatchingError) -> HTTPException:
    if isinstance(exc, (PromptNotFound, MatchNotFound)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, RevealIndexOutOfRange):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, (MatchesAlreadyExist, MatchCapacityExceeded)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
