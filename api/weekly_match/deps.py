from fastapi import Header, HTTPException


def validate_admin_token(token: str | None, admin_token: str | None) -> None:
    if not admin_token or not token or token != admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    from . import main as m

    m._validate_admin_token(x_admin_token)


def parse_actor_user_id(raw_actor_user_id: str | None) -> str | None:
    if not raw_actor_user_id:
        return None
    value = raw_actor_user_id.strip()
    return value or None


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    user_id = parse_actor_user_id(x_user_id)
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return user_id
