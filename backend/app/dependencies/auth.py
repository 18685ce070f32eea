"""Authentication dependencies for retrieving the current user and guarding cron calls."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import decode_access_token, secrets_match
from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.models.user import User


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_value(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    # Expect Authorization: Bearer <token>
    token = _bearer_value(authorization)
    if token is None:
        raise _unauthorized()
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise _unauthorized()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized()

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _unauthorized()
    return user


def require_cron_key(authorization: str | None = Header(default=None)) -> None:
    """Allow the call only when it presents the configured CRON_API_KEY."""
    if not secrets_match(_bearer_value(authorization), get_settings().cron_api_key):
        raise _unauthorized()
