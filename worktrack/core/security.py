"""
JWT access-token handling.

Tokens are minted by the auth service that owns login; this service only
needs to verify them and read the subject (user id). ``create_access_token``
is kept for that service's contract and for tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from worktrack.core.config import settings
from worktrack.schemas.token import TokenPayload


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {"exp": expire, "sub": str(user_id), "type": "access"},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_access_token(token: str) -> TokenPayload | None:
    """Return the payload of a valid *access* token, else ``None``."""
    try:
        raw = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        payload = TokenPayload.model_validate(raw)
    except (JWTError, PydanticValidationError):
        return None
    if payload.type != "access" or payload.sub is None:
        return None
    return payload
