from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from teamsync.core.config import settings
from teamsync.core.exceptions import (
    AuthenticationError,
    IdentityMismatchError,
    InvalidTokenError,
)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token, raising InvalidTokenError on any failure"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise InvalidTokenError()


def resolve_participant_id(claimed_id: str, token: Optional[str]) -> str:
    """
    Resolve the participant identity presented at a WebSocket handshake.

    Without a token the claimed id is trusted, unless REQUIRE_WS_AUTH is on.
    With a token, its ``sub`` claim must match the claimed id.
    """
    if not token:
        if settings.REQUIRE_WS_AUTH:
            raise AuthenticationError("Token required")
        return claimed_id

    payload = decode_token(token)
    subject = payload.get("sub")
    if not subject:
        raise InvalidTokenError()
    if str(subject) != claimed_id:
        raise IdentityMismatchError(claimed_id)
    return str(subject)
