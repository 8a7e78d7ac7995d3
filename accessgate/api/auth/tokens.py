"""
Session Tokens

Create and verify bearer tokens. The payload identifies the account and
nothing else; role and access status are re-read on every request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from accessgate.api.config import settings
from accessgate.api.errors import InvalidToken, TokenExpired


TOKEN_TYPE = "access"


def create_access_token(
    account_id: UUID,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a new access token.

    Args:
        account_id: Account's UUID
        expires_delta: Lifetime override, defaults to the configured TTL

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": str(account_id),
        "iat": now,
        "exp": expire,
        "type": TOKEN_TYPE,
        "jti": uuid4().hex,
    }

    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def verify_token(token: str) -> UUID:
    """
    Verify a token and return the account id it was issued for.

    Raises:
        TokenExpired: Signature valid but past expiry
        InvalidToken: Bad signature, malformed token or wrong payload
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except ExpiredSignatureError as e:
        raise TokenExpired() from e
    except InvalidTokenError as e:
        raise InvalidToken() from e

    if payload.get("type") != TOKEN_TYPE:
        raise InvalidToken()

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidToken() from e


def get_token_expiry_seconds() -> int:
    """Get access token expiry in seconds."""
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
