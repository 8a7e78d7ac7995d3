"""Authentication module."""

from accessgate.api.auth.tokens import (
    create_access_token,
    verify_token,
    get_token_expiry_seconds,
)

__all__ = ["create_access_token", "verify_token", "get_token_expiry_seconds"]
