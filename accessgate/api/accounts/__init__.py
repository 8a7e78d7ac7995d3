"""Account records and credential verification."""

from accessgate.api.accounts.store import (
    AccountStore,
    hash_password,
    verify_password,
    normalize_email,
)

__all__ = ["AccountStore", "hash_password", "verify_password", "normalize_email"]
