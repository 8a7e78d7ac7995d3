"""
AccessGate - Authorization Gate

Per-request check: resolve the bearer token, re-read the account's current
access status from the store and admit only granted accounts. Status is
never taken from the token, so a revoke is enforced on the next request.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.accounts.store import AccountStore
from accessgate.api.auth.tokens import verify_token
from accessgate.api.db.models import AccessStatus, Account, Role
from accessgate.api.errors import (
    AccessPending,
    AccessRevoked,
    AdminRequired,
    ForbiddenAction,
    MissingToken,
    Unauthenticated,
)


logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_token(
    cookie_token: Optional[str],
    authorization: Optional[str],
) -> str:
    """
    Pick the bearer token from the cookie or the Authorization header.

    Raises:
        MissingToken: Neither carries a token
    """
    if cookie_token:
        return cookie_token

    if authorization and authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token

    raise MissingToken()


def check_access_status(account: Account) -> None:
    """Raise the denial matching the account's current status."""
    status = AccessStatus(account.access_status)
    if status == AccessStatus.GRANTED:
        return
    if status == AccessStatus.PENDING:
        raise AccessPending()
    if status == AccessStatus.REVOKED:
        raise AccessRevoked()
    raise ForbiddenAction("Access denied")


class AuthorizationGate:
    """Admit or reject one request. Read-only: writes no audit records."""

    def __init__(self, db: AsyncSession):
        self.store = AccountStore(db)

    async def authorize(self, token: str) -> Account:
        """
        Resolve a token to a currently granted account.

        Raises:
            InvalidToken / TokenExpired: Token rejected by the issuer
            Unauthenticated: Token names an unknown account
            AccessPending / AccessRevoked: Account not currently granted
        """
        account_id = verify_token(token)

        account = await self.store.get_by_id(account_id, fresh=True)
        if account is None:
            raise Unauthenticated("Unauthorized: User not found")

        try:
            check_access_status(account)
        except ForbiddenAction:
            logger.warning(
                "Request denied for %s: access %s", account.id, account.access_status
            )
            raise

        return account

    @staticmethod
    def require_admin(account: Account) -> Account:
        if account.role != Role.ADMIN:
            raise AdminRequired()
        return account
