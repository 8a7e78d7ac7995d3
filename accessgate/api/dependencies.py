"""
FastAPI Dependencies

Authorization Gate wiring for protected routes.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import ClientInfo
from accessgate.api.access.gate import AuthorizationGate, extract_token
from accessgate.api.config import settings
from accessgate.api.db.models import Account
from accessgate.api.db.session import get_db


# Header is optional: the cookie carries the token just as well
security = HTTPBearer(auto_error=False)


async def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """
    Get the current account, re-checking its access status.

    Raises:
        Unauthenticated: Token missing, invalid or expired
        AccessPending / AccessRevoked: Account not currently granted
    """
    authorization = None
    if credentials:
        authorization = f"{credentials.scheme} {credentials.credentials}"

    token = extract_token(
        request.cookies.get(settings.TOKEN_COOKIE_NAME),
        authorization,
    )

    account = await AuthorizationGate(db).authorize(token)
    request.state.account_id = account.id
    return account


async def get_admin_account(
    account: Account = Depends(get_current_account),
) -> Account:
    """
    Require admin account.

    Raises:
        AdminRequired: If account is not an admin
    """
    return AuthorizationGate.require_admin(account)


def get_client_info(request: Request) -> ClientInfo:
    """Client address and agent for audit records."""
    return ClientInfo.from_request(request)
