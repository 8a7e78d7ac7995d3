"""
Authentication Service

Registration and the login sequence. Every login outcome that reaches a
known account is audited and committed before the caller sees the result.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import AuditLog, ClientInfo
from accessgate.api.access.gate import check_access_status
from accessgate.api.accounts.store import AccountStore
from accessgate.api.auth.schemas import AdminRegisterRequest, UserRegisterRequest
from accessgate.api.auth.tokens import create_access_token, get_token_expiry_seconds
from accessgate.api.config import settings
from accessgate.api.db.models import AccessStatus, Account, AuditAction, Role, utcnow
from accessgate.api.db.session import bounded
from accessgate.api.errors import (
    InvalidAdminCode,
    InvalidCredentials,
    TransientStoreError,
)


logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    account: Account
    token: str
    expires_in: int


class AuthService:
    """Account API orchestration over the store, audit log and token issuer."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = AccountStore(db)
        self.audit = AuditLog(db)

    async def register(self, data: UserRegisterRequest) -> Account:
        """
        Register a new user. The account starts pending.

        Raises:
            EmailAlreadyRegistered: If email already exists
        """
        return await self.store.create(
            name=data.name,
            email=data.email,
            password=data.password,
            phone=data.phone,
            role=Role.USER,
        )

    async def register_admin(self, data: AdminRegisterRequest) -> Account:
        """
        Register an admin. The account starts granted, stamped by itself.

        Raises:
            InvalidAdminCode: Code mismatch or admin registration disabled
            EmailAlreadyRegistered: If email already exists
        """
        expected = settings.ADMIN_REGISTRATION_CODE
        if not expected or not secrets.compare_digest(
            data.admin_code.encode(), expected.encode()
        ):
            logger.warning("Admin registration rejected for %s: bad admin code", data.email)
            raise InvalidAdminCode()

        return await self.store.create(
            name=data.name,
            email=data.email,
            password=data.password,
            phone=data.phone,
            role=Role.ADMIN,
        )

    async def login(
        self,
        email: str,
        password: str,
        client: Optional[ClientInfo] = None,
    ) -> LoginResult:
        """
        Authenticate and issue a session token.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccessPending / AccessRevoked: Credentials fine, access not granted
        """
        account = await self.store.get_by_email(email)

        # Unknown email: nothing to attach a record to, same answer as a bad password
        if account is None:
            raise InvalidCredentials()

        if not self.store.verify_credentials(account, password):
            await self._audit_and_commit(
                account, AuditAction.LOGIN_FAILED, client, {"reason": "Invalid password"}
            )
            logger.warning("Login failed for %s: invalid password", account.email)
            raise InvalidCredentials()

        status = AccessStatus(account.access_status)
        if status != AccessStatus.GRANTED:
            await self._audit_and_commit(
                account, AuditAction.ACCESS_DENIED, client, {"reason": status.value}
            )
            logger.warning("Login denied for %s: access %s", account.email, status.value)
            check_access_status(account)

        account.last_login_at = utcnow()
        await self._audit_and_commit(account, AuditAction.LOGIN_SUCCESS, client)

        token = create_access_token(account.id)
        return LoginResult(
            account=account,
            token=token,
            expires_in=get_token_expiry_seconds(),
        )

    async def _audit_and_commit(
        self,
        account: Account,
        action: AuditAction,
        client: Optional[ClientInfo],
        metadata: Optional[dict] = None,
    ) -> None:
        account_id = account.id
        try:
            await self.audit.record(
                account_id=account_id,
                action=action,
                performed_by=None,
                client=client,
                metadata=metadata,
            )
            await bounded(self.db.commit())
        except TransientStoreError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Login audit for %s not written: %s", account_id, e)
            raise TransientStoreError() from e
