"""
Credential Store

Account records and the one-way credential verifier. Knows nothing about
access control beyond persisting the fields the state machine owns.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional
from uuid import UUID

import bcrypt
from sqlalchemy import Row, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.config import settings
from accessgate.api.db.models import AccessStatus, Account, Role, utcnow
from accessgate.api.db.session import bounded
from accessgate.api.errors import EmailAlreadyRegistered


logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountStore:
    """Persistence for account records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        role: Role = Role.USER,
    ) -> Account:
        """
        Create an account.

        Regular users start pending. Admins start granted and carry their
        own id as the granting account.

        Raises:
            EmailAlreadyRegistered: If the email is taken
        """
        email = normalize_email(email)

        if await self.get_by_email(email):
            raise EmailAlreadyRegistered()

        account = Account(
            id=uuid.uuid4(),
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            phone=phone.strip() if phone else None,
            role=role.value,
            access_status=AccessStatus.PENDING.value,
        )
        if role == Role.ADMIN:
            account.access_status = AccessStatus.GRANTED.value
            account.access_granted_at = utcnow()
            account.access_granted_by = account.id

        self.db.add(account)
        try:
            await bounded(self.db.commit())
        except IntegrityError as e:
            # Lost a registration race on the unique email index
            await self.db.rollback()
            raise EmailAlreadyRegistered() from e

        logger.info(
            "Account created: %s role=%s status=%s",
            account.email, account.role, account.access_status,
        )
        return account

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address."""
        result = await bounded(
            self.db.execute(
                select(Account).where(Account.email == normalize_email(email))
            )
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, account_id: UUID, fresh: bool = False) -> Optional[Account]:
        """
        Get account by ID.

        With ``fresh`` the row is re-read from the store and overwrites any
        copy already held by the session.
        """
        query = select(Account).where(Account.id == account_id)
        if fresh:
            query = query.execution_options(populate_existing=True)

        result = await bounded(self.db.execute(query))
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Account]:
        """All accounts, newest first."""
        result = await bounded(
            self.db.execute(
                select(Account)
                .order_by(desc(Account.created_at))
                .execution_options(populate_existing=True)
            )
        )
        return list(result.scalars().all())

    async def performers_for(self, accounts: Iterable[Account]) -> Dict[UUID, Row]:
        """
        Id, name and email of every admin that granted or revoked one of
        ``accounts``, keyed by id.

        Read as plain rows so a self-granted admin resolves like any other.
        """
        ids = set()
        for account in accounts:
            if account.access_granted_by:
                ids.add(account.access_granted_by)
            if account.access_revoked_by:
                ids.add(account.access_revoked_by)
        if not ids:
            return {}

        result = await bounded(
            self.db.execute(
                select(Account.id, Account.name, Account.email).where(Account.id.in_(ids))
            )
        )
        return {row.id: row for row in result.all()}

    def verify_credentials(self, account: Account, password: str) -> bool:
        return verify_password(password, account.password_hash)
