"""
Admin Service

Account listing, grant/revoke orchestration and audit reporting.
"""

from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import Row
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import AuditFilter, AuditLog, ClientInfo
from accessgate.api.access.state_machine import AccessSnapshot, AccessStateMachine
from accessgate.api.accounts.store import AccountStore
from accessgate.api.db.models import AccessAudit, Account
from accessgate.api.errors import AccountNotFound


class AdminService:
    """Service for admin operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.store = AccountStore(db)
        self.audit = AuditLog(db)
        self.machine = AccessStateMachine(db)

    # ==================== Accounts ====================

    async def get_users(self) -> Tuple[List[Account], Dict[UUID, Row]]:
        """All accounts plus the admins that granted or revoked them."""
        accounts = await self.store.list_all()
        return accounts, await self.store.performers_for(accounts)

    async def get_user(self, account_id: UUID) -> Tuple[Account, Dict[UUID, Row]]:
        account = await self.store.get_by_id(account_id, fresh=True)
        if account is None:
            raise AccountNotFound()
        return account, await self.store.performers_for([account])

    async def _get_target(self, account_id: UUID) -> Account:
        # Fresh read so the compare-and-set starts from the stored status
        account = await self.store.get_by_id(account_id, fresh=True)
        if account is None:
            raise AccountNotFound()
        return account

    # ==================== Transitions ====================

    async def grant_access(
        self,
        account_id: UUID,
        admin: Account,
        client: Optional[ClientInfo] = None,
    ) -> Tuple[Account, AccessSnapshot]:
        target = await self._get_target(account_id)
        snapshot = await self.machine.grant(target, admin, client=client)
        return target, snapshot

    async def revoke_access(
        self,
        account_id: UUID,
        admin: Account,
        reason: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> Tuple[Account, AccessSnapshot]:
        target = await self._get_target(account_id)
        snapshot = await self.machine.revoke(target, admin, reason=reason, client=client)
        return target, snapshot

    # ==================== Access History ====================

    async def get_access_history(
        self,
        filters: AuditFilter,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[AccessAudit], int]:
        return await self.audit.query(filters, page=page, limit=limit)

    async def get_user_access_history(self, account_id: UUID) -> List[AccessAudit]:
        return await self.audit.history_for(account_id)
