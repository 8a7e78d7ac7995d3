"""
AccessGate - Audit Log

Append-only ledger of access-relevant events. This module exposes no update
or delete operation; the ORM layer additionally rejects any attempt to
modify or remove a persisted record (see ``db.models``).
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import Request
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from accessgate.api.db.models import AccessAudit, AuditAction, utcnow
from accessgate.api.db.session import bounded


logger = logging.getLogger(__name__)


# ============================================================
# Client Metadata
# ============================================================


@dataclass(frozen=True)
class ClientInfo:
    """Where a request came from."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request: Optional[Request]) -> "ClientInfo":
        """Extract client IP (preferring X-Forwarded-For) and user agent."""
        if request is None:
            return cls()

        ip = None
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # First entry is the original client
            ip = forwarded.split(",")[0].strip()
        elif request.client:
            ip = request.client.host

        return cls(ip_address=ip, user_agent=request.headers.get("user-agent"))


# ============================================================
# Query Filters
# ============================================================


@dataclass
class AuditFilter:
    """Filter options for audit queries."""

    account_id: Optional[UUID] = None
    action: Optional[AuditAction] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def apply(self, query):
        if self.account_id:
            query = query.where(AccessAudit.account_id == self.account_id)
        if self.action:
            query = query.where(AccessAudit.action == AuditAction(self.action).value)
        if self.start_date:
            query = query.where(AccessAudit.created_at >= self.start_date)
        if self.end_date:
            query = query.where(AccessAudit.created_at <= self.end_date)
        return query


# ============================================================
# Audit Log
# ============================================================


class AuditLog:
    """
    Writer and reader for the audit ledger.

    ``record`` only stages and flushes the row; committing belongs to the
    caller so a record can share a transaction with the change it describes.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        account_id: UUID,
        action: AuditAction,
        performed_by: Optional[UUID] = None,
        client: Optional[ClientInfo] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AccessAudit:
        """Append one audit record to the current transaction."""
        client = client or ClientInfo()
        entry = AccessAudit(
            account_id=account_id,
            action=AuditAction(action).value,
            performed_by=performed_by,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            details=metadata,
            created_at=utcnow(),
        )
        self.db.add(entry)
        await bounded(self.db.flush())

        logger.info(
            "AUDIT",
            extra={
                "audit_event": {
                    "id": entry.id,
                    "account_id": str(account_id),
                    "action": entry.action,
                    "performed_by": str(performed_by) if performed_by else None,
                    "client": asdict(client),
                    "metadata": metadata,
                },
            },
        )
        return entry

    async def query(
        self,
        filters: Optional[AuditFilter] = None,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[AccessAudit], int]:
        """Filtered page of records, newest first, plus the total match count."""
        filters = filters or AuditFilter()
        query = filters.apply(select(AccessAudit))

        count_query = select(func.count()).select_from(query.subquery())
        total = await bounded(self.db.scalar(count_query)) or 0

        offset = (page - 1) * limit
        query = (
            query.options(
                selectinload(AccessAudit.account),
                selectinload(AccessAudit.performer),
            )
            .order_by(desc(AccessAudit.created_at), desc(AccessAudit.id))
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )

        result = await bounded(self.db.execute(query))
        return list(result.scalars().all()), total

    async def history_for(self, account_id: UUID) -> List[AccessAudit]:
        """Complete history for one account, newest first."""
        result = await bounded(
            self.db.execute(
                select(AccessAudit)
                .where(AccessAudit.account_id == account_id)
                .options(selectinload(AccessAudit.performer))
                .order_by(desc(AccessAudit.created_at), desc(AccessAudit.id))
                .execution_options(populate_existing=True)
            )
        )
        return list(result.scalars().all())

    async def count(
        self,
        account_id: UUID,
        actions: Optional[List[AuditAction]] = None,
    ) -> int:
        """Number of records for an account, optionally limited to some actions."""
        query = select(func.count(AccessAudit.id)).where(
            AccessAudit.account_id == account_id
        )
        if actions:
            query = query.where(
                AccessAudit.action.in_([AuditAction(a).value for a in actions])
            )
        return await bounded(self.db.scalar(query)) or 0
