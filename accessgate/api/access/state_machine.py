"""
AccessGate - Access State Machine

Owns ``Account.access_status`` and its legal transitions. Every successful
transition commits together with exactly one audit record; a redundant
request writes nothing.

Transitions:
    pending -> granted
    granted -> revoked
    revoked -> granted

Grant and revoke stamp independently: granting clears the revocation stamp,
revoking keeps the grant stamp so the last granting admin stays known.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import AuditLog, ClientInfo
from accessgate.api.db.models import (
    AccessStatus,
    Account,
    AuditAction,
    Role,
    utcnow,
)
from accessgate.api.db.session import bounded
from accessgate.api.errors import (
    ForbiddenTarget,
    IllegalTransition,
    NoOpTransition,
    SelfActionDenied,
    TransientStoreError,
    TransitionConflict,
)


logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: FrozenSet[Tuple[AccessStatus, AccessStatus]] = frozenset({
    (AccessStatus.PENDING, AccessStatus.GRANTED),
    (AccessStatus.GRANTED, AccessStatus.REVOKED),
    (AccessStatus.REVOKED, AccessStatus.GRANTED),
})

DEFAULT_REVOKE_REASON = "Not specified"


def is_allowed(current: AccessStatus, new: AccessStatus) -> bool:
    return (AccessStatus(current), AccessStatus(new)) in ALLOWED_TRANSITIONS


@dataclass(frozen=True)
class AccessSnapshot:
    """Access status and provenance of one account after a transition."""

    account_id: UUID
    status: AccessStatus
    previous_status: Optional[AccessStatus]
    granted_at: Optional[datetime]
    granted_by: Optional[UUID]
    revoked_at: Optional[datetime]
    revoked_by: Optional[UUID]

    @classmethod
    def of(
        cls, account: Account, previous_status: Optional[AccessStatus] = None
    ) -> "AccessSnapshot":
        return cls(
            account_id=account.id,
            status=AccessStatus(account.access_status),
            previous_status=previous_status,
            granted_at=account.access_granted_at,
            granted_by=account.access_granted_by,
            revoked_at=account.access_revoked_at,
            revoked_by=account.access_revoked_by,
        )


class AccessStateMachine:
    """Grant and revoke, each atomic with its audit record."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditLog(db)

    async def grant(
        self,
        target: Account,
        performer: Account,
        client: Optional[ClientInfo] = None,
    ) -> AccessSnapshot:
        """
        Grant access to a non-admin account.

        Raises:
            ForbiddenTarget: Target is an admin
            NoOpTransition: Target already granted
            TransitionConflict: Status changed since it was read
            TransientStoreError: Store failure, nothing committed
        """
        if target.role == Role.ADMIN:
            raise ForbiddenTarget()

        previous = AccessStatus(target.access_status)
        if previous == AccessStatus.GRANTED:
            raise NoOpTransition("User already has granted access")

        now = utcnow()
        return await self._transition(
            target,
            performer,
            previous=previous,
            new=AccessStatus.GRANTED,
            values={
                "access_granted_at": now,
                "access_granted_by": performer.id,
                "access_revoked_at": None,
                "access_revoked_by": None,
            },
            action=AuditAction.GRANTED,
            metadata={"previousStatus": previous.value, "newStatus": AccessStatus.GRANTED.value},
            client=client,
        )

    async def revoke(
        self,
        target: Account,
        performer: Account,
        reason: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> AccessSnapshot:
        """
        Revoke access from a non-admin account.

        Raises:
            SelfActionDenied: Target is the performer
            ForbiddenTarget: Target is an admin
            NoOpTransition: Target already revoked
            IllegalTransition: Target was never granted
            TransitionConflict: Status changed since it was read
            TransientStoreError: Store failure, nothing committed
        """
        # Checked before the role so self-revocation is always reported as such
        if target.id == performer.id:
            raise SelfActionDenied()

        if target.role == Role.ADMIN:
            raise ForbiddenTarget()

        previous = AccessStatus(target.access_status)
        if previous == AccessStatus.REVOKED:
            raise NoOpTransition("User access is already revoked")
        if not is_allowed(previous, AccessStatus.REVOKED):
            raise IllegalTransition(
                "Cannot revoke access that was never granted",
                details={"currentStatus": previous.value},
            )

        now = utcnow()
        return await self._transition(
            target,
            performer,
            previous=previous,
            new=AccessStatus.REVOKED,
            values={
                "access_revoked_at": now,
                "access_revoked_by": performer.id,
            },
            action=AuditAction.REVOKED,
            metadata={
                "previousStatus": previous.value,
                "newStatus": AccessStatus.REVOKED.value,
                "reason": reason or DEFAULT_REVOKE_REASON,
            },
            client=client,
        )

    async def _transition(
        self,
        target: Account,
        performer: Account,
        previous: AccessStatus,
        new: AccessStatus,
        values: Dict[str, Any],
        action: AuditAction,
        metadata: Dict[str, Any],
        client: Optional[ClientInfo],
    ) -> AccessSnapshot:
        """Compare-and-set the status and append the audit record in one commit."""
        # Rollback expires instances, so keep plain ids for logging
        target_id = target.id
        performer_id = performer.id

        stmt = (
            update(Account)
            .where(Account.id == target_id)
            .where(Account.access_status == previous.value)
            .values(access_status=new.value, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await bounded(self.db.execute(stmt))
            if result.rowcount != 1:
                raise TransitionConflict(
                    details={"expectedStatus": previous.value, "requestedStatus": new.value}
                )

            await self.audit.record(
                account_id=target_id,
                action=action,
                performed_by=performer_id,
                client=client,
                metadata=metadata,
            )
            await bounded(self.db.commit())
        except TransitionConflict:
            await self.db.rollback()
            logger.warning(
                "Access transition conflict on %s: expected %s", target_id, previous.value
            )
            raise
        except TransientStoreError:
            await self.db.rollback()
            logger.error(
                "Access transition %s -> %s for %s aborted, nothing committed",
                previous.value, new.value, target_id,
            )
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Access transition %s -> %s for %s aborted: %s",
                previous.value, new.value, target_id, e,
            )
            raise TransientStoreError() from e

        await bounded(self.db.refresh(target))
        logger.info(
            "Access %s for %s by %s (%s -> %s)",
            action.value, target_id, performer_id, previous.value, new.value,
        )
        return AccessSnapshot.of(target, previous_status=previous)
