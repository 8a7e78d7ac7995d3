"""
SQLAlchemy ORM Models

Account records and the append-only access audit ledger.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    event,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    ORMExecuteState,
    Session,
    mapped_column,
    relationship,
)

from accessgate.api.errors import AuditImmutableError


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AccessStatus(str, Enum):
    """Tri-state access flag controlling use of protected endpoints."""

    PENDING = "pending"
    GRANTED = "granted"
    REVOKED = "revoked"


class AuditAction(str, Enum):
    """Access-relevant events recorded in the audit ledger."""

    GRANTED = "granted"
    REVOKED = "revoked"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    ACCESS_DENIED = "access_denied"


JSONType = JSON().with_variant(JSONB(), "postgresql")


class Account(Base):
    """User account with access-control stamps."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_accounts_role"),
        CheckConstraint(
            "access_status IN ('pending', 'granted', 'revoked')",
            name="ck_accounts_access_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    role: Mapped[str] = mapped_column(String(20), default=Role.USER.value, nullable=False)

    # Access control
    access_status: Mapped[str] = mapped_column(
        String(20), default=AccessStatus.PENDING.value, nullable=False
    )
    access_granted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    access_granted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("accounts.id")
    )
    access_revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    access_revoked_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("accounts.id")
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_access(self) -> bool:
        return self.access_status == AccessStatus.GRANTED

    def __repr__(self) -> str:
        return f"<Account {self.email} ({self.access_status})>"


class AccessAudit(Base):
    """Immutable audit record of one access-relevant event."""

    __tablename__ = "audit_records"
    __table_args__ = (
        Index("ix_audit_records_account_created", "account_id", text("created_at DESC")),
        Index("ix_audit_records_action_created", "action", text("created_at DESC")),
        CheckConstraint(
            "action IN ('granted', 'revoked', 'login_success', 'login_failed', 'access_denied')",
            name="ck_audit_records_action",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    # Null for self-initiated actions such as login attempts
    performed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("accounts.id")
    )

    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(String(512))
    details: Mapped[Optional[dict]] = mapped_column("metadata", JSONType)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    account: Mapped["Account"] = relationship(
        "Account", foreign_keys=[account_id], lazy="raise"
    )
    performer: Mapped[Optional["Account"]] = relationship(
        "Account", foreign_keys=[performed_by], lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<AccessAudit {self.id} {self.action} {self.account_id}>"


# ==================== Audit immutability ====================


@event.listens_for(AccessAudit, "before_update")
def _reject_audit_update(mapper, connection, target) -> None:
    raise AuditImmutableError()


@event.listens_for(AccessAudit, "before_delete")
def _reject_audit_delete(mapper, connection, target) -> None:
    raise AuditImmutableError("Audit logs cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _reject_bulk_audit_writes(orm_execute_state: ORMExecuteState) -> None:
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mappers = list(orm_execute_state.all_mappers)
    if orm_execute_state.bind_mapper is not None:
        mappers.append(orm_execute_state.bind_mapper)
    if any(mapper.class_ is AccessAudit for mapper in mappers):
        raise AuditImmutableError()
