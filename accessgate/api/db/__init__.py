"""Database module."""

from accessgate.api.db.session import get_db, init_db, close_db, bounded
from accessgate.api.db.models import (
    Base,
    Account,
    AccessAudit,
    AccessStatus,
    AuditAction,
    Role,
)

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "bounded",
    "Base",
    "Account",
    "AccessAudit",
    "AccessStatus",
    "AuditAction",
    "Role",
]
