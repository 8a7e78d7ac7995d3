"""
AccessGate - Access Control Core

Components:
- audit.py: Append-only audit ledger
- state_machine.py: Access status transitions paired with audit records
- gate.py: Per-request access status re-verification

Usage:
    from accessgate.api.access.state_machine import AccessStateMachine
    from accessgate.api.access.gate import AuthorizationGate
    from accessgate.api.access.audit import AuditLog, ClientInfo
"""

from accessgate.api.access.audit import (
    AuditLog,
    AuditFilter,
    ClientInfo,
)

from accessgate.api.access.gate import (
    AuthorizationGate,
    check_access_status,
    extract_token,
)

from accessgate.api.access.state_machine import (
    ALLOWED_TRANSITIONS,
    AccessSnapshot,
    AccessStateMachine,
    is_allowed,
)

__all__ = [
    # Audit
    "AuditLog",
    "AuditFilter",
    "ClientInfo",

    # Gate
    "AuthorizationGate",
    "check_access_status",
    "extract_token",

    # State machine
    "ALLOWED_TRANSITIONS",
    "AccessSnapshot",
    "AccessStateMachine",
    "is_allowed",
]
