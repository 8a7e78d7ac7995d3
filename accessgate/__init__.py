# AccessGate - Admin-approved application access
"""
AccessGate: admin-approval access control with an immutable audit trail.

Core Components:
    - Access State Machine: pending -> granted <-> revoked, one audit record per transition
    - Authorization Gate: live access-status re-check on every request
    - Audit Log: append-only ledger of access-relevant events

Example:
    uvicorn accessgate.api.main:app
"""

__version__ = "1.0.0"
