"""
AccessGate - Exception Hierarchy
================================

Structured exception types for the access-control core. Every error carries
the HTTP status it maps to, so route handlers raise and the application-level
handlers in ``main.py`` render a uniform ``{"success": false, ...}`` body.

Exception Categories:
    - ValidationError: Malformed or conflicting input
    - Unauthenticated: Missing, invalid or expired credentials
    - ForbiddenAction: Role, target and access-status rule violations
    - NotFound: Unknown account
    - NoOpTransition: Redundant grant/revoke
    - Conflict: Concurrent transition race
    - TransientStoreError: Store timeout or connection loss
"""

from typing import Any, Dict, Optional


class AccessGateError(Exception):
    """
    Base exception for all AccessGate errors.

    Attributes:
        message: Human-readable error description
        code: Error code for programmatic handling
        details: Optional dict with additional context
        recoverable: Whether the caller may safely retry
        status_code: HTTP status the error is rendered with
    """

    status_code: int = 500
    recoverable: bool = False
    default_message: str = "Server error"
    default_code: str = "server_error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Structured result body."""
        return {
            "success": False,
            "message": self.message,
            "code": self.code,
            "detail": self.details or None,
        }


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationError(AccessGateError):
    """Malformed input."""

    status_code = 400
    default_message = "Validation failed"
    default_code = "validation_error"


class EmailAlreadyRegistered(ValidationError):
    default_message = "User with this email already exists"
    default_code = "email_already_registered"


# =============================================================================
# AUTHENTICATION
# =============================================================================


class Unauthenticated(AccessGateError):
    """Caller identity could not be established."""

    status_code = 401
    default_message = "Unauthorized"
    default_code = "unauthenticated"


class MissingToken(Unauthenticated):
    default_message = "Unauthorized: No token provided"
    default_code = "missing_token"


class InvalidToken(Unauthenticated):
    default_message = "Unauthorized: Invalid token"
    default_code = "invalid_token"


class TokenExpired(Unauthenticated):
    default_message = "Unauthorized: Token expired"
    default_code = "token_expired"


class InvalidCredentials(Unauthenticated):
    # Same message for unknown email and wrong password
    default_message = "Invalid email or password"
    default_code = "invalid_credentials"


# =============================================================================
# AUTHORIZATION
# =============================================================================


class ForbiddenAction(AccessGateError):
    """Role, self or target rule violation."""

    status_code = 403
    default_message = "Forbidden"
    default_code = "forbidden"


class AccessPending(ForbiddenAction):
    default_message = "Access pending: Awaiting admin approval"
    default_code = "access_pending"


class AccessRevoked(ForbiddenAction):
    default_message = "Access has been revoked. Contact administrator."
    default_code = "access_revoked"


class AdminRequired(ForbiddenAction):
    default_message = "Forbidden: This action requires admin role"
    default_code = "admin_required"


class InvalidAdminCode(ForbiddenAction):
    default_message = "Invalid admin code"
    default_code = "invalid_admin_code"


class ForbiddenTarget(ForbiddenAction):
    """Transition attempted on an admin account."""

    status_code = 400
    default_message = "Cannot modify access status of admin users"
    default_code = "forbidden_target"


class SelfActionDenied(ForbiddenAction):
    status_code = 400
    default_message = "Cannot revoke your own access"
    default_code = "self_action_denied"


class IllegalTransition(ForbiddenAction):
    """Transition not in the allowed set (pending -> revoked)."""

    status_code = 400
    default_message = "Access status transition not allowed"
    default_code = "illegal_transition"


# =============================================================================
# LOOKUP / STATE
# =============================================================================


class NotFound(AccessGateError):
    status_code = 404
    default_message = "Not found"
    default_code = "not_found"


class AccountNotFound(NotFound):
    default_message = "User not found"
    default_code = "account_not_found"


class NoOpTransition(AccessGateError):
    """Redundant grant/revoke. Safe to call again, writes nothing."""

    status_code = 400
    default_message = "Access status unchanged"
    default_code = "noop_transition"


class Conflict(AccessGateError):
    status_code = 409
    recoverable = True
    default_message = "Conflict"
    default_code = "conflict"


class TransitionConflict(Conflict):
    """Compare-and-set on access status lost a race. Refetch and retry."""

    default_message = "Access status changed concurrently, refetch and retry"
    default_code = "transition_conflict"


# =============================================================================
# STORE
# =============================================================================


class TransientStoreError(AccessGateError):
    """Store timeout or connection loss. Nothing was partially committed."""

    status_code = 500
    recoverable = True
    default_message = "Storage temporarily unavailable, retry the request"
    default_code = "transient_store_error"


class AuditImmutableError(AccessGateError):
    default_message = "Audit logs cannot be modified after creation"
    default_code = "audit_immutable"
