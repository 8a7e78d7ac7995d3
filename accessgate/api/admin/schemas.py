"""
Admin Schemas

Pydantic models for account management and the access history.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from accessgate.api.db.models import AccessAudit, Account


# ==================== Accounts ====================


class AccountRef(BaseModel):
    """Another account referenced by id, name and email."""

    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TargetRef(AccountRef):
    role: str


class AdminUserResponse(BaseModel):
    """Account details for admin view. The credential hash is never included."""

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    access_status: str
    access_granted_at: Optional[datetime] = None
    access_granted_by: Optional[AccountRef] = None
    access_revoked_at: Optional[datetime] = None
    access_revoked_by: Optional[AccountRef] = None
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_account(
        cls, account: Account, performers: Optional[Mapping[UUID, Any]] = None
    ) -> "AdminUserResponse":
        """
        Build the admin view of ``account``.

        ``performers`` maps admin ids to objects carrying id, name and email;
        stamps whose admin is missing from it render as null.
        """
        performers = performers or {}
        granted_by = performers.get(account.access_granted_by)
        revoked_by = performers.get(account.access_revoked_by)
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            phone=account.phone,
            role=account.role,
            access_status=account.access_status,
            access_granted_at=account.access_granted_at,
            access_granted_by=AccountRef.model_validate(granted_by) if granted_by else None,
            access_revoked_at=account.access_revoked_at,
            access_revoked_by=AccountRef.model_validate(revoked_by) if revoked_by else None,
            created_at=account.created_at,
            updated_at=account.updated_at,
            last_login_at=account.last_login_at,
        )


class AdminUserListResponse(BaseModel):
    success: bool = True
    count: int
    users: List[AdminUserResponse]


class AdminUserDetailResponse(BaseModel):
    success: bool = True
    user: AdminUserResponse


# ==================== Transitions ====================


class RevokeAccessRequest(BaseModel):
    """Optional reason stored with the revoke record."""

    reason: Optional[str] = Field(None, max_length=500)


class TransitionResult(BaseModel):
    id: UUID
    name: str
    email: str
    access_status: str
    previous_status: Optional[str] = None
    access_granted_at: Optional[datetime] = None
    access_granted_by: Optional[UUID] = None
    access_revoked_at: Optional[datetime] = None
    access_revoked_by: Optional[UUID] = None
    performed_by: str


class TransitionResponse(BaseModel):
    success: bool = True
    message: str
    user: TransitionResult


# ==================== Access History ====================


class AuditRecordResponse(BaseModel):
    """One audit record."""

    id: int
    user_id: UUID
    user: Optional[TargetRef] = None
    action: str
    performed_by: Optional[AccountRef] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime

    @classmethod
    def from_record(
        cls, record: AccessAudit, include_target: bool = True
    ) -> "AuditRecordResponse":
        return cls(
            id=record.id,
            user_id=record.account_id,
            user=TargetRef.model_validate(record.account) if include_target else None,
            action=record.action,
            performed_by=(
                AccountRef.model_validate(record.performer) if record.performer else None
            ),
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            metadata=record.details,
            created_at=record.created_at,
        )


class AccessHistoryResponse(BaseModel):
    """Paginated audit records."""

    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    logs: List[AuditRecordResponse]

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        return math.ceil(total / limit) if total > 0 else 0


class UserAccessHistoryResponse(BaseModel):
    success: bool = True
    count: int
    logs: List[AuditRecordResponse]
