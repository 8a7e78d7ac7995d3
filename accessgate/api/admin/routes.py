"""
Admin Routes

API endpoints for account approval and the access audit trail.
All endpoints require an authenticated admin whose access is granted.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import AuditFilter, ClientInfo
from accessgate.api.access.state_machine import AccessSnapshot
from accessgate.api.admin.schemas import (
    AccessHistoryResponse,
    AdminUserDetailResponse,
    AdminUserListResponse,
    AdminUserResponse,
    AuditRecordResponse,
    RevokeAccessRequest,
    TransitionResponse,
    TransitionResult,
    UserAccessHistoryResponse,
)
from accessgate.api.admin.service import AdminService
from accessgate.api.db.models import Account, AuditAction
from accessgate.api.db.session import get_db
from accessgate.api.dependencies import get_admin_account, get_client_info


router = APIRouter()


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    """Dependency to get admin service."""
    return AdminService(db)


def _transition_result(
    target: Account, snapshot: AccessSnapshot, admin: Account
) -> TransitionResult:
    return TransitionResult(
        id=target.id,
        name=target.name,
        email=target.email,
        access_status=snapshot.status.value,
        previous_status=snapshot.previous_status.value if snapshot.previous_status else None,
        access_granted_at=snapshot.granted_at,
        access_granted_by=snapshot.granted_by,
        access_revoked_at=snapshot.revoked_at,
        access_revoked_by=snapshot.revoked_by,
        performed_by=admin.name,
    )


# ==================== Accounts ====================


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    summary="List all users",
)
async def list_users(
    admin: Account = Depends(get_admin_account),
    service: AdminService = Depends(get_admin_service),
) -> AdminUserListResponse:
    """All accounts, newest first, with granting and revoking admins expanded."""
    accounts, performers = await service.get_users()
    users = [AdminUserResponse.from_account(a, performers) for a in accounts]
    return AdminUserListResponse(count=len(users), users=users)


@router.get(
    "/users/{user_id}",
    response_model=AdminUserDetailResponse,
    summary="Get user details",
)
async def get_user(
    user_id: UUID,
    admin: Account = Depends(get_admin_account),
    service: AdminService = Depends(get_admin_service),
) -> AdminUserDetailResponse:
    account, performers = await service.get_user(user_id)
    return AdminUserDetailResponse(user=AdminUserResponse.from_account(account, performers))


# ==================== Access Control ====================


@router.post(
    "/grant-access/{user_id}",
    response_model=TransitionResponse,
    summary="Grant access to a user",
)
async def grant_access(
    user_id: UUID,
    admin: Account = Depends(get_admin_account),
    client: ClientInfo = Depends(get_client_info),
    service: AdminService = Depends(get_admin_service),
) -> TransitionResponse:
    """
    Grant access to a pending or revoked user.

    Admin accounts cannot be targeted. Granting an already granted user is
    rejected and writes no audit record.
    """
    target, snapshot = await service.grant_access(user_id, admin, client=client)
    return TransitionResponse(
        message="Access granted successfully",
        user=_transition_result(target, snapshot, admin),
    )


@router.post(
    "/revoke-access/{user_id}",
    response_model=TransitionResponse,
    summary="Revoke access from a user",
)
async def revoke_access(
    user_id: UUID,
    data: Optional[RevokeAccessRequest] = Body(None),
    admin: Account = Depends(get_admin_account),
    client: ClientInfo = Depends(get_client_info),
    service: AdminService = Depends(get_admin_service),
) -> TransitionResponse:
    """
    Revoke access from a granted user.

    Takes effect on the user's very next request, even with an unexpired
    token. The optional reason is stored in the audit record.
    """
    reason = data.reason if data else None
    target, snapshot = await service.revoke_access(
        user_id, admin, reason=reason, client=client
    )
    return TransitionResponse(
        message="Access revoked successfully",
        user=_transition_result(target, snapshot, admin),
    )


# ==================== Access History ====================


@router.get(
    "/access-history",
    response_model=AccessHistoryResponse,
    summary="Query the access audit trail",
)
async def get_access_history(
    admin: Account = Depends(get_admin_account),
    service: AdminService = Depends(get_admin_service),
    user_id: Optional[UUID] = Query(None, alias="userId", description="Filter by target account"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Records at or after"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Records at or before"),
    limit: int = Query(100, ge=1, le=500),
    page: int = Query(1, ge=1),
) -> AccessHistoryResponse:
    """Paginated audit records, newest first."""
    filters = AuditFilter(
        account_id=user_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    )
    records, total = await service.get_access_history(filters, page=page, limit=limit)

    return AccessHistoryResponse(
        count=len(records),
        total=total,
        page=page,
        pages=AccessHistoryResponse.page_count(total, limit),
        logs=[AuditRecordResponse.from_record(r) for r in records],
    )


@router.get(
    "/access-history/{user_id}",
    response_model=UserAccessHistoryResponse,
    summary="Full access history for one user",
)
async def get_user_access_history(
    user_id: UUID,
    admin: Account = Depends(get_admin_account),
    service: AdminService = Depends(get_admin_service),
) -> UserAccessHistoryResponse:
    records = await service.get_user_access_history(user_id)
    return UserAccessHistoryResponse(
        count=len(records),
        logs=[AuditRecordResponse.from_record(r, include_target=False) for r in records],
    )
