"""
Authentication Routes

API endpoints for registration, login and the caller's own access status.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.api.access.audit import ClientInfo
from accessgate.api.auth.schemas import (
    AccessStatusInfo,
    AccessStatusResponse,
    AccountDetail,
    AccountSummary,
    AdminRegisterRequest,
    AuthResponse,
    MeResponse,
    MessageResponse,
    RegisterResponse,
    UserLoginRequest,
    UserRegisterRequest,
)
from accessgate.api.auth.service import AuthService
from accessgate.api.config import settings
from accessgate.api.db.models import Account
from accessgate.api.db.session import get_db
from accessgate.api.dependencies import get_client_info, get_current_account


router = APIRouter()


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    data: UserRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """
    Register a new user account.

    The account starts with **pending** access until an admin grants it.
    """
    account = await auth_service.register(data)
    return RegisterResponse(
        message="User registered successfully. Awaiting admin approval.",
        user=AccountSummary.model_validate(account),
    )


@router.post(
    "/register-admin",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new admin",
)
async def register_admin(
    data: AdminRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """
    Register an admin account using the configured admin code.

    Admin accounts start with **granted** access.
    """
    account = await auth_service.register_admin(data)
    return RegisterResponse(
        message="Admin registered successfully",
        user=AccountSummary.model_validate(account),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login and get a session token",
)
async def login(
    data: UserLoginRequest,
    response: Response,
    client: ClientInfo = Depends(get_client_info),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Authenticate with email and password.

    Returns the token in the body and also sets it as an HTTP-only cookie.
    Pending and revoked accounts are refused with distinct messages.
    """
    result = await auth_service.login(data.email, data.password, client=client)

    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=result.token,
        max_age=result.expires_in,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )

    return AuthResponse(
        token=result.token,
        expires_in=result.expires_in,
        user=AccountSummary.model_validate(result.account),
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user",
)
async def get_me(
    account: Account = Depends(get_current_account),
) -> MeResponse:
    return MeResponse(user=AccountDetail.model_validate(account))


@router.get(
    "/status",
    response_model=AccessStatusResponse,
    summary="Get current access status",
)
async def get_access_status(
    account: Account = Depends(get_current_account),
) -> AccessStatusResponse:
    """Current access status with grant and revoke provenance."""
    return AccessStatusResponse(
        access_status=AccessStatusInfo(
            status=account.access_status,
            granted_at=account.access_granted_at,
            granted_by=account.access_granted_by,
            revoked_at=account.access_revoked_at,
            revoked_by=account.access_revoked_by,
        )
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout (client-side)",
)
async def logout(
    response: Response,
    account: Account = Depends(get_current_account),
) -> MessageResponse:
    """
    Clear the token cookie.

    Tokens are stateless; access is cut server-side by revoking the account.
    """
    response.delete_cookie(key=settings.TOKEN_COOKIE_NAME, httponly=True)
    return MessageResponse(message="Logged out successfully")
