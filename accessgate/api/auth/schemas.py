"""
Authentication Schemas

Pydantic models for account request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class AdminRegisterRequest(UserRegisterRequest):
    """Privileged admin registration request."""

    model_config = ConfigDict(populate_by_name=True)

    admin_code: str = Field(..., min_length=1, alias="adminCode")


class UserLoginRequest(BaseModel):
    """User login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AccountSummary(BaseModel):
    """Account data returned to its owner. Never carries the credential."""

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    access_status: str

    model_config = ConfigDict(from_attributes=True)


class AccountDetail(AccountSummary):
    """Current identity as resolved by the authorization gate."""

    access_granted_at: Optional[datetime] = None
    access_granted_by: Optional[UUID] = None
    access_revoked_at: Optional[datetime] = None
    access_revoked_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountSummary


class AuthResponse(BaseModel):
    """Token plus the logged-in account."""

    success: bool = True
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: AccountSummary


class MeResponse(BaseModel):
    success: bool = True
    user: AccountDetail


class AccessStatusInfo(BaseModel):
    status: str
    granted_at: Optional[datetime] = None
    granted_by: Optional[UUID] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[UUID] = None


class AccessStatusResponse(BaseModel):
    success: bool = True
    access_status: AccessStatusInfo


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
    success: bool = True
