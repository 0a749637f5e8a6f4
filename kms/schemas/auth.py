"""
Authentication and user schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from kms.kernel.models.user import UserRole
from kms.schemas.common import Pagination


def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


class UserCreate(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: str = UserRole.CONSULTANT.value
    region: Optional[str] = Field(None, max_length=100)
    skills: List[str] = []

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr
    password: str


class UserSummary(BaseModel):
    """Compact user reference embedded in other resources."""

    id: uuid.UUID
    username: str
    role: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User profile response."""

    id: uuid.UUID
    username: str
    email: str
    role: str
    region: str
    skills: List[str] = []
    is_active: bool
    promotion_status: str
    promotion_notes: Optional[str] = None
    last_evaluation_date: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Revoke one refresh token; omit to revoke all of them."""

    refresh_token: Optional[str] = None


class AdminUserCreate(UserCreate):
    """Account created by an administrator."""


class AdminUserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    region: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[str]] = None
    is_active: Optional[bool] = None


class RoleUpdate(BaseModel):
    role: str


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class PromotionEvaluation(BaseModel):
    """Manager's promotion evaluation."""

    status: Optional[str] = None
    notes: Optional[str] = None


class PromotionResponse(BaseModel):
    id: uuid.UUID
    username: str
    promotion_status: str
    promotion_notes: Optional[str] = None
    last_evaluation_date: Optional[datetime] = None

    class Config:
        from_attributes = True

