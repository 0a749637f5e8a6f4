"""
Authentication endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Request, status

from kms.api.deps import CurrentUser, DbSession, get_client_ip
from kms.kernel.identity.identity_service import IdentityService
from kms.schemas.auth import (
    LogoutRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from kms.schemas.common import MessageResponse

router = APIRouter()


def _token_response(user, token_pair) -> TokenResponse:
    return TokenResponse(
        access_token=token_pair.access_token,
        refresh_token=token_pair.refresh_token,
        token_type=token_pair.token_type,
        expires_in=token_pair.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    data: UserCreate,
    db: DbSession,
):
    """
    Register a new user account.

    The role is taken from the request body (default Consultant).
    Returns access and refresh tokens on successful registration.
    """
    identity_service = IdentityService(db)
    ip_address = get_client_ip(request)

    await identity_service.register_user(
        username=data.username,
        email=data.email,
        password=data.password,
        role=data.role,
        region=data.region,
        skills=data.skills,
        ip_address=ip_address,
    )
    user, token_pair = await identity_service.authenticate(
        email=data.email,
        password=data.password,
        ip_address=ip_address,
    )
    return _token_response(user, token_pair)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    data: UserLogin,
    db: DbSession,
):
    """Authenticate user and return tokens."""
    identity_service = IdentityService(db)
    user, token_pair = await identity_service.authenticate(
        email=data.email,
        password=data.password,
        ip_address=get_client_ip(request),
    )
    return _token_response(user, token_pair)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db: DbSession,
):
    """
    Refresh access token using refresh token.

    Implements refresh token rotation - old refresh token is invalidated.
    """
    user, token_pair = await IdentityService(db).refresh_tokens(data.refresh_token)
    return _token_response(user, token_pair)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    user: CurrentUser,
    db: DbSession,
    data: Optional[LogoutRequest] = None,
):
    """
    Log out user by revoking refresh token(s).

    If refresh_token is provided, only that token is revoked.
    Otherwise, all user's refresh tokens are revoked.
    """
    await IdentityService(db).logout(
        user_id=user.id,
        refresh_token=data.refresh_token if data else None,
        ip_address=get_client_ip(request),
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(user: CurrentUser):
    """Get current user's profile."""
    return UserResponse.model_validate(user)
