"""
JWT token management for authentication.

Access tokens carry the user's id, username and role; refresh tokens carry
only the id and are stored server-side as SHA-256 hashes so they can be
rotated and revoked.
"""

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from kms.config import get_settings


class AccessTokenPayload(BaseModel):
    """Decoded access token."""

    sub: str  # User ID
    username: str
    role: str
    exp: datetime
    iat: datetime
    jti: str


class RefreshTokenPayload(BaseModel):
    """Decoded refresh token."""

    sub: str
    exp: datetime
    iat: datetime
    jti: str


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires


class JWTManager:
    """Creates and verifies access/refresh tokens."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        refresh_token_expire_days: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.refresh_token_expire_days = (
            refresh_token_expire_days or settings.refresh_token_expire_days
        )

    def _encode(self, claims: dict, lifetime: timedelta) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expire = now + lifetime
        claims = {**claims, "iat": now, "exp": expire, "jti": str(uuid.uuid4())}
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm), expire

    def _decode(self, token: str, expected_type: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if payload.get("type") != expected_type:
            return None
        payload["exp"] = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        payload["iat"] = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        return payload

    def create_access_token(
        self,
        user_id: uuid.UUID,
        username: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a new access token.

        Returns:
            Tuple of (token, expiration_datetime)
        """
        lifetime = expires_delta or timedelta(minutes=self.access_token_expire_minutes)
        return self._encode(
            {"sub": str(user_id), "username": username, "role": role, "type": "access"},
            lifetime,
        )

    def create_refresh_token(
        self,
        user_id: uuid.UUID,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """Create a new refresh token. Returns (token, expiration_datetime)."""
        lifetime = expires_delta or timedelta(days=self.refresh_token_expire_days)
        return self._encode({"sub": str(user_id), "type": "refresh"}, lifetime)

    def create_token_pair(self, user_id: uuid.UUID, username: str, role: str) -> TokenPair:
        """Create both access and refresh tokens."""
        access_token, access_exp = self.create_access_token(user_id, username, role)
        refresh_token, _ = self.create_refresh_token(user_id)
        expires_in = int((access_exp - datetime.now(timezone.utc)).total_seconds())
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
        )

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """Decode an access token; None if invalid, expired or of the wrong type."""
        payload = self._decode(token, "access")
        if payload is None:
            return None
        return AccessTokenPayload(**payload)

    def verify_refresh_token(self, token: str) -> Optional[RefreshTokenPayload]:
        """Decode a refresh token; None if invalid, expired or of the wrong type."""
        payload = self._decode(token, "refresh")
        if payload is None:
            return None
        return RefreshTokenPayload(**payload)

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest used to store refresh tokens."""
        return hashlib.sha256(token.encode()).hexdigest()


_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create the default JWT manager."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    """Verify an access token with the default manager."""
    return get_jwt_manager().verify_access_token(token)
