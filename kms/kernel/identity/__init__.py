"""
Identity Core - Authentication and user management.
"""

from kms.kernel.identity.password import PasswordHasher, hash_password, verify_password
from kms.kernel.identity.jwt import (
    JWTManager,
    TokenPair,
    AccessTokenPayload,
    verify_access_token,
)
from kms.kernel.identity.identity_service import IdentityService, VALID_ROLES

__all__ = [
    "PasswordHasher",
    "hash_password",
    "verify_password",
    "JWTManager",
    "TokenPair",
    "AccessTokenPayload",
    "verify_access_token",
    "IdentityService",
    "VALID_ROLES",
]
