"""
Rate limiting per user and per IP.

Auth POSTs are limited per IP; every other API call per user (from the
bearer token) or, when anonymous, per IP. Counters live in process memory.
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware

from kms.config import get_settings
from kms.logging_config import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60
CLEANUP_AGE_SECONDS = 7200


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _get_user_id_from_jwt(request: Request) -> Optional[str]:
    """User id from a Bearer token, if it decodes. Authentication proper happens later."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    if not token:
        return None
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


class InMemoryRateLimitStore:
    """Fixed-window in-memory store. Key -> (count, window_start)."""

    def __init__(self):
        self._data: Dict[str, Tuple[int, float]] = {}

    def check_and_incr(self, scope: str, identifier: str, limit: int, window_seconds: int) -> bool:
        """True if under limit (and counts the hit); False if over limit."""
        key = f"{scope}:{identifier}"
        now = time.monotonic()
        count, start = self._data.get(key, (0, now))
        if now - start >= window_seconds:
            count, start = 0, now
        if count >= limit:
            return False
        self._data[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = CLEANUP_AGE_SECONDS) -> None:
        now = time.monotonic()
        stale = [key for key, (_, start) in self._data.items() if now - start > max_age_seconds]
        for key in stale:
            self._data.pop(key, None)


_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the configured per-minute limits with 429."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        path = request.url.path or ""
        if not settings.rate_limit_enabled or not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        store = get_store()
        store.cleanup_old()

        if path.startswith(f"{settings.api_v1_prefix}/auth") and request.method == "POST":
            scope = "auth"
            limit = settings.rate_limit_auth_per_minute
            identifier = _get_client_ip(request)
        else:
            scope = "api"
            limit = settings.rate_limit_api_per_minute
            identifier = _get_user_id_from_jwt(request) or _get_client_ip(request)

        if not store.check_and_incr(scope, identifier, limit, WINDOW_SECONDS):
            logger.warning("Rate limit exceeded", extra={"scope": scope, "path": path})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": "Too many requests. Please try again later."},
            )
        return await call_next(request)
