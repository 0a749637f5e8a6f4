"""
Domain exceptions.

Services raise these; the application maps them to HTTP responses with a
``{"message": ...}`` body (see ``kms.main``).
"""

from typing import Any, List, Optional


class KMSError(Exception):
    """Base class for all expected, client-facing failures."""

    status_code: int = 500

    def __init__(self, message: str, *, errors: Optional[List[Any]] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.errors = errors
        self.extra = extra

    def to_dict(self) -> dict:
        body: dict = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        body.update(self.extra)
        return body


class ValidationError(KMSError):
    """Missing or invalid input."""

    status_code = 400


class AuthenticationError(KMSError):
    status_code = 401


class AuthorizationError(KMSError):
    """Role or ownership mismatch."""

    status_code = 403


class NotFoundError(KMSError):
    status_code = 404


class ConflictError(KMSError):
    """Duplicate validation, duplicate content, uniqueness violations."""

    status_code = 409
