"""
Common schema types used across the API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    message: str
    errors: Optional[List[Any]] = None


class MessageResponse(BaseModel):
    """Standard success response."""

    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
