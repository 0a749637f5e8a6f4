"""
Migration job schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from kms.schemas.common import Pagination


class MigrationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    source_system: str = Field(..., min_length=1, max_length=100)
    target_system: str = "KMS"
    # {"records": [{title, description, category, tags?, region?, content_url?}]}
    connection_details: Dict[str, Any] = {}
    batch_size: int = Field(100, gt=0)
    dry_run: bool = False
    skip_duplicates: bool = True


class MigrationResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    source_system: str
    target_system: str
    status: str
    batch_size: int
    dry_run: bool
    skip_duplicates: bool
    total: int
    processed: int
    failed: int
    percentage: float
    logs: List[Dict[str, Any]] = []
    initiated_by: uuid.UUID
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MigrationListResponse(BaseModel):
    migrations: List[MigrationResponse]
    pagination: Pagination


class MigrationActionResponse(BaseModel):
    message: str
    migration: MigrationResponse
