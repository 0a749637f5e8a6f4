"""
Validation workflow schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from kms.kernel.models.validation import ValidationPriority
from kms.schemas.auth import UserSummary
from kms.schemas.knowledge import KnowledgeBrief


class ValidationCreate(BaseModel):
    knowledge_item_id: uuid.UUID
    reviewer_id: Optional[uuid.UUID] = None
    priority: str = ValidationPriority.MEDIUM.value


class ValidationUpdate(BaseModel):
    status: str
    review_notes: Optional[str] = None
    revision_comments: Optional[str] = None


class ReassignRequest(BaseModel):
    reviewer_id: uuid.UUID


class HistoryEntryResponse(BaseModel):
    sequence: int
    reviewer_id: Optional[uuid.UUID] = None
    action: str
    comment: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class ValidationResponse(BaseModel):
    id: uuid.UUID
    knowledge_item: KnowledgeBrief
    assigned_reviewer: Optional[UserSummary] = None
    status: str
    priority: str
    review_notes: Optional[str] = None
    revision_comments: Optional[str] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    history: List[HistoryEntryResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
