"""
Knowledge item schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from kms.schemas.auth import UserSummary
from kms.schemas.common import Pagination


class Attachment(BaseModel):
    name: str
    type: Optional[str] = None
    size: Optional[int] = None
    url: str


class KnowledgeCreate(BaseModel):
    """
    Upload request.

    Title, description and category are checked by the upload pipeline so
    that missing values are reported together.
    """

    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = []
    region: Optional[str] = Field(None, max_length=100)
    content_url: Optional[str] = Field(None, max_length=1000)
    attachments: List[Attachment] = []


class KnowledgeUpdate(BaseModel):
    """Author edit. Only provided fields change."""

    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    region: Optional[str] = Field(None, max_length=100)
    content_url: Optional[str] = Field(None, max_length=1000)
    existing_attachments: Optional[List[Attachment]] = None
    new_attachments: Optional[List[Attachment]] = None
    clear_attachments: bool = False


class ReviewDecision(BaseModel):
    status: str
    comment: Optional[str] = None


class QualityUpdate(BaseModel):
    mark_safe: bool = False
    quality_flag: Optional[bool] = None
    quality_score: Optional[int] = Field(None, ge=0, le=100)
    quality_issues: Optional[List[str]] = None


class ApprovalResponse(BaseModel):
    approver_id: uuid.UUID
    status: str
    comment: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class KnowledgeBrief(BaseModel):
    """Item reference embedded in other resources."""

    id: uuid.UUID
    title: str
    category: str
    status: str
    author_id: uuid.UUID
    views: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class KnowledgeResponse(BaseModel):
    """Full knowledge item."""

    id: uuid.UUID
    title: str
    description: str
    category: str
    tags: List[str] = []
    region: Optional[str] = None
    content_url: Optional[str] = None
    author: UserSummary
    status: str
    attachments: List[Attachment] = []
    keywords: List[str] = []
    duplicate_score: float = 0.0
    quality_flag: bool = False
    quality_score: int = 100
    quality_issues: List[str] = []
    views: int = 0
    version: int = 1
    approvals: List[ApprovalResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class KnowledgeListResponse(BaseModel):
    items: List[KnowledgeResponse]
    pagination: Pagination
