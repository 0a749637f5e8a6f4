"""
Recommendation schemas.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel

from kms.schemas.auth import UserSummary


class RecommendedItem(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    tags: List[str] = []
    views: int
    author: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True


class Recommendation(BaseModel):
    item: RecommendedItem
    score: float
    reason: str


class RecommendationsResponse(BaseModel):
    count: int
    recommendations: List[Recommendation]


class InteractionRequest(BaseModel):
    item_id: uuid.UUID
    interaction_type: str
