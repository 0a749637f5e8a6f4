"""
Training schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from kms.kernel.models.training import AttendanceStatus, Difficulty, TrainingCategory
from kms.schemas.auth import UserSummary


class ModuleContent(BaseModel):
    type: str
    title: str
    url: Optional[str] = None
    duration: Optional[int] = None
    order: Optional[int] = None


class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    category: TrainingCategory
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_duration: int = Field(30, gt=0)
    content: List[ModuleContent] = []
    tags: List[str] = []
    target_roles: List[str] = []


class ModuleResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    difficulty: str
    estimated_duration: int
    content: List[Dict[str, Any]] = []
    tags: List[str] = []
    target_roles: List[str] = []
    is_published: bool
    created_by: uuid.UUID
    completions: int
    average_rating: float
    total_ratings: int
    created_at: datetime

    class Config:
        from_attributes = True


class ProgressResponse(BaseModel):
    id: uuid.UUID
    module_id: uuid.UUID
    status: str
    progress: int
    completed_content: List[Dict[str, Any]] = []
    quiz_scores: List[Dict[str, Any]] = []
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None

    class Config:
        from_attributes = True


class ProgressBrief(BaseModel):
    status: str
    progress: int
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ModuleWithProgress(BaseModel):
    module: ModuleResponse
    user_progress: Optional[ProgressBrief] = None


class ModuleDetailResponse(BaseModel):
    module: ModuleResponse
    progress: ProgressResponse


class ProgressUpdate(BaseModel):
    content_index: Optional[int] = None
    quiz_score: Optional[float] = None
    max_score: Optional[float] = None


class ModuleRating(BaseModel):
    rating: int
    feedback: Optional[str] = None


class RatingResponse(BaseModel):
    message: str
    average_rating: float
    total_ratings: int


class ProgressStats(BaseModel):
    total: int
    completed: int
    in_progress: int
    not_started: int


class MyProgressResponse(BaseModel):
    progress: List[ProgressResponse]
    stats: ProgressStats


class EnrollResponse(BaseModel):
    message: str
    progress: ProgressResponse


class TrainingSessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    scheduled_date: datetime
    duration: int = Field(..., gt=0)  # minutes
    meeting_link: Optional[str] = None
    max_participants: int = Field(50, gt=0)
    related_module_id: Optional[uuid.UUID] = None


class TrainingSessionResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    instructor: UserSummary
    scheduled_date: datetime
    duration: int
    meeting_link: Optional[str] = None
    max_participants: int
    status: str
    related_module_id: Optional[uuid.UUID] = None
    attendees: List[Dict[str, Any]] = []
    created_at: datetime

    class Config:
        from_attributes = True


class AttendanceUpdate(BaseModel):
    user_id: uuid.UUID
    status: AttendanceStatus
