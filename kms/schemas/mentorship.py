"""
Mentorship schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from kms.schemas.auth import UserSummary


class MentorshipGoal(BaseModel):
    description: str
    target_date: Optional[str] = None
    completed: bool = False


class MentorshipCreate(BaseModel):
    mentor_id: uuid.UUID
    focus_areas: List[str] = []
    goals: List[MentorshipGoal] = []


class MentorshipUpdate(BaseModel):
    status: Optional[str] = None
    goals: Optional[List[MentorshipGoal]] = None
    focus_areas: Optional[List[str]] = None


class MentorshipSessionCreate(BaseModel):
    duration: int = Field(..., gt=0)  # minutes
    notes: Optional[str] = None
    topics: List[str] = []


class MentorshipFeedbackCreate(BaseModel):
    rating: int
    comment: Optional[str] = None


class MentorshipResponse(BaseModel):
    id: uuid.UUID
    mentor: UserSummary
    mentee: UserSummary
    status: str
    focus_areas: List[str] = []
    goals: List[Dict[str, Any]] = []
    sessions: List[Dict[str, Any]] = []
    feedback: List[Dict[str, Any]] = []
    start_date: datetime
    end_date: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MentorResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    role: str
    skills: List[str] = []
    region: str
    active_mentorships: int
