"""
Training endpoints: modules, progress and live sessions.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import AdminUser, CurrentUser, DbSession, SessionHostUser, get_client_ip
from kms.engines.training import TrainingService
from kms.schemas.training import (
    AttendanceUpdate,
    EnrollResponse,
    ModuleCreate,
    ModuleDetailResponse,
    ModuleRating,
    ModuleResponse,
    ModuleWithProgress,
    MyProgressResponse,
    ProgressResponse,
    ProgressUpdate,
    RatingResponse,
    TrainingSessionCreate,
    TrainingSessionResponse,
)

router = APIRouter()


# Modules

@router.get("/modules", response_model=List[ModuleWithProgress])
async def list_modules(
    user: CurrentUser,
    db: DbSession,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    role: Optional[str] = None,
):
    """Published modules, each with the caller's progress if any."""
    rows = await TrainingService(db).list_modules(
        user, category=category, difficulty=difficulty, role=role
    )
    return [ModuleWithProgress.model_validate(row, from_attributes=True) for row in rows]


@router.post("/modules", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
async def create_module(
    request: Request,
    data: ModuleCreate,
    user: AdminUser,
    db: DbSession,
):
    """Create an unpublished module."""
    module = await TrainingService(db).create_module(
        user,
        title=data.title,
        description=data.description,
        category=data.category.value,
        difficulty=data.difficulty.value,
        estimated_duration=data.estimated_duration,
        content=[piece.model_dump() for piece in data.content],
        tags=data.tags,
        target_roles=data.target_roles,
        ip_address=get_client_ip(request),
    )
    return ModuleResponse.model_validate(module)


@router.get("/my-progress", response_model=MyProgressResponse)
async def get_my_progress(user: CurrentUser, db: DbSession):
    return MyProgressResponse.model_validate(
        await TrainingService(db).my_progress(user), from_attributes=True
    )


@router.get("/modules/{module_id}", response_model=ModuleDetailResponse)
async def get_module(
    module_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    """Module detail; opening it creates a NotStarted progress record."""
    return ModuleDetailResponse.model_validate(
        await TrainingService(db).get_module(module_id, user), from_attributes=True
    )


@router.put("/modules/{module_id}/publish", response_model=ModuleResponse)
async def publish_module(
    module_id: uuid.UUID,
    user: AdminUser,
    db: DbSession,
):
    return ModuleResponse.model_validate(await TrainingService(db).publish_module(module_id))


@router.post("/modules/{module_id}/enroll", response_model=EnrollResponse)
async def enroll_in_module(
    module_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    progress = await TrainingService(db).enroll(module_id, user)
    return EnrollResponse(
        message="Enrolled successfully",
        progress=ProgressResponse.model_validate(progress),
    )


@router.put("/modules/{module_id}/progress", response_model=ProgressResponse)
async def update_module_progress(
    module_id: uuid.UUID,
    data: ProgressUpdate,
    user: CurrentUser,
    db: DbSession,
):
    progress = await TrainingService(db).update_progress(
        module_id,
        user,
        content_index=data.content_index,
        quiz_score=data.quiz_score,
        max_score=data.max_score,
    )
    return ProgressResponse.model_validate(progress)


@router.post("/modules/{module_id}/rate", response_model=RatingResponse)
async def rate_module(
    module_id: uuid.UUID,
    data: ModuleRating,
    user: CurrentUser,
    db: DbSession,
):
    module = await TrainingService(db).rate_module(
        module_id, user, rating=data.rating, feedback=data.feedback
    )
    return RatingResponse(
        message="Rating submitted",
        average_rating=module.average_rating,
        total_ratings=module.total_ratings,
    )


# Sessions

@router.get("/sessions", response_model=List[TrainingSessionResponse])
async def list_sessions(
    user: CurrentUser,
    db: DbSession,
    status_filter: Optional[str] = Query(None, alias="status"),
):
    sessions = await TrainingService(db).list_sessions(status=status_filter)
    return [TrainingSessionResponse.model_validate(s) for s in sessions]


@router.post("/sessions", response_model=TrainingSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: Request,
    data: TrainingSessionCreate,
    user: SessionHostUser,
    db: DbSession,
):
    """Schedule a live session with the caller as instructor."""
    training_session = await TrainingService(db).create_session(
        user,
        title=data.title,
        scheduled_date=data.scheduled_date,
        duration=data.duration,
        description=data.description,
        meeting_link=data.meeting_link,
        max_participants=data.max_participants,
        related_module_id=data.related_module_id,
        ip_address=get_client_ip(request),
    )
    return TrainingSessionResponse.model_validate(training_session)


@router.post("/sessions/{session_id}/register", response_model=TrainingSessionResponse)
async def register_for_session(
    session_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    training_session = await TrainingService(db).register(session_id, user)
    return TrainingSessionResponse.model_validate(training_session)


@router.put("/sessions/{session_id}/attendance", response_model=TrainingSessionResponse)
async def mark_attendance(
    session_id: uuid.UUID,
    data: AttendanceUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Instructor or administrator marks an attendee Attended or NoShow."""
    training_session = await TrainingService(db).mark_attendance(
        session_id, user, user_id=data.user_id, status=data.status.value
    )
    return TrainingSessionResponse.model_validate(training_session)
