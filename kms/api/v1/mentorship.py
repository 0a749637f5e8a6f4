"""
Mentorship endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import CurrentUser, DbSession, get_client_ip
from kms.engines.mentorship import MentorshipService
from kms.schemas.mentorship import (
    MentorResponse,
    MentorshipCreate,
    MentorshipFeedbackCreate,
    MentorshipResponse,
    MentorshipSessionCreate,
    MentorshipUpdate,
)

router = APIRouter()


@router.get("", response_model=List[MentorshipResponse])
async def list_mentorships(
    user: CurrentUser,
    db: DbSession,
    role: Optional[str] = Query(None, description="mentor, mentee or omitted for both"),
    status_filter: Optional[str] = Query(None, alias="status"),
):
    mentorships = await MentorshipService(db).list_mentorships(user, role=role, status=status_filter)
    return [MentorshipResponse.model_validate(m) for m in mentorships]


@router.get("/mentors", response_model=List[MentorResponse])
async def list_available_mentors(
    user: CurrentUser,
    db: DbSession,
    skill: Optional[str] = None,
    region: Optional[str] = None,
):
    """Reviewer-role users who can take a mentee, with their current load."""
    mentors = await MentorshipService(db).available_mentors(user, skill=skill, region=region)
    return [
        MentorResponse(
            id=row["user"].id,
            username=row["user"].username,
            email=row["user"].email,
            role=row["user"].role,
            skills=row["user"].skills or [],
            region=row["user"].region,
            active_mentorships=row["active_mentorships"],
        )
        for row in mentors
    ]


@router.post("", response_model=MentorshipResponse, status_code=status.HTTP_201_CREATED)
async def create_mentorship(
    request: Request,
    data: MentorshipCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Request a mentorship with the caller as mentee."""
    mentorship = await MentorshipService(db).create(
        user,
        mentor_id=data.mentor_id,
        focus_areas=data.focus_areas,
        goals=[goal.model_dump() for goal in data.goals],
        ip_address=get_client_ip(request),
    )
    return MentorshipResponse.model_validate(mentorship)


@router.get("/{mentorship_id}", response_model=MentorshipResponse)
async def get_mentorship(
    mentorship_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    return MentorshipResponse.model_validate(
        await MentorshipService(db).require_mentorship(mentorship_id)
    )


@router.put("/{mentorship_id}", response_model=MentorshipResponse)
async def update_mentorship(
    mentorship_id: uuid.UUID,
    data: MentorshipUpdate,
    user: CurrentUser,
    db: DbSession,
):
    mentorship = await MentorshipService(db).update(
        mentorship_id,
        user,
        status=data.status,
        goals=[goal.model_dump() for goal in data.goals] if data.goals is not None else None,
        focus_areas=data.focus_areas,
    )
    return MentorshipResponse.model_validate(mentorship)


@router.post("/{mentorship_id}/sessions", response_model=MentorshipResponse)
async def add_mentorship_session(
    mentorship_id: uuid.UUID,
    data: MentorshipSessionCreate,
    user: CurrentUser,
    db: DbSession,
):
    mentorship = await MentorshipService(db).add_session(
        mentorship_id,
        user,
        duration=data.duration,
        notes=data.notes,
        topics=data.topics,
    )
    return MentorshipResponse.model_validate(mentorship)


@router.post("/{mentorship_id}/feedback", response_model=MentorshipResponse)
async def add_mentorship_feedback(
    mentorship_id: uuid.UUID,
    data: MentorshipFeedbackCreate,
    user: CurrentUser,
    db: DbSession,
):
    mentorship = await MentorshipService(db).add_feedback(
        mentorship_id,
        user,
        rating=data.rating,
        comment=data.comment,
    )
    return MentorshipResponse.model_validate(mentorship)
