"""
Mentorship pairings between users.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import AuthorizationError, NotFoundError, ValidationError
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.base import utcnow
from kms.kernel.models.mentorship import LIVE_MENTORSHIP_STATUSES, Mentorship, MentorshipStatus
from kms.kernel.models.user import User
from kms.kernel.permissions import REVIEWER_ROLES

VALID_STATUSES = frozenset(status.value for status in MentorshipStatus)


class MentorshipService:
    """Mentor discovery plus the lifecycle of a mentorship."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditLogger(session)

    async def list_mentorships(
        self,
        user: User,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Mentorship]:
        """Mentorships the user takes part in, newest first."""
        if role == "mentor":
            condition = Mentorship.mentor_id == user.id
        elif role == "mentee":
            condition = Mentorship.mentee_id == user.id
        else:
            condition = or_(Mentorship.mentor_id == user.id, Mentorship.mentee_id == user.id)

        query = select(Mentorship).where(condition)
        if status:
            query = query.where(Mentorship.status == status)
        result = await self.session.execute(query.order_by(Mentorship.created_at.desc()))
        return list(result.scalars().all())

    async def available_mentors(
        self,
        user: User,
        skill: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Reviewer-role users other than the caller, with their count of
        active mentorships.
        """
        active_counts = (
            select(Mentorship.mentor_id, func.count().label("active"))
            .where(Mentorship.status == MentorshipStatus.ACTIVE.value)
            .group_by(Mentorship.mentor_id)
            .subquery()
        )
        query = (
            select(User, func.coalesce(active_counts.c.active, 0))
            .outerjoin(active_counts, active_counts.c.mentor_id == User.id)
            .where(
                and_(
                    User.role.in_(REVIEWER_ROLES),
                    User.id != user.id,
                    User.is_active.is_(True),
                )
            )
            .order_by(User.username)
        )
        if region:
            query = query.where(User.region == region)

        rows = (await self.session.execute(query)).all()
        mentors = []
        for mentor, active in rows:
            # skills is a JSON list; filtered here to stay portable across backends
            if skill and skill not in (mentor.skills or []):
                continue
            mentors.append({"user": mentor, "active_mentorships": active})
        return mentors

    async def require_mentorship(self, mentorship_id: uuid.UUID) -> Mentorship:
        mentorship = await self.session.get(Mentorship, mentorship_id)
        if mentorship is None:
            raise NotFoundError("Mentorship not found")
        return mentorship

    def _ensure_participant(self, mentorship: Mentorship, user: User, message: str) -> None:
        if not mentorship.is_participant(user.id):
            raise AuthorizationError(message)

    async def create(
        self,
        mentee: User,
        mentor_id: uuid.UUID,
        focus_areas: Optional[List[str]] = None,
        goals: Optional[List[Dict[str, Any]]] = None,
        ip_address: Optional[str] = None,
    ) -> Mentorship:
        """
        Start a mentorship with the caller as mentee.

        Raises:
            NotFoundError: Mentor does not exist
            ValidationError: Self-mentoring or a live pairing already exists
        """
        mentor = await self.session.get(User, mentor_id)
        if mentor is None:
            raise NotFoundError("Mentor not found")
        if mentor.id == mentee.id:
            raise ValidationError("You cannot mentor yourself")

        existing = await self.session.scalar(
            select(Mentorship.id).where(
                and_(
                    Mentorship.mentor_id == mentor.id,
                    Mentorship.mentee_id == mentee.id,
                    Mentorship.status.in_(LIVE_MENTORSHIP_STATUSES),
                )
            )
        )
        if existing is not None:
            raise ValidationError("You already have an active mentorship with this mentor")

        mentorship = Mentorship(
            mentor=mentor,
            mentee=mentee,
            status=MentorshipStatus.ACTIVE.value,
            focus_areas=list(focus_areas or []),
            goals=list(goals or []),
            sessions=[],
            feedback=[],
        )
        self.session.add(mentorship)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.MENTORSHIP_CREATED,
            actor_id=mentee.id,
            target_id=mentorship.id,
            target_model=TargetModel.MENTORSHIP,
            details={"mentor_id": mentor.id},
            ip_address=ip_address,
        )
        return mentorship

    async def update(
        self,
        mentorship_id: uuid.UUID,
        user: User,
        status: Optional[str] = None,
        goals: Optional[List[Dict[str, Any]]] = None,
        focus_areas: Optional[List[str]] = None,
    ) -> Mentorship:
        mentorship = await self.require_mentorship(mentorship_id)
        self._ensure_participant(mentorship, user, "Not authorized")

        if status is not None:
            if status not in VALID_STATUSES:
                raise ValidationError("Invalid mentorship status")
            mentorship.status = status
            if status == MentorshipStatus.COMPLETED.value:
                mentorship.end_date = utcnow()
        if goals is not None:
            mentorship.goals = list(goals)
        if focus_areas is not None:
            mentorship.focus_areas = list(focus_areas)

        await self.session.flush()
        return mentorship

    async def add_session(
        self,
        mentorship_id: uuid.UUID,
        user: User,
        duration: int,
        notes: Optional[str] = None,
        topics: Optional[List[str]] = None,
    ) -> Mentorship:
        mentorship = await self.require_mentorship(mentorship_id)
        self._ensure_participant(mentorship, user, "Not authorized to update this mentorship")

        mentorship.sessions = [
            *mentorship.sessions,
            {
                "date": utcnow().isoformat(),
                "duration": duration,
                "notes": notes,
                "topics": list(topics or []),
            },
        ]
        await self.session.flush()
        return mentorship

    async def add_feedback(
        self,
        mentorship_id: uuid.UUID,
        user: User,
        rating: int,
        comment: Optional[str] = None,
    ) -> Mentorship:
        mentorship = await self.require_mentorship(mentorship_id)
        self._ensure_participant(mentorship, user, "Not authorized to update this mentorship")
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        mentorship.feedback = [
            *mentorship.feedback,
            {
                "from_user_id": str(user.id),
                "rating": rating,
                "comment": comment,
                "created_at": utcnow().isoformat(),
            },
        ]
        await self.session.flush()
        return mentorship
