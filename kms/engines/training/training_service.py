"""
Training: self-paced modules with per-user progress, and live sessions.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import AuthorizationError, NotFoundError, ValidationError
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.base import utcnow
from kms.kernel.models.training import (
    AttendanceStatus,
    ProgressStatus,
    SessionStatus,
    TrainingModule,
    TrainingProgress,
    TrainingSession,
)
from kms.kernel.models.user import User, UserRole

ALL_ROLES = "All"
MARKABLE_ATTENDANCE = (AttendanceStatus.ATTENDED.value, AttendanceStatus.NO_SHOW.value)


def completion_percentage(completed: int, total: int) -> int:
    """Rounded share of completed content pieces; 0 for an empty module."""
    if total <= 0:
        return 0
    return min(100, round(completed / total * 100))


class TrainingService:
    """Modules, enrolment and progress tracking, and instructor-led sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditLogger(session)

    # Modules

    async def list_modules(
        self,
        user: User,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        role: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Published modules with the caller's progress on each."""
        query = select(TrainingModule).where(TrainingModule.is_published.is_(True))
        if category:
            query = query.where(TrainingModule.category == category)
        if difficulty:
            query = query.where(TrainingModule.difficulty == difficulty)
        modules = list(
            (await self.session.execute(query.order_by(TrainingModule.created_at.desc()))).scalars().all()
        )
        if role:
            modules = [
                module for module in modules
                if role in (module.target_roles or []) or ALL_ROLES in (module.target_roles or [])
            ]

        progress_by_module: Dict[uuid.UUID, TrainingProgress] = {}
        if modules:
            result = await self.session.execute(
                select(TrainingProgress).where(
                    TrainingProgress.user_id == user.id,
                    TrainingProgress.module_id.in_([module.id for module in modules]),
                )
            )
            progress_by_module = {progress.module_id: progress for progress in result.scalars().all()}

        return [
            {"module": module, "user_progress": progress_by_module.get(module.id)}
            for module in modules
        ]

    async def require_module(self, module_id: uuid.UUID) -> TrainingModule:
        module = await self.session.get(TrainingModule, module_id)
        if module is None:
            raise NotFoundError("Training module not found")
        return module

    async def _find_progress(self, user_id: uuid.UUID, module_id: uuid.UUID) -> Optional[TrainingProgress]:
        return await self.session.scalar(
            select(TrainingProgress).where(
                TrainingProgress.user_id == user_id,
                TrainingProgress.module_id == module_id,
            )
        )

    async def _get_or_create_progress(self, user: User, module: TrainingModule) -> TrainingProgress:
        progress = await self._find_progress(user.id, module.id)
        if progress is not None:
            return progress
        try:
            async with self.session.begin_nested():
                progress = TrainingProgress(
                    user_id=user.id,
                    module=module,
                    status=ProgressStatus.NOT_STARTED.value,
                    completed_content=[],
                    quiz_scores=[],
                )
                self.session.add(progress)
                await self.session.flush()
        except IntegrityError:
            progress = await self._find_progress(user.id, module.id)
        return progress

    async def get_module(self, module_id: uuid.UUID, user: User) -> Dict[str, Any]:
        module = await self.require_module(module_id)
        progress = await self._get_or_create_progress(user, module)
        return {"module": module, "progress": progress}

    async def create_module(
        self,
        actor: User,
        title: str,
        description: str,
        category: str,
        difficulty: str,
        estimated_duration: int = 30,
        content: Optional[List[Dict[str, Any]]] = None,
        tags: Optional[List[str]] = None,
        target_roles: Optional[List[str]] = None,
        ip_address: Optional[str] = None,
    ) -> TrainingModule:
        module = TrainingModule(
            title=title,
            description=description,
            category=category,
            difficulty=difficulty,
            estimated_duration=estimated_duration,
            content=list(content or []),
            tags=list(tags or []),
            target_roles=list(target_roles or [ALL_ROLES]),
            created_by=actor.id,
            is_published=False,
        )
        self.session.add(module)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.TRAINING_MODULE_CREATED,
            actor_id=actor.id,
            target_id=module.id,
            target_model=TargetModel.TRAINING_MODULE,
            details={"title": title},
            ip_address=ip_address,
        )
        return module

    async def publish_module(self, module_id: uuid.UUID) -> TrainingModule:
        module = await self.require_module(module_id)
        module.is_published = True
        await self.session.flush()
        return module

    async def enroll(self, module_id: uuid.UUID, user: User) -> TrainingProgress:
        module = await self.require_module(module_id)
        progress = await self._get_or_create_progress(user, module)
        if progress.status != ProgressStatus.NOT_STARTED.value:
            raise ValidationError("Already enrolled in this module")

        progress.status = ProgressStatus.IN_PROGRESS.value
        progress.started_at = utcnow()
        await self.session.flush()
        return progress

    async def update_progress(
        self,
        module_id: uuid.UUID,
        user: User,
        content_index: Optional[int] = None,
        quiz_score: Optional[float] = None,
        max_score: Optional[float] = None,
    ) -> TrainingProgress:
        """
        Mark a content piece complete and/or record a quiz score.

        Reaching 100 % completes the module (counted once per user).
        """
        module = await self.require_module(module_id)
        progress = await self._find_progress(user.id, module.id)
        if progress is None:
            raise NotFoundError("Not enrolled in this module")

        now = utcnow().isoformat()
        if content_index is not None:
            if not 0 <= content_index < len(module.content or []):
                raise ValidationError("Invalid content index")
            if not any(c["content_index"] == content_index for c in progress.completed_content):
                progress.completed_content = [
                    *progress.completed_content,
                    {"content_index": content_index, "completed_at": now},
                ]

        if quiz_score is not None and max_score is not None:
            scores = [dict(score) for score in progress.quiz_scores]
            existing = next((s for s in scores if s["content_index"] == content_index), None)
            if existing is not None:
                existing.update(
                    score=quiz_score,
                    attempts=existing.get("attempts", 0) + 1,
                    completed_at=now,
                )
            else:
                scores.append({
                    "content_index": content_index,
                    "score": quiz_score,
                    "max_score": max_score,
                    "attempts": 1,
                    "completed_at": now,
                })
            progress.quiz_scores = scores

        if progress.status == ProgressStatus.NOT_STARTED.value:
            progress.status = ProgressStatus.IN_PROGRESS.value
            progress.started_at = utcnow()

        progress.progress = completion_percentage(
            len(progress.completed_content), len(module.content or [])
        )
        if progress.progress >= 100 and progress.status != ProgressStatus.COMPLETED.value:
            progress.status = ProgressStatus.COMPLETED.value
            progress.completed_at = utcnow()
            module.completions = module.completions + 1

        await self.session.flush()
        return progress

    async def rate_module(
        self,
        module_id: uuid.UUID,
        user: User,
        rating: int,
        feedback: Optional[str] = None,
    ) -> TrainingModule:
        module = await self.require_module(module_id)
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        progress = await self._find_progress(user.id, module.id)
        if progress is None or progress.status != ProgressStatus.COMPLETED.value:
            raise ValidationError("You must complete the module before rating")

        progress.rating = rating
        progress.feedback = feedback
        await self.session.flush()

        average, count = (
            await self.session.execute(
                select(func.avg(TrainingProgress.rating), func.count(TrainingProgress.rating)).where(
                    TrainingProgress.module_id == module.id,
                    TrainingProgress.rating.is_not(None),
                )
            )
        ).one()
        module.average_rating = round(float(average or 0), 2)
        module.total_ratings = count or 0
        await self.session.flush()
        return module

    async def my_progress(self, user: User) -> Dict[str, Any]:
        result = await self.session.execute(
            select(TrainingProgress)
            .where(TrainingProgress.user_id == user.id)
            .order_by(TrainingProgress.updated_at.desc())
        )
        progress = list(result.scalars().all())
        stats = {
            "total": len(progress),
            "completed": sum(1 for p in progress if p.status == ProgressStatus.COMPLETED.value),
            "in_progress": sum(1 for p in progress if p.status == ProgressStatus.IN_PROGRESS.value),
            "not_started": sum(1 for p in progress if p.status == ProgressStatus.NOT_STARTED.value),
        }
        return {"progress": progress, "stats": stats}

    # Sessions

    async def list_sessions(self, status: Optional[str] = None) -> List[TrainingSession]:
        query = select(TrainingSession)
        if status:
            query = query.where(TrainingSession.status == status)
        result = await self.session.execute(query.order_by(TrainingSession.scheduled_date))
        return list(result.scalars().all())

    async def require_session(self, session_id: uuid.UUID) -> TrainingSession:
        training_session = await self.session.get(TrainingSession, session_id)
        if training_session is None:
            raise NotFoundError("Session not found")
        return training_session

    async def create_session(
        self,
        actor: User,
        title: str,
        scheduled_date: datetime,
        duration: int,
        description: Optional[str] = None,
        meeting_link: Optional[str] = None,
        max_participants: int = 50,
        related_module_id: Optional[uuid.UUID] = None,
        ip_address: Optional[str] = None,
    ) -> TrainingSession:
        if related_module_id is not None:
            await self.require_module(related_module_id)

        training_session = TrainingSession(
            title=title,
            description=description,
            instructor=actor,
            scheduled_date=scheduled_date,
            duration=duration,
            meeting_link=meeting_link,
            max_participants=max_participants,
            status=SessionStatus.SCHEDULED.value,
            related_module_id=related_module_id,
            attendees=[],
        )
        self.session.add(training_session)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.TRAINING_SESSION_CREATED,
            actor_id=actor.id,
            target_id=training_session.id,
            target_model=TargetModel.TRAINING_SESSION,
            details={"title": title},
            ip_address=ip_address,
        )
        return training_session

    async def register(self, session_id: uuid.UUID, user: User) -> TrainingSession:
        training_session = await self.require_session(session_id)
        if training_session.status != SessionStatus.SCHEDULED.value:
            raise ValidationError("Session is not open for registration")
        if any(a["user_id"] == str(user.id) for a in training_session.attendees):
            raise ValidationError("Already registered")
        if len(training_session.attendees) >= training_session.max_participants:
            raise ValidationError("Session is full")

        training_session.attendees = [
            *training_session.attendees,
            {
                "user_id": str(user.id),
                "status": AttendanceStatus.REGISTERED.value,
                "joined_at": utcnow().isoformat(),
            },
        ]
        await self.session.flush()
        return training_session

    async def mark_attendance(
        self,
        session_id: uuid.UUID,
        actor: User,
        user_id: uuid.UUID,
        status: str,
    ) -> TrainingSession:
        training_session = await self.require_session(session_id)
        if training_session.instructor_id != actor.id and actor.role != UserRole.ADMINISTRATOR.value:
            raise AuthorizationError("Not authorized")
        if status not in MARKABLE_ATTENDANCE:
            raise ValidationError("Invalid attendance status")

        attendees = [dict(a) for a in training_session.attendees]
        attendee = next((a for a in attendees if a["user_id"] == str(user_id)), None)
        if attendee is None:
            raise NotFoundError("User not registered")
        attendee["status"] = status
        training_session.attendees = attendees
        await self.session.flush()
        return training_session
