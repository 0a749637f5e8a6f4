"""
Identity service: registration, login, token rotation and user administration.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy import and_, func, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import AuthenticationError, NotFoundError, ValidationError
from kms.kernel.identity.jwt import JWTManager, TokenPair
from kms.kernel.identity.password import hash_password, verify_password
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.user import PromotionStatus, RefreshToken, User, UserRole

VALID_ROLES = frozenset(role.value for role in UserRole)
VALID_PROMOTION_STATUSES = frozenset(status.value for status in PromotionStatus)


def ensure_valid_role(role: str) -> str:
    if role not in VALID_ROLES:
        raise ValidationError("Invalid role")
    return role


class IdentityService:
    """
    Service for user identity operations.

    Handles user registration, authentication, token management and the
    administrator's user-management operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.jwt_manager = JWTManager()
        self.audit = AuditLogger(session)

    async def register_user(
        self,
        username: str,
        email: str,
        password: str,
        role: str = UserRole.CONSULTANT.value,
        region: Optional[str] = None,
        skills: Optional[Sequence[str]] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Register a new user.

        The role is taken from the request (defaulting to Consultant).

        Args:
            username: Unique display name
            email: Unique email address
            password: Plain text password
            role: One of UserRole
            region: Home region (default "Global")
            skills: Skill tags used for recommendations and mentor search
            ip_address: Client IP for audit

        Returns:
            The created User

        Raises:
            ValidationError: If the role is invalid or the user already exists
        """
        ensure_valid_role(role)
        await self._ensure_unique(username=username, email=email)

        user = User(
            username=username.strip(),
            email=email.lower().strip(),
            password_hash=hash_password(password),
            role=role,
            region=(region or "Global").strip(),
            skills=list(skills or []),
        )
        self.session.add(user)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.USER_REGISTER,
            actor_id=user.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"username": user.username, "role": user.role},
            ip_address=ip_address,
        )
        return user

    async def authenticate(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
    ) -> tuple[User, TokenPair]:
        """
        Check credentials and issue a token pair.

        Raises:
            AuthenticationError: On unknown email, wrong password or inactive account
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")

        token_pair = await self._issue_tokens(user)

        await self.audit.record(
            action=AuditAction.USER_LOGIN,
            actor_id=user.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            ip_address=ip_address,
        )
        return user, token_pair

    async def refresh_tokens(self, refresh_token: str) -> tuple[User, TokenPair]:
        """
        Exchange a refresh token for a new pair.

        The presented token is revoked (rotation); reusing it fails.

        Raises:
            AuthenticationError: If the token is invalid, expired, revoked or
                its user is gone or disabled
        """
        payload = self.jwt_manager.verify_refresh_token(refresh_token)
        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        query = select(RefreshToken).where(
            and_(
                RefreshToken.token_hash == JWTManager.hash_token(refresh_token),
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > datetime.now(timezone.utc),
            )
        )
        token_record = (await self.session.execute(query)).scalar_one_or_none()
        if not token_record:
            raise AuthenticationError("Invalid or expired refresh token")

        user = await self.get_user_by_id(uuid.UUID(payload.sub))
        if not user or not user.is_active:
            raise AuthenticationError("Invalid or expired refresh token")

        token_record.revoked = True
        return user, await self._issue_tokens(user)

    async def logout(
        self,
        user_id: uuid.UUID,
        refresh_token: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """Revoke one refresh token, or all of the user's tokens when none is given."""
        conditions = [RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False)]
        if refresh_token:
            conditions.append(RefreshToken.token_hash == JWTManager.hash_token(refresh_token))

        result = await self.session.execute(select(RefreshToken).where(and_(*conditions)))
        for token in result.scalars().all():
            token.revoked = True

        await self.audit.record(
            action=AuditAction.USER_LOGOUT,
            actor_id=user_id,
            target_id=user_id,
            target_model=TargetModel.USER,
            details={"revoke_all": refresh_token is None},
            ip_address=ip_address,
        )

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_pair = self.jwt_manager.create_token_pair(
            user_id=user.id,
            username=user.username,
            role=user.role,
        )
        self.session.add(
            RefreshToken(
                user_id=user.id,
                token_hash=JWTManager.hash_token(token_pair.refresh_token),
                expires_at=datetime.now(timezone.utc)
                + timedelta(days=self.jwt_manager.refresh_token_expire_days),
            )
        )
        return token_pair

    async def _ensure_unique(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conditions = []
        if username:
            conditions.append(User.username == username.strip())
        if email:
            conditions.append(User.email == email.lower().strip())
        if not conditions:
            return
        query = select(User).where(or_(*conditions))
        if exclude_id:
            query = query.where(User.id != exclude_id)
        existing = (await self.session.execute(query.limit(1))).scalar_one_or_none()
        if existing:
            raise ValidationError("User with this email or username already exists")

    # Lookups

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID."""
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        query = select(User).where(User.email == email.lower().strip())
        return (await self.session.execute(query)).scalar_one_or_none()

    async def require_user(self, user_id: uuid.UUID) -> User:
        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # Administration

    async def list_users(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[List[User], int]:
        """Users filtered by role and username/email substring, newest first."""
        conditions = []
        if role:
            conditions.append(User.role == role)
        if search:
            conditions.append(
                or_(
                    User.username.icontains(search, autoescape=True),
                    User.email.icontains(search, autoescape=True),
                )
            )
        where = and_(*conditions) if conditions else true()

        total = await self.session.scalar(select(func.count()).select_from(User).where(where))
        result = await self.session.execute(
            select(User)
            .where(where)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create_user(
        self,
        actor: User,
        username: str,
        email: str,
        password: str,
        role: str = UserRole.CONSULTANT.value,
        region: Optional[str] = None,
        skills: Optional[Sequence[str]] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        """Administrator creates an account on someone's behalf."""
        ensure_valid_role(role)
        await self._ensure_unique(username=username, email=email)

        user = User(
            username=username.strip(),
            email=email.lower().strip(),
            password_hash=hash_password(password),
            role=role,
            region=(region or "Global").strip(),
            skills=list(skills or []),
        )
        self.session.add(user)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.USER_CREATED,
            actor_id=actor.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"username": user.username, "email": user.email, "role": user.role},
            ip_address=ip_address,
        )
        return user

    async def update_user(
        self,
        actor: User,
        user_id: uuid.UUID,
        changes: dict,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Apply profile changes (username, email, role, region, skills, is_active).

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: On an invalid role or a taken username/email
        """
        user = await self.require_user(user_id)

        if "role" in changes:
            ensure_valid_role(changes["role"])
        if changes.get("email") and changes["email"].lower().strip() != user.email:
            await self._ensure_unique(email=changes["email"], exclude_id=user.id)
            changes["email"] = changes["email"].lower().strip()
        if changes.get("username") and changes["username"] != user.username:
            await self._ensure_unique(username=changes["username"], exclude_id=user.id)

        for field, value in changes.items():
            setattr(user, field, list(value) if field == "skills" else value)

        await self.audit.record(
            action=AuditAction.USER_UPDATED,
            actor_id=actor.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"changes": sorted(changes)},
            ip_address=ip_address,
        )
        return user

    async def change_role(
        self,
        actor: User,
        user_id: uuid.UUID,
        new_role: str,
        ip_address: Optional[str] = None,
    ) -> User:
        """Change a user's role."""
        ensure_valid_role(new_role)
        user = await self.require_user(user_id)

        previous_role = user.role
        user.role = new_role

        await self.audit.record(
            action=AuditAction.USER_ROLE_UPDATED,
            actor_id=actor.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"previous_role": previous_role, "new_role": new_role},
            ip_address=ip_address,
        )
        return user

    async def delete_user(
        self,
        actor: User,
        user_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> None:
        """
        Deactivate an account.

        Accounts are deactivated rather than removed so that items, reviews
        and audit entries keep a valid author/actor.

        Raises:
            ValidationError: When deleting one's own account
            NotFoundError: If the user does not exist
        """
        if actor.id == user_id:
            raise ValidationError("Cannot delete your own account")
        user = await self.require_user(user_id)

        user.is_active = False
        await self.logout(user.id, ip_address=ip_address)

        await self.audit.record(
            action=AuditAction.USER_DELETED,
            actor_id=actor.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"username": user.username},
            ip_address=ip_address,
        )

    async def evaluate_promotion(
        self,
        actor: User,
        user_id: uuid.UUID,
        promotion_status: Optional[str] = None,
        notes: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Record a manager's promotion evaluation.

        Raises:
            ValidationError: Unknown promotion status
            NotFoundError: If the user does not exist
        """
        if promotion_status is not None and promotion_status not in VALID_PROMOTION_STATUSES:
            raise ValidationError("Invalid promotion status")
        user = await self.require_user(user_id)

        if promotion_status is not None:
            user.promotion_status = promotion_status
        if notes is not None:
            user.promotion_notes = notes
        user.last_evaluation_date = datetime.now(timezone.utc)

        await self.audit.record(
            action=AuditAction.PROMOTION_EVALUATION,
            actor_id=actor.id,
            target_id=user.id,
            target_model=TargetModel.USER,
            details={"promotion_status": promotion_status, "notes": notes},
            ip_address=ip_address,
        )
        return user
