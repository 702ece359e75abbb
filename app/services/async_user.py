from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from app.models.user import User
from app.models.user_profile import UserProfile
from app.schemas.user import UserCreate, UserUpdate
from app.services.access_policy import AccessPolicy
from app.services.async_auth import AsyncAuthService
from app.services.async_error_handler import async_transaction
from app.services.base import AsyncQueryUtils
from app.utils.logger import auth_logger

ADMIN_ONLY_FIELDS = {"role", "status", "coach_id"}


class AsyncUserService:
    """Account directory, profile upserts and soft deactivation."""

    DETAIL_OPTIONS = (selectinload(User.profile),)

    @staticmethod
    def _search(stmt, search: Optional[str]):
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        return stmt

    @classmethod
    async def list_users(
        cls,
        db: AsyncSession,
        actor: User,
        page: int,
        limit: int,
        role: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        """Admins see everyone; coaches see the clients they are linked to."""
        AccessPolicy.require_role(actor, "admin", "coach")
        if actor.role == "coach":
            stmt = select(User).where(User.id.in_(AccessPolicy.linked_client_ids(actor.id)))
        else:
            stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if status:
            stmt = stmt.where(User.status == status)
        stmt = cls._search(stmt, search).order_by(User.created_at.desc(), User.id.desc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def list_coaches(
        cls, db: AsyncSession, page: int, limit: int, search: Optional[str] = None
    ) -> Tuple[List[User], int]:
        """Active coaches, visible to every signed-in user so clients can book."""
        stmt = select(User).where(User.role == "coach", User.status == "active")
        stmt = cls._search(stmt, search).order_by(User.name.asc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def list_clients(
        cls, db: AsyncSession, actor: User, page: int, limit: int, search: Optional[str] = None
    ) -> Tuple[List[User], int]:
        AccessPolicy.require_role(actor, "admin", "coach")
        stmt = AccessPolicy.scope(select(User), actor, User).where(User.role == "client")
        stmt = cls._search(stmt, search).order_by(User.name.asc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def get_user(cls, db: AsyncSession, actor: User, user_id: int) -> User:
        if actor.role == "client" and user_id != actor.id:
            raise PermissionDeniedError("Access denied")
        return await AccessPolicy.get_visible(db, actor, User, user_id, options=cls.DETAIL_OPTIONS, label="User")

    @classmethod
    async def _load(cls, db: AsyncSession, user_id: int) -> User:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(*cls.DETAIL_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one()

    @staticmethod
    async def _validate_coach(db: AsyncSession, coach_id: Optional[int]) -> None:
        if coach_id is None:
            return
        coach = (await db.execute(select(User).where(User.id == coach_id))).scalar_one_or_none()
        if coach is None or coach.role != "coach":
            raise ValidationError("coach_id must reference a coach")

    @classmethod
    async def create_user(cls, db: AsyncSession, actor: User, data: UserCreate) -> User:
        AccessPolicy.require_role(actor, "admin", message="Only admins can create users")
        await cls._validate_coach(db, data.coach_id)
        user = await AsyncAuthService.create_user(
            db,
            email=data.email,
            password=data.password,
            name=data.name,
            role=data.role,
            phone=data.phone,
            coach_id=data.coach_id,
        )
        auth_logger.info("User created by admin", "users", user_id=user.id, role=user.role)
        return await cls._load(db, user.id)

    @classmethod
    async def update_user(cls, db: AsyncSession, actor: User, user_id: int, data: UserUpdate) -> User:
        """
        Self, a linked coach, or an admin may edit. Only admins may change
        role, status or coach assignment. Profile fields are upserted.
        """
        target = await cls.get_user(db, actor, user_id)
        changes = data.model_dump(exclude_unset=True, exclude={"profile"})

        restricted = ADMIN_ONLY_FIELDS & changes.keys()
        if restricted and actor.role != "admin":
            raise PermissionDeniedError(f"Only admins can change: {', '.join(sorted(restricted))}")

        if "email" in changes and changes["email"] is not None:
            changes["email"] = AsyncAuthService.normalize_email(changes["email"])
            taken = await db.execute(
                select(User.id).where(func.lower(User.email) == changes["email"], User.id != target.id)
            )
            if taken.first() is not None:
                raise ConflictError("Email already in use")
        if "coach_id" in changes:
            await cls._validate_coach(db, changes["coach_id"])

        async with async_transaction(db, "update user"):
            for field, value in changes.items():
                if value is None and field in ("email", "name", "role", "status"):
                    continue
                setattr(target, field, value)

            if data.profile is not None:
                profile = target.profile
                if profile is None:
                    profile = UserProfile(user_id=target.id)
                    db.add(profile)
                AsyncQueryUtils.apply_updates(profile, data.profile)

        auth_logger.info("User updated", "users", user_id=target.id, fields=sorted(changes.keys()))
        return await cls._load(db, target.id)

    @classmethod
    async def deactivate_user(cls, db: AsyncSession, actor: User, user_id: int) -> User:
        """Soft delete: accounts are never removed, only marked inactive."""
        AccessPolicy.require_role(actor, "admin", message="Only admins can delete users")
        if actor.id == user_id:
            raise ValidationError("You cannot deactivate your own account")
        target = await AccessPolicy.get_visible(db, actor, User, user_id, label="User")

        async with async_transaction(db, "deactivate user"):
            target.status = "inactive"

        auth_logger.warning("User deactivated", "users", user_id=target.id)
        return target
