"""
Role and relationship based access rules.

Every service asks this module whether an actor may see or change a
resource instead of re-deriving the coach/client relationship itself.

Rules:
    admin   unrestricted.
    coach   own records, plus records of clients they are linked to. A
            coach is linked to a client when the client's ``coach_id``
            names them, or a Program or a non-cancelled Appointment joins
            the two.
    client  only rows whose ``client_id`` is their own.

Lookups by id that the actor may not see raise ``NotFoundError`` so a
missing row and a forbidden row look the same from outside.
"""

from typing import Any, Callable, Dict, Optional, Sequence, Type

from sqlalchemy import exists, literal, or_, select, union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.models.appointment import Appointment
from app.models.message import Message
from app.models.notification import Notification
from app.models.nutrition import Meal, NutritionGoal
from app.models.program import Program
from app.models.user import User
from app.models.workout import Workout


class AccessPolicy:
    """Central authorization predicate for (actor, resource type, resource id)."""

    @staticmethod
    def require_role(actor: User, *roles: str, message: Optional[str] = None) -> None:
        """Raise 403 unless the actor holds one of ``roles``."""
        if actor.role not in roles:
            raise PermissionDeniedError(message or "You do not have permission to perform this action")

    @staticmethod
    def linked_client_ids(coach_id: int) -> Select:
        """Select of client ids the coach is linked to (assignment, program or appointment)."""
        linked = union(
            select(User.id.label("client_id")).where(User.coach_id == coach_id, User.role == "client"),
            select(Program.client_id.label("client_id")).where(
                Program.coach_id == coach_id, Program.client_id.is_not(None)
            ),
            select(Appointment.client_id.label("client_id")).where(
                Appointment.coach_id == coach_id, Appointment.status != "cancelled"
            ),
        ).subquery()
        return select(linked.c.client_id)

    @classmethod
    async def is_linked(cls, db: AsyncSession, coach_id: int, client_id: int) -> bool:
        """Whether a coaching relationship joins ``coach_id`` and ``client_id``."""
        linked = cls.linked_client_ids(coach_id).subquery()
        stmt = select(exists(select(literal(1)).select_from(linked).where(linked.c.client_id == client_id)))
        result = await db.execute(stmt)
        return bool(result.scalar())

    @classmethod
    async def can_access_client(cls, db: AsyncSession, actor: User, client_id: int) -> bool:
        if actor.role == "admin" or actor.id == client_id:
            return True
        if actor.role == "coach":
            return await cls.is_linked(db, actor.id, client_id)
        return False

    @classmethod
    async def ensure_client_access(cls, db: AsyncSession, actor: User, client_id: int) -> None:
        """Raise 403 when the actor may not act on ``client_id``'s records."""
        if not await cls.can_access_client(db, actor, client_id):
            raise PermissionDeniedError("Access denied")

    @classmethod
    async def can_message(cls, db: AsyncSession, sender: User, recipient: User) -> bool:
        """
        Messaging is allowed when either side is an admin, or the pair is a
        coach and a client joined by a coaching relationship. Two clients, or
        two coaches, never qualify.
        """
        if sender.role == "admin" or recipient.role == "admin":
            return True
        roles = {sender.role, recipient.role}
        if roles != {"coach", "client"}:
            return False
        coach, client = (sender, recipient) if sender.role == "coach" else (recipient, sender)
        return await cls.is_linked(db, coach.id, client.id)

    # Row filters per resource type. None means unrestricted.

    @classmethod
    def _program_scope(cls, actor: User) -> Optional[ColumnElement]:
        if actor.role == "client":
            return Program.client_id == actor.id
        return Program.coach_id == actor.id

    @classmethod
    def _workout_scope(cls, actor: User) -> Optional[ColumnElement]:
        if actor.role == "client":
            return Workout.client_id == actor.id
        return or_(
            Workout.program_id.in_(select(Program.id).where(Program.coach_id == actor.id)),
            Workout.client_id.in_(cls.linked_client_ids(actor.id)),
        )

    @classmethod
    def _client_owned_scope(cls, column) -> Callable[[User], Optional[ColumnElement]]:
        def scope(actor: User) -> Optional[ColumnElement]:
            if actor.role == "client":
                return column == actor.id
            return column.in_(cls.linked_client_ids(actor.id))
        return scope

    @classmethod
    def _appointment_scope(cls, actor: User) -> Optional[ColumnElement]:
        if actor.role == "client":
            return Appointment.client_id == actor.id
        return Appointment.coach_id == actor.id

    @classmethod
    def _message_scope(cls, actor: User) -> Optional[ColumnElement]:
        return or_(Message.sender_id == actor.id, Message.recipient_id == actor.id)

    @classmethod
    def _user_scope(cls, actor: User) -> Optional[ColumnElement]:
        if actor.role == "client":
            return User.id == actor.id
        return or_(User.id == actor.id, User.id.in_(cls.linked_client_ids(actor.id)))

    @classmethod
    def _scopes(cls) -> Dict[Type, Callable[[User], Optional[ColumnElement]]]:
        return {
            Program: cls._program_scope,
            Workout: cls._workout_scope,
            Meal: cls._client_owned_scope(Meal.client_id),
            NutritionGoal: cls._client_owned_scope(NutritionGoal.client_id),
            Appointment: cls._appointment_scope,
            Message: cls._message_scope,
            User: cls._user_scope,
        }

    @classmethod
    def scope_clause(cls, actor: User, model: Type) -> Optional[ColumnElement]:
        # Notifications are private to their owner, admins included
        if model is Notification:
            return Notification.user_id == actor.id
        if actor.role == "admin":
            return None
        try:
            return cls._scopes()[model](actor)
        except KeyError:
            raise ValueError(f"No access scope defined for {model.__name__}")

    @classmethod
    def scope(cls, stmt: Select, actor: User, model: Type) -> Select:
        """Restrict a select over ``model`` to rows the actor may see."""
        clause = cls.scope_clause(actor, model)
        return stmt if clause is None else stmt.where(clause)

    @classmethod
    async def get_visible(
        cls,
        db: AsyncSession,
        actor: User,
        model: Type,
        resource_id: int,
        options: Sequence[Any] = (),
        label: Optional[str] = None,
    ) -> Any:
        """
        Load one row the actor is allowed to see.

        Raises:
            NotFoundError: The row does not exist or is outside the actor's scope
        """
        stmt = cls.scope(select(model).where(model.id == resource_id), actor, model)
        if options:
            stmt = stmt.options(*options).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(f"{label or model.__name__} not found")
        return obj
