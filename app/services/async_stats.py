from datetime import date, datetime, timedelta, timezone
from typing import Dict, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.appointment import Appointment
from app.models.message import Message
from app.models.nutrition import Meal
from app.models.program import Program
from app.models.user import User
from app.models.workout import Workout
from app.schemas.stats import DashboardStats
from app.schemas.user import ClientStats, CoachStats
from app.services.access_policy import AccessPolicy

UPCOMING_STATUSES = ("scheduled", "confirmed")
ROLE_PLURALS = {"client": "clients", "coach": "coaches", "admin": "admins"}


class AsyncStatsService:
    """Dashboard counters. Plain aggregate queries, nothing cached."""

    @staticmethod
    async def _count(db: AsyncSession, stmt) -> int:
        return (await db.execute(stmt)).scalar() or 0

    @classmethod
    async def client_stats(cls, db: AsyncSession, client_id: int) -> ClientStats:
        now = datetime.now(timezone.utc)
        week_start = date.today() - timedelta(days=date.today().weekday())
        return ClientStats(
            active_programs=await cls._count(db, select(func.count(Program.id)).where(
                Program.client_id == client_id, Program.status == "active")),
            completed_workouts=await cls._count(db, select(func.count(Workout.id)).where(
                Workout.client_id == client_id, Workout.status == "completed")),
            upcoming_appointments=await cls._count(db, select(func.count(Appointment.id)).where(
                Appointment.client_id == client_id,
                Appointment.status.in_(UPCOMING_STATUSES),
                Appointment.scheduled_at >= now)),
            meals_this_week=await cls._count(db, select(func.count(Meal.id)).where(
                Meal.client_id == client_id, Meal.date >= week_start)),
        )

    @classmethod
    async def coach_stats(cls, db: AsyncSession, coach_id: int) -> CoachStats:
        now = datetime.now(timezone.utc)
        active_clients = select(func.count(User.id)).where(
            User.id.in_(AccessPolicy.linked_client_ids(coach_id)), User.status == "active"
        )
        return CoachStats(
            active_clients=await cls._count(db, active_clients),
            active_programs=await cls._count(db, select(func.count(Program.id)).where(
                Program.coach_id == coach_id, Program.status == "active")),
            upcoming_appointments=await cls._count(db, select(func.count(Appointment.id)).where(
                Appointment.coach_id == coach_id,
                Appointment.status.in_(UPCOMING_STATUSES),
                Appointment.scheduled_at >= now)),
            unread_messages=await cls._count(db, select(func.count(Message.id)).where(
                Message.recipient_id == coach_id, Message.read_at.is_(None))),
        )

    @classmethod
    async def user_stats(cls, db: AsyncSession, actor: User, user_id: int) -> Union[ClientStats, CoachStats]:
        await AccessPolicy.ensure_client_access(db, actor, user_id)
        user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        if user.role == "coach":
            return await cls.coach_stats(db, user.id)
        return await cls.client_stats(db, user.id)

    @classmethod
    async def platform_totals(cls, db: AsyncSession) -> Dict[str, int]:
        rows = (await db.execute(
            select(User.role, func.count(User.id)).where(User.status == "active").group_by(User.role)
        )).all()
        totals = {f"active_{ROLE_PLURALS[role]}": count for role, count in rows}
        totals["active_programs"] = await cls._count(
            db, select(func.count(Program.id)).where(Program.status == "active"))
        totals["upcoming_appointments"] = await cls._count(
            db, select(func.count(Appointment.id)).where(
                Appointment.status.in_(UPCOMING_STATUSES),
                Appointment.scheduled_at >= datetime.now(timezone.utc)))
        totals["messages"] = await cls._count(db, select(func.count(Message.id)))
        return totals

    @classmethod
    async def dashboard(cls, db: AsyncSession, actor: User) -> DashboardStats:
        if actor.role == "coach":
            counts = (await cls.coach_stats(db, actor.id)).model_dump()
        elif actor.role == "client":
            counts = (await cls.client_stats(db, actor.id)).model_dump()
        else:
            counts = {}
        platform = await cls.platform_totals(db) if actor.role == "admin" else None
        return DashboardStats(role=actor.role, counts=counts, platform=platform)
