"""
Appointment booking with per-coach conflict detection.

Every write that can move an appointment onto a coach's calendar runs the
conflict check and the write in one transaction, after taking a row lock on
the coach's user row. Concurrent bookings for the same coach therefore
queue behind each other instead of both passing the check. On PostgreSQL
the ``appointments_no_overlap`` exclusion constraint enforces the same rule
at the storage layer.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.appointment import Appointment
from app.models.user import User
from app.schemas.appointment import AppointmentCreate, AppointmentUpdate, AvailableSlots
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.async_notification import AsyncNotificationService
from app.services.base import AsyncQueryUtils
from app.services.scheduling import (
    BLOCKING_STATUSES,
    appointment_window,
    as_utc,
    generate_available_slots,
    validate_status_change,
)
from app.utils.logger import scheduling_logger

CONFLICT_MESSAGE = "Time slot conflicts with an existing appointment"


class AsyncAppointmentService:
    """Role-scoped appointment CRUD plus availability."""

    PARTY_OPTIONS = (selectinload(Appointment.coach), selectinload(Appointment.client))

    @staticmethod
    def _day_bounds(day: date) -> Tuple[datetime, datetime]:
        start = datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)
        return start, start + timedelta(days=1)

    @staticmethod
    async def _load_party(db: AsyncSession, user_id: Optional[int], role: str) -> User:
        if user_id is None:
            raise ValidationError(f"{role}_id is required")
        user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if user is None or user.role != role or not user.is_active:
            raise ValidationError(f"{role.capitalize()} not found or inactive")
        return user

    @classmethod
    async def _resolve_parties(cls, db: AsyncSession, actor: User, data: AppointmentCreate) -> Tuple[User, User]:
        """Coaches book for a client, clients book with a coach, admins name both."""
        if actor.role == "coach":
            coach_id, client_id = actor.id, data.client_id
        elif actor.role == "client":
            coach_id, client_id = data.coach_id, actor.id
        else:
            coach_id, client_id = data.coach_id, data.client_id

        coach = await cls._load_party(db, coach_id, "coach")
        client = await cls._load_party(db, client_id, "client")
        return coach, client

    @staticmethod
    async def _lock_coach(db: AsyncSession, coach_id: int) -> None:
        """Serialize calendar writes for one coach until the transaction ends."""
        await db.execute(select(User.id).where(User.id == coach_id).with_for_update())

    @staticmethod
    async def find_conflicts(
        db: AsyncSession,
        coach_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        """Non-cancelled appointments of ``coach_id`` whose [scheduled_at, ends_at) meets [start, end)."""
        stmt = select(Appointment).where(
            Appointment.coach_id == coach_id,
            Appointment.status.in_(BLOCKING_STATUSES),
            Appointment.scheduled_at < end,
            Appointment.ends_at > start,
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def _load(cls, db: AsyncSession, appointment_id: int) -> Appointment:
        stmt = (
            select(Appointment)
            .where(Appointment.id == appointment_id)
            .options(*cls.PARTY_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one()

    @classmethod
    async def create_appointment(cls, db: AsyncSession, actor: User, data: AppointmentCreate) -> Appointment:
        coach, client = await cls._resolve_parties(db, actor, data)
        start, end = appointment_window(data.scheduled_at, data.duration_minutes)

        async with async_transaction(db, "create appointment"):
            await cls._lock_coach(db, coach.id)
            if await cls.find_conflicts(db, coach.id, start, end):
                scheduling_logger.warning(CONFLICT_MESSAGE, "create", coach_id=coach.id, start=start.isoformat())
                raise ConflictError(CONFLICT_MESSAGE)

            appointment = Appointment(
                coach_id=coach.id,
                client_id=client.id,
                scheduled_at=start,
                ends_at=end,
                duration_minutes=data.duration_minutes,
                type=data.type,
                status="scheduled",
                notes=data.notes,
            )
            db.add(appointment)
            await db.flush()

            when = start.strftime("%Y-%m-%d %H:%M UTC")
            recipients = [u for u in (coach, client) if u.id != actor.id]
            for recipient in recipients:
                AsyncNotificationService.emit(
                    db,
                    user_id=recipient.id,
                    title="New appointment scheduled",
                    message=f"{actor.name} booked a {data.type} appointment for {when}",
                    type="appointment",
                    reference_type="appointment",
                    reference_id=appointment.id,
                    action_url=f"/appointments/{appointment.id}",
                )

        scheduling_logger.success("Appointment booked", "create", appointment_id=appointment.id, coach_id=coach.id)
        return await cls._load(db, appointment.id)

    @classmethod
    async def list_appointments(
        cls,
        db: AsyncSession,
        actor: User,
        page: int,
        limit: int,
        status: Optional[str] = None,
        day: Optional[date] = None,
        coach_id: Optional[int] = None,
        client_id: Optional[int] = None,
    ) -> Tuple[List[Appointment], int]:
        stmt = AccessPolicy.scope(select(Appointment), actor, Appointment).options(*cls.PARTY_OPTIONS)
        if status:
            stmt = stmt.where(Appointment.status == status)
        else:
            stmt = stmt.where(Appointment.status != "cancelled")
        if day:
            day_start, day_end = cls._day_bounds(day)
            stmt = stmt.where(Appointment.scheduled_at >= day_start, Appointment.scheduled_at < day_end)
        if coach_id:
            stmt = stmt.where(Appointment.coach_id == coach_id)
        if client_id:
            stmt = stmt.where(Appointment.client_id == client_id)

        stmt = stmt.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def get_appointment(cls, db: AsyncSession, actor: User, appointment_id: int) -> Appointment:
        return await AccessPolicy.get_visible(
            db, actor, Appointment, appointment_id, options=cls.PARTY_OPTIONS
        )

    @classmethod
    async def update_appointment(
        cls, db: AsyncSession, actor: User, appointment_id: int, data: AppointmentUpdate
    ) -> Appointment:
        appointment = await cls.get_appointment(db, actor, appointment_id)
        changes = data.model_dump(exclude_unset=True)
        AsyncQueryUtils.reject_nulls(Appointment, changes)

        new_status = changes.get("status") or appointment.status
        if "status" in changes and changes["status"] is not None:
            validate_status_change(actor.role, appointment.status, new_status)

        new_start = changes.get("scheduled_at") or as_utc(appointment.scheduled_at)
        new_duration = changes.get("duration_minutes") or appointment.duration_minutes
        start, end = appointment_window(new_start, new_duration)

        moved = start != as_utc(appointment.scheduled_at) or end != as_utc(appointment.ends_at)
        revived = appointment.status == "cancelled" and new_status != "cancelled"
        needs_check = new_status in BLOCKING_STATUSES and (moved or revived)

        async with async_transaction(db, "update appointment"):
            if needs_check:
                await cls._lock_coach(db, appointment.coach_id)
                if await cls.find_conflicts(db, appointment.coach_id, start, end, exclude_id=appointment.id):
                    raise ConflictError(CONFLICT_MESSAGE)

            for field in ("type", "notes"):
                if field in changes:
                    setattr(appointment, field, changes[field])
            appointment.status = new_status
            appointment.scheduled_at = start
            appointment.duration_minutes = new_duration
            appointment.ends_at = end

        scheduling_logger.info("Appointment updated", "update", appointment_id=appointment.id, status=new_status)
        return await cls._load(db, appointment.id)

    @classmethod
    async def cancel_appointment(cls, db: AsyncSession, actor: User, appointment_id: int) -> Appointment:
        """Soft delete: the row stays, its status becomes cancelled."""
        appointment = await cls.get_appointment(db, actor, appointment_id)
        validate_status_change(actor.role, appointment.status, "cancelled")

        async with async_transaction(db, "cancel appointment"):
            appointment.status = "cancelled"

        scheduling_logger.info("Appointment cancelled", "cancel", appointment_id=appointment.id)
        return appointment

    @classmethod
    async def available_slots(
        cls,
        db: AsyncSession,
        coach_id: int,
        day: date,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> AvailableSlots:
        coach = (await db.execute(select(User).where(User.id == coach_id))).scalar_one_or_none()
        if coach is None or coach.role != "coach" or not coach.is_active:
            raise NotFoundError("Coach not found")

        day_start, day_end = cls._day_bounds(day)
        busy = await cls.find_conflicts(db, coach_id, day_start, day_end)
        slots = generate_available_slots(
            day,
            duration_minutes,
            [(a.scheduled_at, a.ends_at) for a in busy],
            window_start_hour=settings.SLOT_WINDOW_START_HOUR,
            window_end_hour=settings.SLOT_WINDOW_END_HOUR,
            not_before=now or datetime.now(timezone.utc),
        )
        return AvailableSlots(
            date=day,
            coach_id=coach_id,
            duration_minutes=duration_minutes,
            available_slots=slots,
        )
