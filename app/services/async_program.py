from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.models.program import Program
from app.models.user import User
from app.models.workout import Workout, WorkoutExercise
from app.schemas.program import ProgramCreate, ProgramUpdate
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.async_notification import AsyncNotificationService
from app.services.base import AsyncQueryUtils
from app.utils.logger import training_logger

# Allowed program status moves; completed is terminal
PROGRAM_TRANSITIONS = {
    "draft": ("active",),
    "active": ("paused", "completed"),
    "paused": ("active", "completed"),
    "completed": (),
}


def validate_program_transition(current: str, new: str) -> None:
    if new != current and new not in PROGRAM_TRANSITIONS.get(current, ()):
        raise ValidationError(f"Cannot change program status from {current} to {new}")


class AsyncProgramService:
    """Coach-owned training programs, read-only to the assigned client."""

    PARTY_OPTIONS = (selectinload(Program.coach), selectinload(Program.client))

    @staticmethod
    async def _active_client(db: AsyncSession, client_id: int) -> User:
        client = (await db.execute(select(User).where(User.id == client_id))).scalar_one_or_none()
        if client is None or client.role != "client" or not client.is_active:
            raise ValidationError("Client not found or inactive")
        return client

    @classmethod
    async def _owning_coach(cls, db: AsyncSession, actor: User, coach_id: Optional[int]) -> int:
        if actor.role == "coach":
            return actor.id
        if coach_id is None:
            raise ValidationError("coach_id is required when an admin creates a program")
        coach = (await db.execute(select(User).where(User.id == coach_id))).scalar_one_or_none()
        if coach is None or coach.role != "coach":
            raise ValidationError("Coach not found")
        return coach.id

    @classmethod
    async def _ensure_assignable(cls, db: AsyncSession, actor: User, coach_id: int, client_id: int) -> User:
        client = await cls._active_client(db, client_id)
        if actor.role != "admin" and not await AccessPolicy.is_linked(db, coach_id, client_id):
            raise PermissionDeniedError("Client is not assigned to you")
        return client

    @classmethod
    async def _load(cls, db: AsyncSession, program_id: int) -> Program:
        stmt = (
            select(Program)
            .where(Program.id == program_id)
            .options(*cls.PARTY_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one()

    @staticmethod
    def _notify_assignment(db: AsyncSession, program: Program, coach_name: str) -> None:
        AsyncNotificationService.emit(
            db,
            user_id=program.client_id,
            title="New training program",
            message=f"{coach_name} assigned you the program \"{program.name}\"",
            type="program",
            reference_type="program",
            reference_id=program.id,
            action_url=f"/programs/{program.id}",
        )

    @classmethod
    async def create_program(cls, db: AsyncSession, actor: User, data: ProgramCreate) -> Program:
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can create programs")
        coach_id = await cls._owning_coach(db, actor, data.coach_id)
        if data.client_id is not None:
            await cls._ensure_assignable(db, actor, coach_id, data.client_id)

        async with async_transaction(db, "create program"):
            program = Program(coach_id=coach_id, **data.model_dump(exclude={"coach_id"}))
            db.add(program)
            await db.flush()
            if program.client_id is not None:
                cls._notify_assignment(db, program, actor.name)

        training_logger.success("Program created", "programs", program_id=program.id, coach_id=coach_id)
        return await cls._load(db, program.id)

    @classmethod
    async def list_programs(
        cls,
        db: AsyncSession,
        actor: User,
        page: int,
        limit: int,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> Tuple[List[Program], int]:
        stmt = AccessPolicy.scope(select(Program), actor, Program).options(*cls.PARTY_OPTIONS)
        if status:
            stmt = stmt.where(Program.status == status)
        if client_id:
            stmt = stmt.where(Program.client_id == client_id)
        stmt = stmt.order_by(Program.created_at.desc(), Program.id.desc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def get_program(cls, db: AsyncSession, actor: User, program_id: int) -> Program:
        return await AccessPolicy.get_visible(db, actor, Program, program_id, options=cls.PARTY_OPTIONS)

    @classmethod
    async def _get_for_write(cls, db: AsyncSession, actor: User, program_id: int) -> Program:
        program = await cls.get_program(db, actor, program_id)
        AccessPolicy.require_role(actor, "coach", "admin", message="Programs are read-only for clients")
        return program

    @classmethod
    async def update_program(cls, db: AsyncSession, actor: User, program_id: int, data: ProgramUpdate) -> Program:
        program = await cls._get_for_write(db, actor, program_id)
        if data.status is not None:
            validate_program_transition(program.status, data.status)

        start = data.start_date if "start_date" in data.model_fields_set else program.start_date
        end = data.end_date if "end_date" in data.model_fields_set else program.end_date
        if start and end and end < start:
            raise ValidationError("end_date must not be before start_date")

        async with async_transaction(db, "update program"):
            AsyncQueryUtils.apply_updates(program, data)

        training_logger.info("Program updated", "programs", program_id=program.id)
        return await cls._load(db, program.id)

    @classmethod
    async def assign_program(cls, db: AsyncSession, actor: User, program_id: int, client_id: int) -> Program:
        program = await cls._get_for_write(db, actor, program_id)
        await cls._ensure_assignable(db, actor, program.coach_id, client_id)

        async with async_transaction(db, "assign program"):
            program.client_id = client_id
            cls._notify_assignment(db, program, actor.name)

        training_logger.info("Program assigned", "programs", program_id=program.id, client_id=client_id)
        return await cls._load(db, program.id)

    @classmethod
    async def delete_program(cls, db: AsyncSession, actor: User, program_id: int) -> None:
        """Hard delete, taking the program's workouts and their exercises with it."""
        program = await cls._get_for_write(db, actor, program_id)

        workout_ids = select(Workout.id).where(Workout.program_id == program.id)
        async with async_transaction(db, "delete program"):
            await db.execute(delete(WorkoutExercise).where(WorkoutExercise.workout_id.in_(workout_ids)))
            await db.execute(delete(Workout).where(Workout.program_id == program.id))
            await db.delete(program)

        training_logger.info("Program deleted", "programs", program_id=program_id)
