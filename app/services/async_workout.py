from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models.exercise import Exercise
from app.models.program import Program
from app.models.user import User
from app.models.workout import Workout, WorkoutExercise
from app.schemas.workout import (
    ExerciseCreate,
    WorkoutCreate,
    WorkoutExerciseCreate,
    WorkoutExerciseUpdate,
    WorkoutUpdate,
)
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.async_notification import AsyncNotificationService
from app.services.base import AsyncBaseService, AsyncQueryUtils
from app.utils.logger import training_logger

WORKOUT_TRANSITIONS = {
    "scheduled": ("in_progress", "completed", "skipped", "cancelled"),
    "in_progress": ("completed", "skipped", "cancelled"),
    "completed": (),
    "skipped": (),
    "cancelled": (),
}

# What a client may change on their own workout
CLIENT_WORKOUT_FIELDS = {"status", "notes", "completion_rating", "calories_burned"}
CLIENT_EXERCISE_FIELDS = {"completed", "sets", "reps", "weight_kg", "duration_seconds", "notes"}


def validate_workout_transition(current: str, new: str) -> None:
    if new != current and new not in WORKOUT_TRANSITIONS.get(current, ()):
        raise ValidationError(f"Cannot change workout status from {current} to {new}")


class AsyncExerciseService(AsyncBaseService[Exercise]):
    """Exercise catalog: public entries plus each coach's private ones."""

    def __init__(self):
        super().__init__(Exercise)

    async def list_exercises(
        self,
        db: AsyncSession,
        actor: User,
        page: int,
        limit: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Exercise], int]:
        stmt = select(Exercise)
        if actor.role != "admin":
            stmt = stmt.where(or_(Exercise.is_public.is_(True), Exercise.created_by == actor.id))
        if category:
            stmt = stmt.where(Exercise.category == category)
        if search:
            stmt = stmt.where(Exercise.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(Exercise.name.asc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    async def create_exercise(self, db: AsyncSession, actor: User, data: ExerciseCreate) -> Exercise:
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can add exercises")
        async with async_transaction(db, "create exercise"):
            exercise = Exercise(created_by=actor.id, **data.model_dump())
            db.add(exercise)
        return exercise

    async def get_usable(self, db: AsyncSession, actor: User, exercise_id: int) -> Exercise:
        exercise = await self.get(db, exercise_id)
        if exercise is None or not (exercise.is_public or exercise.created_by == actor.id or actor.role == "admin"):
            raise ValidationError(f"Exercise {exercise_id} not found")
        return exercise


exercise_service = AsyncExerciseService()


class AsyncWorkoutService:
    """Client workouts and their ordered exercise entries."""

    DETAIL_OPTIONS = (selectinload(Workout.exercises),)

    @classmethod
    async def _load(cls, db: AsyncSession, workout_id: int) -> Workout:
        stmt = (
            select(Workout)
            .where(Workout.id == workout_id)
            .options(*cls.DETAIL_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one()

    @staticmethod
    async def _build_entry(
        db: AsyncSession, actor: User, workout_id: int, order_index: int, data: WorkoutExerciseCreate
    ) -> WorkoutExercise:
        name = data.name
        if data.exercise_id is not None:
            exercise = await exercise_service.get_usable(db, actor, data.exercise_id)
            name = name or exercise.name
        if not name:
            raise ValidationError("Each exercise needs a name or an exercise_id")
        return WorkoutExercise(
            workout_id=workout_id,
            order_index=order_index,
            **{**data.model_dump(exclude={"name"}), "name": name},
        )

    @classmethod
    async def create_workout(cls, db: AsyncSession, actor: User, data: WorkoutCreate) -> Workout:
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can create workouts")

        client = (await db.execute(select(User).where(User.id == data.client_id))).scalar_one_or_none()
        if client is None or client.role != "client" or not client.is_active:
            raise ValidationError("Client not found or inactive")
        await AccessPolicy.ensure_client_access(db, actor, data.client_id)

        if data.program_id is not None:
            program = await AccessPolicy.get_visible(db, actor, Program, data.program_id)
            if program.client_id != data.client_id:
                raise ValidationError("Program is not assigned to this client")

        async with async_transaction(db, "create workout"):
            workout = Workout(status="scheduled", **data.model_dump(exclude={"exercises"}))
            db.add(workout)
            await db.flush()

            for index, entry in enumerate(data.exercises, start=1):
                db.add(await cls._build_entry(db, actor, workout.id, index, entry))

            when = f" on {data.scheduled_date.isoformat()}" if data.scheduled_date else ""
            AsyncNotificationService.emit(
                db,
                user_id=data.client_id,
                title="New workout scheduled",
                message=f"{actor.name} scheduled \"{data.name}\"{when}",
                type="workout",
                reference_type="workout",
                reference_id=workout.id,
                action_url=f"/workouts/{workout.id}",
            )

        training_logger.success(
            "Workout created", "workouts", workout_id=workout.id, exercises=len(data.exercises)
        )
        return await cls._load(db, workout.id)

    @staticmethod
    async def list_workouts(
        db: AsyncSession,
        actor: User,
        page: int,
        limit: int,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        program_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[Workout], int]:
        stmt = AccessPolicy.scope(select(Workout), actor, Workout)
        if status:
            stmt = stmt.where(Workout.status == status)
        if client_id:
            stmt = stmt.where(Workout.client_id == client_id)
        if program_id:
            stmt = stmt.where(Workout.program_id == program_id)
        if date_from:
            stmt = stmt.where(Workout.scheduled_date >= date_from)
        if date_to:
            stmt = stmt.where(Workout.scheduled_date <= date_to)
        stmt = stmt.order_by(Workout.scheduled_date.desc(), Workout.id.desc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def get_workout(cls, db: AsyncSession, actor: User, workout_id: int) -> Workout:
        return await AccessPolicy.get_visible(db, actor, Workout, workout_id, options=cls.DETAIL_OPTIONS)

    @classmethod
    async def update_workout(cls, db: AsyncSession, actor: User, workout_id: int, data: WorkoutUpdate) -> Workout:
        workout = await cls.get_workout(db, actor, workout_id)

        if actor.role == "client":
            disallowed = data.model_fields_set - CLIENT_WORKOUT_FIELDS
            if disallowed:
                raise PermissionDeniedError(f"Clients cannot change: {', '.join(sorted(disallowed))}")

        if data.status is not None:
            validate_workout_transition(workout.status, data.status)

        async with async_transaction(db, "update workout"):
            previous_status = workout.status
            AsyncQueryUtils.apply_updates(workout, data)
            if workout.status == "completed" and previous_status != "completed":
                workout.completed_at = datetime.now(timezone.utc)

        training_logger.info("Workout updated", "workouts", workout_id=workout.id, status=workout.status)
        return await cls._load(db, workout.id)

    @classmethod
    async def delete_workout(cls, db: AsyncSession, actor: User, workout_id: int) -> None:
        workout = await cls.get_workout(db, actor, workout_id)
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can delete workouts")
        async with async_transaction(db, "delete workout"):
            # exercises go with it through the delete-orphan cascade
            await db.delete(workout)

    @classmethod
    async def add_exercise(
        cls, db: AsyncSession, actor: User, workout_id: int, data: WorkoutExerciseCreate
    ) -> WorkoutExercise:
        workout = await cls.get_workout(db, actor, workout_id)
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can add exercises to a workout")

        async with async_transaction(db, "add workout exercise"):
            next_index = (
                await db.execute(
                    select(func.coalesce(func.max(WorkoutExercise.order_index), 0)).where(
                        WorkoutExercise.workout_id == workout.id
                    )
                )
            ).scalar() + 1
            entry = await cls._build_entry(db, actor, workout.id, next_index, data)
            db.add(entry)
        return entry

    @classmethod
    async def _get_entry(cls, db: AsyncSession, actor: User, workout_id: int, entry_id: int) -> WorkoutExercise:
        await cls.get_workout(db, actor, workout_id)
        entry = (
            await db.execute(
                select(WorkoutExercise).where(
                    WorkoutExercise.id == entry_id, WorkoutExercise.workout_id == workout_id
                )
            )
        ).scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Workout exercise not found")
        return entry

    @classmethod
    async def update_exercise(
        cls, db: AsyncSession, actor: User, workout_id: int, entry_id: int, data: WorkoutExerciseUpdate
    ) -> WorkoutExercise:
        entry = await cls._get_entry(db, actor, workout_id, entry_id)
        if actor.role == "client":
            disallowed = data.model_fields_set - CLIENT_EXERCISE_FIELDS
            if disallowed:
                raise PermissionDeniedError(f"Clients cannot change: {', '.join(sorted(disallowed))}")

        async with async_transaction(db, "update workout exercise"):
            AsyncQueryUtils.apply_updates(entry, data)
        return entry

    @classmethod
    async def remove_exercise(cls, db: AsyncSession, actor: User, workout_id: int, entry_id: int) -> None:
        entry = await cls._get_entry(db, actor, workout_id, entry_id)
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can remove exercises")
        async with async_transaction(db, "remove workout exercise"):
            await db.delete(entry)
