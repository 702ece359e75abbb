"""
Meal logging, nutrition goals and daily summaries.

A client has at most one active goal. Setting a new goal deactivates the
old ones and inserts the replacement inside a single transaction, holding a
row lock on the client so concurrent writers apply one after another; the
last writer's goal is the one left active.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.nutrition import MEAL_TYPES, Meal, NutritionGoal
from app.models.user import User
from app.schemas.nutrition import (
    DailyProgress,
    MealCreate,
    MealTypeBreakdown,
    MealUpdate,
    NutritionGoalCreate,
    NutritionGoalResponse,
    NutritionGoalUpdate,
    NutritionProgress,
    NutritionSummary,
    NutritionTotals,
)
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.base import AsyncQueryUtils
from app.utils.logger import nutrition_logger

# goal column -> summary total it is compared against
GOAL_TARGETS = {
    "daily_calories": "total_calories",
    "daily_proteins": "total_proteins",
    "daily_carbs": "total_carbs",
    "daily_fats": "total_fats",
    "daily_fiber": "total_fiber",
}


class AsyncNutritionService:

    @staticmethod
    async def _resolve_client(db: AsyncSession, actor: User, client_id: Optional[int]) -> int:
        """Clients act on themselves; coaches and admins must name a client they can access."""
        if actor.role == "client":
            if client_id is not None and client_id != actor.id:
                raise NotFoundError("Client not found")
            return actor.id

        if client_id is None:
            raise ValidationError("client_id is required")
        client = (await db.execute(select(User).where(User.id == client_id))).scalar_one_or_none()
        if client is None or client.role != "client":
            raise ValidationError("Client not found")
        await AccessPolicy.ensure_client_access(db, actor, client_id)
        return client_id

    # Meals

    @classmethod
    async def log_meal(cls, db: AsyncSession, actor: User, data: MealCreate) -> Meal:
        client_id = await cls._resolve_client(db, actor, data.client_id)
        async with async_transaction(db, "log meal"):
            meal = Meal(
                client_id=client_id,
                **data.model_dump(exclude={"client_id", "date"}),
                date=data.date or date.today(),
            )
            db.add(meal)
        nutrition_logger.info("Meal logged", "meals", meal_id=meal.id, client_id=client_id, calories=meal.calories)
        return meal

    @classmethod
    async def list_meals(
        cls,
        db: AsyncSession,
        actor: User,
        day: Optional[date],
        client_id: Optional[int],
        page: int,
        limit: int,
    ) -> Tuple[List[Meal], int]:
        stmt = AccessPolicy.scope(select(Meal), actor, Meal).where(Meal.date == (day or date.today()))
        if client_id is not None:
            stmt = stmt.where(Meal.client_id == client_id)
        stmt = stmt.order_by(Meal.created_at.asc(), Meal.id.asc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @staticmethod
    async def get_meal(db: AsyncSession, actor: User, meal_id: int) -> Meal:
        return await AccessPolicy.get_visible(db, actor, Meal, meal_id)

    @classmethod
    async def update_meal(cls, db: AsyncSession, actor: User, meal_id: int, data: MealUpdate) -> Meal:
        meal = await cls.get_meal(db, actor, meal_id)
        async with async_transaction(db, "update meal"):
            AsyncQueryUtils.apply_updates(meal, data)
        return meal

    @classmethod
    async def delete_meal(cls, db: AsyncSession, actor: User, meal_id: int) -> None:
        meal = await cls.get_meal(db, actor, meal_id)
        async with async_transaction(db, "delete meal"):
            await db.delete(meal)

    # Goals

    @staticmethod
    async def get_active_goal(db: AsyncSession, actor: User, client_id: int) -> Optional[NutritionGoal]:
        await AccessPolicy.ensure_client_access(db, actor, client_id)
        stmt = select(NutritionGoal).where(NutritionGoal.client_id == client_id, NutritionGoal.is_active.is_(True))
        return (await db.execute(stmt)).scalar_one_or_none()

    @classmethod
    async def set_goal(cls, db: AsyncSession, actor: User, data: NutritionGoalCreate) -> NutritionGoal:
        """Replace the client's active goal."""
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can set nutrition goals")
        client_id = await cls._resolve_client(db, actor, data.client_id)

        async with async_transaction(db, "set nutrition goal"):
            await db.execute(select(User.id).where(User.id == client_id).with_for_update())
            await db.execute(
                update(NutritionGoal)
                .where(NutritionGoal.client_id == client_id, NutritionGoal.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session="fetch")
            )
            goal = NutritionGoal(
                client_id=client_id,
                created_by=actor.id,
                is_active=True,
                **data.model_dump(exclude={"client_id"}),
            )
            db.add(goal)

        nutrition_logger.success("Nutrition goal set", "goals", goal_id=goal.id, client_id=client_id)
        return goal

    @staticmethod
    async def _get_goal_for_write(db: AsyncSession, actor: User, goal_id: int) -> NutritionGoal:
        AccessPolicy.require_role(actor, "coach", "admin", message="Only coaches can change nutrition goals")
        return await AccessPolicy.get_visible(db, actor, NutritionGoal, goal_id, label="Nutrition goal")

    @classmethod
    async def update_goal(
        cls, db: AsyncSession, actor: User, goal_id: int, data: NutritionGoalUpdate
    ) -> NutritionGoal:
        goal = await cls._get_goal_for_write(db, actor, goal_id)
        if not goal.is_active:
            raise ValidationError("Only the active goal can be edited")
        async with async_transaction(db, "update nutrition goal"):
            AsyncQueryUtils.apply_updates(goal, data)
        return goal

    @classmethod
    async def deactivate_goal(cls, db: AsyncSession, actor: User, goal_id: int) -> NutritionGoal:
        goal = await cls._get_goal_for_write(db, actor, goal_id)
        async with async_transaction(db, "deactivate nutrition goal"):
            goal.is_active = False
        return goal

    # Aggregates

    @staticmethod
    def _totals(meals: List[Meal]) -> NutritionTotals:
        return NutritionTotals(
            total_calories=sum(m.calories or 0 for m in meals),
            total_proteins=sum(m.proteins or 0 for m in meals),
            total_carbs=sum(m.carbs or 0 for m in meals),
            total_fats=sum(m.fats or 0 for m in meals),
            total_fiber=sum(m.fiber or 0 for m in meals),
            total_meals=len(meals),
        )

    @staticmethod
    def _remaining(goal: Optional[NutritionGoal], totals: NutritionTotals) -> Optional[Dict[str, float]]:
        if goal is None:
            return None
        remaining = {}
        for goal_field, total_field in GOAL_TARGETS.items():
            target = getattr(goal, goal_field)
            if target is not None:
                remaining[goal_field] = target - getattr(totals, total_field)
        return remaining

    @classmethod
    async def daily_summary(cls, db: AsyncSession, actor: User, client_id: int, day: Optional[date]) -> NutritionSummary:
        """Totals for one day next to the active goal, with a per-meal-type breakdown."""
        day = day or date.today()
        goal = await cls.get_active_goal(db, actor, client_id)

        meals = (
            await db.execute(select(Meal).where(Meal.client_id == client_id, Meal.date == day))
        ).scalars().all()
        totals = cls._totals(list(meals))

        breakdown = {meal_type: MealTypeBreakdown() for meal_type in MEAL_TYPES}
        for meal in meals:
            entry = breakdown.setdefault(meal.meal_type, MealTypeBreakdown())
            entry.count += 1
            entry.calories += meal.calories or 0

        return NutritionSummary(
            date=day,
            summary=totals,
            goals=NutritionGoalResponse.model_validate(goal) if goal else None,
            remaining=cls._remaining(goal, totals),
            meal_breakdown=breakdown,
        )

    @classmethod
    async def progress(cls, db: AsyncSession, actor: User, client_id: int, days: int) -> NutritionProgress:
        """Daily totals for the last ``days`` days, today included, oldest first."""
        goal = await cls.get_active_goal(db, actor, client_id)
        end = date.today()
        start = end - timedelta(days=days - 1)

        stmt = (
            select(
                Meal.date,
                func.coalesce(func.sum(Meal.calories), 0),
                func.coalesce(func.sum(Meal.proteins), 0),
                func.coalesce(func.sum(Meal.carbs), 0),
                func.coalesce(func.sum(Meal.fats), 0),
                func.count(Meal.id),
            )
            .where(Meal.client_id == client_id, Meal.date >= start, Meal.date <= end)
            .group_by(Meal.date)
        )
        by_day = {row[0]: row for row in (await db.execute(stmt)).all()}

        daily = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            row = by_day.get(day)
            if row is None:
                daily.append(DailyProgress(date=day))
            else:
                daily.append(DailyProgress(
                    date=day,
                    total_calories=row[1],
                    total_proteins=row[2],
                    total_carbs=row[3],
                    total_fats=row[4],
                    meal_count=row[5],
                ))

        return NutritionProgress(
            client_id=client_id,
            days=days,
            daily=daily,
            goals=NutritionGoalResponse.model_validate(goal) if goal else None,
        )
