from datetime import date
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import ActionResponse, APIResponse, PaginatedResponse
from app.schemas.nutrition import (
    MealCreate,
    MealResponse,
    MealUpdate,
    NutritionGoalCreate,
    NutritionGoalResponse,
    NutritionGoalUpdate,
    NutritionProgress,
    NutritionSummary,
)
from app.services.async_nutrition import AsyncNutritionService

router = APIRouter()


# Meals

@router.get("/meals", response_model=PaginatedResponse[MealResponse])
async def list_meals(
    day: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    client_id: Optional[int] = Query(None, ge=1),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    meals, total = await AsyncNutritionService.list_meals(db, current_user, day, client_id, page, limit)
    return paginated(MealResponse, meals, total, page, limit)


@router.post("/meals", status_code=status.HTTP_201_CREATED, response_model=APIResponse[MealResponse])
async def log_meal(
    data: MealCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    meal = await AsyncNutritionService.log_meal(db, current_user, data)
    return APIResponse(data=MealResponse.model_validate(meal), message="Meal logged successfully")


@router.get("/meals/{meal_id}", response_model=APIResponse[MealResponse])
async def get_meal(
    meal_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    meal = await AsyncNutritionService.get_meal(db, current_user, meal_id)
    return APIResponse(data=MealResponse.model_validate(meal))


@router.put("/meals/{meal_id}", response_model=APIResponse[MealResponse])
async def update_meal(
    meal_id: int,
    data: MealUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    meal = await AsyncNutritionService.update_meal(db, current_user, meal_id, data)
    return APIResponse(data=MealResponse.model_validate(meal), message="Meal updated successfully")


@router.delete("/meals/{meal_id}", response_model=ActionResponse)
async def delete_meal(
    meal_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncNutritionService.delete_meal(db, current_user, meal_id)
    return ActionResponse(message="Meal deleted successfully")


# Goals

@router.get("/goals", response_model=APIResponse[Optional[NutritionGoalResponse]])
async def get_active_goal(
    client_id: Optional[int] = Query(None, ge=1, description="Defaults to the caller"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    goal = await AsyncNutritionService.get_active_goal(db, current_user, client_id or current_user.id)
    return APIResponse(data=NutritionGoalResponse.model_validate(goal) if goal else None)


@router.post("/goals", status_code=status.HTTP_201_CREATED, response_model=APIResponse[NutritionGoalResponse])
async def set_goal(
    data: NutritionGoalCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Create the client's active goal, retiring any previous one."""
    goal = await AsyncNutritionService.set_goal(db, current_user, data)
    return APIResponse(data=NutritionGoalResponse.model_validate(goal), message="Nutrition goal set successfully")


@router.put("/goals/{goal_id}", response_model=APIResponse[NutritionGoalResponse])
async def update_goal(
    goal_id: int,
    data: NutritionGoalUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    goal = await AsyncNutritionService.update_goal(db, current_user, goal_id, data)
    return APIResponse(data=NutritionGoalResponse.model_validate(goal), message="Nutrition goal updated successfully")


@router.delete("/goals/{goal_id}", response_model=APIResponse[NutritionGoalResponse])
async def deactivate_goal(
    goal_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    goal = await AsyncNutritionService.deactivate_goal(db, current_user, goal_id)
    return APIResponse(data=NutritionGoalResponse.model_validate(goal), message="Nutrition goal deactivated")


# Aggregates

@router.get("/summary/{client_id}", response_model=APIResponse[NutritionSummary])
async def get_daily_summary(
    client_id: int,
    day: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    summary = await AsyncNutritionService.daily_summary(db, current_user, client_id, day)
    return APIResponse(data=summary)


@router.get("/progress/{client_id}", response_model=APIResponse[NutritionProgress])
async def get_progress(
    client_id: int,
    days: int = Query(7, ge=1, le=90),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    progress = await AsyncNutritionService.progress(db, current_user, client_id, days)
    return APIResponse(data=progress)
