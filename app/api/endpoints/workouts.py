from datetime import date
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import ActionResponse, APIResponse, PaginatedResponse
from app.schemas.workout import (
    WorkoutCreate,
    WorkoutDetailResponse,
    WorkoutExerciseCreate,
    WorkoutExerciseResponse,
    WorkoutExerciseUpdate,
    WorkoutResponse,
    WorkoutStatus,
    WorkoutUpdate,
)
from app.services.async_workout import AsyncWorkoutService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[WorkoutResponse])
async def list_workouts(
    workout_status: Optional[WorkoutStatus] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
    program_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[date] = Query(None, description="Earliest scheduled date (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Latest scheduled date (YYYY-MM-DD)"),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    workouts, total = await AsyncWorkoutService.list_workouts(
        db,
        current_user,
        page,
        limit,
        status=workout_status,
        client_id=client_id,
        program_id=program_id,
        date_from=date_from,
        date_to=date_to,
    )
    return paginated(WorkoutResponse, workouts, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[WorkoutDetailResponse])
async def create_workout(
    data: WorkoutCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Create a workout, optionally with its exercises in one request."""
    workout = await AsyncWorkoutService.create_workout(db, current_user, data)
    return APIResponse(data=WorkoutDetailResponse.model_validate(workout), message="Workout created successfully")


@router.get("/{workout_id}", response_model=APIResponse[WorkoutDetailResponse])
async def get_workout(
    workout_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    workout = await AsyncWorkoutService.get_workout(db, current_user, workout_id)
    return APIResponse(data=WorkoutDetailResponse.model_validate(workout))


@router.put("/{workout_id}", response_model=APIResponse[WorkoutDetailResponse])
async def update_workout(
    workout_id: int,
    data: WorkoutUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    workout = await AsyncWorkoutService.update_workout(db, current_user, workout_id, data)
    return APIResponse(data=WorkoutDetailResponse.model_validate(workout), message="Workout updated successfully")


@router.delete("/{workout_id}", response_model=ActionResponse)
async def delete_workout(
    workout_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncWorkoutService.delete_workout(db, current_user, workout_id)
    return ActionResponse(message="Workout deleted successfully")


# Exercises within a workout

@router.post(
    "/{workout_id}/exercises",
    status_code=status.HTTP_201_CREATED,
    response_model=APIResponse[WorkoutExerciseResponse],
)
async def add_workout_exercise(
    workout_id: int,
    data: WorkoutExerciseCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    entry = await AsyncWorkoutService.add_exercise(db, current_user, workout_id, data)
    return APIResponse(data=WorkoutExerciseResponse.model_validate(entry), message="Exercise added")


@router.put("/{workout_id}/exercises/{entry_id}", response_model=APIResponse[WorkoutExerciseResponse])
async def update_workout_exercise(
    workout_id: int,
    entry_id: int,
    data: WorkoutExerciseUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    entry = await AsyncWorkoutService.update_exercise(db, current_user, workout_id, entry_id, data)
    return APIResponse(data=WorkoutExerciseResponse.model_validate(entry), message="Exercise updated")


@router.delete("/{workout_id}/exercises/{entry_id}", response_model=ActionResponse)
async def remove_workout_exercise(
    workout_id: int,
    entry_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncWorkoutService.remove_exercise(db, current_user, workout_id, entry_id)
    return ActionResponse(message="Exercise removed")
