from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import APIResponse, PaginatedResponse
from app.schemas.workout import ExerciseCategory, ExerciseCreate, ExerciseResponse
from app.services.async_workout import exercise_service

router = APIRouter()


@router.get("", response_model=PaginatedResponse[ExerciseResponse])
async def list_exercises(
    category: Optional[ExerciseCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100, description="Match on exercise name"),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Public catalog entries plus the caller's own private ones."""
    page, limit = paging
    exercises, total = await exercise_service.list_exercises(
        db, current_user, page, limit, category=category, search=search
    )
    return paginated(ExerciseResponse, exercises, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[ExerciseResponse])
async def create_exercise(
    data: ExerciseCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    exercise = await exercise_service.create_exercise(db, current_user, data)
    return APIResponse(data=ExerciseResponse.model_validate(exercise), message="Exercise created successfully")
