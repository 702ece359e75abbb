from typing import Any, Optional, Tuple, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import APIResponse, PaginatedResponse
from app.schemas.user import (
    ClientStats,
    CoachStats,
    RoleType,
    StatusType,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserUpdate,
)
from app.services.async_stats import AsyncStatsService
from app.services.async_user import AsyncUserService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    role: Optional[RoleType] = Query(None),
    user_status: Optional[StatusType] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Admins list everyone; coaches list their linked clients."""
    page, limit = paging
    users, total = await AsyncUserService.list_users(
        db, current_user, page, limit, role=role, status=user_status, search=search
    )
    return paginated(UserResponse, users, total, page, limit)


@router.get("/coaches", response_model=PaginatedResponse[UserResponse])
async def list_coaches(
    search: Optional[str] = Query(None, max_length=100),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    coaches, total = await AsyncUserService.list_coaches(db, page, limit, search=search)
    return paginated(UserResponse, coaches, total, page, limit)


@router.get("/clients", response_model=PaginatedResponse[UserResponse])
async def list_clients(
    search: Optional[str] = Query(None, max_length=100),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    clients, total = await AsyncUserService.list_clients(db, current_user, page, limit, search=search)
    return paginated(UserResponse, clients, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[UserDetailResponse])
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    user = await AsyncUserService.create_user(db, current_user, data)
    return APIResponse(data=UserDetailResponse.model_validate(user), message="User created successfully")


@router.get("/{user_id}", response_model=APIResponse[UserDetailResponse])
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    user = await AsyncUserService.get_user(db, current_user, user_id)
    return APIResponse(data=UserDetailResponse.model_validate(user))


@router.put("/{user_id}", response_model=APIResponse[UserDetailResponse])
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    user = await AsyncUserService.update_user(db, current_user, user_id, data)
    return APIResponse(data=UserDetailResponse.model_validate(user), message="User updated successfully")


@router.delete("/{user_id}", response_model=APIResponse[UserResponse])
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Deactivate an account. Users are never hard-deleted."""
    user = await AsyncUserService.deactivate_user(db, current_user, user_id)
    return APIResponse(data=UserResponse.model_validate(user), message="User deactivated successfully")


@router.get("/{user_id}/stats", response_model=APIResponse[Union[CoachStats, ClientStats]])
async def get_user_stats(
    user_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    stats = await AsyncStatsService.user_stats(db, current_user, user_id)
    return APIResponse(data=stats)
