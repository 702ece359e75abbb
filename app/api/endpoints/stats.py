from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async
from app.models.user import User
from app.schemas.base import APIResponse
from app.schemas.stats import DashboardStats
from app.services.async_stats import AsyncStatsService

router = APIRouter()


@router.get("", response_model=APIResponse[DashboardStats])
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Dashboard counters for the caller; admins also get platform totals."""
    stats = await AsyncStatsService.dashboard(db, current_user)
    return APIResponse(data=stats)
