from datetime import datetime
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import APIResponse, PaginatedResponse
from app.schemas.message import UnreadCount
from app.schemas.notification import MarkedCount, NotificationResponse
from app.services.async_notification import AsyncNotificationService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    since: Optional[datetime] = Query(None, description="Only notifications created after this instant"),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    notifications, total = await AsyncNotificationService.list_notifications(
        db, current_user, page, limit, unread_only=unread_only, since=since
    )
    return paginated(NotificationResponse, notifications, total, page, limit)


@router.get("/unread-count", response_model=APIResponse[UnreadCount])
async def get_unread_count(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    count = await AsyncNotificationService.unread_count(db, current_user)
    return APIResponse(data=UnreadCount(unread_count=count))


@router.put("/read-all", response_model=APIResponse[MarkedCount])
async def mark_all_read(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    updated = await AsyncNotificationService.mark_all_read(db, current_user)
    return APIResponse(data=MarkedCount(updated=updated), message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=APIResponse[NotificationResponse])
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    notification = await AsyncNotificationService.mark_read(db, current_user, notification_id)
    return APIResponse(data=NotificationResponse.model_validate(notification), message="Notification marked as read")
