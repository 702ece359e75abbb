from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.models.user import User
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.base import AsyncQueryUtils
from app.services.scheduling import as_utc

PREVIEW_LENGTH = 100


def preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    """Clip text for a notification body."""
    return text if len(text) <= length else text[:length] + "..."


class AsyncNotificationService:
    """Side-record notifications: emitted by other services, read by their owner."""

    @staticmethod
    def emit(
        db: AsyncSession,
        *,
        user_id: int,
        title: str,
        message: str,
        type: str = "system",
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        action_url: Optional[str] = None,
    ) -> Notification:
        """
        Stage a notification on the caller's session.

        The caller commits, so the notification lands in the same transaction
        as the event that produced it.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            reference_type=reference_type,
            reference_id=reference_id,
            action_url=action_url,
            is_read=False,
        )
        db.add(notification)
        return notification

    @staticmethod
    async def list_notifications(
        db: AsyncSession,
        user: User,
        page: int,
        limit: int,
        unread_only: bool = False,
        since: Optional[datetime] = None,
    ) -> Tuple[List[Notification], int]:
        stmt = AccessPolicy.scope(select(Notification), user, Notification)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        if since is not None:
            stmt = stmt.where(Notification.created_at > as_utc(since))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @staticmethod
    async def unread_count(db: AsyncSession, user: User) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user.id, Notification.is_read.is_(False)
        )
        return (await db.execute(stmt)).scalar() or 0

    @staticmethod
    async def mark_read(db: AsyncSession, user: User, notification_id: int) -> Notification:
        notification = await AccessPolicy.get_visible(db, user, Notification, notification_id)
        if not notification.is_read:
            async with async_transaction(db, "mark notification read"):
                notification.is_read = True
                notification.read_at = datetime.now(timezone.utc)
        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, user: User) -> int:
        async with async_transaction(db, "mark all notifications read"):
            result = await db.execute(
                update(Notification)
                .where(Notification.user_id == user.id, Notification.is_read.is_(False))
                .values(is_read=True, read_at=datetime.now(timezone.utc))
            )
        return result.rowcount or 0
