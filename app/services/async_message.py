"""
Direct messages between coaches, clients and admins.

Conversations are not stored. They are derived by grouping messages on the
unordered participant pair (least id, greatest id), so A->B and B->A always
land in the same conversation.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.models.message import Message
from app.models.user import User
from app.schemas.message import ConversationSummary, MessageCreate
from app.services.access_policy import AccessPolicy
from app.services.async_error_handler import async_transaction
from app.services.async_notification import AsyncNotificationService, preview
from app.services.base import AsyncQueryUtils
from app.utils.logger import messaging_logger

REDACTED_CONTENT = "[Message deleted]"


class AsyncMessageService:

    PARTY_OPTIONS = (selectinload(Message.sender), selectinload(Message.recipient))

    @staticmethod
    def _pair_low():
        return case((Message.sender_id < Message.recipient_id, Message.sender_id), else_=Message.recipient_id)

    @staticmethod
    def _pair_high():
        return case((Message.sender_id < Message.recipient_id, Message.recipient_id), else_=Message.sender_id)

    @classmethod
    async def send_message(cls, db: AsyncSession, sender: User, data: MessageCreate) -> Message:
        """
        Validate and store a message, staging exactly one notification for the
        recipient in the same transaction.

        Raises:
            ValidationError: self-send, or recipient missing or inactive
            PermissionDeniedError: no relationship between sender and recipient
        """
        if data.recipient_id == sender.id:
            raise ValidationError("Cannot send a message to yourself")

        recipient = (await db.execute(select(User).where(User.id == data.recipient_id))).scalar_one_or_none()
        if recipient is None or not recipient.is_active:
            raise ValidationError("Recipient not found or inactive")

        if not await AccessPolicy.can_message(db, sender, recipient):
            messaging_logger.warning(
                "Blocked message without relationship", "send", sender_id=sender.id, recipient_id=recipient.id
            )
            raise PermissionDeniedError("You can only message users you have a coaching relationship with")

        if data.message_type == "system" and sender.role != "admin":
            raise PermissionDeniedError("Only admins can send system messages")

        async with async_transaction(db, "send message"):
            message = Message(
                sender_id=sender.id,
                recipient_id=recipient.id,
                content=data.content,
                message_type=data.message_type,
            )
            db.add(message)
            await db.flush()

            AsyncNotificationService.emit(
                db,
                user_id=recipient.id,
                title=f"New message from {sender.name}",
                message=preview(data.content),
                type="message",
                reference_type="message",
                reference_id=message.id,
                action_url=f"/messages?conversation_with={sender.id}",
            )

        messaging_logger.info("Message sent", "send", message_id=message.id, recipient_id=recipient.id)
        return await cls._load(db, message.id)

    @classmethod
    async def _load(cls, db: AsyncSession, message_id: int) -> Message:
        stmt = (
            select(Message)
            .where(Message.id == message_id)
            .options(*cls.PARTY_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one()

    @classmethod
    async def list_messages(
        cls,
        db: AsyncSession,
        user: User,
        page: int,
        limit: int,
        conversation_with: Optional[int] = None,
        unread_only: bool = False,
        message_type: Optional[str] = None,
    ) -> Tuple[List[Message], int]:
        stmt = AccessPolicy.scope(select(Message), user, Message).options(*cls.PARTY_OPTIONS)
        if conversation_with is not None:
            stmt = stmt.where(
                or_(
                    and_(Message.sender_id == user.id, Message.recipient_id == conversation_with),
                    and_(Message.sender_id == conversation_with, Message.recipient_id == user.id),
                )
            )
        if unread_only:
            stmt = stmt.where(Message.recipient_id == user.id, Message.read_at.is_(None))
        if message_type:
            stmt = stmt.where(Message.message_type == message_type)

        stmt = stmt.order_by(Message.created_at.desc(), Message.id.desc())
        return await AsyncQueryUtils.paginate(db, stmt, page, limit)

    @classmethod
    async def list_conversations(cls, db: AsyncSession, user: User) -> List[ConversationSummary]:
        """One summary per participant pair, newest conversation first."""
        low, high = cls._pair_low(), cls._pair_high()
        addressed_to_viewer = Message.recipient_id == user.id
        if user.role == "admin":
            # Third-party conversations count every unread message
            third_party = and_(Message.sender_id != user.id, Message.recipient_id != user.id)
            addressed_to_viewer = or_(addressed_to_viewer, third_party)
        unread_expr = case((and_(addressed_to_viewer, Message.read_at.is_(None)), 1), else_=0)

        grouped = AccessPolicy.scope(
            select(
                low.label("low_id"),
                high.label("high_id"),
                func.max(Message.id).label("last_message_id"),
                func.sum(unread_expr).label("unread_count"),
            ),
            user,
            Message,
        ).group_by(low, high)

        rows = (await db.execute(grouped)).all()
        if not rows:
            return []

        last_ids = [row.last_message_id for row in rows]
        messages = (
            await db.execute(select(Message).where(Message.id.in_(last_ids)).options(*cls.PARTY_OPTIONS))
        ).scalars().all()
        by_id = {m.id: m for m in messages}

        conversations = []
        for row in rows:
            last = by_id[row.last_message_id]
            if user.id in (row.low_id, row.high_id):
                other = last.recipient if last.sender_id == user.id else last.sender
                participant_ids = None
            else:
                other = last.sender
                participant_ids = [row.low_id, row.high_id]
            conversations.append(ConversationSummary(
                conversation_with_id=other.id,
                name=other.name,
                role=other.role,
                last_message_id=last.id,
                last_message_content=last.content,
                last_message_at=last.created_at,
                last_message_sender_id=last.sender_id,
                unread_count=int(row.unread_count or 0),
                participant_ids=participant_ids,
            ))

        conversations.sort(key=lambda c: c.last_message_id, reverse=True)
        return conversations

    @classmethod
    async def get_message(cls, db: AsyncSession, user: User, message_id: int) -> Message:
        """Fetch one message; reading it as the recipient marks it read."""
        message = await AccessPolicy.get_visible(db, user, Message, message_id, options=cls.PARTY_OPTIONS)
        if message.recipient_id == user.id and message.read_at is None:
            async with async_transaction(db, "mark message read"):
                message.read_at = datetime.now(timezone.utc)
        return message

    @classmethod
    async def mark_read(cls, db: AsyncSession, user: User, message_id: int) -> Message:
        message = await AccessPolicy.get_visible(db, user, Message, message_id, options=cls.PARTY_OPTIONS)
        if message.recipient_id != user.id:
            raise PermissionDeniedError("Only the recipient can mark a message as read")
        if message.read_at is None:
            async with async_transaction(db, "mark message read"):
                message.read_at = datetime.now(timezone.utc)
        return message

    @staticmethod
    async def mark_conversation_read(db: AsyncSession, user: User, other_user_id: int) -> int:
        async with async_transaction(db, "mark conversation read"):
            result = await db.execute(
                update(Message)
                .where(
                    Message.sender_id == other_user_id,
                    Message.recipient_id == user.id,
                    Message.read_at.is_(None),
                )
                .values(read_at=datetime.now(timezone.utc))
            )
        return result.rowcount or 0

    @staticmethod
    async def unread_count(db: AsyncSession, user: User) -> int:
        stmt = select(func.count(Message.id)).where(
            Message.recipient_id == user.id,
            Message.read_at.is_(None),
            Message.is_deleted.is_(False),
        )
        return (await db.execute(stmt)).scalar() or 0

    @classmethod
    async def delete_message(cls, db: AsyncSession, user: User, message_id: int) -> None:
        """Redact content in place; the row stays so conversations keep their shape."""
        message = await AccessPolicy.get_visible(db, user, Message, message_id)
        if message.sender_id != user.id and user.role != "admin":
            raise PermissionDeniedError("Only the sender can delete a message")

        async with async_transaction(db, "delete message"):
            message.content = REDACTED_CONTENT
            message.is_deleted = True

        messaging_logger.info("Message redacted", "delete", message_id=message.id)
