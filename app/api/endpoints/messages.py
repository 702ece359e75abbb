from typing import Any, List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import ActionResponse, APIResponse, PaginatedResponse
from app.schemas.message import ConversationSummary, MessageCreate, MessageResponse, UnreadCount
from app.schemas.notification import MarkedCount
from app.services.async_message import AsyncMessageService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[MessageResponse])
async def list_messages(
    conversation_with: Optional[int] = Query(None, ge=1, description="Only messages exchanged with this user"),
    unread_only: bool = Query(False),
    message_type: Optional[Literal["text", "system"]] = Query(None, alias="type"),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    messages, total = await AsyncMessageService.list_messages(
        db,
        current_user,
        page,
        limit,
        conversation_with=conversation_with,
        unread_only=unread_only,
        message_type=message_type,
    )
    return paginated(MessageResponse, messages, total, page, limit)


@router.get("/conversations", response_model=APIResponse[List[ConversationSummary]])
async def list_conversations(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """One entry per counterpart, with the latest message and unread count."""
    conversations = await AsyncMessageService.list_conversations(db, current_user)
    return APIResponse(data=conversations)


@router.get("/unread/count", response_model=APIResponse[UnreadCount])
async def get_unread_count(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    count = await AsyncMessageService.unread_count(db, current_user)
    return APIResponse(data=UnreadCount(unread_count=count))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[MessageResponse])
async def send_message(
    data: MessageCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    message = await AsyncMessageService.send_message(db, current_user, data)
    return APIResponse(data=MessageResponse.model_validate(message), message="Message sent successfully")


@router.put("/conversation/{user_id}/read", response_model=APIResponse[MarkedCount])
async def mark_conversation_read(
    user_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    updated = await AsyncMessageService.mark_conversation_read(db, current_user, user_id)
    return APIResponse(data=MarkedCount(updated=updated), message="Conversation marked as read")


@router.get("/{message_id}", response_model=APIResponse[MessageResponse])
async def get_message(
    message_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    message = await AsyncMessageService.get_message(db, current_user, message_id)
    return APIResponse(data=MessageResponse.model_validate(message))


@router.put("/{message_id}/read", response_model=APIResponse[MessageResponse])
async def mark_message_read(
    message_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    message = await AsyncMessageService.mark_read(db, current_user, message_id)
    return APIResponse(data=MessageResponse.model_validate(message), message="Message marked as read")


@router.delete("/{message_id}", response_model=ActionResponse)
async def delete_message(
    message_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncMessageService.delete_message(db, current_user, message_id)
    return ActionResponse(message="Message deleted successfully")
