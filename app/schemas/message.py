from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.base import BaseSchema
from app.schemas.user import UserSummary


class MessageCreate(BaseModel):
    recipient_id: int
    content: str = Field(..., max_length=5000)
    message_type: Literal["text", "system"] = "text"

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message content is required")
        return value


class MessageResponse(BaseSchema):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    message_type: str
    is_read: bool
    read_at: Optional[datetime] = None
    is_deleted: bool
    sender: Optional[UserSummary] = None
    recipient: Optional[UserSummary] = None
    created_at: datetime


class ConversationSummary(BaseModel):
    """One entry per unordered participant pair."""
    conversation_with_id: int
    name: str
    role: str
    last_message_id: int
    last_message_content: str
    last_message_at: datetime
    last_message_sender_id: int
    unread_count: int = 0
    # Only set for admin views, where neither participant is the viewer
    participant_ids: Optional[List[int]] = None


class UnreadCount(BaseModel):
    unread_count: int
