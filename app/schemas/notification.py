from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.base import BaseSchema


class NotificationResponse(BaseSchema):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    action_url: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class MarkedCount(BaseModel):
    updated: int
