from datetime import date as date_type, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema, UTCDateTime
from app.schemas.user import UserSummary

AppointmentType = Literal["consultation", "training", "nutrition", "assessment"]
AppointmentStatus = Literal["scheduled", "confirmed", "completed", "cancelled", "no_show"]


class AppointmentCreate(BaseModel):
    """Coaches pass client_id, clients pass coach_id, admins pass both."""
    coach_id: Optional[int] = None
    client_id: Optional[int] = None
    scheduled_at: UTCDateTime
    duration_minutes: int = Field(default=60, ge=5, le=480)
    type: AppointmentType = "consultation"
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    scheduled_at: Optional[UTCDateTime] = None
    duration_minutes: Optional[int] = Field(default=None, ge=5, le=480)
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentResponse(BaseSchema):
    id: int
    coach_id: int
    client_id: int
    scheduled_at: UTCDateTime
    ends_at: UTCDateTime
    duration_minutes: int
    type: str
    status: str
    notes: Optional[str] = None
    coach: Optional[UserSummary] = None
    client: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class AvailableSlots(BaseModel):
    date: date_type
    coach_id: int
    duration_minutes: int
    available_slots: List[datetime]
