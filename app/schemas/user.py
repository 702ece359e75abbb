"""User and profile schemas.

The password hash never appears in any of these models; every user payload
the API returns goes through ``UserResponse`` or one of its relatives.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.base import BaseSchema

RoleType = Literal["client", "coach", "admin"]
StatusType = Literal["active", "inactive"]


class UserSummary(BaseSchema):
    """Compact user reference embedded in other resources."""
    id: int
    name: str
    email: str
    role: str


class UserResponse(BaseSchema):
    id: int
    email: str
    name: str
    role: str
    status: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    coach_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class UserProfileData(BaseSchema):
    """Profile fields. All optional so updates can be partial."""
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=20)
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    fitness_goals: Optional[str] = None
    medical_conditions: Optional[str] = None
    emergency_contact: Optional[str] = None
    bio: Optional[str] = None
    specializations: Optional[str] = None
    certifications: Optional[str] = None


class UserDetailResponse(UserResponse):
    profile: Optional[UserProfileData] = None


class UserCreate(BaseModel):
    """Admin-side account creation."""
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=255)
    role: RoleType = "client"
    phone: Optional[str] = None
    coach_id: Optional[int] = None


class UserUpdate(BaseModel):
    """Partial update. role, status and coach_id are admin-only."""
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[RoleType] = None
    status: Optional[StatusType] = None
    coach_id: Optional[int] = None
    profile: Optional[UserProfileData] = None


class ClientStats(BaseModel):
    active_programs: int
    completed_workouts: int
    upcoming_appointments: int
    meals_this_week: int


class CoachStats(BaseModel):
    active_clients: int
    active_programs: int
    upcoming_appointments: int
    unread_messages: int
