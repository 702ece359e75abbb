from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.base import BaseSchema
from app.schemas.user import UserSummary

ProgramType = Literal["strength", "cardio", "flexibility", "mixed"]
ProgramDifficulty = Literal["beginner", "intermediate", "advanced"]
ProgramStatus = Literal["draft", "active", "completed", "paused"]


class ProgramBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: ProgramType = "mixed"
    difficulty: ProgramDifficulty = "beginner"
    duration_weeks: Optional[int] = Field(default=None, ge=1, le=104)
    sessions_per_week: Optional[int] = Field(default=None, ge=1, le=14)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProgramCreate(ProgramBase):
    client_id: Optional[int] = None
    # Admins create on behalf of a coach
    coach_id: Optional[int] = None
    status: Literal["draft", "active"] = "active"


class ProgramUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[ProgramType] = None
    difficulty: Optional[ProgramDifficulty] = None
    duration_weeks: Optional[int] = Field(default=None, ge=1, le=104)
    sessions_per_week: Optional[int] = Field(default=None, ge=1, le=14)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProgramStatus] = None


class ProgramAssign(BaseModel):
    client_id: int


class ProgramResponse(BaseSchema):
    id: int
    coach_id: int
    client_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    type: str
    difficulty: str
    duration_weeks: Optional[int] = None
    sessions_per_week: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    coach: Optional[UserSummary] = None
    client: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime
