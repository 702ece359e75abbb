from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema

WorkoutStatus = Literal["scheduled", "in_progress", "completed", "skipped", "cancelled"]
ExerciseCategory = Literal["strength", "cardio", "flexibility", "balance"]


class WorkoutExerciseCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255, description="Defaults to the catalog exercise name")
    exercise_id: Optional[int] = None
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    weight_kg: Optional[float] = Field(default=None, ge=0)
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    rest_seconds: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class WorkoutExerciseUpdate(BaseModel):
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    weight_kg: Optional[float] = Field(default=None, ge=0)
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    rest_seconds: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    completed: Optional[bool] = None


class WorkoutExerciseResponse(BaseSchema):
    id: int
    workout_id: int
    exercise_id: Optional[int] = None
    name: str
    order_index: int
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None
    rest_seconds: Optional[int] = None
    notes: Optional[str] = None
    completed: bool


class WorkoutCreate(BaseModel):
    client_id: int
    program_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_date: Optional[date] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=600)
    notes: Optional[str] = None
    exercises: List[WorkoutExerciseCreate] = []


class WorkoutUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_date: Optional[date] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=600)
    status: Optional[WorkoutStatus] = None
    notes: Optional[str] = None
    completion_rating: Optional[int] = Field(default=None, ge=1, le=5)
    calories_burned: Optional[int] = Field(default=None, ge=0)


class WorkoutResponse(BaseSchema):
    id: int
    program_id: Optional[int] = None
    client_id: int
    name: str
    description: Optional[str] = None
    scheduled_date: Optional[date] = None
    duration_minutes: Optional[int] = None
    status: str
    notes: Optional[str] = None
    completion_rating: Optional[int] = None
    calories_burned: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class WorkoutDetailResponse(WorkoutResponse):
    exercises: List[WorkoutExerciseResponse] = []


class ExerciseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: ExerciseCategory
    muscle_groups: Optional[str] = None
    equipment: Optional[str] = None
    instructions: Optional[str] = None
    difficulty: Literal["beginner", "intermediate", "advanced"] = "beginner"
    is_public: bool = True


class ExerciseResponse(BaseSchema):
    id: int
    name: str
    category: str
    muscle_groups: Optional[str] = None
    equipment: Optional[str] = None
    instructions: Optional[str] = None
    difficulty: str
    created_by: Optional[int] = None
    is_public: bool
