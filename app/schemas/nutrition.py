from datetime import date as date_type, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


class MealCreate(BaseModel):
    """Schema for logging a meal."""
    client_id: Optional[int] = Field(default=None, description="Required when a coach or admin logs for a client")
    date: Optional[date_type] = Field(default=None, description="Defaults to today")
    meal_type: MealType
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    calories: float = Field(default=0, ge=0)
    proteins: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fats: float = Field(default=0, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)
    sugar: Optional[float] = Field(default=None, ge=0)
    sodium: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None


class MealUpdate(BaseModel):
    date: Optional[date_type] = None
    meal_type: Optional[MealType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    calories: Optional[float] = Field(default=None, ge=0)
    proteins: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fats: Optional[float] = Field(default=None, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)
    sugar: Optional[float] = Field(default=None, ge=0)
    sodium: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None


class MealResponse(BaseSchema):
    id: int
    client_id: int
    date: date_type
    meal_type: str
    name: str
    description: Optional[str] = None
    calories: float
    proteins: float
    carbs: float
    fats: float
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    sodium: Optional[float] = None
    image_url: Optional[str] = None
    created_at: datetime


class NutritionGoalCreate(BaseModel):
    client_id: int
    daily_calories: Optional[int] = Field(default=None, ge=0)
    daily_proteins: Optional[int] = Field(default=None, ge=0)
    daily_carbs: Optional[int] = Field(default=None, ge=0)
    daily_fats: Optional[int] = Field(default=None, ge=0)
    daily_fiber: Optional[int] = Field(default=None, ge=0)
    daily_water_ml: Optional[int] = Field(default=None, ge=0)


class NutritionGoalUpdate(BaseModel):
    daily_calories: Optional[int] = Field(default=None, ge=0)
    daily_proteins: Optional[int] = Field(default=None, ge=0)
    daily_carbs: Optional[int] = Field(default=None, ge=0)
    daily_fats: Optional[int] = Field(default=None, ge=0)
    daily_fiber: Optional[int] = Field(default=None, ge=0)
    daily_water_ml: Optional[int] = Field(default=None, ge=0)


class NutritionGoalResponse(BaseSchema):
    id: int
    client_id: int
    daily_calories: Optional[int] = None
    daily_proteins: Optional[int] = None
    daily_carbs: Optional[int] = None
    daily_fats: Optional[int] = None
    daily_fiber: Optional[int] = None
    daily_water_ml: Optional[int] = None
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime


class NutritionTotals(BaseModel):
    """Schema for nutritional totals across a day's meals."""
    total_calories: float = 0
    total_proteins: float = 0
    total_carbs: float = 0
    total_fats: float = 0
    total_fiber: float = 0
    total_meals: int = 0


class MealTypeBreakdown(BaseModel):
    count: int = 0
    calories: float = 0


class NutritionSummary(BaseModel):
    date: date_type
    summary: NutritionTotals
    goals: Optional[NutritionGoalResponse] = None
    remaining: Optional[Dict[str, float]] = None
    meal_breakdown: Dict[str, MealTypeBreakdown]


class DailyProgress(BaseModel):
    date: date_type
    total_calories: float = 0
    total_proteins: float = 0
    total_carbs: float = 0
    total_fats: float = 0
    meal_count: int = 0


class NutritionProgress(BaseModel):
    client_id: int
    days: int
    daily: List[DailyProgress]
    goals: Optional[NutritionGoalResponse] = None
