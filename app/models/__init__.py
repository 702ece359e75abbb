"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from app.models.appointment import Appointment
from app.models.exercise import Exercise
from app.models.message import Message
from app.models.notification import Notification
from app.models.nutrition import Meal, NutritionGoal
from app.models.program import Program
from app.models.user import User
from app.models.user_profile import UserProfile
from app.models.workout import Workout, WorkoutExercise

__all__ = [
    "User",
    "UserProfile",
    "Program",
    "Exercise",
    "Workout",
    "WorkoutExercise",
    "Meal",
    "NutritionGoal",
    "Appointment",
    "Message",
    "Notification",
]
