from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Float, String, Text
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin

WORKOUT_STATUSES = ("scheduled", "in_progress", "completed", "skipped", "cancelled")


class Workout(TimestampMixin, Base):
    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_date = Column(Date, nullable=True, index=True)
    duration_minutes = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)
    completion_rating = Column(Integer, nullable=True)
    calories_burned = Column(Integer, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="workout",
        order_by="WorkoutExercise.order_index",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'skipped', 'cancelled')",
            name="valid_workout_status",
        ),
        CheckConstraint(
            "completion_rating IS NULL OR (completion_rating BETWEEN 1 AND 5)",
            name="valid_completion_rating",
        ),
    )


class WorkoutExercise(TimestampMixin, Base):
    __tablename__ = "workout_exercises"

    id = Column(Integer, primary_key=True, index=True)
    workout_id = Column(Integer, ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    order_index = Column(Integer, nullable=False)
    sets = Column(Integer, nullable=True)
    reps = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    rest_seconds = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    workout = relationship("Workout", back_populates="exercises", lazy="raise")
