from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer, Float, String, Text, text
)

from app.db.base_class import Base, TimestampMixin

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


class Meal(TimestampMixin, Base):
    __tablename__ = "meals"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    meal_type = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    calories = Column(Float, nullable=False, default=0)
    proteins = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fats = Column(Float, nullable=False, default=0)
    fiber = Column(Float, nullable=True)
    sugar = Column(Float, nullable=True)
    sodium = Column(Float, nullable=True)
    image_url = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("meal_type IN ('breakfast', 'lunch', 'dinner', 'snack')", name="valid_meal_type"),
        CheckConstraint("calories >= 0", name="non_negative_calories"),
        Index("ix_meals_client_date", "client_id", "date"),
    )


class NutritionGoal(TimestampMixin, Base):
    __tablename__ = "nutrition_goals"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    daily_calories = Column(Integer, nullable=True)
    daily_proteins = Column(Integer, nullable=True)
    daily_carbs = Column(Integer, nullable=True)
    daily_fats = Column(Integer, nullable=True)
    daily_fiber = Column(Integer, nullable=True)
    daily_water_ml = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        # At most one active goal per client
        Index(
            "uq_nutrition_goals_active_client",
            "client_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )
