from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text

from app.db.base_class import Base, TimestampMixin

EXERCISE_CATEGORIES = ("strength", "cardio", "flexibility", "balance")


class Exercise(TimestampMixin, Base):
    """Catalog entry that workout exercises can point at."""

    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(20), nullable=False)
    muscle_groups = Column(String(255), nullable=True)
    equipment = Column(String(255), nullable=True)
    instructions = Column(Text, nullable=True)
    difficulty = Column(String(20), nullable=False, default="beginner")
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("category IN ('strength', 'cardio', 'flexibility', 'balance')", name="valid_exercise_category"),
    )
