from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin

PROGRAM_TYPES = ("strength", "cardio", "flexibility", "mixed")
PROGRAM_DIFFICULTIES = ("beginner", "intermediate", "advanced")
PROGRAM_STATUSES = ("draft", "active", "completed", "paused")


class Program(TimestampMixin, Base):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    coach_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="mixed")
    difficulty = Column(String(20), nullable=False, default="beginner")
    duration_weeks = Column(Integer, nullable=True)
    sessions_per_week = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="active")

    coach = relationship("User", foreign_keys=[coach_id], lazy="raise")
    client = relationship("User", foreign_keys=[client_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("type IN ('strength', 'cardio', 'flexibility', 'mixed')", name="valid_program_type"),
        CheckConstraint("difficulty IN ('beginner', 'intermediate', 'advanced')", name="valid_program_difficulty"),
        CheckConstraint("status IN ('draft', 'active', 'completed', 'paused')", name="valid_program_status"),
    )
