from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin

APPOINTMENT_TYPES = ("consultation", "training", "nutrition", "assessment")
APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no_show")


class Appointment(TimestampMixin, Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    coach_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    # scheduled_at + duration_minutes, kept in sync by the service so overlap checks stay index-friendly
    ends_at = Column(DateTime(timezone=True), nullable=False)
    type = Column(String(20), nullable=False, default="consultation")
    status = Column(String(20), nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)

    coach = relationship("User", foreign_keys=[coach_id], lazy="raise")
    client = relationship("User", foreign_keys=[client_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="positive_duration"),
        CheckConstraint(
            "type IN ('consultation', 'training', 'nutrition', 'assessment')",
            name="valid_appointment_type",
        ),
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="valid_appointment_status",
        ),
        Index("ix_appointments_coach_window", "coach_id", "scheduled_at", "ends_at"),
    )
