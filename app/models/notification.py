from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from app.db.base_class import Base, TimestampMixin

NOTIFICATION_TYPES = ("appointment", "workout", "message", "program", "system")


class Notification(TimestampMixin, Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="system")
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(Integer, nullable=True)
    action_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('appointment', 'workout', 'message', 'program', 'system')",
            name="valid_notification_type",
        ),
    )
