from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin

MESSAGE_TYPES = ("text", "system")


class Message(TimestampMixin, Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")
    read_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    sender = relationship("User", foreign_keys=[sender_id], lazy="raise")
    recipient = relationship("User", foreign_keys=[recipient_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("message_type IN ('text', 'system')", name="valid_message_type"),
        CheckConstraint("sender_id <> recipient_id", name="no_self_message"),
        Index("ix_messages_sender_recipient", "sender_id", "recipient_id"),
        Index("ix_messages_recipient_unread", "recipient_id", "read_at"),
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
