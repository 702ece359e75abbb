from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin

USER_ROLES = ("client", "coach", "admin")
SELF_REGISTER_ROLES = ("client", "coach")
USER_STATUSES = ("active", "inactive")


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="client", index=True)
    status = Column(String(20), nullable=False, default="active")
    phone = Column(String(50), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    # A client's assigned coach
    coach_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    profile = relationship("UserProfile", uselist=False, back_populates="user", lazy="raise")
    coach = relationship("User", remote_side=[id], lazy="raise")

    __table_args__ = (
        CheckConstraint("role IN ('client', 'coach', 'admin')", name="valid_user_role"),
        CheckConstraint("status IN ('active', 'inactive')", name="valid_user_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"
