from sqlalchemy import Column, Date, ForeignKey, Integer, Float, String, Text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin


class UserProfile(TimestampMixin, Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    height_cm = Column(Float, nullable=True)
    weight_kg = Column(Float, nullable=True)
    fitness_goals = Column(Text, nullable=True)
    medical_conditions = Column(Text, nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    # Coach-facing fields
    bio = Column(Text, nullable=True)
    specializations = Column(Text, nullable=True)
    certifications = Column(Text, nullable=True)

    user = relationship("User", back_populates="profile", lazy="raise")
