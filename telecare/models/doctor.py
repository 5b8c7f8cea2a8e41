from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Float, JSON
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.models.base import IDMixin, TimestampMixin


def empty_distribution() -> dict:
    return {str(star): 0 for star in range(1, 6)}


class Doctor(IDMixin, TimestampMixin, Base):
    __tablename__ = "doctors"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    specialty = Column(String(100), index=True, nullable=False)
    degree = Column(String(200), nullable=False)
    years_of_experience = Column(Integer, nullable=False, default=0)
    registration_number = Column(String(50), unique=True, index=True, nullable=False)
    consultation_fee = Column(Integer, nullable=False, default=0)
    bio = Column(Text, nullable=True)

    # "HH:MM" strings, same format as appointment slots
    available_from = Column(String(5), nullable=True)
    available_to = Column(String(5), nullable=True)

    is_verified = Column(Boolean, default=False)

    # Denormalised rating stats, refreshed on every rating mutation
    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)
    rating_distribution = Column(JSON, nullable=False, default=empty_distribution)

    user = relationship("User", back_populates="doctor")

    @property
    def name(self) -> str:
        return self.user.name if self.user else ""
