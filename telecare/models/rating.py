from sqlalchemy import (
    Column,
    Integer,
    Text,
    ForeignKey,
    Boolean,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.models.base import IDMixin, TimestampMixin


class Rating(IDMixin, TimestampMixin, Base):
    __tablename__ = "ratings"

    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    # One rating per appointment
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    rating = Column(Integer, nullable=False, index=True)
    review = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=True)

    patient = relationship("Patient")
    doctor = relationship("Doctor")
    appointment = relationship("Appointment")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
    )
