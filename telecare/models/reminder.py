from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.models.base import IDMixin, TimestampMixin


class Reminder(IDMixin, TimestampMixin, Base):
    __tablename__ = "reminders"

    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)

    remind_at = Column(DateTime, nullable=False)
    reminder_type = Column(String(10), nullable=False)  # 24h | 1h | 5min

    is_sent = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    appointment = relationship("Appointment")
    patient = relationship("Patient")
    doctor = relationship("Doctor")

    __table_args__ = (
        Index("ix_reminders_appointment_type", "appointment_id", "reminder_type"),
        Index("ix_reminders_due", "remind_at", "is_sent"),
        Index("ix_reminders_patient_sent", "patient_id", "is_sent"),
    )
