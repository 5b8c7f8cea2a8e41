from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.models.base import IDMixin, TimestampMixin


class Appointment(IDMixin, TimestampMixin, Base):
    __tablename__ = "appointments"

    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)

    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(String(5), nullable=False)  # HH:MM
    appointment_slot = Column(String(5), nullable=False)

    reason = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(String(20), default="pending", index=True, nullable=False)
    consultation_status = Column(String(20), default="not_started", index=True, nullable=False)
    consultation_started_at = Column(DateTime, nullable=True)
    consultation_ended_at = Column(DateTime, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    rescheduled_from_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)

    patient = relationship("Patient")
    doctor = relationship("Doctor")
    rescheduled_from = relationship("Appointment", remote_side="Appointment.id", uselist=False)

    __table_args__ = (
        Index("ix_appointments_doctor_slot", "doctor_id", "appointment_date", "appointment_slot"),
    )

    @property
    def starts_at(self) -> datetime:
        hours, minutes = (int(part) for part in self.appointment_time.split(":"))
        return datetime(
            self.appointment_date.year,
            self.appointment_date.month,
            self.appointment_date.day,
            hours,
            minutes,
        )
