import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from telecare.core.config import settings
from telecare.core.constants import (
    AppointmentStatus,
    ConsultationStatus,
    NotificationType,
    UserRole,
)
from telecare.models.appointment import Appointment
from telecare.services.appointment_service import AppointmentService
from telecare.services.notification_service import NotificationService
from telecare.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def can_rate(appointment: Appointment) -> bool:
    return appointment.consultation_status == ConsultationStatus.COMPLETED.value


def remaining_minutes(appointment: Appointment, now: Optional[datetime] = None) -> int:
    duration = settings.CONSULTATION_DURATION_MINUTES
    status = appointment.consultation_status
    if status == ConsultationStatus.NOT_STARTED.value:
        return duration
    if status == ConsultationStatus.COMPLETED.value or not appointment.consultation_started_at:
        return 0
    now = now or utcnow()
    ends_at = appointment.consultation_started_at + timedelta(minutes=duration)
    seconds_left = (ends_at - now).total_seconds()
    return max(0, math.ceil(seconds_left / 60))


class ConsultationService:
    """Timed consultations attached to an appointment."""

    @staticmethod
    def status(
        db: Session,
        appointment_id: int,
        user_id: int,
        role: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        appt = AppointmentService.get_for_user(db, appointment_id, user_id, role)
        return {
            "appointment_id": appt.id,
            "consultation_status": appt.consultation_status,
            "started_at": appt.consultation_started_at,
            "ended_at": appt.consultation_ended_at,
            "remaining_minutes": remaining_minutes(appt, now),
            "can_rate": can_rate(appt),
        }

    @staticmethod
    def start(
        db: Session,
        appointment_id: int,
        user_id: int,
        role: str,
        now: Optional[datetime] = None,
    ) -> Appointment:
        appt = AppointmentService.get_for_user(db, appointment_id, user_id, role)

        if appt.status in (AppointmentStatus.CANCELLED.value, AppointmentStatus.RESCHEDULED.value):
            raise ValueError(f"Cannot start a consultation for a {appt.status} appointment")
        if appt.consultation_status == ConsultationStatus.COMPLETED.value:
            raise ValueError("Consultation has already been completed")
        if appt.consultation_status == ConsultationStatus.IN_PROGRESS.value:
            return appt

        appt.consultation_status = ConsultationStatus.IN_PROGRESS.value
        appt.consultation_started_at = now or utcnow()
        db.commit()
        db.refresh(appt)

        NotificationService.create(
            db,
            user_id=appt.patient.user_id,
            notification_type=NotificationType.CONSULTATION_STARTED.value,
            title="Consultation Started",
            body=f"Your consultation with Dr. {appt.doctor.name} has started.",
            appointment_id=appt.id,
        )
        NotificationService.create(
            db,
            user_id=appt.doctor.user_id,
            notification_type=NotificationType.CONSULTATION_STARTED.value,
            title="Consultation Started",
            body=f"Your consultation with {appt.patient.name} has started.",
            appointment_id=appt.id,
        )
        logger.info(f"Consultation started for appointment {appt.id}")
        return appt

    @staticmethod
    def complete(
        db: Session,
        appointment_id: int,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> Appointment:
        appt = AppointmentService.get_for_user(
            db, appointment_id, user_id, UserRole.DOCTOR.value,
            denied_message="Only the appointment's doctor can complete the consultation",
        )
        if appt.consultation_status != ConsultationStatus.IN_PROGRESS.value:
            raise ValueError("Consultation is not in progress")
        return ConsultationService._finish(db, appt, now or utcnow())

    @staticmethod
    def _finish(db: Session, appt: Appointment, now: datetime) -> Appointment:
        appt.consultation_status = ConsultationStatus.COMPLETED.value
        appt.consultation_ended_at = now
        appt.status = AppointmentStatus.COMPLETED.value
        db.commit()
        db.refresh(appt)

        NotificationService.create(
            db,
            user_id=appt.patient.user_id,
            notification_type=NotificationType.CONSULTATION_COMPLETED.value,
            title="Consultation Completed",
            body=(
                f"Your consultation with Dr. {appt.doctor.name} has been completed. "
                "You can now rate and review the doctor."
            ),
            appointment_id=appt.id,
        )
        NotificationService.create(
            db,
            user_id=appt.doctor.user_id,
            notification_type=NotificationType.CONSULTATION_COMPLETED.value,
            title="Consultation Completed",
            body=f"Your consultation with {appt.patient.name} has been completed.",
            appointment_id=appt.id,
        )
        logger.info(f"Consultation completed for appointment {appt.id}")
        return appt

    @staticmethod
    def expire_consultations(db: Session, now: Optional[datetime] = None) -> int:
        """Complete every consultation that has run past its allotted time."""
        now = now or utcnow()
        cutoff = now - timedelta(minutes=settings.CONSULTATION_DURATION_MINUTES)
        expired = (
            db.query(Appointment)
            .filter(
                Appointment.consultation_status == ConsultationStatus.IN_PROGRESS.value,
                Appointment.consultation_started_at <= cutoff,
            )
            .all()
        )

        finished = 0
        for appt in expired:
            appointment_id = appt.id
            try:
                ConsultationService._finish(db, appt, now)
                finished += 1
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to expire consultation {appointment_id}: {e}")

        if finished:
            logger.info(f"Expired {finished} consultations")
        return finished
