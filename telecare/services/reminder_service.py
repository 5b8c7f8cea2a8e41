import logging
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any

from sqlalchemy.orm import Session, joinedload

from telecare.core.constants import (
    AppointmentStatus,
    NotificationType,
    ReminderType,
    REMINDER_OFFSETS_MINUTES,
)
from telecare.models.appointment import Appointment
from telecare.models.reminder import Reminder
from telecare.services.notification_service import NotificationService
from telecare.utils.errors import ReminderNotFoundError
from telecare.utils.helpers import utcnow, paginate

logger = logging.getLogger(__name__)

REMINDER_TITLES = {
    ReminderType.DAY_BEFORE.value: "Appointment Reminder - 24 Hours",
    ReminderType.HOUR_BEFORE.value: "Appointment Reminder - 1 Hour",
    ReminderType.FIVE_MINUTES_BEFORE.value: "Appointment Starting Soon",
}

REMINDER_SUFFIXES = {
    ReminderType.DAY_BEFORE.value: "Please ensure you have all necessary documents and arrive 10 minutes early.",
    ReminderType.HOUR_BEFORE.value: "Please prepare for your consultation and ensure you have a stable internet connection.",
    ReminderType.FIVE_MINUTES_BEFORE.value: "Your consultation is about to begin. Please join the waiting room.",
}


def build_reminder_message(appointment: Appointment, reminder_type: str) -> str:
    when = appointment.appointment_date.strftime("%A, %d %B %Y")
    message = (
        f"Your appointment with Dr. {appointment.doctor.name} is scheduled for "
        f"{when} at {appointment.appointment_time} (Reason: {appointment.reason})."
    )
    suffix = REMINDER_SUFFIXES.get(reminder_type)
    return f"{message} {suffix}" if suffix else message


class ReminderService:
    """
    Appointment reminders:
    - one row per offset (24h / 1h / 5min) that is still in the future
    - a periodic sweep turns due rows into notifications exactly once
    """

    @staticmethod
    def create_for_appointment(
        db: Session,
        appointment: Appointment,
        now: Optional[datetime] = None,
        commit: bool = True,
    ) -> List[Reminder]:
        now = now or utcnow()
        starts_at = appointment.starts_at
        created: List[Reminder] = []

        for reminder_type, minutes in REMINDER_OFFSETS_MINUTES.items():
            remind_at = starts_at - timedelta(minutes=minutes)
            if remind_at <= now:
                continue
            reminder = Reminder(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                doctor_id=appointment.doctor_id,
                remind_at=remind_at,
                reminder_type=reminder_type.value,
                is_sent=False,
            )
            db.add(reminder)
            created.append(reminder)

        if commit:
            db.commit()
        logger.info(f"Created {len(created)} reminders for appointment {appointment.id}")
        return created

    @staticmethod
    def cancel_for_appointment(db: Session, appointment_id: int, commit: bool = True) -> int:
        deleted = (
            db.query(Reminder)
            .filter(Reminder.appointment_id == appointment_id, Reminder.is_sent == False)  # noqa: E712
            .delete(synchronize_session=False)
        )
        if commit:
            db.commit()
        return deleted

    @staticmethod
    def reschedule_for_appointment(db: Session, appointment: Appointment) -> List[Reminder]:
        ReminderService.cancel_for_appointment(db, appointment.id, commit=False)
        return ReminderService.create_for_appointment(db, appointment)

    @staticmethod
    def _claim(db: Session, reminder_id: int, now: datetime) -> bool:
        """Flip one reminder to sent; False when it was already sent."""
        claimed = (
            db.query(Reminder)
            .filter(Reminder.id == reminder_id, Reminder.is_sent == False)  # noqa: E712
            .update({"is_sent": True, "sent_at": now}, synchronize_session=False)
        )
        db.commit()
        return claimed == 1

    @staticmethod
    def _release(db: Session, reminder_id: int) -> None:
        """Hand a claimed reminder back to the next sweep."""
        try:
            db.query(Reminder).filter(Reminder.id == reminder_id).update(
                {"is_sent": False, "sent_at": None}, synchronize_session=False
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Could not release reminder {reminder_id}: {e}")

    @staticmethod
    def process_due_reminders(db: Session, now: Optional[datetime] = None) -> int:
        """Notify patients for every unsent reminder whose time has come.

        Returns the number of reminders processed. A failure on one reminder
        is logged and does not stop the sweep.
        """
        now = now or utcnow()
        due: List[Reminder] = (
            db.query(Reminder)
            .options(joinedload(Reminder.appointment), joinedload(Reminder.patient))
            .filter(Reminder.remind_at <= now, Reminder.is_sent == False)  # noqa: E712
            .order_by(Reminder.remind_at.asc())
            .all()
        )

        processed = 0
        for reminder in due:
            reminder_id = reminder.id
            if not ReminderService._claim(db, reminder_id, now):
                # another sweep got here first
                continue
            try:
                appointment = reminder.appointment
                if appointment is None or appointment.status == AppointmentStatus.CANCELLED.value:
                    continue

                NotificationService.create(
                    db,
                    user_id=reminder.patient.user_id,
                    notification_type=NotificationType.REMINDER.value,
                    title=REMINDER_TITLES.get(reminder.reminder_type, "Appointment Reminder"),
                    body=build_reminder_message(appointment, reminder.reminder_type),
                    appointment_id=appointment.id,
                )
                processed += 1
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to process reminder {reminder_id}: {e}")
                ReminderService._release(db, reminder_id)

        if due:
            logger.info(f"Processed {processed} of {len(due)} due reminders")
        return processed

    @staticmethod
    def list_for_patient(
        db: Session,
        patient_id: int,
        include_processed: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        q = db.query(Reminder).filter(Reminder.patient_id == patient_id)
        if not include_processed:
            q = q.filter(Reminder.is_sent == False)  # noqa: E712

        total = q.count()
        items = (
            q.order_by(Reminder.remind_at.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"items": items, "pagination": paginate(total, page, limit)}

    @staticmethod
    def upcoming_for_patient(
        db: Session,
        patient_id: int,
        now: Optional[datetime] = None,
        limit: int = 5,
    ) -> List[Reminder]:
        now = now or utcnow()
        return (
            db.query(Reminder)
            .filter(
                Reminder.patient_id == patient_id,
                Reminder.is_sent == False,  # noqa: E712
                Reminder.remind_at >= now,
                Reminder.remind_at <= now + timedelta(hours=24),
            )
            .order_by(Reminder.remind_at.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def delete(db: Session, patient_id: int, reminder_id: int) -> None:
        reminder = (
            db.query(Reminder)
            .filter(Reminder.id == reminder_id, Reminder.patient_id == patient_id)
            .first()
        )
        if not reminder:
            raise ReminderNotFoundError()
        if reminder.is_sent:
            raise ValueError("Cannot delete a reminder that has already been sent")
        db.delete(reminder)
        db.commit()
