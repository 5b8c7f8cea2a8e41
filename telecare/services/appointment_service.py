import logging
from datetime import datetime, timedelta, date as date_type
from typing import List, Dict, Any, Optional

from sqlalchemy.orm import Session, joinedload

from telecare.cache.cache_service import redis_cache
from telecare.core.config import settings
from telecare.core.constants import AppointmentStatus, NotificationType, UserRole
from telecare.models.appointment import Appointment
from telecare.models.doctor import Doctor
from telecare.models.patient import Patient
from telecare.services.doctor_service import DoctorService
from telecare.services.notification_service import NotificationService
from telecare.services.patient_service import PatientService
from telecare.services.reminder_service import ReminderService
from telecare.utils.errors import AppointmentNotFoundError, PermissionDeniedError
from telecare.utils.helpers import utcnow, paginate

logger = logging.getLogger(__name__)


def _minutes(hhmm: str) -> int:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return hours * 60 + minutes


def _hhmm(total_minutes: int) -> str:
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def _slot_cache_key(doctor_id: int, day: date_type) -> str:
    return f"available_slots:{doctor_id}:{day.isoformat()}"


def generate_slots(available_from: str, available_to: str, interval: int) -> List[str]:
    """Every `interval` minutes from the start of the window, ending before its close."""
    start, end = _minutes(available_from), _minutes(available_to)
    return [_hhmm(m) for m in range(start, end, interval)]


class AppointmentService:
    """
    Core business logic for:
    - Slot availability (cached per doctor/date)
    - Booking / cancelling / rescheduling appointments
    - Status changes by the doctor
    - Listing and access checks
    """

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------
    @staticmethod
    def _booked_slots(
        db: Session, doctor_id: int, day: date_type, exclude_id: Optional[int] = None
    ) -> set:
        q = db.query(Appointment.appointment_slot).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.status.notin_(
                [AppointmentStatus.CANCELLED.value, AppointmentStatus.RESCHEDULED.value]
            ),
        )
        if exclude_id is not None:
            q = q.filter(Appointment.id != exclude_id)
        return {row[0] for row in q.all()}

    @staticmethod
    async def get_available_slots(
        db: Session,
        doctor_id: int,
        selected_date: date_type,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or utcnow()
        doctor = DoctorService.ensure_exists(db, doctor_id)

        if selected_date < now.date():
            raise ValueError("Cannot get slots for past dates")
        if not doctor.available_from or not doctor.available_to:
            raise ValueError("Doctor has not set available hours")

        # the cache holds every unbooked slot of the day; elapsed ones are dropped per request
        cache_key = _slot_cache_key(doctor_id, selected_date)
        result = await redis_cache.get_json(cache_key)
        if result is None:
            booked = AppointmentService._booked_slots(db, doctor_id, selected_date)
            result = {
                "doctor_id": doctor.id,
                "selected_date": selected_date.isoformat(),
                "available_slots": [
                    slot
                    for slot in generate_slots(
                        doctor.available_from, doctor.available_to, settings.SLOT_INTERVAL_MINUTES
                    )
                    if slot not in booked
                ],
                "available_from": doctor.available_from,
                "available_to": doctor.available_to,
            }
            await redis_cache.set_json(cache_key, result, ttl=settings.SLOT_CACHE_TTL_SECONDS)

        if selected_date == now.date():
            current = now.hour * 60 + now.minute
            result = {
                **result,
                "available_slots": [s for s in result["available_slots"] if _minutes(s) > current],
            }
        return result

    @staticmethod
    def _validate_slot(
        db: Session,
        doctor: Doctor,
        day: date_type,
        slot: str,
        now: datetime,
        exclude_id: Optional[int] = None,
    ) -> None:
        starts_at = datetime.combine(day, datetime.min.time()) + timedelta(minutes=_minutes(slot))
        if starts_at <= now:
            raise ValueError("Cannot book appointments in the past")
        if not doctor.available_from or not doctor.available_to:
            raise ValueError("Doctor has not set available hours")
        if not (_minutes(doctor.available_from) <= _minutes(slot) < _minutes(doctor.available_to)):
            raise ValueError("Selected time is outside the doctor's available hours")
        grid = generate_slots(doctor.available_from, doctor.available_to, settings.SLOT_INTERVAL_MINUTES)
        if slot not in grid:
            raise ValueError("Invalid time slot")
        if slot in AppointmentService._booked_slots(db, doctor.id, day, exclude_id=exclude_id):
            raise ValueError("This time slot is already booked")

    # -------------------------------------------------------------------------
    # Booking / cancel / reschedule
    # -------------------------------------------------------------------------
    @staticmethod
    async def book_appointment(
        db: Session,
        user_id: int,
        payload: dict,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """
        Book an appointment for the calling patient.
        - Rejects past times and slots already held by a live appointment
        - Schedules the 24h / 1h / 5min reminders
        - Notifies both parties and invalidates the cached slot list
        """
        now = now or utcnow()
        patient = PatientService.ensure_patient(db, user_id)
        doctor = DoctorService.ensure_exists(db, payload["doctor_id"])

        day = payload["appointment_date"]
        slot = payload["appointment_time"]
        if payload.get("appointment_slot") and payload["appointment_slot"] != slot:
            raise ValueError("appointment_slot must match appointment_time")
        AppointmentService._validate_slot(db, doctor, day, slot, now)

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=day,
            appointment_time=payload["appointment_time"],
            appointment_slot=slot,
            reason=payload["reason"].strip(),
            notes=payload.get("notes"),
            status=AppointmentStatus.PENDING.value,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)

        ReminderService.create_for_appointment(db, appointment, now=now)
        await redis_cache.delete_pattern(_slot_cache_key(doctor.id, day))

        when = f"{day.isoformat()} at {appointment.appointment_time}"
        NotificationService.create(
            db,
            user_id=patient.user_id,
            notification_type=NotificationType.APPOINTMENT_BOOKED.value,
            title="Appointment Booked",
            body=f"Your appointment with Dr. {doctor.name} on {when} has been booked.",
            appointment_id=appointment.id,
        )
        NotificationService.create(
            db,
            user_id=doctor.user_id,
            notification_type=NotificationType.APPOINTMENT_BOOKED.value,
            title="New Appointment",
            body=f"{patient.name} booked an appointment on {when}. Reason: {appointment.reason}",
            appointment_id=appointment.id,
        )
        logger.info(f"Appointment {appointment.id} booked with doctor {doctor.id}")
        return appointment

    @staticmethod
    async def cancel_appointment(
        db: Session,
        appointment_id: int,
        user_id: int,
        role: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        now = now or utcnow()
        appt = AppointmentService.get_for_user(
            db, appointment_id, user_id, role,
            denied_message="You can only cancel your own appointments",
        )

        if appt.status == AppointmentStatus.CANCELLED.value:
            raise ValueError("Appointment is already cancelled")
        if appt.status == AppointmentStatus.COMPLETED.value:
            raise ValueError("Cannot cancel completed appointments")
        if role == UserRole.DOCTOR.value:
            notice = timedelta(hours=settings.DOCTOR_CANCEL_NOTICE_HOURS)
            if appt.starts_at - now < notice:
                raise ValueError(
                    f"Doctors must cancel at least {settings.DOCTOR_CANCEL_NOTICE_HOURS} hours before the appointment"
                )

        appt.status = AppointmentStatus.CANCELLED.value
        appt.cancellation_reason = reason
        appt.cancelled_by = int(user_id)
        appt.cancelled_at = now
        ReminderService.cancel_for_appointment(db, appt.id, commit=False)
        db.commit()
        db.refresh(appt)

        await redis_cache.delete_pattern(_slot_cache_key(appt.doctor_id, appt.appointment_date))

        when = f"{appt.appointment_date.isoformat()} at {appt.appointment_time}"
        suffix = f" Reason: {reason}" if reason else ""
        if role == UserRole.DOCTOR.value:
            recipient = appt.patient.user_id
            body = f"Dr. {appt.doctor.name} cancelled your appointment on {when}.{suffix}"
        else:
            recipient = appt.doctor.user_id
            body = f"{appt.patient.name} cancelled the appointment on {when}.{suffix}"
        NotificationService.create(
            db,
            user_id=recipient,
            notification_type=NotificationType.APPOINTMENT_CANCELLED.value,
            title="Appointment Cancelled",
            body=body,
            appointment_id=appt.id,
        )
        return appt

    @staticmethod
    async def reschedule_appointment(
        db: Session,
        appointment_id: int,
        user_id: int,
        payload: dict,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Move a live appointment to a new slot; the old row keeps its history."""
        now = now or utcnow()
        old = AppointmentService.get_for_user(
            db, appointment_id, user_id, UserRole.PATIENT.value,
            denied_message="You can only reschedule your own appointments",
        )
        if old.status not in (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value):
            raise ValueError(f"Cannot reschedule a {old.status} appointment")
        if old.consultation_status != "not_started":
            raise ValueError("Cannot reschedule after the consultation has started")

        day = payload["appointment_date"]
        slot = payload["appointment_time"]
        AppointmentService._validate_slot(db, old.doctor, day, slot, now, exclude_id=old.id)

        new = Appointment(
            patient_id=old.patient_id,
            doctor_id=old.doctor_id,
            appointment_date=day,
            appointment_time=slot,
            appointment_slot=slot,
            reason=(payload.get("reason") or old.reason).strip(),
            notes=old.notes,
            status=AppointmentStatus.PENDING.value,
            rescheduled_from_id=old.id,
        )
        old.status = AppointmentStatus.RESCHEDULED.value
        ReminderService.cancel_for_appointment(db, old.id, commit=False)
        db.add(new)
        db.commit()
        db.refresh(new)

        ReminderService.create_for_appointment(db, new, now=now)
        await redis_cache.delete_pattern(_slot_cache_key(old.doctor_id, old.appointment_date))
        await redis_cache.delete_pattern(_slot_cache_key(new.doctor_id, day))

        NotificationService.create(
            db,
            user_id=new.doctor.user_id,
            notification_type=NotificationType.APPOINTMENT_RESCHEDULED.value,
            title="Appointment Rescheduled",
            body=(
                f"{new.patient.name} moved the appointment from {old.appointment_date.isoformat()} "
                f"at {old.appointment_time} to {day.isoformat()} at {slot}."
            ),
            appointment_id=new.id,
        )
        return new

    @staticmethod
    def update_status(
        db: Session,
        appointment_id: int,
        user_id: int,
        new_status: str,
    ) -> Appointment:
        appt = AppointmentService.get_for_user(
            db, appointment_id, user_id, UserRole.DOCTOR.value,
            denied_message="You can only update your own appointments",
        )
        if appt.status in (AppointmentStatus.CANCELLED.value, AppointmentStatus.RESCHEDULED.value):
            raise ValueError(f"Cannot update a {appt.status} appointment")

        appt.status = new_status
        db.commit()
        db.refresh(appt)

        when = f"{appt.appointment_date.isoformat()} at {appt.appointment_time}"
        if new_status == AppointmentStatus.CONFIRMED.value:
            NotificationService.create(
                db,
                user_id=appt.patient.user_id,
                notification_type=NotificationType.APPOINTMENT_CONFIRMED.value,
                title="Appointment Confirmed",
                body=f"Dr. {appt.doctor.name} confirmed your appointment on {when}.",
                appointment_id=appt.id,
            )
        elif new_status == AppointmentStatus.COMPLETED.value:
            NotificationService.create(
                db,
                user_id=appt.patient.user_id,
                notification_type=NotificationType.APPOINTMENT_COMPLETED.value,
                title="Appointment Completed",
                body=f"Your appointment with Dr. {appt.doctor.name} on {when} is marked as completed.",
                appointment_id=appt.id,
            )
        return appt

    # -------------------------------------------------------------------------
    # Lookup / listing helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def get_for_user(
        db: Session,
        appointment_id: int,
        user_id: int,
        role: str,
        denied_message: str = "You can only view your own appointments",
    ) -> Appointment:
        """Load an appointment the caller takes part in.

        Admins see everything; patients and doctors only their own rows.
        """
        appt: Optional[Appointment] = (
            db.query(Appointment)
            .options(
                joinedload(Appointment.patient).joinedload(Patient.user),
                joinedload(Appointment.doctor).joinedload(Doctor.user),
            )
            .filter(Appointment.id == appointment_id)
            .first()
        )
        if not appt:
            raise AppointmentNotFoundError()

        if role == UserRole.ADMIN.value:
            return appt
        if role == UserRole.PATIENT.value and appt.patient.user_id == int(user_id):
            return appt
        if role == UserRole.DOCTOR.value and appt.doctor.user_id == int(user_id):
            return appt
        raise PermissionDeniedError(denied_message)

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: int,
        role: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        q = db.query(Appointment).options(
            joinedload(Appointment.patient).joinedload(Patient.user),
            joinedload(Appointment.doctor).joinedload(Doctor.user),
        )

        if role == UserRole.DOCTOR.value:
            doctor = DoctorService.ensure_doctor(db, user_id)
            q = q.filter(Appointment.doctor_id == doctor.id)
            # doctors see their confirmed schedule unless they ask otherwise
            status = status or AppointmentStatus.CONFIRMED.value
        elif role == UserRole.PATIENT.value:
            patient = PatientService.ensure_patient(db, user_id)
            q = q.filter(Appointment.patient_id == patient.id)

        if status and status != "all":
            q = q.filter(Appointment.status == status)

        total = q.count()
        items = (
            q.order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"items": items, "pagination": paginate(total, page, limit)}
