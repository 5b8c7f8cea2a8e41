"""Application constants such as user roles and appointment states."""
from enum import Enum


class UserRole(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"


class ConsultationStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReminderType(str, Enum):
    DAY_BEFORE = "24h"
    HOUR_BEFORE = "1h"
    FIVE_MINUTES_BEFORE = "5min"


class NotificationType(str, Enum):
    REMINDER = "reminder"
    APPOINTMENT_BOOKED = "appointment_booked"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_COMPLETED = "appointment_completed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_RESCHEDULED = "appointment_rescheduled"
    CONSULTATION_STARTED = "consultation_started"
    CONSULTATION_COMPLETED = "consultation_completed"


class RatingSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST = "highest"
    LOWEST = "lowest"


SPECIALTIES = [
    "Physician",
    "Gynecologist",
    "Dermatologist",
    "Pediatrician",
    "Neurologist",
    "Cardiologist",
    "Orthopedic",
    "Psychiatrist",
    "Ophthalmologist",
    "ENT",
    "Urologist",
    "Gastroenterologist",
]

MAX_REVIEW_LENGTH = 1000
ANONYMOUS_PATIENT_NAME = "Anonymous Patient"

# Offsets before the appointment start at which reminders fire
REMINDER_OFFSETS_MINUTES = {
    ReminderType.DAY_BEFORE: 24 * 60,
    ReminderType.HOUR_BEFORE: 60,
    ReminderType.FIVE_MINUTES_BEFORE: 5,
}
