"""Service layer package."""

__all__ = [
    "auth_service",
    "user_service",
    "doctor_service",
    "patient_service",
    "appointment_service",
    "consultation_service",
    "rating_service",
    "reminder_service",
    "notification_service",
    "email_service",
    "sms_service",
]
