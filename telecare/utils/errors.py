"""Custom error definitions for API exceptions."""
from fastapi import HTTPException
from starlette import status


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class InvalidCredentialsError(HTTPException):
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class PermissionDeniedError(HTTPException):
    def __init__(self, detail: str = "You are not allowed to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UserNotFoundError(NotFoundError):
    def __init__(self, detail: str = "User not found"):
        super().__init__(detail=detail)


class DoctorNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Doctor not found"):
        super().__init__(detail=detail)


class AppointmentNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(detail=detail)


class RatingNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Rating not found"):
        super().__init__(detail=detail)


class ReminderNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Reminder not found"):
        super().__init__(detail=detail)


class NotificationNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Notification not found"):
        super().__init__(detail=detail)


class UserAlreadyExistsError(HTTPException):
    def __init__(self, detail: str = "User already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
