from datetime import date, datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from telecare.schemas.common import Pagination
from telecare.schemas.doctor import HHMM_PATTERN


class AppointmentDoctor(BaseModel):
    id: int
    name: str
    specialty: str
    degree: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AppointmentPatient(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    selected_date: date
    available_slots: List[str]
    available_from: str
    available_to: str


class AppointmentBookRequest(BaseModel):
    doctor_id: int
    appointment_date: date
    appointment_time: str = Field(..., pattern=HHMM_PATTERN)
    appointment_slot: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    reason: str = Field(..., min_length=1, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def slot_matches_time(self):
        if self.appointment_slot is not None and self.appointment_slot != self.appointment_time:
            raise ValueError("appointment_slot must match appointment_time")
        return self


class AppointmentCancelRequest(BaseModel):
    cancellation_reason: Optional[str] = Field(None, max_length=2000)


class AppointmentRescheduleRequest(BaseModel):
    appointment_date: date
    appointment_time: str = Field(..., pattern=HHMM_PATTERN)
    reason: Optional[str] = Field(None, max_length=2000)


class AppointmentStatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "completed"]


class AppointmentDetail(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: str
    appointment_slot: str
    reason: str
    notes: Optional[str] = None
    status: str
    consultation_status: str
    consultation_started_at: Optional[datetime] = None
    consultation_ended_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    rescheduled_from_id: Optional[int] = None
    created_at: datetime
    doctor: Optional[AppointmentDoctor] = None
    patient: Optional[AppointmentPatient] = None

    model_config = ConfigDict(from_attributes=True)


class AppointmentListResponse(BaseModel):
    items: List[AppointmentDetail]
    pagination: Pagination


class ConsultationStatusResponse(BaseModel):
    appointment_id: int
    consultation_status: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    remaining_minutes: int
    can_rate: bool
