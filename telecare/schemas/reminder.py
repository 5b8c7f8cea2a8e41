from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from telecare.schemas.common import Pagination


class ReminderAppointment(BaseModel):
    id: int
    appointment_date: date
    appointment_time: str
    reason: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class ReminderDoctor(BaseModel):
    id: int
    name: str
    specialty: str

    model_config = ConfigDict(from_attributes=True)


class ReminderRead(BaseModel):
    id: int
    appointment_id: int
    doctor_id: int
    remind_at: datetime
    reminder_type: str
    is_sent: bool
    sent_at: Optional[datetime] = None
    appointment: Optional[ReminderAppointment] = None
    doctor: Optional[ReminderDoctor] = None

    model_config = ConfigDict(from_attributes=True)


class ReminderListResponse(BaseModel):
    items: List[ReminderRead]
    pagination: Pagination
