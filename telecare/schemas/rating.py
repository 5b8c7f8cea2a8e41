from datetime import date, datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from telecare.core.constants import MAX_REVIEW_LENGTH
from telecare.schemas.common import Pagination


def _clean_review(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class RatingCreate(BaseModel):
    appointment_id: int
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=MAX_REVIEW_LENGTH)
    is_anonymous: bool = True

    @field_validator("review")
    def clean_review(cls, v):
        return _clean_review(v)


class RatingUpdate(BaseModel):
    """Partial update: only fields present in the payload are applied."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = Field(None, max_length=MAX_REVIEW_LENGTH)
    is_anonymous: Optional[bool] = None

    @field_validator("review")
    def clean_review(cls, v):
        return _clean_review(v)


class RatingDoctor(BaseModel):
    id: int
    name: str
    specialty: str

    model_config = ConfigDict(from_attributes=True)


class RatingAppointment(BaseModel):
    id: int
    appointment_date: date
    appointment_time: str
    reason: str

    model_config = ConfigDict(from_attributes=True)


class RatingPatient(BaseModel):
    id: Optional[int] = None
    name: str


class RatingResponse(BaseModel):
    id: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    rating: int
    review: Optional[str] = None
    is_anonymous: bool
    created_at: datetime
    updated_at: datetime
    doctor: Optional[RatingDoctor] = None
    appointment: Optional[RatingAppointment] = None

    model_config = ConfigDict(from_attributes=True)


class RatingListItem(BaseModel):
    """A rating as seen by someone browsing a list: the author is hidden
    unless the viewer wrote it."""

    id: int
    appointment_id: int
    doctor_id: int
    rating: int
    review: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    patient: RatingPatient
    doctor: Optional[RatingDoctor] = None
    appointment: Optional[RatingAppointment] = None
    can_edit: bool = False
    can_delete: bool = False


class DoctorRatingStats(BaseModel):
    average_rating: float
    total_ratings: int
    rating_distribution: Dict[str, int]


class PatientRatingListResponse(BaseModel):
    items: List[RatingResponse]
    pagination: Pagination


class RatingListResponse(BaseModel):
    items: List[RatingListItem]
    pagination: Pagination
    stats: Optional[DoctorRatingStats] = None


class RateableAppointment(BaseModel):
    id: int
    doctor: RatingDoctor
    appointment_date: date
    appointment_time: str
    reason: str
    status: str
    has_rated: bool
    rating_id: Optional[int] = None


class RateableAppointmentListResponse(BaseModel):
    items: List[RateableAppointment]
    total: int
