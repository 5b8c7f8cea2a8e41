"""Doctor schemas."""
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional, List, Dict

from telecare.core.constants import SPECIALTIES
from telecare.schemas.common import Pagination

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class DoctorFields(BaseModel):
    specialty: Optional[str] = None
    degree: Optional[str] = Field(None, max_length=200)
    years_of_experience: Optional[int] = Field(None, ge=0)
    consultation_fee: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = None
    available_from: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    available_to: Optional[str] = Field(None, pattern=HHMM_PATTERN)

    @field_validator("specialty")
    def validate_specialty(cls, v):
        if v is not None and v not in SPECIALTIES:
            raise ValueError(f"specialty must be one of: {', '.join(SPECIALTIES)}")
        return v

    @field_validator("available_to")
    def validate_time_order(cls, v, info):
        start = info.data.get("available_from") if info and info.data else None
        # HH:MM strings compare in chronological order
        if v and start and v <= start:
            raise ValueError("available_to must be after available_from")
        return v


class DoctorProfileUpdate(DoctorFields):
    pass


class DoctorCreate(DoctorFields):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_picture_url: Optional[str] = None
    specialty: str
    degree: str = Field(..., min_length=1, max_length=200)
    years_of_experience: int = Field(..., ge=0)
    registration_number: str = Field(..., min_length=1, max_length=50)
    consultation_fee: int = Field(..., ge=0)


class DoctorCard(BaseModel):
    id: int
    user_id: int
    name: str
    specialty: str
    degree: str
    years_of_experience: int
    consultation_fee: int
    bio: Optional[str] = None
    address: Optional[str] = None
    available_from: Optional[str] = None
    available_to: Optional[str] = None
    is_verified: bool = False
    profile_picture_url: str
    average_rating: float = 0.0
    total_ratings: int = 0


class DoctorRead(DoctorCard):
    email: EmailStr
    phone: Optional[str] = None
    registration_number: str
    rating_distribution: Dict[str, int] = {}

    model_config = ConfigDict(from_attributes=True)


class DoctorListResponse(BaseModel):
    items: List[DoctorCard]
    pagination: Pagination
