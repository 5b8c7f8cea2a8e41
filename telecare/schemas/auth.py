from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from telecare.schemas.doctor import DoctorFields
from telecare.schemas.user import UserRead


class RegisterRequest(DoctorFields):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["patient", "doctor"]
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    profile_picture_url: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, pattern="^(male|female|other)$")
    registration_number: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="after")
    def require_doctor_fields(self):
        if self.role == "doctor":
            missing = [
                name
                for name in (
                    "specialty",
                    "degree",
                    "years_of_experience",
                    "registration_number",
                    "consultation_fee",
                )
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"Missing doctor specific fields: {', '.join(missing)}")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
