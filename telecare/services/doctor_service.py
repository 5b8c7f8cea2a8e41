import logging
from typing import Optional, Dict, Any, List

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from telecare.core.config import settings
from telecare.core.constants import SPECIALTIES, UserRole
from telecare.core.security import hash_password
from telecare.models.doctor import Doctor, empty_distribution
from telecare.models.user import User
from telecare.utils.errors import DoctorNotFoundError, UserNotFoundError, UserAlreadyExistsError
from telecare.utils.helpers import paginate

logger = logging.getLogger(__name__)

PROFILE_FIELDS = [
    "specialty",
    "degree",
    "years_of_experience",
    "consultation_fee",
    "bio",
    "available_from",
    "available_to",
]


def resolve_profile_picture(path: Optional[str]) -> str:
    """Turn a stored picture path into an absolute URL."""
    if not path:
        return settings.DEFAULT_PROFILE_PICTURE
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{settings.MEDIA_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


def doctor_card(doctor: Doctor) -> Dict[str, Any]:
    user = doctor.user
    return {
        "id": doctor.id,
        "user_id": doctor.user_id,
        "name": user.name,
        "specialty": doctor.specialty,
        "degree": doctor.degree,
        "years_of_experience": doctor.years_of_experience,
        "consultation_fee": doctor.consultation_fee,
        "bio": doctor.bio,
        "address": user.address,
        "available_from": doctor.available_from,
        "available_to": doctor.available_to,
        "is_verified": bool(doctor.is_verified),
        "profile_picture_url": resolve_profile_picture(user.profile_picture_url),
        "average_rating": doctor.average_rating or 0.0,
        "total_ratings": doctor.total_ratings or 0,
    }


def doctor_detail(doctor: Doctor) -> Dict[str, Any]:
    data = doctor_card(doctor)
    data.update(
        email=doctor.user.email,
        phone=doctor.user.phone,
        registration_number=doctor.registration_number,
        rating_distribution=doctor.rating_distribution or empty_distribution(),
    )
    return data


class DoctorService:
    @staticmethod
    def list_specialties() -> List[str]:
        return list(SPECIALTIES)

    @staticmethod
    def get_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        return (
            db.query(Doctor)
            .options(joinedload(Doctor.user))
            .filter(Doctor.id == doctor_id)
            .first()
        )

    @staticmethod
    def ensure_exists(db: Session, doctor_id: int) -> Doctor:
        doctor = DoctorService.get_by_id(db, doctor_id)
        if not doctor:
            raise DoctorNotFoundError()
        return doctor

    @staticmethod
    def ensure_doctor(db: Session, user_id: int) -> Doctor:
        doctor = db.query(Doctor).filter(Doctor.user_id == int(user_id)).first()
        if not doctor:
            raise UserNotFoundError("Doctor profile not found")
        return doctor

    @staticmethod
    def search_doctors(
        db: Session,
        specialty: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> Dict[str, Any]:
        """
        Public doctor directory.
        - `specialty` filters exactly; "all" or empty means no filter
        - `search` is a case-insensitive substring match on name, specialty or degree
        - newest doctors first
        """
        q = db.query(Doctor).join(User, Doctor.user_id == User.id).options(joinedload(Doctor.user))

        if specialty and specialty.lower() != "all":
            q = q.filter(Doctor.specialty == specialty)

        if search and search.strip():
            term = f"%{search.strip()}%"
            q = q.filter(
                or_(
                    User.name.ilike(term),
                    Doctor.specialty.ilike(term),
                    Doctor.degree.ilike(term),
                )
            )

        total = q.count()
        doctors = (
            q.order_by(Doctor.created_at.desc(), Doctor.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "items": [doctor_card(d) for d in doctors],
            "pagination": paginate(total, page, limit),
        }

    @staticmethod
    def create_doctor(db: Session, payload: dict, verified: bool = False) -> Doctor:
        email = payload["email"].strip().lower()
        if db.query(User).filter(User.email == email).first():
            raise UserAlreadyExistsError("Email already registered")
        if db.query(Doctor).filter(Doctor.registration_number == payload["registration_number"]).first():
            raise UserAlreadyExistsError("Registration number already in use")

        user = User(
            email=email,
            name=payload["name"],
            phone=payload.get("phone"),
            password_hash=hash_password(payload["password"]),
            role=UserRole.DOCTOR.value,
            address=payload.get("address"),
            profile_picture_url=payload.get("profile_picture_url"),
            date_of_birth=payload.get("date_of_birth"),
            gender=payload.get("gender"),
        )
        doctor = Doctor(
            user=user,
            registration_number=payload["registration_number"],
            is_verified=verified,
            rating_distribution=empty_distribution(),
        )
        for field in PROFILE_FIELDS:
            if payload.get(field) is not None:
                setattr(doctor, field, payload[field])

        db.add(user)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        logger.info(f"Created doctor {doctor.id} for user {user.id}")
        return doctor

    @staticmethod
    def update_profile(db: Session, user_id: int, payload: dict) -> Doctor:
        doctor = DoctorService.ensure_doctor(db, user_id)

        for field in PROFILE_FIELDS:
            if field in payload and payload[field] is not None:
                setattr(doctor, field, payload[field])

        if doctor.available_from and doctor.available_to and doctor.available_to <= doctor.available_from:
            db.rollback()
            raise ValueError("available_to must be after available_from")

        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def delete_doctor(db: Session, doctor_id: int) -> None:
        from telecare.models.appointment import Appointment
        from telecare.models.rating import Rating
        from telecare.models.reminder import Reminder

        doctor = DoctorService.ensure_exists(db, doctor_id)
        user = doctor.user
        for model in (Reminder, Rating, Appointment):
            db.query(model).filter(model.doctor_id == doctor.id).delete(synchronize_session=False)
        # the user row owns the doctor profile
        db.delete(user)
        db.commit()
        logger.info(f"Deleted doctor {doctor_id}")
