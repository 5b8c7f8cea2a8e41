import logging

from sqlalchemy.orm import Session

from telecare.core.constants import UserRole
from telecare.core.security import hash_password, verify_password, create_access_token
from telecare.models.patient import Patient
from telecare.models.user import User
from telecare.services.doctor_service import DoctorService
from telecare.utils.errors import InvalidCredentialsError, UserAlreadyExistsError

logger = logging.getLogger(__name__)


class AuthService:

    @staticmethod
    def issue_token(user: User) -> dict:
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role,
        )
        return {"access_token": access_token, "token_type": "bearer", "user": user}

    @staticmethod
    def register(db: Session, payload: dict) -> dict:
        """
        Create a patient or doctor account and sign it in.
        Doctors get their profile row in the same transaction.
        """
        if payload["role"] == UserRole.DOCTOR.value:
            doctor = DoctorService.create_doctor(db, payload)
            user = doctor.user
        else:
            email = payload["email"].strip().lower()
            if db.query(User).filter(User.email == email).first():
                raise UserAlreadyExistsError("Email already registered")

            user = User(
                email=email,
                name=payload["name"],
                phone=payload.get("phone"),
                password_hash=hash_password(payload["password"]),
                role=UserRole.PATIENT.value,
                address=payload.get("address"),
                profile_picture_url=payload.get("profile_picture_url"),
                date_of_birth=payload.get("date_of_birth"),
                gender=payload.get("gender"),
            )
            db.add(user)
            db.add(Patient(user=user))
            db.commit()
            db.refresh(user)

        logger.info(f"Registered {user.role} account {user.id}")
        return AuthService.issue_token(user)

    @staticmethod
    def login(db: Session, email: str, password: str) -> dict:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash or ""):
            raise InvalidCredentialsError("Invalid email or password")
        return AuthService.issue_token(user)
