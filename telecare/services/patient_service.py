from typing import Optional

from sqlalchemy.orm import Session
from telecare.models.patient import Patient
from telecare.utils.errors import UserNotFoundError


class PatientService:
    @staticmethod
    def get_for_user(db: Session, user_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.user_id == int(user_id)).first()

    @staticmethod
    def ensure_patient(db: Session, user_id: int) -> Patient:
        patient = PatientService.get_for_user(db, user_id)
        if not patient:
            raise UserNotFoundError("Patient profile not found")
        return patient
