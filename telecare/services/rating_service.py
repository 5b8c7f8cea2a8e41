import logging
from typing import List, Optional, Dict, Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, Query, joinedload

from telecare.core.constants import (
    ANONYMOUS_PATIENT_NAME,
    ConsultationStatus,
    RatingSort,
    UserRole,
)
from telecare.models.appointment import Appointment
from telecare.models.doctor import Doctor, empty_distribution
from telecare.models.patient import Patient
from telecare.models.rating import Rating
from telecare.models.user import User
from telecare.schemas.rating import RatingCreate
from telecare.services.doctor_service import DoctorService
from telecare.services.patient_service import PatientService
from telecare.utils.errors import (
    AppointmentNotFoundError,
    PermissionDeniedError,
    RatingNotFoundError,
)
from telecare.utils.helpers import contains_ci, paginate

logger = logging.getLogger(__name__)


def _apply_sort(q: Query, sort_by: str) -> Query:
    if sort_by == RatingSort.OLDEST.value:
        return q.order_by(Rating.created_at.asc(), Rating.id.asc())
    if sort_by == RatingSort.HIGHEST.value:
        return q.order_by(Rating.rating.desc(), Rating.created_at.desc(), Rating.id.desc())
    if sort_by == RatingSort.LOWEST.value:
        return q.order_by(Rating.rating.asc(), Rating.created_at.desc(), Rating.id.desc())
    return q.order_by(Rating.created_at.desc(), Rating.id.desc())


def serialize_rating(rating: Rating, viewer_patient_id: Optional[int] = None) -> Dict[str, Any]:
    """Shape a rating for list views.

    The author is named only to themselves, or to everyone when they chose
    not to stay anonymous; only the author may edit or delete.
    """
    is_own = viewer_patient_id is not None and rating.patient_id == viewer_patient_id
    if is_own:
        patient = {"id": rating.patient_id, "name": rating.patient.name}
    elif not rating.is_anonymous:
        patient = {"id": None, "name": rating.patient.name}
    else:
        patient = {"id": None, "name": ANONYMOUS_PATIENT_NAME}

    return {
        "id": rating.id,
        "appointment_id": rating.appointment_id,
        "doctor_id": rating.doctor_id,
        "rating": rating.rating,
        "review": rating.review,
        "created_at": rating.created_at,
        "updated_at": rating.updated_at,
        "patient": patient,
        "doctor": rating.doctor,
        "appointment": rating.appointment,
        "can_edit": is_own,
        "can_delete": is_own,
    }


class RatingService:
    # ---------------- Create / update / delete ----------------

    @staticmethod
    def _check_rating_eligibility(db: Session, patient: Patient, appointment_id: int) -> Appointment:
        """
        Ensure that:
        - Appointment exists and belongs to the patient
        - Its consultation is completed
        - It has not been rated yet
        """
        appt = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appt:
            raise AppointmentNotFoundError()
        if appt.patient_id != patient.id:
            raise PermissionDeniedError("You can only rate your own appointments")
        if appt.consultation_status != ConsultationStatus.COMPLETED.value:
            raise ValueError("You can only rate doctors after the consultation is completed")

        existing = db.query(Rating).filter(Rating.appointment_id == appointment_id).first()
        if existing:
            raise ValueError("You have already rated this consultation")
        return appt

    @staticmethod
    def create_rating(db: Session, user_id: int, role: str, payload: RatingCreate) -> Rating:
        if role != UserRole.PATIENT.value:
            raise PermissionDeniedError("Only patients can rate doctors")

        patient = PatientService.ensure_patient(db, user_id)
        appt = RatingService._check_rating_eligibility(db, patient, payload.appointment_id)

        rating = Rating(
            patient_id=patient.id,
            doctor_id=appt.doctor_id,
            appointment_id=appt.id,
            rating=payload.rating,
            review=payload.review,
            is_anonymous=payload.is_anonymous,
        )
        db.add(rating)
        db.commit()
        db.refresh(rating)

        RatingService.update_doctor_rating_stats(db, appt.doctor_id)
        return rating

    @staticmethod
    def _get_owned(db: Session, user_id: int, rating_id: int, action: str) -> Rating:
        rating = db.query(Rating).filter(Rating.id == rating_id).first()
        if not rating:
            raise RatingNotFoundError()
        patient = PatientService.get_for_user(db, user_id)
        if not patient or rating.patient_id != patient.id:
            raise PermissionDeniedError(f"You can only {action} your own ratings")
        return rating

    @staticmethod
    def update_rating(db: Session, user_id: int, rating_id: int, changes: dict) -> Rating:
        """Apply only the fields the caller sent; an explicit null review clears it."""
        rating = RatingService._get_owned(db, user_id, rating_id, "update")

        if changes.get("rating") is not None:
            rating.rating = changes["rating"]
        if "review" in changes:
            rating.review = changes["review"]
        if changes.get("is_anonymous") is not None:
            rating.is_anonymous = changes["is_anonymous"]

        db.commit()
        db.refresh(rating)

        RatingService.update_doctor_rating_stats(db, rating.doctor_id)
        return rating

    @staticmethod
    def delete_rating(db: Session, user_id: int, rating_id: int) -> None:
        rating = RatingService._get_owned(db, user_id, rating_id, "delete")
        doctor_id = rating.doctor_id
        db.delete(rating)
        db.commit()

        RatingService.update_doctor_rating_stats(db, doctor_id)

    # ---------------- Patient views ----------------

    @staticmethod
    def list_patient_ratings(
        db: Session, user_id: int, page: int = 1, limit: int = 10
    ) -> Dict[str, Any]:
        patient = PatientService.ensure_patient(db, user_id)
        q = db.query(Rating).filter(Rating.patient_id == patient.id)
        total = q.count()
        items = (
            q.order_by(Rating.created_at.desc(), Rating.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"items": items, "pagination": paginate(total, page, limit)}

    @staticmethod
    def get_patient_rating_for_appointment(db: Session, user_id: int, appointment_id: int) -> Rating:
        patient = PatientService.ensure_patient(db, user_id)
        rating = (
            db.query(Rating)
            .filter(Rating.appointment_id == appointment_id, Rating.patient_id == patient.id)
            .first()
        )
        if not rating:
            raise RatingNotFoundError("No rating found for this appointment")
        return rating

    @staticmethod
    def rateable_appointments(
        db: Session,
        user_id: int,
        search: Optional[str] = None,
        status: str = "all",
    ) -> List[Dict[str, Any]]:
        """Completed consultations of the patient, flagged with whether they were rated."""
        patient = PatientService.ensure_patient(db, user_id)
        appointments = (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor).joinedload(Doctor.user))
            .filter(
                Appointment.patient_id == patient.id,
                Appointment.consultation_status == ConsultationStatus.COMPLETED.value,
            )
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
            .all()
        )
        rated = dict(
            db.query(Rating.appointment_id, Rating.id)
            .filter(Rating.patient_id == patient.id)
            .all()
        )

        items = []
        term = (search or "").strip()
        for appt in appointments:
            has_rated = appt.id in rated
            if status == "rated" and not has_rated:
                continue
            if status == "unrated" and has_rated:
                continue
            if term and not (
                contains_ci(appt.doctor.name, term)
                or contains_ci(appt.doctor.specialty, term)
                or contains_ci(appt.reason, term)
            ):
                continue
            items.append(
                {
                    "id": appt.id,
                    "doctor": appt.doctor,
                    "appointment_date": appt.appointment_date,
                    "appointment_time": appt.appointment_time,
                    "reason": appt.reason,
                    "status": appt.status,
                    "has_rated": has_rated,
                    "rating_id": rated.get(appt.id),
                }
            )
        return items

    # ---------------- Public / dashboard views ----------------

    @staticmethod
    def list_doctor_ratings(
        db: Session,
        doctor_id: int,
        sort_by: str = RatingSort.NEWEST.value,
        page: int = 1,
        limit: int = 10,
        viewer_patient_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        DoctorService.ensure_exists(db, doctor_id)
        q = db.query(Rating).filter(Rating.doctor_id == doctor_id)
        total = q.count()
        ratings = _apply_sort(q, sort_by).offset((page - 1) * limit).limit(limit).all()
        return {
            "items": [serialize_rating(r, viewer_patient_id) for r in ratings],
            "pagination": paginate(total, page, limit),
            "stats": RatingService.doctor_stats(db, doctor_id),
        }

    @staticmethod
    def dashboard(
        db: Session,
        viewer_patient_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: str = RatingSort.NEWEST.value,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        q = (
            db.query(Rating)
            .join(Doctor, Rating.doctor_id == Doctor.id)
            .join(User, Doctor.user_id == User.id)
        )
        if search and search.strip():
            term = f"%{search.strip()}%"
            q = q.filter(
                or_(
                    User.name.ilike(term),
                    Doctor.specialty.ilike(term),
                    Rating.review.ilike(term),
                )
            )

        total = q.count()
        ratings = _apply_sort(q, sort_by).offset((page - 1) * limit).limit(limit).all()
        return {
            "items": [serialize_rating(r, viewer_patient_id) for r in ratings],
            "pagination": paginate(total, page, limit),
        }

    # ---------------- Aggregates ----------------

    @staticmethod
    def doctor_stats(db: Session, doctor_id: int) -> Dict[str, Any]:
        rows = (
            db.query(Rating.rating, func.count(Rating.id))
            .filter(Rating.doctor_id == doctor_id)
            .group_by(Rating.rating)
            .all()
        )
        distribution = empty_distribution()
        total = 0
        score_sum = 0
        for score, count in rows:
            distribution[str(score)] = count
            total += count
            score_sum += score * count

        average = round(score_sum / total, 1) if total else 0.0
        return {
            "average_rating": average,
            "total_ratings": total,
            "rating_distribution": distribution,
        }

    @staticmethod
    def update_doctor_rating_stats(db: Session, doctor_id: int) -> Optional[Dict[str, Any]]:
        """
        Recalculate and store the doctor's average, total and distribution.
        """
        doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            return None

        stats = RatingService.doctor_stats(db, doctor_id)
        doctor.average_rating = stats["average_rating"]
        doctor.total_ratings = stats["total_ratings"]
        doctor.rating_distribution = stats["rating_distribution"]
        db.commit()

        logger.info(
            f"Updated rating stats for doctor {doctor_id}: "
            f"{stats['average_rating']} avg over {stats['total_ratings']} ratings"
        )
        return stats

    @staticmethod
    def update_all_doctor_rating_stats(db: Session) -> int:
        doctor_ids = [row[0] for row in db.query(Doctor.id).all()]
        for doctor_id in doctor_ids:
            RatingService.update_doctor_rating_stats(db, doctor_id)
        logger.info(f"Refreshed rating stats for {len(doctor_ids)} doctors")
        return len(doctor_ids)
