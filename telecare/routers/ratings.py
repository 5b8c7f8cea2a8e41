# telecare/routers/ratings.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from telecare.core.constants import RatingSort
from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_user, get_current_patient
from telecare.schemas.rating import (
    RatingCreate,
    RatingUpdate,
    RatingResponse,
    RatingListResponse,
    PatientRatingListResponse,
    DoctorRatingStats,
    RateableAppointmentListResponse,
)
from telecare.services.doctor_service import DoctorService
from telecare.services.patient_service import PatientService
from telecare.services.rating_service import RatingService

router = APIRouter(prefix="/ratings", tags=["ratings"])


def _viewer_patient_id(db: Session, current_user: dict) -> Optional[int]:
    if current_user.get("role") != "patient":
        return None
    patient = PatientService.get_for_user(db, current_user["sub"])
    return patient.id if patient else None


# ---------------- Create / edit / delete ----------------

@router.post("", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def create_rating(
    payload: RatingCreate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Rate a completed consultation.
    - Only the appointment's patient, once, after the consultation ended
    """
    try:
        return RatingService.create_rating(db, current_user["sub"], current_user["role"], payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/patient", response_model=PatientRatingListResponse)
async def list_my_ratings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    return RatingService.list_patient_ratings(db, current_user["sub"], page=page, limit=limit)


@router.get("/appointment/{appointment_id}", response_model=RatingResponse)
async def get_my_rating_for_appointment(
    appointment_id: int,
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    return RatingService.get_patient_rating_for_appointment(db, current_user["sub"], appointment_id)


@router.get("/rateable-appointments", response_model=RateableAppointmentListResponse)
async def list_rateable_appointments(
    search: Optional[str] = Query(None),
    status_filter: Literal["all", "rated", "unrated"] = Query("all", alias="status"),
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    items = RatingService.rateable_appointments(
        db, current_user["sub"], search=search, status=status_filter
    )
    return {"items": items, "total": len(items)}


# ---------------- Doctor ratings ----------------

@router.get("/doctor/{doctor_id}", response_model=RatingListResponse)
async def list_doctor_ratings(
    doctor_id: int,
    sort_by: RatingSort = Query(RatingSort.NEWEST),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Public list; every author shows as anonymous unless they opted out."""
    return RatingService.list_doctor_ratings(
        db, doctor_id, sort_by=sort_by.value, page=page, limit=limit
    )


@router.get("/doctor/{doctor_id}/with-context", response_model=RatingListResponse)
async def list_doctor_ratings_with_context(
    doctor_id: int,
    sort_by: RatingSort = Query(RatingSort.NEWEST),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RatingService.list_doctor_ratings(
        db,
        doctor_id,
        sort_by=sort_by.value,
        page=page,
        limit=limit,
        viewer_patient_id=_viewer_patient_id(db, current_user),
    )


@router.get("/doctor/{doctor_id}/stats", response_model=DoctorRatingStats)
async def get_doctor_rating_stats(doctor_id: int, db: Session = Depends(get_db)):
    DoctorService.ensure_exists(db, doctor_id)
    return RatingService.doctor_stats(db, doctor_id)


@router.get("/dashboard/all", response_model=RatingListResponse)
async def ratings_dashboard(
    search: Optional[str] = Query(None),
    sort_by: RatingSort = Query(RatingSort.NEWEST),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All ratings with edit/delete flags computed for the caller."""
    return RatingService.dashboard(
        db,
        viewer_patient_id=_viewer_patient_id(db, current_user),
        search=search,
        sort_by=sort_by.value,
        page=page,
        limit=limit,
    )


# ---------------- Owner edits ----------------

@router.put("/{rating_id}", response_model=RatingResponse)
@router.patch("/{rating_id}", response_model=RatingResponse)
async def update_rating(
    rating_id: int,
    payload: RatingUpdate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RatingService.update_rating(
        db, current_user["sub"], rating_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{rating_id}")
async def delete_rating(
    rating_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    RatingService.delete_rating(db, current_user["sub"], rating_id)
    return {"success": True, "message": "Rating deleted successfully"}
