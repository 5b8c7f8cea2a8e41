"""Administrative endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_admin
from telecare.schemas.doctor import DoctorCreate, DoctorRead
from telecare.services.doctor_service import DoctorService, doctor_detail
from telecare.services.rating_service import RatingService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/doctors", response_model=DoctorRead, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    payload: DoctorCreate,
    admin=Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    doctor = DoctorService.create_doctor(db, payload.model_dump(), verified=True)
    return doctor_detail(doctor)


@router.delete("/doctors/{doctor_id}")
async def delete_doctor(
    doctor_id: int,
    admin=Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    DoctorService.delete_doctor(db, doctor_id)
    return {"success": True, "message": "Doctor deleted successfully"}


@router.post("/ratings/refresh-stats")
async def refresh_rating_stats(
    admin=Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    count = RatingService.update_all_doctor_rating_stats(db)
    return {"success": True, "message": f"Refreshed rating stats for {count} doctors"}
