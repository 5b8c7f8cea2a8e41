"""Doctor directory and profile endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_doctor
from telecare.schemas.doctor import DoctorProfileUpdate, DoctorRead, DoctorListResponse
from telecare.services.doctor_service import DoctorService, doctor_detail

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get("", response_model=DoctorListResponse)
async def list_doctors(
    specialty: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Search doctors.
    - `specialty=all` (or empty) lists every specialty
    - `search` matches name, specialty or degree, case-insensitively
    """
    return DoctorService.search_doctors(db, specialty=specialty, search=search, page=page, limit=limit)


@router.get("/specialties")
async def list_specialties():
    return {"success": True, "data": DoctorService.list_specialties()}


@router.put("/me", response_model=DoctorRead)
async def update_my_profile(
    payload: DoctorProfileUpdate,
    current_doctor=Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        doctor = DoctorService.update_profile(
            db,
            current_doctor["sub"],
            payload.model_dump(exclude_none=True),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return doctor_detail(doctor)


@router.get("/{doctor_id}", response_model=DoctorRead)
async def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    doctor = DoctorService.ensure_exists(db, doctor_id)
    return doctor_detail(doctor)
