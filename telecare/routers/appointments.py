# telecare/routers/appointments.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_user, get_current_patient, get_current_doctor
from telecare.schemas.appointment import (
    AppointmentBookRequest,
    AppointmentCancelRequest,
    AppointmentRescheduleRequest,
    AppointmentStatusUpdate,
    AppointmentListResponse,
    AppointmentDetail,
    AvailableSlotsResponse,
    ConsultationStatusResponse,
)
from telecare.services.appointment_service import AppointmentService
from telecare.services.consultation_service import ConsultationService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: int = Query(..., gt=0),
    query_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """
    Free slots for a doctor on a given date.
    Cached via Redis; booking and cancelling invalidate the date.
    """
    try:
        return await AppointmentService.get_available_slots(db, doctor_id, query_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/book",
    response_model=AppointmentDetail,
    status_code=status.HTTP_201_CREATED,
)
async def book_appointment(
    payload: AppointmentBookRequest,
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    try:
        return await AppointmentService.book_appointment(
            db, current_user["sub"], payload.model_dump()
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=AppointmentListResponse)
async def list_my_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Appointments of the caller.
    Doctors get confirmed ones unless `status` is given; `status=all` disables the filter.
    """
    return AppointmentService.list_for_user(
        db,
        current_user["sub"],
        current_user["role"],
        status=status_filter,
        page=page,
        limit=limit,
    )


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AppointmentService.get_for_user(
        db, appointment_id, current_user["sub"], current_user["role"]
    )


@router.put("/{appointment_id}/cancel", response_model=AppointmentDetail)
async def cancel_appointment(
    appointment_id: int,
    payload: Optional[AppointmentCancelRequest] = None,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return await AppointmentService.cancel_appointment(
            db,
            appointment_id,
            current_user["sub"],
            current_user["role"],
            reason=payload.cancellation_reason if payload else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{appointment_id}/reschedule", response_model=AppointmentDetail)
async def reschedule_appointment(
    appointment_id: int,
    payload: AppointmentRescheduleRequest,
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    try:
        return await AppointmentService.reschedule_appointment(
            db, appointment_id, current_user["sub"], payload.model_dump()
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{appointment_id}/status", response_model=AppointmentDetail)
async def update_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    current_user=Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        return AppointmentService.update_status(
            db, appointment_id, current_user["sub"], payload.status
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------------- Consultation ----------------

@router.get("/{appointment_id}/consultation", response_model=ConsultationStatusResponse)
async def get_consultation_status(
    appointment_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ConsultationService.status(db, appointment_id, current_user["sub"], current_user["role"])


@router.post("/{appointment_id}/consultation/start", response_model=ConsultationStatusResponse)
async def start_consultation(
    appointment_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        ConsultationService.start(db, appointment_id, current_user["sub"], current_user["role"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ConsultationService.status(db, appointment_id, current_user["sub"], current_user["role"])


@router.post("/{appointment_id}/consultation/complete", response_model=ConsultationStatusResponse)
async def complete_consultation(
    appointment_id: int,
    current_user=Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        ConsultationService.complete(db, appointment_id, current_user["sub"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ConsultationService.status(db, appointment_id, current_user["sub"], current_user["role"])
