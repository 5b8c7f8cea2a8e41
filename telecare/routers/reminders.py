from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_patient
from telecare.schemas.reminder import ReminderListResponse, ReminderRead
from telecare.services.patient_service import PatientService
from telecare.services.reminder_service import ReminderService

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=ReminderListResponse)
async def list_my_reminders(
    include_processed: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    patient = PatientService.ensure_patient(db, current_user["sub"])
    return ReminderService.list_for_patient(
        db, patient.id, include_processed=include_processed, page=page, limit=limit
    )


@router.get("/upcoming", response_model=list[ReminderRead])
async def list_upcoming_reminders(
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    """Unsent reminders due within the next 24 hours."""
    patient = PatientService.ensure_patient(db, current_user["sub"])
    return ReminderService.upcoming_for_patient(db, patient.id)


@router.delete("/{reminder_id}")
async def delete_reminder(
    reminder_id: int,
    current_user=Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    patient = PatientService.ensure_patient(db, current_user["sub"])
    try:
        ReminderService.delete(db, patient.id, reminder_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "message": "Reminder deleted successfully"}
