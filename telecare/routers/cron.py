"""Endpoints for an external scheduler (cron job, uptime monitor)."""
import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.cron import verify_cron_secret
from telecare.schemas.cron import CronRunResponse, CronHealthResponse
from telecare.services.reminder_service import ReminderService
from telecare.utils.helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)

_started_at = time.monotonic()


@router.post(
    "/process-reminders",
    response_model=CronRunResponse,
    responses={500: {"model": CronRunResponse}},
)
async def process_reminders(db: Session = Depends(get_db)):
    """Run one reminder sweep and report how long it took."""
    started = time.perf_counter()
    try:
        processed = ReminderService.process_due_reminders(db)
    except Exception as e:
        logger.exception("Cron reminder processing failed")
        body = CronRunResponse(
            success=False,
            message=f"Failed to process reminders: {e}",
            timestamp=utcnow(),
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    elapsed_ms = round((time.perf_counter() - started) * 1000)
    logger.info(f"Cron reminder sweep processed {processed} reminders in {elapsed_ms}ms")
    return CronRunResponse(
        success=True,
        message=f"Reminders processed successfully in {elapsed_ms}ms",
        processed_count=processed,
        timestamp=utcnow(),
    )


@router.get("/health", response_model=CronHealthResponse)
async def cron_health():
    return CronHealthResponse(
        success=True,
        message="Cron service is running",
        timestamp=utcnow(),
        uptime=round(time.monotonic() - _started_at, 3),
    )
