# telecare/tasks/reminder_tasks.py
from celery import shared_task

from telecare.core.database import SessionLocal
from telecare.services.consultation_service import ConsultationService
from telecare.services.rating_service import RatingService
from telecare.services.reminder_service import ReminderService
from telecare.tasks.celery_app import celery_app  # noqa: F401
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def process_due_reminders_task(self):
    """
    Turn due appointment reminders into notifications.
    Scheduled every minute via Celery Beat; the cron endpoint runs the same sweep.
    """
    db = SessionLocal()
    try:
        processed = ReminderService.process_due_reminders(db)
        logger.info(f"Reminder sweep finished, {processed} processed")
        return processed
    except Exception as e:
        logger.error(f"Error in process_due_reminders_task: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()


@shared_task(bind=True, max_retries=3)
def expire_consultations_task(self):
    """Complete consultations that ran past their allotted time."""
    db = SessionLocal()
    try:
        return ConsultationService.expire_consultations(db)
    except Exception as e:
        logger.error(f"Error in expire_consultations_task: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()


@shared_task(bind=True, max_retries=3)
def refresh_rating_stats_task(self):
    """Nightly recompute of every doctor's rating stats."""
    db = SessionLocal()
    try:
        return RatingService.update_all_doctor_rating_stats(db)
    except Exception as e:
        logger.error(f"Error in refresh_rating_stats_task: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()
