"""Celery application: broker, eager mode for tests, and the beat schedule."""
from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from telecare.core.config import settings
from telecare.core.logger import setup_logging

celery_app = Celery(
    "telecare",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "telecare.tasks.reminder_tasks",
        "telecare.tasks.notification_tasks",
    ],
)

celery_app.conf.update(
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    worker_hijack_root_logger=False,
    beat_schedule={
        "process-due-reminders": {
            "task": "telecare.tasks.reminder_tasks.process_due_reminders_task",
            "schedule": 60.0,
        },
        "expire-consultations": {
            "task": "telecare.tasks.reminder_tasks.expire_consultations_task",
            "schedule": 30.0,
        },
        "refresh-doctor-rating-stats": {
            "task": "telecare.tasks.reminder_tasks.refresh_rating_stats_task",
            "schedule": 60.0 * 60 * 24,
        },
    },
)


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    setup_logging()
