# telecare/tasks/notification_tasks.py
from celery import shared_task

from telecare.core.database import SessionLocal
from telecare.models.notification import Notification
from telecare.services import email_service
from telecare.services import sms_service
from telecare.tasks.celery_app import celery_app  # noqa: F401
from telecare.utils.helpers import utcnow
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def deliver_notification(self, notification_id: int):
    """
    Push a stored notification out over email and SMS.
    - Each channel is attempted once and flagged on success.
    - A failing channel is logged and does not block the other.
    """
    db = SessionLocal()
    try:
        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if not notification:
            logger.error(f"Notification {notification_id} not found for delivery.")
            return
        user = notification.user

        if user.email and not notification.is_email_sent:
            try:
                email_service.send_notification_email(
                    to_email=user.email,
                    recipient_name=user.name,
                    title=notification.title,
                    message=notification.body,
                )
                notification.is_email_sent = True
                notification.email_sent_at = utcnow()
            except Exception as e:
                logger.error(f"Failed to send email to {user.email}: {e}")

        if user.phone and not notification.is_sms_sent:
            if sms_service.send_sms_message(to_number=user.phone, body=f"{notification.title}: {notification.body}"):
                notification.is_sms_sent = True
                notification.sms_sent_at = utcnow()

        db.commit()
        return {
            "notification_id": notification.id,
            "email": bool(notification.is_email_sent),
            "sms": bool(notification.is_sms_sent),
        }
    except Exception as e:
        logger.error(f"Error in deliver_notification: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()
