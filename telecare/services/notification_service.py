import logging
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from telecare.models.notification import Notification
from telecare.utils.errors import NotificationNotFoundError
from telecare.utils.helpers import utcnow, paginate

logger = logging.getLogger(__name__)


class NotificationService:
    """In-app notifications plus hand-off to the delivery task."""

    @staticmethod
    def create(
        db: Session,
        user_id: int,
        notification_type: str,
        title: str,
        body: str,
        appointment_id: Optional[int] = None,
        deliver: bool = True,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            body=body,
            appointment_id=appointment_id,
            is_read=False,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)

        if deliver:
            NotificationService.queue_delivery(notification.id)
        return notification

    @staticmethod
    def queue_delivery(notification_id: int) -> None:
        from telecare.tasks.notification_tasks import deliver_notification

        try:
            deliver_notification.delay(notification_id)
        except Exception as e:
            # the in-app record is already stored; email/SMS is best effort
            logger.error(f"Could not queue delivery for notification {notification_id}: {e}")

    @staticmethod
    def _get_owned(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise NotificationNotFoundError()
        return notification

    @staticmethod
    def unread_count(db: Session, user_id: int) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
            .count()
        )

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: int,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        q = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            q = q.filter(Notification.is_read == False)  # noqa: E712

        total = q.count()
        items = (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "items": items,
            "pagination": paginate(total, page, limit),
            "unread_count": NotificationService.unread_count(db, user_id),
        }

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = NotificationService._get_owned(db, user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            db.commit()
            db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
            .update({"is_read": True, "read_at": utcnow()}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def delete(db: Session, user_id: int, notification_id: int) -> None:
        notification = NotificationService._get_owned(db, user_id, notification_id)
        db.delete(notification)
        db.commit()
