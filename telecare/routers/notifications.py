from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_user
from telecare.schemas.notification import (
    NotificationListItem,
    NotificationListResponse,
    UnreadCountResponse,
)
from telecare.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService.list_for_user(
        db, current_user["sub"], unread_only=unread_only, page=page, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"unread_count": NotificationService.unread_count(db, current_user["sub"])}


@router.put("/read-all")
async def mark_all_read(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = NotificationService.mark_all_read(db, current_user["sub"])
    return {"success": True, "message": f"{updated} notifications marked as read"}


@router.put("/{notification_id}/read", response_model=NotificationListItem)
async def mark_read(
    notification_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService.mark_read(db, current_user["sub"], notification_id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NotificationService.delete(db, current_user["sub"], notification_id)
    return {"success": True, "message": "Notification deleted"}
