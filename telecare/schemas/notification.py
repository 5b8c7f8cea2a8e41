from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict

from telecare.schemas.common import Pagination


class NotificationBase(BaseModel):
    id: int
    user_id: int
    notification_type: str
    title: str
    body: str
    appointment_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListItem(NotificationBase):
    read_at: Optional[datetime] = None
    scheduled_for: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    items: List[NotificationListItem]
    pagination: Pagination
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int
