from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime
import uuid
from app.domain.notifications.models import NotificationType, NotificationPriority


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    is_read: bool
    read_at: Optional[datetime] = None
    appointment_id: Optional[uuid.UUID] = None
    staff_schedule_id: Optional[uuid.UUID] = None
    data: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
