from fastapi import APIRouter, Depends, Query
import uuid

from app.infrastructure.database import get_db
from app.core.permissions import require_permissions, Permissions
from app.domain.notifications.service import NotificationService
from app.api.v1.notifications.schemas import (
    NotificationResponse, NotificationListResponse, MarkAllReadResponse
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.NOTIFICATIONS_READ]))
):
    """Current user's notifications, newest first"""
    service = NotificationService(db)
    notifications, unread = service.get_user_notifications(
        uuid.UUID(current_user["sub"]), unread_only, skip, limit
    )
    return NotificationListResponse(items=notifications, unread_count=unread)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.NOTIFICATIONS_READ]))
):
    """Mark every notification of the current user as read"""
    service = NotificationService(db)
    return MarkAllReadResponse(updated=service.mark_all_as_read(uuid.UUID(current_user["sub"])))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.NOTIFICATIONS_READ]))
):
    """Mark one notification as read"""
    service = NotificationService(db)
    return service.mark_as_read(notification_id, uuid.UUID(current_user["sub"]))
