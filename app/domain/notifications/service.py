"""
Notifications Service Layer

Fan-out of scheduling events to in-app, email and SMS channels. Channel
failures are logged and reported back; they never abort the operation that
triggered the notification.
"""

from typing import Optional, List, Dict, Any, Tuple
import logging
import uuid

from app.core.exceptions import NotFoundError
from app.domain.notifications.models import (
    Notification, NotificationType, NotificationPriority
)
from app.domain.notifications.repository import NotificationRepository
from app.infrastructure import notifications as channels

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for notification fan-out and the notification inbox"""

    def __init__(self, db):
        self.db = db
        self.notification_repo = NotificationRepository(db)

    def notify(
        self,
        user_id: Optional[uuid.UUID],
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        appointment_id: Optional[uuid.UUID] = None,
        staff_schedule_id: Optional[uuid.UUID] = None,
        data: Optional[Dict[str, Any]] = None,
        in_app: bool = True,
        email: bool = False,
        sms: bool = False,
        email_address: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Dict[str, Any]:
        """Deliver one event on every enabled channel"""
        result = {"in_app": False, "email_queued": False, "sms_queued": False, "errors": []}

        if in_app and user_id:
            try:
                self.notification_repo.create({
                    "user_id": user_id,
                    "type": type,
                    "title": title,
                    "message": message,
                    "priority": priority,
                    "appointment_id": appointment_id,
                    "staff_schedule_id": staff_schedule_id,
                    "data": data or {},
                })
                result["in_app"] = True
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to store in-app notification for {user_id}: {e}")
                result["errors"].append({"channel": "in_app", "error": str(e)})

        for channel, enabled, recipient, flag in (
            ("email", email, email_address, "email_queued"),
            ("sms", sms, phone, "sms_queued"),
        ):
            if not enabled or not recipient:
                continue
            try:
                channels.enqueue_delivery(recipient, title, message, channel)
                result[flag] = True
            except Exception as e:
                logger.error(f"Failed to queue {channel} notification to {recipient}: {e}")
                result["errors"].append({"channel": channel, "error": str(e)})

        logger.info(
            f"Notification {type.value} fan-out: in_app={result['in_app']} "
            f"email={result['email_queued']} sms={result['sms_queued']}"
        )
        return result

    def notify_patient(
        self,
        patient,
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        appointment_id: Optional[uuid.UUID] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Notify a patient according to their channel preferences"""
        if not patient.notifications_enabled:
            return {"in_app": False, "email_queued": False, "sms_queued": False, "errors": []}

        return self.notify(
            user_id=patient.user_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            appointment_id=appointment_id,
            data=data,
            in_app=bool(patient.notify_in_app),
            email=bool(patient.notify_email),
            sms=bool(patient.notify_sms),
            email_address=patient.email,
            phone=patient.phone
        )

    def notify_user(
        self,
        user,
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        email: bool = True,
        sms: bool = False,
        in_app: bool = True,
        **references
    ) -> Dict[str, Any]:
        """Notify a staff member or dentist"""
        return self.notify(
            user_id=user.id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            in_app=in_app,
            email=email,
            sms=sms,
            email_address=user.email,
            phone=user.phone,
            **references
        )

    # Inbox

    def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Notification], int]:
        notifications = self.notification_repo.get_for_user(user_id, unread_only, skip, limit)
        return notifications, self.notification_repo.count_unread(user_id)

    def mark_as_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Notification:
        notification = self.notification_repo.get_by_id(notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification not found", error_code="NOTIFICATION_NOT_FOUND")
        return self.notification_repo.mark_read(notification)

    def mark_all_as_read(self, user_id: uuid.UUID) -> int:
        return self.notification_repo.mark_all_read(user_id)
