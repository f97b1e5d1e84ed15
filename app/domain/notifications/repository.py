"""
Notifications Repository Layer
"""

from typing import Optional, List
from datetime import datetime
import uuid

from app.domain.notifications.models import Notification


class NotificationRepository:
    """Repository for in-app notification data access"""

    def __init__(self, db):
        self.db = db

    def create(self, notification_data: dict) -> Notification:
        """Create a new notification"""
        notification = Notification(**notification_data)
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_by_id(self, notification_id: uuid.UUID) -> Optional[Notification]:
        return self.db.query(Notification).filter(
            Notification.id == notification_id
        ).first()

    def get_for_user(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 50
    ) -> List[Notification]:
        """Get a user's notifications, newest first"""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

    def count_unread(self, user_id: uuid.UUID) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).count()

    def mark_read(self, notification: Notification) -> Notification:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: uuid.UUID) -> int:
        result = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).update({"is_read": True, "read_at": datetime.utcnow()})
        self.db.commit()
        return result
