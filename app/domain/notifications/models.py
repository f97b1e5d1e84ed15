from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Enum, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
import uuid
import enum


class NotificationType(str, enum.Enum):
    """Kind of event a notification reports"""
    APPOINTMENT_CONFIRMATION = "appointment_confirmation"
    URGENT_APPOINTMENT = "urgent_appointment"
    APPOINTMENT_REMINDER = "appointment_reminder"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_RESCHEDULED = "appointment_rescheduled"
    APPOINTMENT_STATUS = "appointment_status"
    SCHEDULE_ASSIGNMENT = "schedule_assignment"
    SCHEDULE_CHANGE = "schedule_change"
    SCHEDULE_CANCELLED = "schedule_cancelled"
    SCHEDULE_CONFLICT = "schedule_conflict"


class NotificationPriority(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Notification(Base):
    """In-app notification for a user"""
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(Enum(NotificationPriority), default=NotificationPriority.NORMAL)

    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime)

    appointment_id = Column(Uuid, ForeignKey("appointments.id", ondelete="SET NULL"))
    staff_schedule_id = Column(Uuid, ForeignKey("staff_schedules.id", ondelete="SET NULL"))
    data = Column(JSON)

    created_at = Column(DateTime, default=func.now())

    user = relationship("User", foreign_keys=[user_id])
