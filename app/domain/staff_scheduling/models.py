"""
Staff Scheduling Domain Models

Shift assignments of dentists and support staff at a clinic, with optional
daily/weekly/monthly recurrence.
"""

from sqlalchemy import (
    Column, String, Date, Boolean, DateTime, ForeignKey,
    Integer, Time, Text, Enum, JSON, CheckConstraint, Uuid
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.domain.scheduling import RecurrenceRule
import uuid
import enum


class ShiftType(str, enum.Enum):
    """Shift classification"""
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"
    NIGHT = "NIGHT"
    FULL_DAY = "FULL_DAY"


class StaffScheduleStatus(str, enum.Enum):
    """Shift status"""
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class RecurrenceFrequency(str, enum.Enum):
    """How often a recurring shift repeats"""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class StaffSchedule(Base):
    """Shift of a staff member at a clinic"""
    __tablename__ = "staff_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    staff_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    clinic_id = Column(Uuid, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    shift_type = Column(Enum(ShiftType), nullable=False, default=ShiftType.MORNING)
    status = Column(Enum(StaffScheduleStatus), nullable=False, default=StaffScheduleStatus.SCHEDULED)

    # Recurrence
    is_recurring = Column(Boolean, default=False)
    recurrence_frequency = Column(Enum(RecurrenceFrequency))
    recurrence_days_of_week = Column(JSON)
    recurrence_end_date = Column(Date)

    # Notification settings
    notify_email = Column(Boolean, default=True)
    notify_sms = Column(Boolean, default=False)
    notify_in_app = Column(Boolean, default=True)
    reminder_minutes = Column(Integer, default=60)

    notes = Column(Text)
    created_by = Column(Uuid, ForeignKey("users.id"))
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    staff = relationship("User", foreign_keys=[staff_id])
    clinic = relationship("Clinic", foreign_keys=[clinic_id])
    creator = relationship("User", foreign_keys=[created_by])

    __table_args__ = (
        CheckConstraint('start_time < end_time', name='check_shift_time_order'),
        CheckConstraint('reminder_minutes >= 0 AND reminder_minutes <= 1440', name='check_reminder_minutes'),
    )

    def recurrence_rule(self) -> RecurrenceRule:
        frequency = self.recurrence_frequency.value if self.recurrence_frequency else None
        return RecurrenceRule(
            anchor=self.date,
            is_recurring=bool(self.is_recurring),
            frequency=frequency,
            days_of_week=tuple(self.recurrence_days_of_week or ()),
            end_date=self.recurrence_end_date,
        )

    @property
    def duration_hours(self) -> float:
        minutes = (self.end_time.hour * 60 + self.end_time.minute) - (self.start_time.hour * 60 + self.start_time.minute)
        return round(minutes / 60, 2)
