# Staff scheduling domain module
from app.domain.staff_scheduling.models import (
    RecurrenceFrequency,
    ShiftType,
    StaffSchedule,
    StaffScheduleStatus,
)

__all__ = [
    "RecurrenceFrequency",
    "ShiftType",
    "StaffSchedule",
    "StaffScheduleStatus",
]
