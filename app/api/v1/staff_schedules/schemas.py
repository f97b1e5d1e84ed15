"""
Staff Schedules API Schemas
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
import datetime as dt
import uuid
from app.domain.staff_scheduling.models import (
    ShiftType, StaffScheduleStatus, RecurrenceFrequency
)


class StaffScheduleBase(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    shift_type: ShiftType = ShiftType.MORNING
    is_recurring: bool = False
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_days_of_week: Optional[List[int]] = None
    recurrence_end_date: Optional[dt.date] = None
    notify_email: bool = True
    notify_sms: bool = False
    notify_in_app: bool = True
    reminder_minutes: int = Field(60, ge=0, le=1440)
    notes: Optional[str] = Field(None, max_length=1000)


class StaffScheduleCreate(StaffScheduleBase):
    """Schema for assigning a shift"""
    staff_id: uuid.UUID
    clinic_id: uuid.UUID

    @field_validator('end_time')
    @classmethod
    def validate_time_order(cls, v, info):
        if 'start_time' in info.data and v <= info.data['start_time']:
            raise ValueError('End time must be after start time')
        return v

    @field_validator('recurrence_days_of_week')
    @classmethod
    def validate_days(cls, v):
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError('Days of week must be between 0 (Monday) and 6 (Sunday)')
        return sorted(set(v)) if v else v


class StaffScheduleUpdate(BaseModel):
    """Schema for updating a shift"""
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    shift_type: Optional[ShiftType] = None
    status: Optional[StaffScheduleStatus] = None
    is_recurring: Optional[bool] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_days_of_week: Optional[List[int]] = None
    recurrence_end_date: Optional[dt.date] = None
    notify_email: Optional[bool] = None
    notify_sms: Optional[bool] = None
    notify_in_app: Optional[bool] = None
    reminder_minutes: Optional[int] = Field(None, ge=0, le=1440)
    notes: Optional[str] = Field(None, max_length=1000)


class StaffScheduleResponse(StaffScheduleBase):
    id: uuid.UUID
    staff_id: uuid.UUID
    clinic_id: uuid.UUID
    status: StaffScheduleStatus
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class StaffScheduleListResponse(BaseModel):
    items: List[StaffScheduleResponse]
    total: int
    page: int
    limit: int
    pages: int


class ShiftSummary(BaseModel):
    id: uuid.UUID
    start_time: str
    end_time: str
    shift_type: ShiftType
    status: StaffScheduleStatus


class StaffAvailability(BaseModel):
    user_id: uuid.UUID
    name: str
    role: str
    is_scheduled: bool
    shifts: List[ShiftSummary]


class AvailabilityResponse(BaseModel):
    clinic_id: uuid.UUID
    date: dt.date
    scheduled_count: int
    available_count: int
    staff: List[StaffAvailability]


class StatusBucket(BaseModel):
    count: int
    hours: float


class StaffUtilization(BaseModel):
    staff_id: uuid.UUID
    name: Optional[str] = None
    shifts: int
    hours: float


class AnalyticsResponse(BaseModel):
    clinic_id: uuid.UUID
    start_date: dt.date
    end_date: dt.date
    total_shifts: int
    total_hours: float
    by_status: Dict[str, StatusBucket]
    shift_type_distribution: Dict[str, int]
    staff_utilization: List[StaffUtilization]
