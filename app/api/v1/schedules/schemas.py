"""
Schedules API Schemas

Pydantic models for dentist working schedules and leave requests.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date, time
import uuid
from app.domain.appointments.models import LeaveType, LeaveStatus


# ==================== Doctor Schedule Schemas ====================

class DoctorScheduleBase(BaseModel):
    """Base schema for dentist schedule"""
    day_of_week: int = Field(..., ge=0, le=6, description="Day of week (0=Monday, 6=Sunday)")
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None


class DoctorScheduleCreate(DoctorScheduleBase):
    """Schema for creating dentist schedule"""
    doctor_id: uuid.UUID
    clinic_id: uuid.UUID
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('end_time')
    @classmethod
    def validate_time_order(cls, v, info):
        if 'start_time' in info.data and v <= info.data['start_time']:
            raise ValueError('End time must be after start time')
        return v


class DoctorScheduleBulkCreate(BaseModel):
    """Several schedules created in one request"""
    schedules: List[DoctorScheduleCreate] = Field(..., min_length=1, max_length=50)


class DoctorScheduleUpdate(BaseModel):
    """Schema for updating dentist schedule"""
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class DoctorScheduleResponse(DoctorScheduleBase):
    """Schema for dentist schedule response"""
    id: uuid.UUID
    doctor_id: uuid.UUID
    clinic_id: uuid.UUID
    effective_from: date
    effective_until: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BulkScheduleError(BaseModel):
    index: int
    message: str
    error_code: Optional[str] = None


class DoctorScheduleBulkResponse(BaseModel):
    created: List[DoctorScheduleResponse]
    errors: List[BulkScheduleError]


class AvailableDoctor(BaseModel):
    """Dentist working at a clinic on the requested day"""
    doctor_id: uuid.UUID
    doctor_name: str
    specialization: Optional[str] = None
    schedules: List[DoctorScheduleResponse]


# ==================== Doctor Leave Schemas ====================

class DoctorLeaveBase(BaseModel):
    """Base schema for dentist leave"""
    leave_type: LeaveType
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(None, max_length=1000)


class DoctorLeaveCreate(DoctorLeaveBase):
    """Schema for creating leave request"""
    doctor_id: uuid.UUID

    @field_validator('end_date')
    @classmethod
    def validate_dates(cls, v, info):
        if 'start_date' in info.data and v < info.data['start_date']:
            raise ValueError('End date must be on or after start date')
        return v


class DoctorLeaveApproval(BaseModel):
    """Schema for leave approval"""
    approved: bool = True
    rejection_reason: Optional[str] = None


class DoctorLeaveResponse(DoctorLeaveBase):
    """Schema for leave response"""
    id: uuid.UUID
    doctor_id: uuid.UUID
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
