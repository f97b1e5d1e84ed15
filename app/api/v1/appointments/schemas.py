"""
Appointments API Schemas

Pydantic models for appointment-related API requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date, time
import uuid
from app.domain.appointments.models import AppointmentStatus, ServiceType


def _validate_reminder_hours(v):
    if v is not None and any(h < 1 or h > 168 for h in v):
        raise ValueError('Reminder hours must be between 1 and 168')
    return v


# ==================== Appointment Schemas ====================

class AppointmentBase(BaseModel):
    """Base schema for appointment"""
    service_type: ServiceType = ServiceType.CHECKUP
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentCreate(AppointmentBase):
    """Schema for creating appointment"""
    patient_id: uuid.UUID
    clinic_id: uuid.UUID
    dentist_id: Optional[uuid.UUID] = None
    appointment_date: date
    start_time: time
    duration_minutes: Optional[int] = Field(None, ge=15, le=480)
    is_emergency: bool = False
    reminder_hours: Optional[List[int]] = None

    @field_validator('reminder_hours')
    @classmethod
    def validate_reminders(cls, v):
        return _validate_reminder_hours(v)


class AppointmentUpdate(BaseModel):
    """Schema for updating appointment"""
    service_type: Optional[ServiceType] = None
    notes: Optional[str] = Field(None, max_length=2000)
    duration_minutes: Optional[int] = Field(None, ge=15, le=480)
    reminder_hours: Optional[List[int]] = None

    @field_validator('service_type', 'duration_minutes')
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    @field_validator('reminder_hours')
    @classmethod
    def validate_reminders(cls, v):
        return _validate_reminder_hours(v)


class AppointmentReschedule(BaseModel):
    """Schema for rescheduling appointment"""
    new_date: date
    new_time: time
    reason: Optional[str] = Field(None, max_length=500)
    dentist_id: Optional[uuid.UUID] = None
    duration_minutes: Optional[int] = Field(None, ge=15, le=480)


class AppointmentCancel(BaseModel):
    """Schema for cancelling appointment"""
    reason: str = Field(..., min_length=1, max_length=500)


class AppointmentComplete(BaseModel):
    """Schema for completing appointment"""
    treatment_provided: Optional[str] = Field(None, max_length=2000)
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('follow_up_date')
    @classmethod
    def validate_follow_up(cls, v, info):
        if v and not info.data.get('follow_up_required'):
            raise ValueError('Follow-up date given without follow-up required')
        return v


class AutoBookRequest(BaseModel):
    """Book the first free slot of the day"""
    patient_id: uuid.UUID
    clinic_id: uuid.UUID
    appointment_date: date
    duration_minutes: Optional[int] = Field(None, ge=15, le=480)
    service_type: ServiceType = ServiceType.CHECKUP
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentResponse(AppointmentBase):
    """Schema for appointment response"""
    id: uuid.UUID
    appointment_number: str
    patient_id: uuid.UUID
    dentist_id: Optional[uuid.UUID] = None
    clinic_id: uuid.UUID
    appointment_date: date
    start_time: time
    duration_minutes: int
    status: AppointmentStatus
    is_emergency: bool
    treatment_provided: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    reminder_hours: Optional[List[int]] = None
    reminder_sent: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list"""
    items: List[AppointmentResponse]
    total: int
    page: int
    limit: int
    pages: int


class AppointmentStatistics(BaseModel):
    total: int
    by_status: Dict[str, int]
    completion_rate: float
    cancellation_rate: float
    no_show_rate: float


# ==================== Availability Schemas ====================

class AvailableDentist(BaseModel):
    id: uuid.UUID
    name: str
    specialization: Optional[str] = None


class AvailableSlot(BaseModel):
    """Schema for available time slot"""
    time: str
    end_time: str
    is_peak: bool
    available_dentists: Optional[List[AvailableDentist]] = None


class AvailableSlotsResponse(BaseModel):
    """Schema for available slots response"""
    clinic_id: uuid.UUID
    date: date
    duration_minutes: int
    dentist_id: Optional[uuid.UUID] = None
    slots: List[AvailableSlot]
    message: Optional[str] = None


class NextSlot(BaseModel):
    time: str
    end_time: str


class NextSlotResponse(BaseModel):
    clinic_id: uuid.UUID
    date: date
    duration_minutes: int
    next_slot: Optional[NextSlot] = None
    last_booking_end: Optional[str] = None
    message: Optional[str] = None


class ConflictInfo(BaseModel):
    id: uuid.UUID
    dentist_id: Optional[uuid.UUID] = None
    patient_name: Optional[str] = None
    date: date
    time: str
    end_time: str
    duration: int
    status: AppointmentStatus


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicts: List[ConflictInfo]


class BookedSlot(BaseModel):
    appointment_id: uuid.UUID
    dentist_id: Optional[uuid.UUID] = None
    start_time: str
    end_time: str
    duration_minutes: int
    status: AppointmentStatus


class ReminderRunResponse(BaseModel):
    date: date
    sent: int
