"""
Clinics API Schemas

Pydantic models for clinic setup, operating hours and staff assignment.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, time
import uuid
from app.domain.auth.models import UserRole


class OperatingHoursBase(BaseModel):
    """Opening window for one weekday"""
    day_of_week: int = Field(..., ge=0, le=6, description="Day of week (0=Monday, 6=Sunday)")
    open_time: time = time(9, 0)
    close_time: time = time(17, 0)
    is_closed: bool = False

    @field_validator('close_time')
    @classmethod
    def validate_time_order(cls, v, info):
        if not info.data.get('is_closed', False) and 'open_time' in info.data and v <= info.data['open_time']:
            raise ValueError('Closing time must be after opening time')
        return v


class OperatingHoursResponse(OperatingHoursBase):
    id: uuid.UUID

    class Config:
        from_attributes = True


class ClinicCreate(BaseModel):
    """Schema for creating a clinic"""
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=2, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    timezone: str = Field("UTC", max_length=50)
    operating_hours: List[OperatingHoursBase] = []

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        if not v.replace('-', '').isalnum():
            raise ValueError('Clinic code must contain only letters, digits and dashes')
        return v.upper()


class OperatingHoursUpdate(BaseModel):
    """Replacement set of weekly operating hours"""
    operating_hours: List[OperatingHoursBase]


class StaffMember(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole
    specialization: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class ClinicResponse(BaseModel):
    """Schema for clinic response"""
    id: uuid.UUID
    name: str
    code: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: str
    is_active: bool
    operating_hours: List[OperatingHoursResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ClinicDetailResponse(ClinicResponse):
    staff: List[StaffMember] = []
