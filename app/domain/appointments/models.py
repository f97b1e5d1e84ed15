"""
Appointments Domain Models

Implements the database models for:
- Dental appointments
- Dentist working schedules per clinic
- Dentist leaves/unavailability
"""

from sqlalchemy import (
    Column, String, Date, Boolean, DateTime, ForeignKey,
    Integer, Time, Text, Enum, JSON, CheckConstraint, Uuid
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import datetime, timedelta
from app.infrastructure.database import Base
import uuid
import enum


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    URGENT = "URGENT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Statuses whose interval blocks the dentist's calendar
ACTIVE_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.URGENT,
    AppointmentStatus.IN_PROGRESS,
)

STATUS_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.URGENT: {
        AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


class ServiceType(str, enum.Enum):
    """Dental service being booked"""
    CHECKUP = "CHECKUP"
    CLEANING = "CLEANING"
    FILLING = "FILLING"
    EXTRACTION = "EXTRACTION"
    ROOT_CANAL = "ROOT_CANAL"
    CROWN = "CROWN"
    ORTHODONTICS = "ORTHODONTICS"
    WHITENING = "WHITENING"
    CONSULTATION = "CONSULTATION"
    EMERGENCY = "EMERGENCY"
    OTHER = "OTHER"


class LeaveType(str, enum.Enum):
    """Type of dentist leave"""
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    EMERGENCY = "EMERGENCY"
    CONFERENCE = "CONFERENCE"
    TRAINING = "TRAINING"
    PERSONAL = "PERSONAL"
    OTHER = "OTHER"


class LeaveStatus(str, enum.Enum):
    """Status of leave request"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class DoctorSchedule(Base):
    """Weekly working window of a dentist at one clinic"""
    __tablename__ = "doctor_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    clinic_id = Column(Uuid, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)

    # Day of week (0=Monday, 6=Sunday)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    break_start = Column(Time)
    break_end = Column(Time)

    # Validity period
    effective_from = Column(Date, nullable=False)
    effective_until = Column(Date)

    is_active = Column(Boolean, default=True)
    notes = Column(Text)
    created_by = Column(Uuid, ForeignKey("users.id"))
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    clinic = relationship("Clinic", foreign_keys=[clinic_id])

    __table_args__ = (
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week'),
        CheckConstraint('start_time < end_time', name='check_time_order'),
    )

    def is_effective_on(self, target_date) -> bool:
        if self.effective_from and target_date < self.effective_from:
            return False
        if self.effective_until and target_date > self.effective_until:
            return False
        return True


class DoctorLeave(Base):
    """Dentist leave/unavailability model"""
    __tablename__ = "doctor_leaves"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    leave_type = Column(Enum(LeaveType), nullable=False, default=LeaveType.ANNUAL)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time)  # Optional: for partial day leaves
    end_time = Column(Time)    # Optional: for partial day leaves

    reason = Column(Text)
    status = Column(Enum(LeaveStatus), default=LeaveStatus.PENDING)

    approved_by = Column(Uuid, ForeignKey("users.id"))
    approved_at = Column(DateTime)
    rejection_reason = Column(Text)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    approver = relationship("User", foreign_keys=[approved_by])

    __table_args__ = (
        CheckConstraint('start_date <= end_date', name='check_leave_dates'),
    )

    @property
    def is_partial_day(self) -> bool:
        return self.start_time is not None and self.end_time is not None


class Appointment(Base):
    """Appointment of a patient with a dentist at a clinic"""
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_number = Column(String(50), unique=True, nullable=False, index=True)

    patient_id = Column(Uuid, ForeignKey("patients.id"), nullable=False, index=True)
    # Null while no dentist could be auto-assigned
    dentist_id = Column(Uuid, ForeignKey("users.id"), index=True)
    clinic_id = Column(Uuid, ForeignKey("clinics.id"), nullable=False, index=True)

    # Scheduling
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)

    service_type = Column(Enum(ServiceType), nullable=False, default=ServiceType.CHECKUP)
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    is_emergency = Column(Boolean, default=False)

    notes = Column(Text)
    treatment_provided = Column(Text)
    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date)

    # Reminders
    reminder_hours = Column(JSON)
    reminder_sent = Column(Boolean, default=False)
    reminder_sent_at = Column(DateTime)
    reminder_offsets_sent = Column(JSON, default=list)

    # Lifecycle
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(Uuid, ForeignKey("users.id"))
    cancelled_reason = Column(Text)

    # Audit
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    created_by = Column(Uuid, ForeignKey("users.id"))

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    dentist = relationship("User", foreign_keys=[dentist_id])
    clinic = relationship("Clinic", foreign_keys=[clinic_id])
    cancelled_user = relationship("User", foreign_keys=[cancelled_by])
    creator = relationship("User", foreign_keys=[created_by])

    __table_args__ = (
        CheckConstraint('duration_minutes >= 15 AND duration_minutes <= 480', name='check_duration_range'),
    )

    def get_datetime(self) -> datetime:
        """Get appointment start datetime"""
        return datetime.combine(self.appointment_date, self.start_time)

    def get_end_datetime(self) -> datetime:
        return self.get_datetime() + timedelta(minutes=self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def can_transition_to(self, target: AppointmentStatus) -> bool:
        return target in STATUS_TRANSITIONS.get(self.status, set())
