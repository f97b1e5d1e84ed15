# Appointments domain module
from app.domain.appointments.models import (
    ACTIVE_STATUSES,
    STATUS_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    DoctorSchedule,
    DoctorLeave,
    LeaveStatus,
    LeaveType,
    ServiceType,
)

__all__ = [
    "ACTIVE_STATUSES",
    "STATUS_TRANSITIONS",
    "Appointment",
    "AppointmentStatus",
    "DoctorSchedule",
    "DoctorLeave",
    "LeaveStatus",
    "LeaveType",
    "ServiceType",
]
