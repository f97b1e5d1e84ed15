"""
Appointments API Routes

API endpoints for appointment booking, availability and status changes.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional
from datetime import date, time, timedelta
import uuid
import math

from app.core import clock
from app.infrastructure.database import get_db
from app.core.clinic_context import resolve_clinic_id
from app.core.permissions import require_permissions, own_patient_scope, Permissions
from app.core.exceptions import AuthorizationError
from app.domain.appointments.service import AppointmentService
from app.domain.appointments.models import AppointmentStatus
from app.api.v1.appointments.schemas import (
    AppointmentCreate, AppointmentUpdate, AppointmentReschedule,
    AppointmentCancel, AppointmentComplete, AutoBookRequest,
    AppointmentResponse, AppointmentListResponse, AppointmentStatistics,
    AvailableSlotsResponse, NextSlotResponse, ConflictCheckResponse,
    BookedSlot, ReminderRunResponse
)

router = APIRouter()

READ_PERMISSIONS = [Permissions.SYSTEM_ADMIN, Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_READ_OWN]
BOOKING_PERMISSIONS = [Permissions.SYSTEM_ADMIN, Permissions.APPOINTMENTS_CREATE]
UPDATE_PERMISSIONS = [Permissions.SYSTEM_ADMIN, Permissions.APPOINTMENTS_UPDATE]


def _check_patient_scope(current_user, patient_id: uuid.UUID) -> None:
    scope = own_patient_scope(current_user)
    if scope is not None and scope != patient_id:
        raise AuthorizationError(
            "Patients can only book their own appointments",
            error_code="PATIENT_SCOPE_VIOLATION"
        )


# ==================== Booking Endpoints ====================

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions(BOOKING_PERMISSIONS))
):
    """Book a new appointment"""
    _check_patient_scope(current_user, appointment_data.patient_id)

    service = AppointmentService(db)
    return service.create_appointment(
        patient_id=appointment_data.patient_id,
        clinic_id=appointment_data.clinic_id,
        appointment_date=appointment_data.appointment_date,
        start_time=appointment_data.start_time,
        duration_minutes=appointment_data.duration_minutes,
        dentist_id=appointment_data.dentist_id,
        service_type=appointment_data.service_type,
        is_emergency=appointment_data.is_emergency,
        notes=appointment_data.notes,
        reminder_hours=appointment_data.reminder_hours,
        created_by=uuid.UUID(current_user["sub"])
    )


@router.post("/auto-book", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def auto_book_appointment(
    booking_data: AutoBookRequest,
    db = Depends(get_db),
    current_user = Depends(require_permissions(BOOKING_PERMISSIONS))
):
    """Book the earliest free slot at a clinic on a date"""
    _check_patient_scope(current_user, booking_data.patient_id)

    service = AppointmentService(db)
    return service.auto_book_first_available(
        patient_id=booking_data.patient_id,
        clinic_id=booking_data.clinic_id,
        target_date=booking_data.appointment_date,
        duration_minutes=booking_data.duration_minutes,
        service_type=booking_data.service_type,
        notes=booking_data.notes,
        created_by=uuid.UUID(current_user["sub"])
    )


@router.post("/reminders/send", response_model=ReminderRunResponse)
def send_reminders(
    target_date: Optional[date] = Query(None, alias="date"),
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Send reminders for a day's appointments (defaults to tomorrow)"""
    target_date = target_date or clock.today() + timedelta(days=1)
    service = AppointmentService(db)
    return ReminderRunResponse(date=target_date, sent=service.send_daily_reminders(target_date))


# ==================== Query Endpoints ====================

@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    patient_id: Optional[uuid.UUID] = None,
    dentist_id: Optional[uuid.UUID] = None,
    clinic_id: Optional[uuid.UUID] = None,
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    is_emergency: Optional[bool] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(READ_PERMISSIONS))
):
    """Get appointments with filtering and pagination"""
    patient_id = own_patient_scope(current_user) or patient_id

    service = AppointmentService(db)
    skip = (page - 1) * limit
    appointments, total = service.get_appointments(
        skip=skip,
        limit=limit,
        patient_id=patient_id,
        dentist_id=dentist_id,
        clinic_id=resolve_clinic_id(clinic_id),
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        is_emergency=is_emergency
    )

    return AppointmentListResponse(
        items=appointments,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 0
    )


@router.get("/today", response_model=List[AppointmentResponse])
def get_today_appointments(
    clinic_id: Optional[uuid.UUID] = None,
    dentist_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(READ_PERMISSIONS))
):
    """Get today's appointments"""
    service = AppointmentService(db)
    return service.get_today_appointments(
        clinic_id=resolve_clinic_id(clinic_id),
        dentist_id=dentist_id,
        patient_id=own_patient_scope(current_user)
    )


@router.get("/upcoming", response_model=List[AppointmentResponse])
def get_upcoming_appointments(
    days: int = Query(7, ge=1, le=90),
    clinic_id: Optional[uuid.UUID] = None,
    dentist_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(READ_PERMISSIONS))
):
    """Get active appointments over the next days"""
    service = AppointmentService(db)
    return service.get_upcoming_appointments(
        days=days,
        clinic_id=resolve_clinic_id(clinic_id),
        dentist_id=dentist_id,
        patient_id=own_patient_scope(current_user)
    )


@router.get("/date-range", response_model=List[AppointmentResponse])
def get_appointments_by_date_range(
    start_date: date,
    end_date: date,
    clinic_id: Optional[uuid.UUID] = None,
    dentist_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(READ_PERMISSIONS))
):
    """Get appointments in a date range"""
    service = AppointmentService(db)
    return service.get_appointments_by_date_range(
        start_date,
        end_date,
        clinic_id=resolve_clinic_id(clinic_id),
        dentist_id=dentist_id,
        patient_id=own_patient_scope(current_user)
    )


@router.get("/statistics", response_model=AppointmentStatistics)
def get_appointment_statistics(
    clinic_id: Optional[uuid.UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.APPOINTMENTS_READ]))
):
    """Status breakdown and completion rates"""
    service = AppointmentService(db)
    return service.get_statistics(resolve_clinic_id(clinic_id), date_from, date_to)


# ==================== Availability Endpoints ====================

@router.get("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    clinic_id: uuid.UUID,
    target_date: date = Query(..., alias="date"),
    duration_minutes: Optional[int] = Query(None, ge=15, le=480),
    dentist_id: Optional[uuid.UUID] = None,
    db = Depends(get_db)
):
    """Free appointment slots for a dentist or the whole clinic (public)"""
    service = AppointmentService(db)
    return service.get_available_slots(clinic_id, target_date, duration_minutes, dentist_id)


@router.get("/next-slot", response_model=NextSlotResponse)
def get_next_slot(
    clinic_id: uuid.UUID,
    target_date: date = Query(..., alias="date"),
    duration_minutes: Optional[int] = Query(None, ge=15, le=480),
    db = Depends(get_db),
    current_user = Depends(require_permissions(BOOKING_PERMISSIONS + [Permissions.APPOINTMENTS_READ]))
):
    """Earliest start after the clinic's last booking of the day"""
    service = AppointmentService(db)
    return service.get_next_slot_after_last_booking(clinic_id, target_date, duration_minutes)


@router.get("/booked-slots", response_model=List[BookedSlot])
def get_booked_slots(
    clinic_id: uuid.UUID,
    target_date: date = Query(..., alias="date"),
    dentist_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(BOOKING_PERMISSIONS + [Permissions.APPOINTMENTS_READ]))
):
    """Intervals held by active appointments"""
    service = AppointmentService(db)
    return service.get_booked_slots(clinic_id, target_date, dentist_id)


@router.get("/check-conflict", response_model=ConflictCheckResponse)
def check_conflict(
    clinic_id: uuid.UUID,
    target_date: date = Query(..., alias="date"),
    start_time: time = Query(..., alias="time"),
    duration_minutes: Optional[int] = Query(None, ge=15, le=480),
    dentist_id: Optional[uuid.UUID] = None,
    exclude_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions(BOOKING_PERMISSIONS + [Permissions.APPOINTMENTS_READ]))
):
    """Report bookings overlapping a proposed time"""
    service = AppointmentService(db)
    return service.check_conflicts(
        clinic_id, target_date, start_time, duration_minutes, dentist_id, exclude_id
    )


# ==================== Single Appointment Endpoints ====================

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions(READ_PERMISSIONS))
):
    """Get appointment by ID"""
    service = AppointmentService(db)
    appointment = service.get_appointment(appointment_id)

    scope = own_patient_scope(current_user)
    if scope is not None and appointment.patient_id != scope:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found"
        )
    return appointment


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: uuid.UUID,
    update_data: AppointmentUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Update appointment details"""
    service = AppointmentService(db)
    return service.update_appointment(appointment_id, update_data.model_dump(exclude_unset=True))


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Confirm an appointment"""
    service = AppointmentService(db)
    return service.confirm_appointment(appointment_id)


@router.post("/{appointment_id}/start", response_model=AppointmentResponse)
def start_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Mark the appointment as in progress"""
    service = AppointmentService(db)
    return service.start_appointment(appointment_id)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: uuid.UUID,
    completion: AppointmentComplete,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Complete an appointment"""
    service = AppointmentService(db)
    return service.complete_appointment(
        appointment_id,
        treatment_provided=completion.treatment_provided,
        follow_up_required=completion.follow_up_required,
        follow_up_date=completion.follow_up_date,
        notes=completion.notes
    )


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
def mark_no_show(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Mark appointment as no-show"""
    service = AppointmentService(db)
    return service.mark_no_show(appointment_id)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: uuid.UUID,
    cancel_data: AppointmentCancel,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS + [Permissions.APPOINTMENTS_DELETE]))
):
    """Cancel an appointment"""
    service = AppointmentService(db)
    return service.cancel_appointment(
        appointment_id,
        cancelled_by=uuid.UUID(current_user["sub"]),
        reason=cancel_data.reason
    )


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: uuid.UUID,
    reschedule_data: AppointmentReschedule,
    db = Depends(get_db),
    current_user = Depends(require_permissions(UPDATE_PERMISSIONS))
):
    """Move an appointment to a new date and time"""
    service = AppointmentService(db)
    return service.reschedule_appointment(
        appointment_id,
        new_date=reschedule_data.new_date,
        new_time=reschedule_data.new_time,
        rescheduled_by=uuid.UUID(current_user["sub"]),
        reason=reschedule_data.reason,
        dentist_id=reschedule_data.dentist_id,
        duration_minutes=reschedule_data.duration_minutes
    )
