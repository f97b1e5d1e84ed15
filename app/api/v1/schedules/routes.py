"""
Schedules API Routes

API endpoints for dentist working schedules and leave management.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional
from datetime import date
import uuid

from app.infrastructure.database import get_db
from app.core.clinic_context import resolve_clinic_id
from app.core.permissions import require_permissions, Permissions
from app.core.exceptions import AuthorizationError
from app.domain.appointments.service import DoctorScheduleService, DoctorLeaveService
from app.domain.appointments.models import LeaveStatus
from app.api.v1.schedules.schemas import (
    # Schedule schemas
    DoctorScheduleCreate, DoctorScheduleBulkCreate, DoctorScheduleUpdate,
    DoctorScheduleResponse, DoctorScheduleBulkResponse, AvailableDoctor,
    # Leave schemas
    DoctorLeaveCreate, DoctorLeaveApproval, DoctorLeaveResponse
)

router = APIRouter()


# ==================== Doctor Schedule Endpoints ====================

@router.post("", response_model=DoctorScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_doctor_schedule(
    schedule_data: DoctorScheduleCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_CREATE]))
):
    """Create a new dentist schedule"""
    service = DoctorScheduleService(db)
    return service.create_schedule(
        created_by=uuid.UUID(current_user["sub"]),
        **schedule_data.model_dump()
    )


@router.post("/bulk", response_model=DoctorScheduleBulkResponse)
def bulk_create_doctor_schedules(
    bulk_data: DoctorScheduleBulkCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_CREATE]))
):
    """Create several schedules; failures are reported per item"""
    service = DoctorScheduleService(db)
    return service.bulk_create_schedules(
        [item.model_dump() for item in bulk_data.schedules],
        created_by=uuid.UUID(current_user["sub"])
    )


@router.get("", response_model=List[DoctorScheduleResponse])
def list_doctor_schedules(
    doctor_id: Optional[uuid.UUID] = None,
    clinic_id: Optional[uuid.UUID] = None,
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    active_only: bool = Query(True),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_READ]))
):
    """List schedules with filters"""
    service = DoctorScheduleService(db)
    return service.get_schedules(doctor_id, resolve_clinic_id(clinic_id), day_of_week, active_only)


@router.get("/available", response_model=List[AvailableDoctor])
def get_available_doctors(
    clinic_id: uuid.UUID,
    target_date: Optional[date] = Query(None, alias="date"),
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    db = Depends(get_db)
):
    """Dentists working at a clinic on a date or weekday (public)"""
    service = DoctorScheduleService(db)
    return service.get_available_doctors(clinic_id, target_date, day_of_week)


# ==================== Doctor Leave Endpoints ====================

@router.post("/leaves", response_model=DoctorLeaveResponse, status_code=status.HTTP_201_CREATED)
def request_doctor_leave(
    leave_data: DoctorLeaveCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.LEAVES_CREATE]))
):
    """Request dentist leave"""
    if current_user.get("role") == "dentist" and str(leave_data.doctor_id) != current_user["sub"]:
        raise AuthorizationError(
            "Dentists can only request their own leave",
            error_code="LEAVE_SCOPE_VIOLATION"
        )

    service = DoctorLeaveService(db)
    return service.request_leave(
        doctor_id=leave_data.doctor_id,
        leave_type=leave_data.leave_type,
        start_date=leave_data.start_date,
        end_date=leave_data.end_date,
        reason=leave_data.reason,
        start_time=leave_data.start_time,
        end_time=leave_data.end_time
    )


@router.get("/leaves/doctor/{doctor_id}", response_model=List[DoctorLeaveResponse])
def get_doctor_leaves(
    doctor_id: uuid.UUID,
    status_filter: Optional[LeaveStatus] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.LEAVES_READ]))
):
    """Get all leaves for a dentist"""
    service = DoctorLeaveService(db)
    return service.get_doctor_leaves(doctor_id, status_filter)


@router.post("/leaves/{leave_id}/approve", response_model=DoctorLeaveResponse)
def process_leave_approval(
    leave_id: uuid.UUID,
    approval: DoctorLeaveApproval,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.LEAVES_APPROVE]))
):
    """Approve or reject a leave request"""
    service = DoctorLeaveService(db)

    if approval.approved:
        return service.approve_leave(leave_id, uuid.UUID(current_user["sub"]))
    return service.reject_leave(leave_id, uuid.UUID(current_user["sub"]), approval.rejection_reason)


@router.post("/leaves/{leave_id}/cancel", response_model=DoctorLeaveResponse)
def cancel_leave(
    leave_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.LEAVES_CANCEL]))
):
    """Cancel a leave request"""
    service = DoctorLeaveService(db)
    return service.cancel_leave(leave_id)


# ==================== Schedule Lookup Endpoints ====================

@router.get("/doctor/{doctor_id}", response_model=List[DoctorScheduleResponse])
def get_doctor_schedules(
    doctor_id: uuid.UUID,
    active_only: bool = Query(True),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_READ]))
):
    """Get all schedules for a dentist across clinics"""
    service = DoctorScheduleService(db)
    return service.get_schedules(doctor_id=doctor_id, active_only=active_only)


@router.get("/{schedule_id}", response_model=DoctorScheduleResponse)
def get_doctor_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_READ]))
):
    """Get schedule by ID"""
    service = DoctorScheduleService(db)
    return service.get_schedule(schedule_id)


@router.patch("/{schedule_id}", response_model=DoctorScheduleResponse)
def update_doctor_schedule(
    schedule_id: uuid.UUID,
    update_data: DoctorScheduleUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_UPDATE]))
):
    """Update dentist schedule"""
    service = DoctorScheduleService(db)
    return service.update_schedule(schedule_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.SCHEDULES_DELETE]))
):
    """Deactivate a dentist schedule"""
    service = DoctorScheduleService(db)
    service.deactivate_schedule(schedule_id)
