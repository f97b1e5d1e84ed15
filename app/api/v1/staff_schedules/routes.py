"""
Staff Schedules API Routes
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from datetime import date
import uuid
import math

from app.infrastructure.database import get_db
from app.core.clinic_context import resolve_clinic_id
from app.core.exceptions import ValidationError
from app.core.permissions import require_permissions, Permissions
from app.domain.staff_scheduling.models import ShiftType, StaffScheduleStatus
from app.domain.staff_scheduling.service import StaffScheduleService
from app.api.v1.staff_schedules.schemas import (
    StaffScheduleCreate, StaffScheduleUpdate, StaffScheduleResponse,
    StaffScheduleListResponse, AvailabilityResponse, AnalyticsResponse
)

router = APIRouter()


@router.post("", response_model=StaffScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_staff_schedule(
    schedule_data: StaffScheduleCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_CREATE]))
):
    """Assign a shift to a staff member"""
    service = StaffScheduleService(db)
    return service.create_schedule(
        staff_id=schedule_data.staff_id,
        clinic_id=schedule_data.clinic_id,
        schedule_data=schedule_data.model_dump(exclude={"staff_id", "clinic_id"}),
        created_by=uuid.UUID(current_user["sub"])
    )


@router.get("", response_model=StaffScheduleListResponse)
def list_staff_schedules(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    clinic_id: Optional[uuid.UUID] = None,
    staff_id: Optional[uuid.UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status_filter: Optional[StaffScheduleStatus] = Query(None, alias="status"),
    shift_type: Optional[ShiftType] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_READ]))
):
    """List shifts with filters"""
    service = StaffScheduleService(db)
    schedules, total = service.get_schedules(
        skip=(page - 1) * limit,
        limit=limit,
        clinic_id=resolve_clinic_id(clinic_id),
        staff_id=staff_id,
        date_from=date_from,
        date_to=date_to,
        status=status_filter,
        shift_type=shift_type
    )
    return StaffScheduleListResponse(
        items=schedules,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 0
    )


@router.get("/availability", response_model=AvailabilityResponse)
def get_staff_availability(
    target_date: date = Query(..., alias="date"),
    clinic_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_READ]))
):
    """Who is on shift at a clinic on a date"""
    service = StaffScheduleService(db)
    return service.availability(_require_clinic(clinic_id), target_date)


@router.get("/analytics", response_model=AnalyticsResponse)
def get_staff_analytics(
    start_date: date,
    end_date: date,
    clinic_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_ANALYTICS]))
):
    """Shift counts, hours and utilisation for a date range"""
    service = StaffScheduleService(db)
    return service.analytics(_require_clinic(clinic_id), start_date, end_date)


@router.get("/{schedule_id}", response_model=StaffScheduleResponse)
def get_staff_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_READ]))
):
    """Get shift by ID"""
    service = StaffScheduleService(db)
    return service.get_schedule(schedule_id)


@router.patch("/{schedule_id}", response_model=StaffScheduleResponse)
def update_staff_schedule(
    schedule_id: uuid.UUID,
    update_data: StaffScheduleUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_UPDATE]))
):
    """Update a shift"""
    service = StaffScheduleService(db)
    return service.update_schedule(schedule_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.STAFF_SCHEDULES_DELETE]))
):
    """Delete a shift"""
    service = StaffScheduleService(db)
    service.delete_schedule(schedule_id)


def _require_clinic(clinic_id: Optional[uuid.UUID]) -> uuid.UUID:
    resolved = resolve_clinic_id(clinic_id)
    if resolved is None:
        raise ValidationError("clinic_id query parameter or X-Clinic-ID header is required", error_code="CLINIC_REQUIRED")
    return resolved
