"""
Clinics API Routes

API endpoints for clinic setup, operating hours and staff assignment.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import List
import uuid

from app.infrastructure.database import get_db
from app.core.permissions import require_permissions, Permissions
from app.domain.clinics.service import ClinicService
from app.api.v1.clinics.schemas import (
    ClinicCreate, ClinicResponse, ClinicDetailResponse, OperatingHoursUpdate
)

router = APIRouter()


@router.post("", response_model=ClinicDetailResponse, status_code=status.HTTP_201_CREATED)
def create_clinic(
    clinic_data: ClinicCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_CREATE]))
):
    """Create a clinic with its weekly operating hours"""
    service = ClinicService(db)
    data = clinic_data.model_dump(exclude={"operating_hours"})
    hours = [row.model_dump() for row in clinic_data.operating_hours]
    return service.create_clinic(data, hours)


@router.get("", response_model=List[ClinicResponse])
def list_clinics(
    active_only: bool = Query(True),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_READ]))
):
    """List clinics"""
    service = ClinicService(db)
    return service.get_clinics(active_only, skip, limit)


@router.get("/{clinic_id}", response_model=ClinicDetailResponse)
def get_clinic(
    clinic_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_READ]))
):
    """Get clinic details with hours and assigned staff"""
    service = ClinicService(db)
    return service.get_clinic(clinic_id)


@router.put("/{clinic_id}/operating-hours", response_model=ClinicDetailResponse)
def replace_operating_hours(
    clinic_id: uuid.UUID,
    hours_data: OperatingHoursUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_UPDATE]))
):
    """Replace the clinic's weekly operating hours"""
    service = ClinicService(db)
    return service.update_operating_hours(
        clinic_id, [row.model_dump() for row in hours_data.operating_hours]
    )


@router.post("/{clinic_id}/staff/{user_id}", response_model=ClinicDetailResponse)
def assign_staff(
    clinic_id: uuid.UUID,
    user_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_UPDATE]))
):
    """Assign a dentist or staff member to the clinic"""
    service = ClinicService(db)
    return service.assign_staff(clinic_id, user_id)


@router.delete("/{clinic_id}/staff/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_staff(
    clinic_id: uuid.UUID,
    user_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN, Permissions.CLINICS_UPDATE]))
):
    """Remove a staff member from the clinic"""
    service = ClinicService(db)
    service.unassign_staff(clinic_id, user_id)
