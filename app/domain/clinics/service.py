"""
Clinics Service Layer

Clinic setup, weekly operating hours and staff assignment.
"""

from typing import Optional, List, Dict, Any
from datetime import date, time
import logging
import uuid

from app.core.exceptions import NotFoundError, ConflictError, BusinessLogicError, ValidationError
from app.domain.auth.models import User, UserRole
from app.domain.auth.repository import UserRepository
from app.domain.clinics.models import Clinic, ClinicOperatingHours
from app.domain.clinics.repository import ClinicRepository

logger = logging.getLogger(__name__)

# Placeholder window stored for days the clinic does not open
CLOSED_DAY_OPEN = time(9, 0)
CLOSED_DAY_CLOSE = time(17, 0)

ASSIGNABLE_ROLES = (UserRole.DENTIST, UserRole.STAFF, UserRole.ADMIN)


def complete_week(hours: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate a set of operating hours and fill missing weekdays as closed

    An empty set stays empty: the clinic has no hours configured.
    """
    if not hours:
        return []
    by_day: Dict[int, Dict[str, Any]] = {}
    for row in hours:
        day = row["day_of_week"]
        if day in by_day:
            raise ValidationError(
                f"Operating hours listed twice for day {day}",
                error_code="DUPLICATE_OPERATING_DAY"
            )
        if not row.get("is_closed") and row["open_time"] >= row["close_time"]:
            raise ValidationError(
                "Opening time must be before closing time",
                details={"day_of_week": day},
                error_code="INVALID_OPERATING_HOURS"
            )
        by_day[day] = row

    week = []
    for day in range(7):
        row = by_day.get(day)
        closed = row is None or bool(row.get("is_closed"))
        if closed and (row is None or row["open_time"] >= row["close_time"]):
            week.append({
                "day_of_week": day,
                "open_time": CLOSED_DAY_OPEN,
                "close_time": CLOSED_DAY_CLOSE,
                "is_closed": True,
            })
            continue
        week.append({
            "day_of_week": day,
            "open_time": row["open_time"],
            "close_time": row["close_time"],
            "is_closed": closed,
        })
    return week


class ClinicService:
    """Service layer for clinic management"""

    def __init__(self, db):
        self.db = db
        self.clinic_repo = ClinicRepository(db)
        self.user_repo = UserRepository(db)

    def create_clinic(self, clinic_data: Dict[str, Any], operating_hours: List[Dict[str, Any]]) -> Clinic:
        """Create a clinic; weekdays without hours are stored as closed unless none are given"""
        if self.clinic_repo.get_by_code(clinic_data["code"]):
            raise ConflictError(
                f"Clinic code {clinic_data['code']} is already in use",
                error_code="CLINIC_CODE_EXISTS"
            )
        clinic = self.clinic_repo.create(clinic_data, complete_week(operating_hours))
        logger.info(f"Clinic {clinic.code} created")
        return clinic

    def get_clinic(self, clinic_id: uuid.UUID) -> Clinic:
        clinic = self.clinic_repo.get_by_id(clinic_id)
        if not clinic:
            raise NotFoundError("Clinic not found", error_code="CLINIC_NOT_FOUND")
        return clinic

    def get_active_clinic(self, clinic_id: uuid.UUID) -> Clinic:
        clinic = self.get_clinic(clinic_id)
        if not clinic.is_active:
            raise BusinessLogicError("Clinic is not active", error_code="CLINIC_INACTIVE")
        return clinic

    def get_clinics(self, active_only: bool = True, skip: int = 0, limit: int = 100) -> List[Clinic]:
        return self.clinic_repo.get_all(active_only, skip, limit)

    def update_operating_hours(self, clinic_id: uuid.UUID, operating_hours: List[Dict[str, Any]]) -> Clinic:
        clinic = self.get_clinic(clinic_id)
        return self.clinic_repo.replace_hours(clinic, complete_week(operating_hours))

    def hours_for(self, clinic: Clinic, target_date: date) -> Optional[ClinicOperatingHours]:
        """Hours on a date, None when the clinic has no hours configured at all"""
        if not clinic.operating_hours:
            return None
        return clinic.hours_for_day(target_date.weekday())

    def get_assigned_dentists(self, clinic_id: uuid.UUID) -> List[User]:
        return self.clinic_repo.get_assigned_users(clinic_id, roles=[UserRole.DENTIST])

    def get_assigned_staff(self, clinic_id: uuid.UUID) -> List[User]:
        return self.clinic_repo.get_assigned_users(
            clinic_id, roles=[UserRole.DENTIST, UserRole.STAFF]
        )

    def assign_staff(self, clinic_id: uuid.UUID, user_id: uuid.UUID) -> Clinic:
        clinic = self.get_clinic(clinic_id)
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
        if user.role not in ASSIGNABLE_ROLES:
            raise BusinessLogicError(
                f"Users with role {user.role.value} cannot be assigned to a clinic",
                error_code="INVALID_ROLE"
            )
        return self.clinic_repo.assign_user(clinic, user)

    def unassign_staff(self, clinic_id: uuid.UUID, user_id: uuid.UUID) -> None:
        clinic = self.get_clinic(clinic_id)
        user = self.user_repo.get_by_id(user_id)
        if not user or not self.clinic_repo.unassign_user(clinic, user):
            raise NotFoundError("User is not assigned to this clinic", error_code="ASSIGNMENT_NOT_FOUND")
