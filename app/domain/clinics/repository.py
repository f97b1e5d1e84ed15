"""
Clinics Repository Layer
"""

from typing import Optional, List
from sqlalchemy.orm import joinedload
import uuid

from app.domain.auth.models import User, UserRole
from app.domain.clinics.models import Clinic, ClinicOperatingHours


class ClinicRepository:
    """Repository for clinic data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, clinic_data: dict, hours: List[dict]) -> Clinic:
        """Create a clinic together with its weekly hours"""
        clinic = Clinic(**clinic_data)
        clinic.operating_hours = [ClinicOperatingHours(**row) for row in hours]
        self.db.add(clinic)
        self.db.commit()
        self.db.refresh(clinic)
        return clinic

    def get_by_id(self, clinic_id: uuid.UUID) -> Optional[Clinic]:
        return self.db.query(Clinic).options(
            joinedload(Clinic.operating_hours)
        ).filter(Clinic.id == clinic_id).first()

    def get_by_code(self, code: str) -> Optional[Clinic]:
        return self.db.query(Clinic).filter(Clinic.code == code).first()

    def get_all(self, active_only: bool = True, skip: int = 0, limit: int = 100) -> List[Clinic]:
        query = self.db.query(Clinic)
        if active_only:
            query = query.filter(Clinic.is_active == True)
        return query.order_by(Clinic.name).offset(skip).limit(limit).all()

    def replace_hours(self, clinic: Clinic, hours: List[dict]) -> Clinic:
        clinic.operating_hours.clear()
        self.db.flush()
        clinic.operating_hours.extend(ClinicOperatingHours(**row) for row in hours)
        self.db.commit()
        self.db.refresh(clinic)
        return clinic

    def get_assigned_users(
        self,
        clinic_id: uuid.UUID,
        roles: Optional[List[UserRole]] = None,
        active_only: bool = True
    ) -> List[User]:
        """Users assigned to a clinic, ordered by name"""
        query = self.db.query(User).filter(User.clinics.any(Clinic.id == clinic_id))
        if roles:
            query = query.filter(User.role.in_(roles))
        if active_only:
            query = query.filter(User.is_active == True)
        return query.order_by(User.last_name, User.first_name).all()

    def assign_user(self, clinic: Clinic, user: User) -> Clinic:
        if user not in clinic.staff:
            clinic.staff.append(user)
            self.db.commit()
            self.db.refresh(clinic)
        return clinic

    def unassign_user(self, clinic: Clinic, user: User) -> bool:
        if user not in clinic.staff:
            return False
        clinic.staff.remove(user)
        self.db.commit()
        return True
