from sqlalchemy import Column, String, Boolean, DateTime, Enum, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
import uuid
import enum


class UserRole(str, enum.Enum):
    """User roles in the dental practice"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    DENTIST = "dentist"
    STAFF = "staff"
    PATIENT = "patient"


class User(Base):
    """User model for authentication and authorization"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20))

    role = Column(Enum(UserRole), nullable=False, default=UserRole.STAFF)
    permissions = Column(JSON, default=list)
    specialization = Column(String(100))

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    last_login_at = Column(DateTime)

    # Clinic assignments
    clinics = relationship("Clinic", secondary="clinic_staff", back_populates="staff")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def set_password(self, password: str):
        """Set password hash"""
        from app.core.security import get_password_hash
        self.password_hash = get_password_hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify password"""
        from app.core.security import verify_password
        return verify_password(password, self.password_hash)

    def is_assigned_to(self, clinic_id: uuid.UUID) -> bool:
        return any(clinic.id == clinic_id for clinic in self.clinics)

    def get_permissions(self) -> list:
        """Get user permissions based on role and custom permissions"""
        role_permissions = self._get_role_permissions()
        custom_permissions = self.permissions or []
        return sorted(set(role_permissions + custom_permissions))

    def _get_role_permissions(self) -> list:
        """Get default permissions for user role"""
        from app.core.permissions import Permissions

        permission_map = {
            UserRole.SUPER_ADMIN: [
                Permissions.SYSTEM_ADMIN,
            ],
            UserRole.ADMIN: [
                Permissions.CLINICS_CREATE, Permissions.CLINICS_READ, Permissions.CLINICS_UPDATE,
                Permissions.APPOINTMENTS_CREATE, Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_UPDATE, Permissions.APPOINTMENTS_DELETE,
                Permissions.SCHEDULES_CREATE, Permissions.SCHEDULES_READ, Permissions.SCHEDULES_UPDATE, Permissions.SCHEDULES_DELETE,
                Permissions.LEAVES_CREATE, Permissions.LEAVES_READ, Permissions.LEAVES_APPROVE, Permissions.LEAVES_CANCEL,
                Permissions.STAFF_SCHEDULES_CREATE, Permissions.STAFF_SCHEDULES_READ, Permissions.STAFF_SCHEDULES_UPDATE,
                Permissions.STAFF_SCHEDULES_DELETE, Permissions.STAFF_SCHEDULES_ANALYTICS,
                Permissions.NOTIFICATIONS_READ
            ],
            UserRole.DENTIST: [
                Permissions.CLINICS_READ,
                Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_UPDATE,
                Permissions.SCHEDULES_READ,
                Permissions.LEAVES_CREATE, Permissions.LEAVES_READ, Permissions.LEAVES_CANCEL,
                Permissions.STAFF_SCHEDULES_READ,
                Permissions.NOTIFICATIONS_READ
            ],
            UserRole.STAFF: [
                Permissions.CLINICS_READ,
                Permissions.APPOINTMENTS_CREATE, Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_UPDATE, Permissions.APPOINTMENTS_DELETE,
                Permissions.SCHEDULES_READ,
                Permissions.STAFF_SCHEDULES_READ,
                Permissions.NOTIFICATIONS_READ
            ],
            UserRole.PATIENT: [
                Permissions.APPOINTMENTS_CREATE, Permissions.APPOINTMENTS_READ_OWN,
                Permissions.NOTIFICATIONS_READ
            ]
        }

        return permission_map.get(self.role, [])
