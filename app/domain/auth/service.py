from typing import Dict, Any
from datetime import datetime

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.security import create_access_token
from app.domain.auth.models import User, UserRole
from app.domain.auth.repository import UserRepository
from app.domain.patients.repository import PatientRepository


class AuthenticationService:
    """Service layer for authentication operations"""

    def __init__(self, db):
        self.db = db
        self.user_repo = UserRepository(db)
        self.patient_repo = PatientRepository(db)

    def build_claims(self, user: User) -> Dict[str, Any]:
        """Claims carried by the access token"""
        claims = {
            "email": user.email,
            "role": user.role.value,
            "permissions": user.get_permissions(),
            "clinic_ids": [str(clinic.id) for clinic in user.clinics],
        }
        if user.role == UserRole.PATIENT:
            patient = self.patient_repo.get_by_user_id(user.id)
            if patient:
                claims["patient_id"] = str(patient.id)
        return claims

    def authenticate_user(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return an access token"""
        user = self.user_repo.get_by_email(email)

        if not user or not user.verify_password(password):
            raise AuthenticationError("Invalid email or password", error_code="INVALID_CREDENTIALS")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated", error_code="ACCOUNT_INACTIVE")

        access_token = create_access_token(str(user.id), self.build_claims(user))
        self.user_repo.update(user, {"last_login_at": datetime.utcnow()})

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": user,
        }
