from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
import uuid
from app.domain.auth.models import UserRole


class LoginRequest(BaseModel):
    """Schema for login request"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserSummary(BaseModel):
    """Schema for the authenticated user"""
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    specialization: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Schema for token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary


class CurrentUserResponse(BaseModel):
    """Claims of the current access token"""
    id: uuid.UUID
    role: str
    permissions: List[str]
    clinic_ids: List[uuid.UUID] = []
    patient_id: Optional[uuid.UUID] = None
