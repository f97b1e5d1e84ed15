from fastapi import APIRouter, Depends, status, Request

from app.core.permissions import get_current_user
from app.domain.auth.service import AuthenticationService
from app.api.v1.auth.schemas import LoginRequest, TokenResponse, CurrentUserResponse
from app.infrastructure.database import get_db

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    login_data: LoginRequest,
    db = Depends(get_db)
):
    """Authenticate user and return an access token"""
    auth_service = AuthenticationService(db)
    return auth_service.authenticate_user(login_data.email, login_data.password)


@router.get("/me", response_model=CurrentUserResponse, status_code=status.HTTP_200_OK)
def get_me(request: Request):
    """Get current user information from the access token"""
    payload = get_current_user(request)
    return CurrentUserResponse(
        id=payload["sub"],
        role=payload.get("role", ""),
        permissions=payload.get("permissions", []),
        clinic_ids=payload.get("clinic_ids", []),
        patient_id=payload.get("patient_id")
    )
