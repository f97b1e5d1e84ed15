from typing import List, Dict, Any, Optional
import uuid

from fastapi import Request, HTTPException, status
from app.core.security import verify_token


class Permissions:
    """Permission constants for the dental scheduling service"""

    # Clinics
    CLINICS_CREATE = "clinics:create"
    CLINICS_READ = "clinics:read"
    CLINICS_UPDATE = "clinics:update"

    # Appointments
    APPOINTMENTS_CREATE = "appointments:create"
    APPOINTMENTS_READ = "appointments:read"
    APPOINTMENTS_READ_OWN = "appointments:read:own"
    APPOINTMENTS_UPDATE = "appointments:update"
    APPOINTMENTS_DELETE = "appointments:delete"

    # Doctor schedules
    SCHEDULES_CREATE = "schedules:create"
    SCHEDULES_READ = "schedules:read"
    SCHEDULES_UPDATE = "schedules:update"
    SCHEDULES_DELETE = "schedules:delete"

    # Leaves
    LEAVES_CREATE = "leaves:create"
    LEAVES_READ = "leaves:read"
    LEAVES_APPROVE = "leaves:approve"
    LEAVES_CANCEL = "leaves:cancel"

    # Staff schedules
    STAFF_SCHEDULES_CREATE = "staff_schedules:create"
    STAFF_SCHEDULES_READ = "staff_schedules:read"
    STAFF_SCHEDULES_UPDATE = "staff_schedules:update"
    STAFF_SCHEDULES_DELETE = "staff_schedules:delete"
    STAFF_SCHEDULES_ANALYTICS = "staff_schedules:analytics"

    # Notifications
    NOTIFICATIONS_READ = "notifications:read"

    # System
    SYSTEM_ADMIN = "system:admin"


def get_current_user(request: Request) -> Dict[str, Any]:
    """Extract and validate user from request"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ")[1]
    payload = verify_token(token, "access")

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


def require_permissions(required_permissions: List[str]):
    """Dependency function to check permissions"""
    def permission_checker(request: Request) -> Dict[str, Any]:
        user_payload = get_current_user(request)
        request.state.user = user_payload

        user_permissions = user_payload.get("permissions", [])

        # Check if user has any of the required permissions
        has_access = any(
            perm in user_permissions
            for perm in required_permissions
        )

        if not has_access:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )

        return user_payload

    return permission_checker


def own_patient_scope(user_payload: Dict[str, Any]) -> Optional[uuid.UUID]:
    """
    Patient id a caller is restricted to, or None for unrestricted access.

    Callers holding only the ``:own`` read permission see their own
    appointments; an own-scoped token without a patient id sees nothing.
    """
    user_permissions = user_payload.get("permissions", [])
    if Permissions.SYSTEM_ADMIN in user_permissions or Permissions.APPOINTMENTS_READ in user_permissions:
        return None

    patient_id = user_payload.get("patient_id")
    if not patient_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return uuid.UUID(patient_id)
