from typing import Dict, Any, Optional
from fastapi import status
import logging

logger = logging.getLogger(__name__)


class BaseCustomException(Exception):
    """Base class for custom exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


class ValidationError(BaseCustomException):
    """Exception for validation errors"""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=422,
            details=details,
            error_code=error_code or "VALIDATION_ERROR"
        )


class AuthenticationError(BaseCustomException):
    """Exception for authentication errors"""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
            error_code=error_code or "AUTHENTICATION_ERROR"
        )


class AuthorizationError(BaseCustomException):
    """Exception for authorization errors"""

    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
            error_code=error_code or "AUTHORIZATION_ERROR"
        )


class NotFoundError(BaseCustomException):
    """Exception for resource not found errors"""

    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code=error_code or "NOT_FOUND_ERROR"
        )


class ConflictError(BaseCustomException):
    """Exception for conflict errors"""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code=error_code or "CONFLICT_ERROR"
        )


class DatabaseError(BaseCustomException):
    """Exception for database errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=error_code or "DATABASE_ERROR"
        )


class ExternalServiceError(BaseCustomException):
    """Exception for external service errors"""

    def __init__(
        self,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code=error_code or "EXTERNAL_SERVICE_ERROR"
        )


class BusinessLogicError(BaseCustomException):
    """Exception for business logic errors"""

    def __init__(
        self,
        message: str = "Business logic error",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            error_code=error_code or "BUSINESS_LOGIC_ERROR"
        )


# Scheduling errors

class SchedulingConflictError(ConflictError):
    """Raised when an interval collides with an existing booking or shift"""

    def __init__(
        self,
        message: str = "Time slot conflicts with an existing booking",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "APPOINTMENT_CONFLICT"
        )


class OutsideOperatingHoursError(BusinessLogicError):
    """Raised when a booking falls outside the clinic's opening hours"""

    def __init__(
        self,
        message: str = "Appointment time is outside clinic operating hours",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "OUTSIDE_OPERATING_HOURS"
        )


class OutsideWorkingHoursError(BusinessLogicError):
    """Raised when a booking falls outside the dentist's working windows"""

    def __init__(
        self,
        message: str = "Appointment time is outside the dentist's working hours",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "OUTSIDE_WORKING_HOURS"
        )


class InvalidStatusTransitionError(BusinessLogicError):
    """Raised when an appointment cannot move to the requested status"""

    def __init__(
        self,
        current_status: str,
        target_status: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Cannot change appointment status from {current_status} to {target_status}",
            details={
                "current_status": current_status,
                "target_status": target_status,
                **(details or {})
            },
            error_code="INVALID_STATUS_TRANSITION"
        )


# Exception handler functions
def create_error_response(
    exception: BaseCustomException,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """Create standardized error response"""
    from datetime import datetime, timezone

    response = {
        "error": exception.__class__.__name__.replace("Error", " Error"),
        "message": exception.message,
        "error_code": exception.error_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id
    }

    if exception.details:
        response["details"] = exception.details

    return response


def handle_database_error(error: Exception, operation: str = "database operation") -> BaseCustomException:
    """Map a SQLAlchemy failure onto the API error contract"""
    from sqlalchemy.exc import IntegrityError, OperationalError

    if isinstance(error, IntegrityError):
        # unique clinic codes, patient numbers, one hours row per weekday
        logger.warning(f"Integrity violation during {operation}: {error.orig}")
        return ConflictError(
            message="Record conflicts with existing data",
            details={"operation": operation},
            error_code="INTEGRITY_ERROR"
        )

    logger.error(f"Database error during {operation}: {error}")
    error_message = "Database operation failed"
    if isinstance(error, OperationalError):
        error_message = "Database unavailable"

    return DatabaseError(
        message=error_message,
        details={"operation": operation, "original_error": str(error)},
        error_code="DATABASE_OPERATION_ERROR"
    )


def handle_external_service_error(
    error: Exception,
    service_name: str,
    operation: str = "request"
) -> ExternalServiceError:
    """Handle external service errors"""
    logger.error(f"External service error for {service_name}: {error}")

    return ExternalServiceError(
        message=f"External service {service_name} unavailable",
        details={
            "service_name": service_name,
            "operation": operation,
            "original_error": str(error)
        },
        error_code="EXTERNAL_SERVICE_ERROR"
    )
