from contextvars import ContextVar
from typing import Optional
import uuid

clinic_context: ContextVar[Optional[str]] = ContextVar("clinic_context", default=None)

def get_clinic_id() -> Optional[str]:
    return clinic_context.get()

def set_clinic_id(clinic_id: Optional[str]):
    clinic_context.set(clinic_id)

def resolve_clinic_id(explicit: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
    """Explicit query parameter wins over the X-Clinic-ID header"""
    if explicit:
        return explicit
    header_value = get_clinic_id()
    if not header_value:
        return None
    try:
        return uuid.UUID(header_value)
    except ValueError:
        return None
