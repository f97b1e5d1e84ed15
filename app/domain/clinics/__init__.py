# Clinics domain module
from app.domain.clinics.models import Clinic, ClinicOperatingHours, clinic_staff

__all__ = [
    "Clinic",
    "ClinicOperatingHours",
    "clinic_staff",
]
