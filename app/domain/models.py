# Import every model so relationship strings resolve and metadata is complete
from app.domain.auth.models import User, UserRole  # noqa: F401
from app.domain.clinics.models import Clinic, ClinicOperatingHours, clinic_staff  # noqa: F401
from app.domain.patients.models import Patient  # noqa: F401
from app.domain.appointments.models import Appointment, DoctorSchedule, DoctorLeave  # noqa: F401
from app.domain.staff_scheduling.models import StaffSchedule  # noqa: F401
from app.domain.notifications.models import Notification  # noqa: F401
