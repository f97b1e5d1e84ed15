from fastapi import APIRouter
from app.api.v1.auth import routes as auth
from app.api.v1.clinics import routes as clinics
from app.api.v1.schedules import routes as schedules
from app.api.v1.appointments import routes as appointments
from app.api.v1.staff_schedules import routes as staff_schedules
from app.api.v1.notifications import routes as notifications

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(clinics.router, prefix="/clinics", tags=["clinics"])
api_router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(staff_schedules.router, prefix="/staff-schedules", tags=["staff-schedules"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
