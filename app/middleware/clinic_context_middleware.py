from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.core.clinic_context import set_clinic_id

class ClinicContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        set_clinic_id(request.headers.get("X-Clinic-ID"))

        response = await call_next(request)
        return response
