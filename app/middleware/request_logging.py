from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging
import time
import uuid

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request id and log every request with its timing"""

    # Routes that are not worth logging
    EXCLUDED_ROUTES = [
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json"
    ]

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        path = request.url.path
        if any(path.startswith(route) for route in self.EXCLUDED_ROUTES) or path.endswith("/openapi.json"):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        method = request.method
        client_ip = self._get_client_ip(request)
        start_time = time.time()

        logger.info(f"Request started: {request_id} {method} {path} from {client_ip}")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"System exception: {request_id} {method} {path} "
                f"- {type(exc).__name__}: {exc}"
            )
            raise

        processing_time = time.time() - start_time
        if response.status_code < 400:
            logger.info(
                f"Request completed: {request_id} {method} {path} "
                f"- {response.status_code} in {processing_time:.3f}s"
            )
        else:
            logger.warning(
                f"Request failed: {request_id} {method} {path} "
                f"- {response.status_code} in {processing_time:.3f}s"
            )

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP address from request"""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
