import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import BaseCustomException, create_error_response, handle_database_error
from app.core.logging_config import setup_logging
from app.api.v1.api import api_router
from app.middleware.clinic_context_middleware import ClinicContextMiddleware
from app.middleware.request_logging import RequestLoggingMiddleware
from app.domain import models  # noqa: F401

setup_logging(use_json=settings.LOG_JSON, log_level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(ClinicContextMiddleware)
# Added last so it runs first and every handler sees request.state.request_id
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    request_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message} (request {request_id})")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc, request_id)
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    error = handle_database_error(exc, f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=error.status_code,
        content=create_error_response(error, getattr(request.state, "request_id", None))
    )


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
def health_check():
    return {"status": "ok"}
