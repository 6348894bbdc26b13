"""SiteVerify Backend - Main FastAPI Application

Physical address verification workflow.

This module creates and configures the main FastAPI application, including:
- API routers (registration, import/export, assignments, verification)
- Middleware (request ID correlation and timing)
- Exception handlers mapping workflow errors to HTTP responses
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .dependencies import get_notification_dispatcher
from .domain.verification.errors import (
    AuthorizationError,
    ConcurrentModification,
    DenialReason,
    ExternalServiceFailure,
    GeofenceViolation,
    IllegalTransition,
    RegistrationCodeConsumed,
    RegistrationCodeNotFound,
    ValidationError,
    VerificationError,
)

# Observability
from .observability.logging_config import configure_logging
from .observability.middleware import RequestContextMiddleware
from .observability.router import router as observability_router

# Domain Routers
from .registration.router import router as registration_router
from .bulk.router import router as bulk_router
from .assignments.router import router as assignments_router
from .verification.router import router as verification_router

settings = get_settings()

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Shutdown drains queued notifications.
    """
    logger.info("SiteVerify API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    yield

    logger.info("SiteVerify API shutting down...")
    get_notification_dispatcher().shutdown(wait=True)


app = FastAPI(
    title="SiteVerify API",
    description="Field verification of contact addresses with geofenced moderator visits",
    version="0.1.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestContextMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def status_for(exc: VerificationError) -> int:
    """HTTP status code for a workflow error."""
    if isinstance(exc, AuthorizationError):
        if exc.reason == DenialReason.DOCUMENT_NOT_FOUND:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, GeofenceViolation):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, RegistrationCodeNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (ConcurrentModification, IllegalTransition, RegistrationCodeConsumed)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ExternalServiceFailure):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(VerificationError)
async def verification_exception_handler(
    request: Request,
    exc: VerificationError
) -> JSONResponse:
    """Map workflow errors onto structured error responses."""
    content = {"error": exc.kind, "message": str(exc)}
    if isinstance(exc, AuthorizationError):
        content["reason"] = exc.reason.value
    if isinstance(exc, GeofenceViolation):
        content["distance_meters"] = round(exc.distance_meters, 3)
        content["radius_meters"] = exc.radius_meters

    logger.info(
        f"{exc.kind} on {request.method} {request.url.path}: {exc}",
        extra={"failure_kind": exc.kind},
    )
    return JSONResponse(status_code=status_for(exc), content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns a structured error response with field-level details.
    """
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics)
app.include_router(observability_router)

app.include_router(registration_router, prefix="/api/v1")

# Bulk routes first: /documents/export must not match /documents/{document_id}
app.include_router(bulk_router, prefix="/api/v1")
app.include_router(assignments_router, prefix="/api/v1")
app.include_router(verification_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - API information."""
    return {
        "name": "SiteVerify API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
