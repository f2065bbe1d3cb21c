"""
FastAPI application for Facility Reservations.

This is the main entry point for the HTTP API, providing:
- Booking endpoints (create, review, cancel)
- Maintenance report endpoints
- Facility, staff assignment and rating endpoints
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from facility_reservations.api.booking_routes import router as booking_router
from facility_reservations.api.facility_routes import router as facility_router
from facility_reservations.api.maintenance_routes import router as maintenance_router
from facility_reservations.api.middleware import RequestLoggingMiddleware
from facility_reservations.api.models import HealthResponse
from facility_reservations.api.response_builder import VALIDATION_ERROR, error_response
from facility_reservations.config import configure_logging, get_settings
from facility_reservations.database import check_connection, init_db

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
API_PREFIX = "/api/v1"


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting Facility Reservations API")

    if settings.auto_create_tables:
        init_db()

    logger.info("Facility Reservations API started")

    yield

    # Shutdown
    logger.info("Shutting down Facility Reservations API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Facility Reservations API",
    description="""
# Facility Reservations API

Booking and maintenance backend for shared sports facilities.

## Authentication

Requests carry the authenticated user's ID in the `X-User-ID` header.
The user's resident or staff profile decides what the request may do.

## Response Format

Every endpoint returns an envelope:
- `success` - Whether the request succeeded
- `message` - Human-readable summary
- `data` - Payload (or null)
- `reason` - Stable machine-readable cause, present on refusals

## Error Handling

- **400** - Validation error, time conflict, capacity exceeded, facility not open
- **401** - Missing or unknown user
- **403** - Role or ownership mismatch, facility not assigned
- **404** - Resource not found
- **500** - Server error
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(booking_router, prefix=API_PREFIX)
app.include_router(maintenance_router, prefix=API_PREFIX)
app.include_router(facility_router, prefix=API_PREFIX)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with the response envelope."""
    return error_response(status_code=exc.status_code, message=str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report invalid input as a 400 envelope listing the offending fields."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed for {request.method} {request.url.path}: {errors}")
    return error_response(
        status_code=400,
        message="Invalid request",
        reason=VALIDATION_ERROR,
        details={"errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return error_response(status_code=500, message="An unexpected error occurred")


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
def health_check():
    """
    Check API health status.

    Returns:
        Health status including database connectivity
    """
    database_connected = check_connection()

    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str | None = None, port: int | None = None, reload: bool | None = None):
    """Run the API server with Uvicorn, defaulting to the configured host/port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "facility_reservations.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
