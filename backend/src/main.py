"""Poll Housekeeping - Main FastAPI Application

This module creates and configures the FastAPI application, including:
- The housekeeping router (sweep trigger and report)
- Middleware (request ID correlation, CORS)
- Exception handlers
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router
from housekeeping.exceptions import HousekeepingConfigError, SweepPassError
from housekeeping.router import router as housekeeping_router

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Poll housekeeping API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if not settings.API_SECRET:
        logger.warning("API_SECRET is not set; housekeeping endpoints will reject every call")

    yield

    logger.info("Poll housekeeping API shutting down...")


app = FastAPI(
    title="Poll Housekeeping API",
    description="Retention sweeps for polls, options, participants and votes",
    version="0.1.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

# Request ID Middleware (must be first for proper correlation)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"error": exc.errors()}
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


@app.exception_handler(HousekeepingConfigError)
async def housekeeping_config_exception_handler(
    request: Request,
    exc: HousekeepingConfigError
) -> JSONResponse:
    """Handle invalid housekeeping thresholds.

    Raised before any pass runs, so nothing was modified.
    """
    logger.error(f"Housekeeping misconfigured: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "housekeeping_misconfigured",
            "message": "Housekeeping thresholds are invalid; no changes were made.",
        },
    )


@app.exception_handler(SweepPassError)
async def sweep_pass_exception_handler(
    request: Request,
    exc: SweepPassError
) -> JSONResponse:
    """Handle a failed sweep pass.

    The failing pass was rolled back; earlier passes stay committed and a
    retry picks up where this sweep stopped.
    """
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "housekeeping_failed",
            "message": "Housekeeping sweep failed. Please retry later.",
            "sweep_pass": exc.sweep_pass,
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
# ROUTERS
# =============================================================================

app.include_router(observability_router)
app.include_router(housekeeping_router)
