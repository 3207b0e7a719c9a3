"""
FastAPI application entry point for the Optimizer Dashboard backend.

This module:
- Configures the FastAPI application with middleware and routers
- Sets up structured logging with structlog
- Implements global exception handlers for consistent error responses
- Manages application lifecycle (startup/shutdown hooks)

Design decisions:
- Structured logging (JSON in prod, console in dev)
- Global exception handlers for consistent error format
- Request timing middleware
- Credential status logged once at startup; requests re-resolve on demand
"""

import logging
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from optimizer_dashboard.api import diagnostics, webhooks
from optimizer_dashboard.config import settings
from optimizer_dashboard.core.exceptions import CredentialsUnavailableError, DashboardError, ErrorCode
from optimizer_dashboard.credentials.models import CredentialSuccess
from optimizer_dashboard.credentials.resolver import resolve_credentials

VERSION = "0.1.0"

# ===== Structured Logging Configuration =====

# Why structlog? Credential resolution logs one event per source it tries;
# key/value events let hosting log viewers filter by env_name or kind
# without parsing free text.
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),  # ISO 8601 timestamps
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # JSON for hosted deployments, console for local runs
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level.upper())
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for FastAPI application.

    Startup phase:
    - Log application start with configuration
    - Resolve credentials once so misconfiguration shows up in deploy logs

    Shutdown phase:
    - Log shutdown

    Why resolve at startup? A bad credential variable otherwise only
    surfaces on the first dashboard query, long after the deploy finished.
    """
    # ===== Startup =====
    logger.info(
        "application_starting",
        service="Optimizer Dashboard",
        version=VERSION,
        environment=settings.app_env,
        log_level=settings.log_level,
        cors_origins=settings.cors_origins,
    )

    result = resolve_credentials()
    if isinstance(result, CredentialSuccess):
        logger.info("startup_credentials_ready", source=result.source, project_id=result.project_id)
    else:
        logger.warning("startup_credentials_unavailable", kind=result.kind.value, message=result.message)

    yield  # Application is running

    # ===== Shutdown =====
    logger.info("application_shutting_down")


app = FastAPI(
    title="Optimizer Dashboard",
    description="Reporting backend for optimizer results with credential diagnostics",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ===== Middleware Configuration =====

# CORS middleware for the dashboard frontend
# Why CORS? The Next.js dashboard calls the diagnostic endpoints from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,  # From config, not hardcoded
    allow_credentials=True,
    allow_methods=["GET", "POST"],  # Only needed methods
    allow_headers=["*"],
    max_age=600,  # Cache preflight requests for 10 minutes
)


# Request logging and timing middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with timing; adds an X-Process-Time header.

    Why middleware? Captures every request, including webhook calls
    rejected by authentication before they reach a route.
    """
    start_time = time.time()

    logger.info(
        "request_started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else "unknown",
    )

    response = await call_next(request)
    process_time = time.time() - start_time

    logger.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
    )

    response.headers["X-Process-Time"] = str(round(process_time, 3))
    return response


# ===== Global Exception Handlers =====


@app.exception_handler(CredentialsUnavailableError)
async def credentials_error_handler(request: Request, exc: CredentialsUnavailableError):
    """
    Render credential failures with the complete remediation list.

    The troubleshooting steps are returned verbatim; truncating them
    defeats their purpose.
    """
    logger.error(
        "credentials_unavailable_error",
        error_code=exc.error_code.value,
        kind=exc.failure.kind.value,
        source=exc.failure.source,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Handle dashboard errors with structured responses."""
    logger.error(
        "dashboard_error",
        error_code=exc.error_code.value,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors into user-friendly responses."""
    errors = exc.errors()
    missing = [
        str(error["loc"][-1])
        for error in errors
        if error.get("type") == "missing" and error.get("loc")
    ]

    logger.warning(
        "validation_error",
        errors=errors,
        body=str(exc.body)[:500],  # Truncate; optimizer payloads can be large
        path=request.url.path,
    )

    message = f"Missing required fields: {', '.join(missing)}" if missing else "Invalid request data"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Invalid payload",
            "code": ErrorCode.INVALID_PAYLOAD.value,
            "message": message,
            "details": jsonable_errors(errors),
        },
    )


def jsonable_errors(errors: list[dict]) -> list[dict]:
    """Strip non-serializable context (exception objects) from pydantic errors."""
    return [{key: value for key, value in error.items() if key != "ctx"} for error in errors]


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    """
    Catch-all handler; logs the exception and returns a safe response.

    Why needed? An unhandled error inside a diagnostic endpoint could echo
    parts of a credential value in a traceback.
    """
    logger.exception(
        "unexpected_error",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_ERROR",
            "message": "Internal server error",
            "reference_id": f"err_{int(time.time())}",
        },
    )


# ===== Router Registration =====

app.include_router(diagnostics.router)
app.include_router(webhooks.router)


# ===== Core Endpoints =====


@app.get("/")
async def root():
    """Service information and endpoint discovery."""
    return {
        "service": "Optimizer Dashboard",
        "version": VERSION,
        "status": "operational",
        "environment": settings.app_env,
        "documentation": "/docs" if not settings.is_production else None,
        "endpoints": {
            "health": "/health",
            "diagnostics": {
                "config_check": "/api/config-check",
                "credentials_debug": "/api/credentials-debug",
                "setup_guide": "/api/setup-guide",
                "analytics_connection": "/api/analytics-connection",
            },
            "webhooks": {
                "results": "/api/optimization-results",
                "status": "/api/optimization-status",
                "error": "/api/optimization-error",
            },
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "environment": settings.app_env,
        "version": VERSION,
        "timestamp": int(time.time()),
    }
