"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from callmate import __version__
from callmate.api import (
    ai,
    call_logs,
    campaigns,
    customers,
    dashboard,
    health,
    invoices,
    jobs,
    payments,
    quotes,
    users,
)
from callmate.api.dependencies import close_clients
from callmate.api.rate_limits import limiter
from callmate.config import get_settings, require_valid_settings
from callmate.core.exceptions import CallMateError, DatabaseError, ValidationError
from callmate.core.log import get_logger, setup_logging
from callmate.db.session import close_db, init_db


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail),
        },
    )


def callmate_exception_handler(request: Request, exc: CallMateError) -> JSONResponse:
    """Map domain errors onto their HTTP status."""
    log = get_logger(__name__)
    if exc.status_code >= 500:
        log.error("Request failed", error=str(exc), path=request.url.path)
    else:
        log.info("Request rejected", error=exc.error_code, path=request.url.path)

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Map database failures onto the domain error shape.

    A violated constraint (unknown referenced id, missing required value)
    means the input was bad and is a 400; anything else is a 500.
    """
    if isinstance(exc, IntegrityError):
        reason = str(exc.orig).lower()
        message = (
            "Referenced record does not exist"
            if "foreign key" in reason
            else "Request violates a data constraint"
        )
        error: CallMateError = ValidationError(message, cause=exc)
    else:
        error = DatabaseError("Database operation failed", cause=exc)
    return callmate_exception_handler(request, error)


def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _status_code_to_error_type(exc.status_code),
            "message": str(exc.detail),
        },
        headers=getattr(exc, "headers", None),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with detailed field information.

    Schema violations are reported as 400 like every other rejected input.
    """
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({
            "field": field or "request",
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": errors,
        },
    )


def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Logs the error and returns a generic 500 response without exposing
    internal details in production.
    """
    log = get_logger(__name__)
    log.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )

    settings = get_settings()
    detail = str(exc) if settings.debug else "An internal error occurred"

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": detail,
        },
    )


def _status_code_to_error_type(status_code: int) -> str:
    """Map HTTP status codes to error type strings."""
    error_types = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        429: "RATE_LIMIT_EXCEEDED",
        500: "INTERNAL_ERROR",
        502: "BAD_GATEWAY",
        503: "SERVICE_UNAVAILABLE",
    }
    return error_types.get(status_code, "ERROR")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = require_valid_settings()
    log = get_logger(__name__)

    setup_logging(settings)

    log.info(
        "Starting Call Mate",
        version=__version__,
        environment=settings.environment,
    )

    log.info("Initializing database")
    await init_db()
    log.info("Database initialized successfully")

    yield

    log.info("Shutting down Call Mate")
    await close_clients()
    await close_db()
    log.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = require_valid_settings()

    app = FastAPI(
        title="Call Mate",
        description="Back office and AI receptionist for home-service businesses",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Rate limiting
    app.state.limiter = limiter

    # Exception handlers (order matters - most specific first)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(CallMateError, callmate_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Cannot use wildcard origins with credentials, so debug mode lists
    # the usual dev server origins explicitly
    cors_origins = settings.cors_origins or (
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
        if settings.debug
        else []
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(users.router, prefix="/api", tags=["Users"])
    app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"])
    app.include_router(customers.router, prefix="/api", tags=["Customers"])
    app.include_router(jobs.router, prefix="/api", tags=["Jobs"])
    app.include_router(quotes.router, prefix="/api", tags=["Quotes"])
    app.include_router(invoices.router, prefix="/api", tags=["Invoices"])
    app.include_router(call_logs.router, prefix="/api", tags=["Call Logs"])
    app.include_router(campaigns.router, prefix="/api", tags=["Campaigns"])
    app.include_router(ai.router, prefix="/api", tags=["AI Receptionist"])
    app.include_router(payments.router, prefix="/api", tags=["Payments"])

    return app


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = require_valid_settings()
    uvicorn.run(
        "callmate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
