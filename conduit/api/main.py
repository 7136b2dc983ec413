"""FastAPI application configuration and setup.

Main entry point for the HTTP API with CORS, middleware, rate limiting
and lifecycle management.
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from conduit.adapters.registry import AdapterRegistry
from conduit.api.auth import verify_api_key
from conduit.api.middleware import RequestLoggingMiddleware
from conduit.api.rate_limit import MAX_REQUEST_BODY_BYTES, limiter
from conduit.api.routes import api_router, webhooks_router
from conduit.exceptions import (
    ConduitError,
    ConfigurationError,
    CredentialError,
    NotFoundError,
)
from conduit.logging_config import configure_logging
from conduit.scheduler.service import SchedulerService
from conduit.settings import Settings, get_settings
from conduit.storage import close_db, init_db
from conduit.vault import CredentialVault
from conduit.workflow.runner import WorkflowRunner

logger = logging.getLogger(__name__)

# Context variable for correlation ID (async-safe)
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup builds the process collaborators and stores them on
    ``app.state``; a missing vault key aborts startup. Shutdown waits for
    in-flight runs before closing adapters and the database.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    vault = CredentialVault.from_settings(settings)

    if settings.environment != "testing":
        await init_db()

    adapters = AdapterRegistry.from_settings(settings)
    runner = WorkflowRunner(vault, adapters, step_timeout=settings.adapter_timeout_seconds)
    app.state.vault = vault
    app.state.adapters = adapters
    app.state.runner = runner

    scheduler = None
    if settings.environment != "testing":
        # start() respects CONDUIT_ROLE and SCHEDULER_ENABLED
        scheduler = SchedulerService(runner, settings)
        await scheduler.start()
    app.state.scheduler = scheduler

    logger.info("Conduit started (role=%s, environment=%s)", settings.conduit_role, settings.environment)

    yield

    if scheduler:
        await scheduler.stop()
    await runner.shutdown()
    await adapters.aclose()
    await close_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override (uses get_settings() if not provided)
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Conduit",
        description="Integration automation engine: vendor catalogs, triggers and workflows",
        version="0.1.0",
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["*"] if settings.environment in ("development", "testing") else [
            "GET", "POST", "PUT", "DELETE", "OPTIONS",
        ],
        allow_headers=["*"] if settings.environment in ("development", "testing") else [
            "Content-Type", "X-API-Key", "X-Organization-ID", "X-Correlation-ID",
        ],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.middleware("http")(_body_size_limit_middleware)
    app.middleware("http")(_security_headers_middleware)
    app.middleware("http")(_correlation_middleware)

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix="/api/v1", dependencies=[Depends(verify_api_key)])
    app.include_router(webhooks_router)

    _register_exception_handlers(app, settings)

    return app


def _get_allowed_origins(settings: Settings) -> list[str]:
    """Explicit ALLOWED_ORIGINS, else everything in development/testing and nothing elsewhere."""
    if settings.allowed_origins:
        return [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if settings.environment in ("development", "testing"):
        return ["*"]
    return []


async def _body_size_limit_middleware(request: Request, call_next):
    """Reject requests whose declared body exceeds MAX_REQUEST_BODY_BYTES."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_BODY_BYTES:
        return JSONResponse(
            status_code=413,
            content={
                "error": {
                    "code": 413,
                    "message": f"Request body too large. Maximum size is {MAX_REQUEST_BODY_BYTES} bytes.",
                    "type": "request_too_large",
                }
            },
        )
    return await call_next(request)


async def _security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return response


async def _correlation_middleware(request: Request, call_next):
    """Generate or propagate X-Correlation-ID for every request."""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def get_correlation_id() -> str | None:
    """Current request's correlation ID, or None outside a request."""
    return _correlation_id.get()


def error_status(exc: ConduitError) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, CredentialError):
        return 422  # Caller must re-enter credentials
    if isinstance(exc, ConfigurationError):
        return 500
    return 400  # ValidationError and other client-side errors


def _error_body(status_code: int, message: str, error_type: str, correlation_id: str) -> dict:
    return {
        "error": {
            "code": status_code,
            "message": message,
            "type": error_type,
            "correlation_id": correlation_id,
        }
    }


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ConduitError)
    async def conduit_error_handler(request: Request, exc: ConduitError) -> JSONResponse:
        """Handle application errors with correlation ID."""
        correlation_id = get_correlation_id() or exc.correlation_id
        status_code = error_status(exc)
        error_type = exc.__class__.__name__.replace("Error", "_error").lower()

        log = structlog.get_logger()
        if status_code >= 500:
            log.error("Conduit error", error_type=error_type, correlation_id=correlation_id, exc_info=exc)
            message = str(exc) if settings.debug else f"An error occurred. Correlation ID: {correlation_id}"
        else:
            log.info("Conduit error", error_type=error_type, correlation_id=correlation_id, error=str(exc))
            message = str(exc)

        body = _error_body(status_code, message, error_type, correlation_id)
        if isinstance(exc, CredentialError):
            body["error"]["reason"] = exc.reason
        return JSONResponse(
            status_code=status_code,
            content=body,
            headers={"X-Correlation-ID": correlation_id},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent format."""
        correlation_id = get_correlation_id() or str(uuid.uuid4())
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.detail, "http_error", correlation_id),
            headers={"X-Correlation-ID": correlation_id},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        correlation_id = get_correlation_id() or str(uuid.uuid4())
        structlog.get_logger().exception("Unhandled exception", correlation_id=correlation_id, exc_info=exc)
        detail = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(
            status_code=500,
            content=_error_body(500, detail, "internal_error", correlation_id),
            headers={"X-Correlation-ID": correlation_id},
        )
