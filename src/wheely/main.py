"""
Main FastAPI application entry point.

This module sets up the FastAPI app with all middleware, routes, and lifecycle events.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import accounts_router, healthz_router, metrics_router, reports_router
from .config import MaskingSettings, Settings, get_settings
from .core.auth import RateLimiter
from .core.exceptions import WheelyException
from .core.masking import MaskingProcessor
from .core.metrics import MetricsCollector
from .core.security import CredentialCodec
from .storage import Database

DESCRIPTION = "Public transport status reports: accounts, incidents, suggestions and complaints"


def configure_logging(
    log_level: str = "INFO",
    masking: Optional[MaskingSettings] = None,
    log_json: bool = False,
) -> None:
    """Configure structured logging for the application."""
    masking = masking or MaskingSettings()

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # Silence the verbose watchfiles logger
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if log_json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            MaskingProcessor(masking.sensitive_keys, masking.email_keys),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Opens the database unless one was handed to create_app, and
        disposes of it on shutdown when the app owns it.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting Wheely service", version=app.version)

        owns_database = getattr(app.state, "database", None) is None
        if owns_database:
            app.state.database = Database.from_settings(settings.database)
            if settings.database.create_schema:
                app.state.database.create_schema()

        try:
            logger.info("Wheely service started successfully")
            yield
        finally:
            logger.info("Shutting down Wheely service")

            if owns_database:
                app.state.database.dispose()
                app.state.database = None

            logger.info("Wheely service shutdown complete")

    return lifespan


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the error envelope."""

    @app.exception_handler(WheelyException)
    async def wheely_exception_handler(request: Request, exc: WheelyException) -> JSONResponse:
        """Handle custom Wheely exceptions."""
        logger = structlog.get_logger(__name__)
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request rejected",
            error=exc.error_code,
            reason=str(exc),
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )

        headers = {}

        # Add Retry-After header for rate limit errors
        if exc.status_code == 429 and "retry_after" in exc.details:
            headers["Retry-After"] = str(exc.details["retry_after"])

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.error_code,
                "message": str(exc),
                "details": exc.details,
            },
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies and parameters are invalid input, not 422."""
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "invalid_input",
                "message": "Request could not be parsed",
                "details": {"errors": jsonable_encoder(exc.errors())},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger = structlog.get_logger(__name__)
        logger.error(
            "Unexpected exception occurred",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "details": {},
            },
        )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    A pre-built Database can be injected (tests do this); otherwise the
    lifespan opens one from settings.
    """
    settings = settings or get_settings()

    configure_logging(settings.log_level, settings.masking, settings.log_json)

    app = FastAPI(
        title="Wheely",
        description=DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings),
    )

    app.state.settings = settings
    app.state.database = database
    app.state.codec = CredentialCodec(
        rounds=settings.security.bcrypt_rounds,
        min_length=settings.security.min_password_length,
    )
    app.state.login_limiter = RateLimiter(
        rps=settings.security.login_rate_limit_rps,
        burst=settings.security.login_rate_limit_burst,
        max_clients=settings.security.login_rate_limit_max_clients,
    )
    app.state.metrics = MetricsCollector(version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_request_metrics(request: Request, call_next: Any) -> Any:
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # Label by route template so ids do not explode cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        app.state.metrics.record_request(request.method, endpoint, response.status_code, duration)
        return response

    register_exception_handlers(app)

    app.include_router(accounts_router, tags=["accounts"])
    app.include_router(reports_router, tags=["reports"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(healthz_router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "Wheely",
            "version": app.version,
            "description": DESCRIPTION,
            "docs": "/docs",
        }

    @app.get("/info", tags=["health"])
    async def info() -> Dict[str, Any]:
        """Build and runtime configuration safe to expose."""
        return {
            "service": "Wheely",
            "version": app.version,
            "database": settings.database.safe_url,
            "account_delete_policy": settings.accounts.delete_policy,
            "recent_window_days": settings.reports.recent_window_days,
            "endpoints": sorted({route.path for route in app.routes if getattr(route, "include_in_schema", False)}),
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "wheely.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )
