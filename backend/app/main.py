from contextlib import asynccontextmanager
import logging

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.metrics import router as metrics_router
from app.api.routes import api_router
from app.api.shared.dependencies import ServiceContainer, build_services
from app.api.shared.errors import (
    ApiError,
    api_error_handler,
    validation_error_handler,
)
from app.core.config import Settings, get_settings
from app.core.telemetry import (
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
)

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"
NOISY_LOGGERS = ("httpx", "httpcore", "playwright", "asyncio")


def _configure_logging(log_level: str) -> None:
    """
    Apply LOG_LEVEL to the application loggers.

    HTTP client and browser automation libraries log every request; they are
    held at WARNING unless LOG_LEVEL=DEBUG.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.getLogger("app").setLevel(level)

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def _install_request_id_middleware(app: FastAPI) -> None:
    """Ensure each response includes a stable X-Request-Id header."""

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    settings: Settings = app.state.settings

    # Configure OpenTelemetry at startup
    configure_opentelemetry(
        service_name=settings.otel_service_name,
        service_version=settings.otel_service_version,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        otlp_headers=settings.otel_exporter_otlp_headers,
        enabled=settings.otel_enabled,
    )

    # Instrument httpx for outbound request tracing
    instrument_httpx(enabled=settings.otel_enabled)

    yield

    # Uvicorn maps SIGINT/SIGTERM to this shutdown path.
    services: ServiceContainer = app.state.services
    await services.aclose()
    logger.info("Train search services closed")


def create_app(
    settings: Settings | None = None, services: ServiceContainer | None = None
) -> FastAPI:
    """Application factory for FastAPI."""
    settings = settings or get_settings()
    app = FastAPI(
        title="TGV MAX Checker API",
        description="Search French train schedules and spot TGV MAX seats.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services or build_services(settings)

    _configure_logging(settings.log_level)

    # Instrument FastAPI for tracing if enabled
    instrument_fastapi(app, enabled=settings.otel_enabled)
    _install_request_id_middleware(app)

    allow_origins = settings.cors_allow_origins
    allow_origin_regex = settings.cors_allow_origin_regex
    if allow_origins or allow_origin_regex:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_origin_regex=allow_origin_regex,
            allow_credentials=bool(allow_origins),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(metrics_router)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
