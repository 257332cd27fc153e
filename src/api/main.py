"""HTTP entrypoint: app construction, logging and startup/shutdown."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.openapi.routes import health, sync, videos, webhooks
from src.commons.settings.models import Settings
from src.commons.telemetry import configure_logging, get_logger
from src.commons.telemetry.langfuse_client import init_langfuse, shutdown_langfuse
from src.commons.telemetry.logger import JsonFormatter, TextFormatter

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _log_level(settings: Settings) -> int:
    name = settings.telemetry.log_level or settings.app.log_level
    return int(getattr(logging, name.upper()))


def _setup_logging(settings: Settings) -> None:
    """Install our formatter on the ``src`` logger tree.

    Runs at import so that anything logged while the app is being built
    already uses the configured format.
    """
    level = _log_level(settings)
    configure_logging(
        level=logging.getLevelName(level),
        format_type=settings.telemetry.log_format,
        logger_name="src",
    )
    logging.getLogger().setLevel(level)


def _adopt_uvicorn_loggers(settings: Settings) -> None:
    """Reformat uvicorn's loggers, which only exist once the server runs."""
    level = _log_level(settings)
    formatter: logging.Formatter = (
        JsonFormatter() if settings.telemetry.log_format == "json" else TextFormatter()
    )
    for name in _UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.setLevel(level)
        if not uv_logger.handlers:
            uv_logger.addHandler(logging.StreamHandler(sys.stdout))
            uv_logger.propagate = False
        for handler in uv_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)


_setup_logging(get_settings())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Start tracing and services; on exit cancel polls and close clients."""
    settings = get_settings()
    _adopt_uvicorn_loggers(settings)

    if settings.telemetry.enabled:
        init_langfuse(settings.telemetry.langfuse)

    await init_services(settings)
    get_logger(__name__).info(
        "Service started",
        extra={
            "environment": settings.app.environment,
            "document_db": settings.document_db.provider,
            "webhook_signatures": bool(settings.streaming.webhook_secret),
        },
    )

    yield

    await shutdown_services()
    shutdown_langfuse()


def create_app() -> FastAPI:
    """Build the FastAPI application from the current settings.

    Returns:
        Application with middleware and every router mounted.
    """
    settings = get_settings()
    docs = settings.server.docs_enabled

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Video status sync and AI processing pipeline",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    # Registered last so it wraps everything above and sees the request id
    app.middleware("http")(error_handler_middleware)

    # Health checks stay unprefixed for load balancers
    app.include_router(health.router, tags=["Health"])

    prefix = settings.server.api_prefix
    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(sync.router, prefix=prefix, tags=["Sync"])
    app.include_router(webhooks.router, prefix=prefix, tags=["Webhooks"])

    return app


app = create_app()
