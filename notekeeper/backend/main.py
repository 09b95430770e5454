"""
FastAPI Application Entry Point.

    uvicorn notekeeper.backend.main:app

The app object is built on first access so that importing this module
does not read configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notekeeper.backend.api import health
from notekeeper.backend.api.v1 import router as api_v1_router
from notekeeper.backend.core.concurrency import shutdown_pools
from notekeeper.backend.core.config import get_app_config, get_data_file_path, get_log_level
from notekeeper.backend.core.config_schema import ApplicationSchema
from notekeeper.backend.core.exception_handlers import register_exception_handlers
from notekeeper.backend.core.logging import get_logger, setup_logging
from notekeeper.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup; drain the I/O pool on shutdown."""
    setup_logging(level=get_log_level())
    logger.info(
        "Notekeeper starting",
        extra={
            "version": app.version,
            "env": get_app_config().application.environment,
            "data_file": str(get_data_file_path()),
        },
    )
    yield
    logger.info("Notekeeper stopping")
    await shutdown_pools()


def _add_middleware(app: FastAPI, settings: ApplicationSchema) -> None:
    # Starlette runs the last-added middleware first, so CORS wraps request context
    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """Build the FastAPI application from application.yaml."""
    settings = get_app_config().application
    show_docs = settings.docs_enabled and settings.debug

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        lifespan=lifespan,
    )

    _add_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    """Return the process-wide app, creating it on first call."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
