"""
FastAPI application entry point for the filedesk conversion service.

This module initializes the FastAPI application with configuration,
middleware, routing, and the background reclamation loop.
"""

import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from loguru import logger

from filedesk.api import files, health, images
from filedesk.config import Settings, settings as default_settings
from filedesk.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from filedesk.services.converters import build_default_registry
from filedesk.services.images import ImageService
from filedesk.services.reclamation import ReclamationLoop
from filedesk.services.renderers import get_renderer
from filedesk.services.storage import StorageManager
from filedesk.services.tracker import ConversionTaskTracker
from filedesk.utils.shell import check_command_available


def validate_renderer(settings: Settings) -> None:
    """Check that the browser executable exists when the browser backend is configured."""
    if settings.RENDER_BACKEND != "browser":
        logger.info(f"Document renderer: {settings.RENDER_BACKEND}")
        return

    if check_command_available(settings.BROWSER_PATH):
        logger.info(f"Browser renderer validated: {settings.BROWSER_PATH}")
        return

    if settings.ENVIRONMENT == "production":
        raise RuntimeError(
            f"Browser not found in production: {settings.BROWSER_PATH}. "
            "Install Chromium or set RENDER_BACKEND=reportlab."
        )
    logger.warning(
        f"Browser not found (non-fatal in {settings.ENVIRONMENT}): {settings.BROWSER_PATH}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.APP_NAME} service")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    storage_dir = app.state.storage.ensure_ready()
    logger.info(f"Storage directory: {storage_dir}")

    try:
        validate_renderer(settings)
    except RuntimeError as exc:
        logger.error(f"Renderer validation failed: {exc}")
        raise

    app.state.reclamation.start()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME} service")
    app.state.reclamation.stop()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; the environment-derived settings by default

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        description="File format conversion and image compression service",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    setup_services(app, settings)
    setup_middleware(app, settings)
    setup_routers(app)
    setup_logging(settings)

    return app


def setup_services(app: FastAPI, settings: Settings) -> None:
    """
    Build the service graph and attach it to ``app.state``.

    Args:
        app: FastAPI application instance
        settings: Application settings
    """
    storage = StorageManager(settings.STORAGE_DIR)
    renderer = get_renderer(settings)
    registry = build_default_registry(
        renderer, allow_passthrough=settings.ALLOW_PASSTHROUGH_FALLBACK
    )
    tracker = ConversionTaskTracker(storage, registry)

    app.state.settings = settings
    app.state.storage = storage
    app.state.tracker = tracker
    app.state.image_service = ImageService(storage)
    app.state.reclamation = ReclamationLoop(
        tracker,
        max_age_seconds=settings.retention_seconds,
        interval_seconds=settings.CLEANUP_INTERVAL_SECONDS,
    )


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Configure middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Application settings
    """
    app.add_middleware(
        ErrorHandlingMiddleware,  # type: ignore
        expose_tracebacks=settings.expose_tracebacks
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Trusted host middleware
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

    # Custom logging middleware
    app.add_middleware(LoggingMiddleware)  # type: ignore


def setup_routers(app: FastAPI) -> None:
    """
    Include API routers in the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.include_router(health.router, prefix="/api", tags=["service"])
    app.include_router(files.router, prefix="/api/file", tags=["files"])
    app.include_router(images.router, prefix="/api/image", tags=["images"])


def setup_logging(settings: Settings) -> None:
    """
    Configure logging with loguru.
    """
    from pathlib import Path

    logger.remove()  # Remove default handler

    # Add console handler
    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL,
        colorize=True
    )

    # Add file handler for production
    if settings.ENVIRONMENT == "production":
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        logger.add(
            "logs/app.log",
            rotation="1 day",
            retention="30 days",
            level=settings.LOG_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )


# Create the FastAPI application instance
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "filedesk.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower()
    )
