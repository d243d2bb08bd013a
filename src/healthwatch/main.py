"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from healthwatch import __version__
from healthwatch.api.v1 import api_router
from healthwatch.core.config import Settings, get_settings
from healthwatch.core.logging import setup_logging
from healthwatch.services.health import HealthAggregator, create_health_aggregator

logger = logging.getLogger(__name__)

# Seconds to let in-flight probes finish on shutdown
SHUTDOWN_DRAIN_SECONDS = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup/shutdown events."""
    # Startup
    aggregator: HealthAggregator = app.state.health_aggregator
    aggregator.freeze()
    logger.info(f"{app.title} {__version__} started")

    yield

    # Shutdown
    still_running = await aggregator.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    if still_running:
        logger.warning(f"{still_running} health probes still running at shutdown")


def create_app(
    settings: Settings | None = None,
    aggregator: HealthAggregator | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use (defaults to environment)
        aggregator: Pre-built aggregator (defaults to the configured checks)

    Raises:
        DuplicateCheckError: Conflicting health check names
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Liveness and readiness health service",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.health_aggregator = aggregator or create_health_aggregator(settings)

    # Register routes
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


# Create application instance
app = create_app()
