"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from healthwatch.core.config import Settings

    return Settings(
        environment="testing",
        log_format="text",
        health_process_check=False,
        health_system_checks=False,
    )


@pytest.fixture(scope="function")
def aggregator():
    """Create an empty aggregator with a short timeout."""
    from healthwatch.services.health import HealthAggregator

    return HealthAggregator(timeout=0.5)


@pytest.fixture(scope="function")
def app(settings, aggregator):
    """Create FastAPI application for testing."""
    from healthwatch.main import create_app

    return create_app(settings=settings, aggregator=aggregator)


@pytest.fixture(scope="function")
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client
