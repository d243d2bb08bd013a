"""Tests for health API endpoints."""

import pytest
from fastapi.testclient import TestClient

from healthwatch.services.health import (
    CheckResult,
    CheckScope,
    DuplicateCheckError,
    HealthStatus,
)


class TestLiveness:
    """Tests for the liveness endpoint."""

    def test_liveness_returns_up(self, client: TestClient):
        """Test liveness with no checks matches the stub response."""
        response = client.get("/api/v1/health/liveness")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"status": "UP", "message": "Application is alive"}

    def test_liveness_down_still_200(self, settings, aggregator):
        """Test liveness reports DOWN in the body only."""
        from healthwatch.main import create_app

        aggregator.register("loop", lambda: False, scopes=[CheckScope.LIVENESS])

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            response = client.get("/api/v1/health/liveness")

        assert response.status_code == 200
        assert response.json() == {
            "status": "DOWN",
            "message": "Application is not alive: loop",
        }


class TestReadiness:
    """Tests for the readiness endpoint."""

    def test_readiness_returns_up(self, client: TestClient):
        """Test readiness with no checks matches the stub response."""
        response = client.get("/api/v1/health/readiness")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        assert data["message"] == "Application is ready"
        assert data["checks"] == []

    def test_readiness_lists_checks(self, settings, aggregator):
        """Test readiness includes per-check detail in order."""
        from healthwatch.main import create_app

        aggregator.register(
            "database",
            lambda: CheckResult(name="database", status=HealthStatus.UP, message="connected"),
        )
        aggregator.register("cache", lambda: True)

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            response = client.get("/api/v1/health/readiness")

        assert response.status_code == 200
        assert response.json()["checks"] == [
            {"name": "database", "status": "UP", "message": "connected"},
            {"name": "cache", "status": "UP", "message": ""},
        ]

    def test_readiness_failure_is_503(self, settings, aggregator):
        """Test a throwing probe gives a 503 with the failure text."""
        from healthwatch.main import create_app

        def broken() -> CheckResult:
            raise RuntimeError("database unreachable")

        aggregator.register("database", broken)

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            response = client.get("/api/v1/health/readiness")

        assert response.status_code == 503
        assert response.json() == {
            "status": "DOWN",
            "message": "Application is not ready: database",
            "checks": [
                {"name": "database", "status": "DOWN", "message": "database unreachable"}
            ],
        }

    def test_readiness_timeout_is_503(self, settings):
        """Test a timed-out probe shows as UNKNOWN."""
        import asyncio

        from healthwatch.main import create_app
        from healthwatch.services.health import HealthAggregator

        aggregator = HealthAggregator(timeout=0.05)

        async def hung() -> bool:
            await asyncio.sleep(0.2)
            return True

        aggregator.register("queue", hung)

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            response = client.get("/api/v1/health/readiness")

        assert response.status_code == 503
        assert response.json()["checks"][0] == {
            "name": "queue",
            "status": "UNKNOWN",
            "message": "check timed out",
        }

    def test_liveness_checks_not_in_readiness(self, settings, aggregator):
        """Test readiness ignores liveness-only checks."""
        from healthwatch.main import create_app

        aggregator.register("loop", lambda: False, scopes=[CheckScope.LIVENESS])

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            response = client.get("/api/v1/health/readiness")

        assert response.status_code == 200
        assert response.json()["checks"] == []


class TestApplication:
    """Tests for application wiring."""

    def test_startup_freezes_checks(self, app, aggregator):
        """Test registration closes once the app starts."""
        with TestClient(app):
            assert aggregator.frozen is True

    def test_docs_disabled_outside_debug(self, client: TestClient):
        """Test OpenAPI docs are hidden unless debug is on."""
        assert client.get("/docs").status_code == 404

    def test_docs_enabled_in_debug(self, aggregator):
        """Test OpenAPI docs are served in debug mode."""
        from healthwatch.core.config import Settings
        from healthwatch.main import create_app

        settings = Settings(debug=True, log_format="text")

        with TestClient(create_app(settings=settings, aggregator=aggregator)) as client:
            assert client.get("/openapi.json").status_code == 200

    def test_default_aggregator_from_settings(self):
        """Test the app builds its own aggregator when none is given."""
        from healthwatch.core.config import Settings
        from healthwatch.main import create_app

        settings = Settings(log_format="text", health_system_checks=False)

        with TestClient(create_app(settings=settings)) as client:
            response = client.get("/api/v1/health/liveness")

        assert response.status_code == 200
        assert response.json()["status"] == "UP"

    def test_duplicate_checks_abort_startup(self):
        """Test conflicting check names stop app creation."""
        from healthwatch.core.config import Settings
        from healthwatch.main import create_app

        settings = Settings(
            log_format="text",
            health_dependency_urls={"disk": "http://storage.local"},
        )

        with pytest.raises(DuplicateCheckError):
            create_app(settings=settings)
