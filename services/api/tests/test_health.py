"""Tests for health endpoints and application wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status

from voicecanvas_api.main import create_app


@pytest.mark.unit
class TestHealth:
    """Liveness endpoint."""

    async def test_health_is_healthy(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["checks"] == {"api": True, "database": True}
        assert data["in_flight"] == {}
        assert "timestamp" in data

    async def test_health_degraded_without_database(self, app, async_client):
        app.state.db_initialized = False

        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "degraded"

    async def test_health_echoes_correlation_id(self, async_client):
        response = await async_client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    async def test_correlation_id_generated(self, async_client):
        response = await async_client.get("/health")

        assert response.headers["X-Correlation-ID"]


@pytest.mark.unit
class TestReadiness:
    async def test_ready_with_database(self, async_client):
        response = await async_client.get("/health/ready")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["ready"] is True
        assert response.json()["checks"]["database_connection"] is True

    async def test_not_ready_when_database_unreachable(self, async_client):
        broken = MagicMock()
        broken.connect = AsyncMock(side_effect=OSError("connection refused"))

        with patch("voicecanvas_api.routes.health.get_db", return_value=broken):
            response = await async_client.get("/health/ready")

        assert response.json()["ready"] is False


@pytest.mark.unit
class TestAppWiring:
    def test_error_envelope_for_unknown_route(self, client):
        response = client.get("/api/does-not-exist", headers={"X-Correlation-ID": "corr-1"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == 404
        assert error["correlation_id"] == "corr-1"

    def test_email_check_route_hidden_in_production(self, production):
        paths = {route.path for route in create_app().routes}

        assert "/api/test-email" not in paths
        assert "/api/webhook/stripe" in paths

    def test_email_check_route_available_in_development(self):
        paths = {route.path for route in create_app().routes}

        assert "/api/test-email" in paths
