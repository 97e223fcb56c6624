"""Integration tests for health check endpoints."""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client: TestClient) -> None:
        """Test that /health endpoint returns 200 status."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_healthy_status(self, client: TestClient) -> None:
        """Test that /health endpoint returns healthy status."""
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["timestamp"] is not None
        assert data["version"] == "0.1.0"


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    def test_readiness_returns_200_when_healthy(self, client: TestClient) -> None:
        """Test that /health/ready returns 200 when the database answers."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_includes_database_check(self, client: TestClient) -> None:
        """Test that /health/ready reports the database check with latency."""
        data = client.get("/health/ready").json()

        db_check = next(c for c in data["checks"] if c["name"] == "database")
        assert db_check["healthy"] is True
        assert db_check["latency_ms"] is not None

    def test_readiness_returns_503_when_database_unhealthy(
        self, client: TestClient, mock_supabase_client: MagicMock
    ) -> None:
        """Test that /health/ready returns 503 when the database query fails."""
        mock_supabase_client.tables["options"].execute.side_effect = Exception("Connection failed")

        response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["checks"][0]["error"] == "Connection failed"


class TestErrorResponseSchema:
    """Tests for error response schema compliance."""

    def test_api_error_uses_error_response_format(self, client: TestClient) -> None:
        """Test that domain errors are returned as ErrorResponse."""
        from src.api.middleware.error_handler import StorageUnavailableError

        with patch(
            "src.api.routes.options.get_default_values",
            side_effect=StorageUnavailableError(),
        ):
            response = client.get("/api/v1/options/defaults")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "storage_unavailable"
        assert "timestamp" in data
