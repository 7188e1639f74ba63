"""
Tests for workforce_sync/main.py - FastAPI application and health checks.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError


@pytest.fixture
def mock_request():
    request = MagicMock()
    request.url.path = "/api/employees/provider1"
    request.method = "POST"
    return request


class TestHealthEndpoint:
    """Test application health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check_healthy(self):
        """Health check should return healthy when DB is connected."""
        from workforce_sync.main import health_check

        with patch("workforce_sync.main.check_db_connection", return_value=True):
            response = await health_check()

        assert response.status == "healthy"
        assert response.checks["database"] is True

    @pytest.mark.asyncio
    async def test_health_check_unavailable_when_db_down(self):
        """Health check should return 503 when DB is down."""
        from workforce_sync.main import health_check

        with patch("workforce_sync.main.check_db_connection", return_value=False):
            response = await health_check()

        assert isinstance(response, JSONResponse)
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert json.loads(response.body)["status"] == "unhealthy"

    def test_health_route_registered(self):
        """/health is served outside the API prefix."""
        from fastapi.testclient import TestClient
        from workforce_sync.main import app

        with patch("workforce_sync.main.check_db_connection", return_value=True):
            response = TestClient(app).get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["service"] == "workforce-sync"


class TestGlobalExceptionHandler:
    """Test global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_in_dev_includes_details(self, mock_request):
        """In development, exception details should be included."""
        from workforce_sync.main import global_exception_handler

        response = await global_exception_handler(mock_request, ValueError("Test error message"))

        body = json.loads(response.body)
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body["error"] == "ValueError"
        assert body["detail"] == "Test error message"
        assert body["path"] == "/api/employees/provider1"

    @pytest.mark.asyncio
    async def test_exception_handler_in_production_hides_details(self, mock_request, monkeypatch):
        """In production, only a reference id is returned."""
        from workforce_sync import main

        monkeypatch.setattr(main.settings, "ENVIRONMENT", "production")

        response = await main.global_exception_handler(mock_request, ValueError("secret detail"))

        body = json.loads(response.body)
        assert body["error"] == "Internal server error"
        assert "secret detail" not in body["detail"]
        assert "Reference ID" in body["detail"]


class TestDatabaseConnection:
    """Test database connection check."""

    def test_check_db_connection_success(self):
        """DB check should return True on successful connection."""
        from workforce_sync.db.session import check_db_connection

        assert check_db_connection() is True

    def test_check_db_connection_failure(self):
        """DB check should return False on connection failure."""
        from workforce_sync.db.session import check_db_connection

        with patch("workforce_sync.db.session.engine") as mock_engine:
            mock_engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

            result = check_db_connection()

        assert result is False


class TestErrorResponseModel:
    """Test ErrorResponse Pydantic model."""

    def test_error_response_optional_fields(self):
        """ErrorResponse should allow None for optional fields."""
        from workforce_sync.main import ErrorResponse

        response = ErrorResponse(error="TestError", timestamp="2026-01-01T00:00:00")

        assert response.detail is None
        assert response.path is None
