"""
Basic application tests.

Validates that the FastAPI app starts correctly, the health endpoint
responds as expected and every response carries the security headers.
"""

import importlib

from fastapi.testclient import TestClient


class TestApplicationFactory:
    """The app module must import cleanly and mount every router."""

    def test_app_module_imports(self) -> None:
        module = importlib.import_module("app.main")
        assert module.app.title

    def test_every_context_is_mounted(self) -> None:
        from app.main import create_app

        paths = {route.path for route in create_app().routes}
        for expected in (
            "/api/v1/health",
            "/api/v1/alerts",
            "/api/v1/liquidity",
            "/api/v1/notifications",
            "/api/v1/payments/checkout",
            "/api/v1/reports",
            "/api/v1/monthly-trainings",
            "/api/v1/users/me",
            "/api/v1/cron/send-notification-jobs",
            "/api/v1/cron/market-close",
            "/api/v1/cron/subscription-notifications",
            "/api/v1/cron/training-reminders",
        ):
            assert expected in paths


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_200(self, client: TestClient) -> None:
        """Health endpoint must return HTTP 200 with status ok."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200

    def test_health_response_body(self, client: TestClient) -> None:
        """Health endpoint must report version and database reachability."""
        body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert "version" in body


class TestSecurityHeaders:
    def test_headers_on_every_response(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "max-age" in response.headers["Strict-Transport-Security"]

    def test_api_responses_are_not_cached(self, client: TestClient) -> None:
        assert client.get("/api/v1/health").headers["Cache-Control"] == "no-store"
