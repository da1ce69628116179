"""
Tests for the main application endpoints.
"""
from unittest.mock import patch

from askfield import main
from askfield.core.middleware import redact_path


def test_root_endpoint(client):
    """
    Test the root endpoint returns a welcome message.
    """
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "message" in data
    assert data["version"] == "1.0.0"


def test_health_check(client):
    """
    Test the health check endpoint returns a healthy status.
    """
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"


def test_request_id_is_generated(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]
    assert float(response.headers["X-Process-Time"]) >= 0


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_verification_tokens_are_redacted():
    assert redact_path("/api/auth/verify-email/abc123") == "/api/auth/verify-email/***"
    assert redact_path("/api/auth/login") == "/api/auth/login"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/auth/nope")
    assert response.status_code == 404
    assert response.json()["success"] is False
    assert "message" in response.json()


@patch("askfield.main.uvicorn.run")
def test_run_serves_app_with_configured_address(uvicorn_run):
    main.run()
    uvicorn_run.assert_called_once_with(
        "askfield.main:app",
        host=main.settings.host,
        port=main.settings.port,
        reload=main.settings.debug,
        log_level="debug" if main.settings.debug else "info",
    )
