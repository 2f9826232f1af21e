"""Tests for the /health endpoint and request-id middleware."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from sessionauth.config import VERSION
from sessionauth.main import app


client = TestClient(app)


@pytest.fixture(autouse=True)
def _testing_env(monkeypatch):
    monkeypatch.setenv("TESTING", "1")


def test_health_returns_ok():
    """GET /health returns 200 with status ok and db connected."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "db": "connected"}


def test_health_reports_unreachable_db(monkeypatch):
    monkeypatch.delenv("TESTING")
    with patch("sessionauth.api.routers.health.get_pool", AsyncMock(side_effect=OSError("refused"))):
        response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["db"] == "unreachable"


def test_health_version_returns_version():
    response = client.get("/health/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_request_id_header_generated():
    """Every response gets an X-Request-ID header."""
    response = client.get("/health")
    uuid.UUID(response.headers["X-Request-ID"])


def test_request_id_header_echoed():
    """Client-supplied X-Request-ID is echoed back."""
    response = client.get("/health", headers={"X-Request-ID": "my-trace-123"})
    assert response.headers["X-Request-ID"] == "my-trace-123"


def test_request_id_in_error_body():
    response = client.get("/auth/me", headers={"X-Request-ID": "trace-401"})
    assert response.status_code == 401
    assert response.json()["request_id"] == "trace-401"
