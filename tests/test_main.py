import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_conversation_service
from app.core.config import settings
from app.core.errors import ConfigurationError
from app.main import app


@pytest.fixture
def client():
    # No context manager: the lifespan (database connect) is not run
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_banner(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"]
    assert "not configured" in data["status"]


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["timestamp"]


def test_security_headers(client):
    response = client.get("/api/health")

    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert "no-store" in response.headers.get("Cache-Control", "")


def test_cors_preflight_from_frontend(client):
    response = client.options(
        "/api/chat",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"


def test_services_missing_without_startup(client):
    response = client.post("/api/chat", json={"message": "hello", "userId": "u-1"})

    assert response.status_code == 500
    assert "error" in response.json()


def test_unhandled_error_hides_details_in_production(client, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    def broken_service():
        raise RuntimeError("secret internal failure")

    app.dependency_overrides[get_conversation_service] = broken_service

    response = client.get("/api/chat/history/u-1")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_unhandled_error_shows_details_in_development(client, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")

    def broken_service():
        raise RuntimeError("secret internal failure")

    app.dependency_overrides[get_conversation_service] = broken_service

    response = client.get("/api/chat/history/u-1")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Internal server error"
    assert data["details"] == "secret internal failure"
    assert "RuntimeError" in data["stack"]


def test_startup_requires_database_url(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", None)

    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass
