"""Startup tests for the assembled FastAPI application."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from subslayer.api.middleware.user_auth import AuthenticatedUser, get_current_user
from subslayer.infrastructure import settings


@pytest.fixture
def app(db):
    from subslayer.api.app import app as subslayer_app

    yield subslayer_app
    subslayer_app.dependency_overrides.clear()


def test_root_lists_endpoints(app):
    response = TestClient(app).get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["service"] == "SubSlayer API"
    assert body["endpoints"]["parse"] == "/api/parse-subscription"


def test_health_reports_llm_readiness(app, monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "groq")
    monkeypatch.delenv("SUBSLAYER_LLM_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    client = TestClient(app)

    assert client.get("/health").json()["llm"] == {"provider": "groq", "ready": False}

    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["llm"]["ready"] is True


def test_security_headers(app):
    response = TestClient(app).get("/health")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_protected_routes_require_bearer(app):
    client = TestClient(app)

    assert client.get("/api/subscriptions").status_code == 401
    assert client.post("/api/parse-subscription", json={"emailText": "x"}).status_code == 401


def test_validation_errors_are_sanitized(app):
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="u", email="u@x.com")
    response = TestClient(app).post("/api/subscriptions", json={"service_name": "Netflix"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert set(body["invalid_fields"]) == {"cost", "renewal_date"}
