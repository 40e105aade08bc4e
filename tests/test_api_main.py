"""
Tests for app-level endpoints, middleware and error handling.
"""
from unittest.mock import patch

from fastapi.testclient import TestClient

from memory_vault.api.main import app
from memory_vault.core.config import VERSION


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["db_health"] is True
    assert body["version"] == VERSION


def test_security_headers(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "same-origin"
    assert response.headers["Permissions-Policy"] == "camera=(), microphone=(), geolocation=()"


def test_debug_config_requires_debug(client, monkeypatch):
    monkeypatch.setenv('DEBUG', 'false')
    assert client.get("/api/debug/config").status_code == 403


def test_debug_config(client, monkeypatch):
    monkeypatch.setenv('DEBUG', 'true')
    response = client.get("/api/debug/config")
    assert response.status_code == 200
    body = response.json()
    assert body["assistant_provider"] == "none"
    assert body["has_openai_key"] is False
    assert body["knowledge_entries"] > 0


def test_unhandled_error_is_generic(register, monkeypatch):
    monkeypatch.setenv('DEBUG', 'false')
    headers, _ = register()
    with TestClient(app, raise_server_exceptions=False) as client:
        with patch('memory_vault.core.dao.list_notes', side_effect=RuntimeError("disk on fire")):
            response = client.get("/api/memories", headers=headers)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_unhandled_error_in_debug_mode(register, monkeypatch):
    monkeypatch.setenv('DEBUG', 'true')
    headers, _ = register()
    with TestClient(app, raise_server_exceptions=False) as client:
        with patch('memory_vault.core.dao.list_notes', side_effect=RuntimeError("disk on fire")):
            response = client.get("/api/memories", headers=headers)

    assert response.status_code == 500
    assert response.json()["debug"] == "disk on fire"
