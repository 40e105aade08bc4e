"""
Shared fixtures: every test gets its own SQLite database and no external responder.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Set up test environment before any memory_vault import reads it
TEST_DB_PATH = tempfile.mkstemp(suffix='.db')[1]
os.environ['DB_PATH'] = TEST_DB_PATH
os.environ['ASSISTANT_PROVIDER'] = 'none'
os.environ['PASSWORD_HASH_ITERATIONS'] = '1000'
os.environ.pop('OPENAI_API_KEY', None)
os.environ.pop('ADMIN_API_KEY', None)
os.environ.pop('ADMIN_OWNER_EMAIL', None)

from memory_vault.core.db import init_db
from memory_vault.core.schema import KnowledgeEntry, Note


@pytest.fixture(autouse=True)
def fresh_db(tmp_path, monkeypatch):
    """Point the data layer at an empty database for each test."""
    db_path = tmp_path / "memory_vault_test.db"
    monkeypatch.setenv('DB_PATH', str(db_path))
    init_db()
    yield db_path


@pytest.fixture(autouse=True)
def reset_api_state():
    """Clear process-wide unlock sessions and sign-in attempt counters."""
    from memory_vault.api import deps
    deps.vault_locks.clear()
    deps.rate_limiter.reset()
    yield
    deps.vault_locks.clear()
    deps.rate_limiter.reset()


@pytest.fixture
def client():
    """Create test client for API testing."""
    from fastapi.testclient import TestClient
    from memory_vault.api.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Sign up a user and return (auth headers, user info)."""

    def _register(username="ana", email=None, password="secret123", name="Ana"):
        response = client.post("/api/auth/signup", json={
            "email": email or f"{username}@example.com",
            "username": username,
            "password": password,
            "name": name,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _register


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_note(now):
    """Factory for notes with a timestamp a given number of days before `now`."""
    counter = {"n": 0}

    def _make(title="", content="", category="learning", importance=False, days_old=0.0, timestamp=...):
        counter["n"] += 1
        if timestamp is ...:
            timestamp = now - timedelta(days=days_old)
        return Note(
            id=f"note-{counter['n']}",
            title=title,
            content=content,
            category=category,
            importance=importance,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def pin_entry():
    return KnowledgeEntry(topic="PIN", answer="Set a 4-6 digit PIN", keywords=("pin", "security"))


@pytest.fixture
def sample_knowledge(pin_entry):
    return (
        KnowledgeEntry(topic="Export", answer="Export memories as CSV or TXT.", keywords=("export", "csv")),
        pin_entry,
        KnowledgeEntry(topic="Search", answer="Use the search box to filter memories.", keywords=("search", "filter")),
    )
