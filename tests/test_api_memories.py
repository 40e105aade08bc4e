"""
Tests for memory CRUD endpoints and personal vault gating.
"""
import pytest

from memory_vault.core import dao


@pytest.fixture
def auth(register):
    headers, _ = register()
    return headers


@pytest.fixture
def unlocked(client, auth):
    """Auth headers plus a valid personal unlock token."""
    response = client.post("/api/personal/pin/setup", json={"pin": "1234"}, headers=auth)
    assert response.status_code == 201
    return {**auth, "X-Personal-Unlock-Token": response.json()["unlock_token"]}


def _create(client, headers, **fields):
    payload = {"title": "Math class", "content": "Derivatives", "category": "learning"}
    payload.update(fields)
    response = client.post("/api/memories", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestMemories:

    def test_create_and_list(self, client, auth):
        created = _create(client, auth, importance=True)
        assert created["importance"] is True
        assert created["is_favorite"] is False
        assert created["timestamp"]

        response = client.get("/api/memories", headers=auth)
        assert response.status_code == 200
        body = response.json()
        assert [n["id"] for n in body["data"]] == [created["id"]]
        assert body["personal_locked"] is True

    def test_empty_category_rejected(self, client, auth):
        response = client.post("/api/memories", json={"title": "x", "category": "  "}, headers=auth)
        assert response.status_code == 422

    def test_users_only_see_their_own(self, client, auth, register):
        note = _create(client, auth)
        other, _ = register(username="bob")

        assert client.get("/api/memories", headers=other).json()["data"] == []
        assert client.patch(f"/api/memories/{note['id']}", json={"title": "x"}, headers=other).status_code == 404
        assert client.delete(f"/api/memories/{note['id']}", headers=other).status_code == 404

    def test_partial_update(self, client, auth):
        note = _create(client, auth)

        response = client.patch(f"/api/memories/{note['id']}", json={"is_favorite": True}, headers=auth)

        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["is_favorite"] is True
        assert updated["title"] == "Math class"
        assert updated["timestamp"] == note["timestamp"]

    def test_update_blank_category(self, client, auth):
        note = _create(client, auth)
        response = client.patch(f"/api/memories/{note['id']}", json={"category": " "}, headers=auth)
        assert response.status_code == 400

    def test_delete(self, client, auth):
        note = _create(client, auth)

        response = client.delete(f"/api/memories/{note['id']}", headers=auth)
        assert response.status_code == 200
        assert client.delete(f"/api/memories/{note['id']}", headers=auth).status_code == 404

    def test_activity_log(self, client, auth):
        note = _create(client, auth)
        client.patch(f"/api/memories/{note['id']}", json={"title": "Calculus"}, headers=auth)
        client.delete(f"/api/memories/{note['id']}", headers=auth)

        actions = [a.action for a in dao.list_activities(10)]
        assert actions[:3] == ["memory_delete", "memory_update", "memory_create"]


class TestPersonalGating:

    def test_personal_create_requires_unlock(self, client, auth):
        response = client.post("/api/memories", json={"title": "Diary", "category": "personal"}, headers=auth)
        assert response.status_code == 403

    def test_personal_notes_hidden_while_locked(self, client, unlocked, auth):
        personal = _create(client, unlocked, title="Diary", category="personal")
        _create(client, auth, title="Math")

        locked_view = client.get("/api/memories", headers=auth).json()
        assert [n["title"] for n in locked_view["data"]] == ["Math"]
        assert locked_view["personal_locked"] is True

        unlocked_view = client.get("/api/memories", headers=unlocked).json()
        assert [n["id"] for n in unlocked_view["data"]][0] == personal["id"]
        assert unlocked_view["personal_locked"] is False

    def test_personal_update_and_delete_require_unlock(self, client, unlocked, auth):
        personal = _create(client, unlocked, title="Diary", category="personal")

        assert client.patch(f"/api/memories/{personal['id']}", json={"title": "x"}, headers=auth).status_code == 403
        assert client.delete(f"/api/memories/{personal['id']}", headers=auth).status_code == 403
        assert client.patch(f"/api/memories/{personal['id']}", json={"title": "x"}, headers=unlocked).status_code == 200
        assert client.delete(f"/api/memories/{personal['id']}", headers=unlocked).status_code == 200

    def test_moving_into_personal_requires_unlock(self, client, unlocked, auth):
        note = _create(client, auth)
        assert client.patch(f"/api/memories/{note['id']}", json={"category": "personal"}, headers=auth).status_code == 403
        assert client.patch(f"/api/memories/{note['id']}", json={"category": "personal"}, headers=unlocked).status_code == 200

    def test_wrong_unlock_token(self, client, unlocked, auth):
        headers = {**auth, "X-Personal-Unlock-Token": "not-the-token"}
        response = client.post("/api/memories", json={"title": "Diary", "category": "personal"}, headers=headers)
        assert response.status_code == 403
