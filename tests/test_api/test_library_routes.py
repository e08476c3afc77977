"""
Tests for Library, Usage and Health Routes

Tests for backend/api/library.py, backend/api/usage.py, backend/api/health.py
and backend/api/deps.py
"""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from backend.api import deps
from backend.core.library import LibraryStore
from backend.core.sessions import SessionRegistry
from backend.core.usage import UsageLedger
from backend.main import app

from tests.conftest import PNG_PAYLOAD

DATA_URL = f"data:image/png;base64,{PNG_PAYLOAD}"


@pytest.fixture
def client(supabase):
    registry = SessionRegistry()

    app.dependency_overrides[deps.get_current_user_id] = lambda: "alice"
    app.dependency_overrides[deps.get_registry] = lambda: registry
    app.dependency_overrides[deps.get_usage_ledger] = lambda: UsageLedger(
        supabase, {"basic": 60, "pro": 200, "business": 600}, 60, 3
    )
    app.dependency_overrides[deps.get_library_store] = lambda: LibraryStore(supabase)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["service"] == "slidecraft-api"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestPromptPresetRoutes:
    """Tests for prompt preset routes."""

    def test_create_list_update(self, client):
        created = client.post("/api/library/prompts", json={"content": "a\nb", "title": "Yoga"})
        preset_id = created.json()["id"]

        updated = client.patch(
            f"/api/library/prompts/{preset_id}", json={"content": "c", "title": ""}
        )
        listed = client.get("/api/library/prompts").json()

        assert created.status_code == 201
        assert updated.json()["title"] == "Saved prompt"
        assert [p["content"] for p in listed] == ["c"]

    def test_update_missing(self, client):
        response = client.patch("/api/library/prompts/nope", json={"content": "c"})

        assert response.status_code == 404

    def test_apply_preset_to_session(self, client):
        preset_id = client.post("/api/library/prompts", json={"content": "one\ntwo"}).json()["id"]
        session_id = client.post("/api/sessions/").json()["id"]

        response = client.post(f"/api/sessions/{session_id}/prompts/preset/{preset_id}")

        assert [s["prompt"] for s in response.json()["scenes"]] == ["one", "two"]


class TestReferenceSetRoutes:
    """Tests for reference set routes."""

    def test_save_list_and_load(self, client):
        source = client.post("/api/sessions/").json()["id"]
        client.post(f"/api/sessions/{source}/references", json={"images": [DATA_URL, DATA_URL]})

        saved = client.post("/api/library/references", json={"session_id": source, "label": "Hero"})
        set_id = saved.json()["set_id"]
        listed = client.get("/api/library/references").json()

        target = client.post("/api/sessions/").json()["id"]
        loaded = client.post(f"/api/sessions/{target}/references/library/{set_id}")

        assert saved.status_code == 201
        assert saved.json()["image_count"] == 2
        assert listed[0]["label"] == "Hero"
        assert len(listed[0]["images"]) == 2
        assert len(loaded.json()["references"]) == 2

    def test_save_empty_session(self, client):
        session_id = client.post("/api/sessions/").json()["id"]

        response = client.post("/api/library/references", json={"session_id": session_id})

        assert response.status_code == 400

    def test_load_unknown_set(self, client):
        session_id = client.post("/api/sessions/").json()["id"]

        response = client.post(f"/api/sessions/{session_id}/references/library/unknown")

        assert response.status_code == 404

    def test_rename(self, client):
        session_id = client.post("/api/sessions/").json()["id"]
        client.post(f"/api/sessions/{session_id}/references", json={"images": [DATA_URL]})
        set_id = client.post("/api/library/references", json={"session_id": session_id}).json()["set_id"]

        response = client.patch(f"/api/library/references/{set_id}", json={"label": "Renamed"})

        assert response.json() == {"set_id": set_id, "updated": 1}
        assert client.patch("/api/library/references/nope", json={"label": "x"}).status_code == 404


class TestUsageRoute:
    """Tests for the usage route."""

    def test_free_user(self, client):
        body = client.get("/api/usage/").json()

        assert body["used"] == 0
        assert body["monthly_limit"] == 60
        assert body["available"] == 3
        assert body["is_subscribed"] is False

    def test_subscriber(self, client, supabase):
        supabase.tables["subscriptions"] = [{"user_id": "alice", "is_active": True, "plan_type": "pro"}]

        body = client.get("/api/usage/").json()

        assert body["monthly_limit"] == 200
        assert body["available"] == 200
        assert body["plan_type"] == "pro"


class TestCurrentUser:
    """Tests for bearer token verification."""

    @pytest.mark.asyncio
    async def test_valid_token(self, supabase, monkeypatch):
        monkeypatch.setattr(deps, "get_supabase_client", lambda: supabase)

        assert await deps.get_current_user_id("Bearer token-alice") == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["token-alice", "Bearer bad-token"])
    async def test_rejected(self, supabase, monkeypatch, header):
        monkeypatch.setattr(deps, "get_supabase_client", lambda: supabase)

        with pytest.raises(HTTPException) as exc_info:
            await deps.get_current_user_id(header)

        assert exc_info.value.status_code == 401
