"""
Tests for Session API Routes

Tests for backend/api/sessions.py through the FastAPI app.
"""

import pytest
from fastapi.testclient import TestClient

from slidecraft.core.constants import ImageSize
from slidecraft.core.exceptions import MissingKeyError
from slidecraft.engine import SceneGenerationEngine
from slidecraft.outline import StoryboardOutlineGenerator
from slidecraft.session import GenerationSession

from backend.api import deps
from backend.api import sessions as sessions_api
from backend.api.sessions import execute_batch
from backend.core.library import LibraryStore
from backend.core.rate_limit import limiter
from backend.core.sessions import SessionRegistry
from backend.core.usage import UsageLedger
from backend.main import app

from tests.conftest import PNG_PAYLOAD, FakeImageClient, FakeTextClient

DATA_URL = f"data:image/png;base64,{PNG_PAYLOAD}"


class ApiHarness:
    """Test client plus the fakes wired behind the app's dependencies."""

    def __init__(self, client, supabase, image_client, text_client, user):
        self.client = client
        self.supabase = supabase
        self.image_client = image_client
        self.text_client = text_client
        self.user = user

    def new_session(self, with_references=True, prompts=None):
        session_id = self.client.post("/api/sessions/").json()["id"]
        if with_references:
            self.client.post(f"/api/sessions/{session_id}/references", json={"images": [DATA_URL]})
        if prompts:
            self.client.post(f"/api/sessions/{session_id}/prompts", json={"text": "\n".join(prompts)})
        return session_id

    def session(self, session_id):
        return self.client.get(f"/api/sessions/{session_id}").json()


@pytest.fixture
def api(supabase, yoga_outline):
    image_client = FakeImageClient()
    text_client = FakeTextClient(response=yoga_outline)
    registry = SessionRegistry()
    user = {"id": "alice"}

    app.dependency_overrides[deps.get_current_user_id] = lambda: user["id"]
    app.dependency_overrides[deps.get_registry] = lambda: registry
    app.dependency_overrides[deps.get_engine] = lambda: SceneGenerationEngine(image_client)
    app.dependency_overrides[deps.get_outline_generator] = lambda: StoryboardOutlineGenerator(text_client)
    app.dependency_overrides[deps.get_usage_ledger] = lambda: UsageLedger(
        supabase, {"basic": 60, "pro": 200, "business": 600}, 60, 3
    )
    app.dependency_overrides[deps.get_library_store] = lambda: LibraryStore(supabase)
    limiter.enabled = False

    with TestClient(app) as client:
        yield ApiHarness(client, supabase, image_client, text_client, user)

    app.dependency_overrides.clear()
    limiter.enabled = True


class TestSessionLifecycle:
    """Tests for creating, reading and deleting sessions."""

    def test_create_and_list(self, api):
        response = api.client.post("/api/sessions/", json={"size": "2K"})

        assert response.status_code == 201
        assert response.json()["size"] == "2K"
        assert response.json()["scenes"] == []
        assert len(api.client.get("/api/sessions/").json()) == 1

    def test_other_user_cannot_read(self, api):
        session_id = api.new_session()
        api.user["id"] = "bob"

        response = api.client.get(f"/api/sessions/{session_id}")

        assert response.status_code == 404
        assert api.client.get("/api/sessions/").json() == []

    def test_delete(self, api):
        session_id = api.new_session()

        assert api.client.delete(f"/api/sessions/{session_id}").status_code == 200
        assert api.client.get(f"/api/sessions/{session_id}").status_code == 404


class TestReferencesAndPrompts:
    """Tests for reference upload and prompt sources."""

    def test_invalid_reference(self, api):
        session_id = api.new_session(with_references=False)

        response = api.client.post(
            f"/api/sessions/{session_id}/references", json={"images": ["not-a-data-url"]}
        )

        assert response.status_code == 400

    def test_remove_reference(self, api):
        session_id = api.new_session()
        ref_id = api.session(session_id)["references"][0]["id"]

        response = api.client.delete(f"/api/sessions/{session_id}/references/{ref_id}")

        assert response.status_code == 200
        assert response.json()["references"] == []
        assert api.client.delete(f"/api/sessions/{session_id}/references/{ref_id}").status_code == 404

    def test_blank_prompts_rejected(self, api):
        session_id = api.new_session()

        response = api.client.post(f"/api/sessions/{session_id}/prompts", json={"text": "\n  \n"})

        assert response.status_code == 400

    def test_prompts_become_scenes(self, api):
        session_id = api.new_session(prompts=["one", "two"])

        scenes = api.session(session_id)["scenes"]

        assert [s["prompt"] for s in scenes] == ["one", "two"]
        assert all(s["status"] == "pending" for s in scenes)

    def test_storyboard_ends_with_cta(self, api):
        session_id = api.new_session()

        response = api.client.post(
            f"/api/sessions/{session_id}/storyboard", json={"topic": "Benefits of Yoga"}
        )

        scenes = response.json()["scenes"]
        assert response.status_code == 200
        assert response.json()["mode"] == "storyboard"
        assert len(scenes) == 6
        assert scenes[-1]["is_cta"] is True
        assert "Download Lifestack" in scenes[-1]["description"]

    def test_storyboard_blank_topic(self, api):
        session_id = api.new_session()

        response = api.client.post(f"/api/sessions/{session_id}/storyboard", json={"topic": "   "})

        assert response.status_code == 400
        assert api.text_client.calls == []


class TestGenerate:
    """Tests for batch generation."""

    def test_batch_renders_every_scene(self, api):
        """Test the background batch fills every scene and spends credits."""
        session_id = api.new_session(prompts=["one", "two"])

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        assert response.status_code == 202
        assert response.json()["scenes_to_generate"] == 2

        state = api.session(session_id)
        assert [s["status"] for s in state["scenes"]] == ["succeeded", "succeeded"]
        assert state["last_report"]["succeeded"] == 2
        assert state["is_generating"] is False
        assert api.supabase.tables["usage_limits"][0]["used"] == 2

    def test_storyboard_batch_skips_cta(self, api):
        api.supabase.tables["subscriptions"] = [
            {"user_id": "alice", "is_active": True, "plan_type": "pro"}
        ]
        session_id = api.new_session()
        api.client.post(f"/api/sessions/{session_id}/storyboard", json={"topic": "Benefits of Yoga"})

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        statuses = [s["status"] for s in api.session(session_id)["scenes"]]
        assert response.json()["scenes_to_generate"] == 5
        assert statuses == ["succeeded"] * 5 + ["call_to_action"]
        assert len(api.image_client.calls) == 5

    def test_requires_references(self, api):
        session_id = api.new_session(with_references=False, prompts=["one"])

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        assert response.status_code == 400
        assert response.json()["detail"] == "Upload at least one reference image first"
        assert api.image_client.calls == []

    def test_requires_scenes(self, api):
        session_id = api.new_session()

        assert api.client.post(f"/api/sessions/{session_id}/generate").status_code == 400

    def test_nothing_left_to_render(self, api):
        session_id = api.new_session(prompts=["one"])
        api.client.post(f"/api/sessions/{session_id}/generate")

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        assert response.status_code == 400

    def test_free_user_over_cap(self, api):
        session_id = api.new_session(prompts=["a", "b", "c", "d"])

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        assert response.status_code == 402
        assert response.json()["code"] == "credit_limit"
        assert api.image_client.calls == []

    def test_subscriber_can_render_more(self, api):
        api.supabase.tables["subscriptions"] = [
            {"user_id": "alice", "is_active": True, "plan_type": "basic"}
        ]
        session_id = api.new_session(prompts=["a", "b", "c", "d"])

        response = api.client.post(f"/api/sessions/{session_id}/generate")

        assert response.status_code == 202
        assert api.session(session_id)["last_report"]["succeeded"] == 4

    def test_failed_scene_does_not_stop_batch(self, api):
        api.image_client.failures["two"] = MissingKeyError()
        session_id = api.new_session(prompts=["one", "two", "three"])

        api.client.post(f"/api/sessions/{session_id}/generate")

        state = api.session(session_id)
        assert [s["status"] for s in state["scenes"]] == ["succeeded", "failed", "succeeded"]
        assert state["scenes"][1]["error_code"] == "missing_key"
        assert state["last_report"]["missing_key"] is True

    def test_second_generate_while_queued(self, api, monkeypatch):
        """Test the batch slot is taken when the batch is queued, not when it starts."""
        queued = []

        async def hold_slot(session, engine, credit_guard, size, reservation):
            queued.append(reservation)

        monkeypatch.setattr(sessions_api, "execute_batch", hold_slot)
        session_id = api.new_session(prompts=["one", "two"])

        first = api.client.post(f"/api/sessions/{session_id}/generate")
        second = api.client.post(f"/api/sessions/{session_id}/generate")

        assert first.status_code == 202
        assert second.status_code == 409
        assert len(queued) == 1
        assert api.session(session_id)["is_generating"] is True
        assert api.client.post(f"/api/sessions/{session_id}/cancel").json()["success"] is True

    def test_cancel_without_batch(self, api):
        session_id = api.new_session()

        response = api.client.post(f"/api/sessions/{session_id}/cancel")

        assert response.json()["success"] is False


class TestRegenerate:
    """Tests for single-scene regeneration."""

    def test_replaces_image(self, api):
        session_id = api.new_session(prompts=["one", "two"])
        api.client.post(f"/api/sessions/{session_id}/generate")
        before = api.session(session_id)["scenes"][1]["image_url"]

        response = api.client.post(f"/api/sessions/{session_id}/scenes/1/regenerate")

        assert response.status_code == 200
        assert response.json()["status"] == "succeeded"
        assert response.json()["image_url"] != before
        assert api.session(session_id)["scenes"][0]["image_url"].endswith("#1")

    def test_index_out_of_range(self, api):
        session_id = api.new_session(prompts=["one"])

        response = api.client.post(f"/api/sessions/{session_id}/scenes/5/regenerate")

        assert response.status_code == 404

    def test_cta_untouched(self, api):
        session_id = api.new_session()
        api.client.post(f"/api/sessions/{session_id}/storyboard", json={"topic": "Benefits of Yoga"})

        response = api.client.post(f"/api/sessions/{session_id}/scenes/5/regenerate")

        assert response.status_code == 200
        assert response.json()["is_cta"] is True
        assert api.image_client.calls == []


class CrashingEngine(SceneGenerationEngine):
    async def run_batch(self, *args, **kwargs):
        raise RuntimeError("worker pool exploded")


class TestExecuteBatch:
    """Tests for the background batch task."""

    @pytest.mark.asyncio
    async def test_not_started_report(self):
        """Test a batch that cannot start still leaves a full report."""
        session = GenerationSession(user_id="alice")
        await session.set_manual_prompts("one\ntwo")
        reservation = session.store.reserve_batch()

        await execute_batch(
            session, SceneGenerationEngine(FakeImageClient()), None, ImageSize.SIZE_1K, reservation
        )

        report = session.last_report
        assert report["total"] == 2
        assert report["attempted"] == 0
        assert report["halted"] is True
        assert report["halt_reason"] == "not_started"
        assert report["error"] == "Upload at least one reference image first"
        assert session.store.batch_running is False

    @pytest.mark.asyncio
    async def test_crash_report(self):
        session = GenerationSession(user_id="alice")
        await session.set_manual_prompts("one")
        reservation = session.store.reserve_batch()

        await execute_batch(
            session, CrashingEngine(FakeImageClient()), None, ImageSize.SIZE_1K, reservation
        )

        assert session.last_report["halt_reason"] == "error"
        assert session.last_report["error"] == "Generation failed"
        assert session.last_report["succeeded"] == 0
        assert session.store.batch_running is False
