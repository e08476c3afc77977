"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import base64
import copy
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from postgrest.exceptions import APIError

from slidecraft.core.constants import ImageSize
from slidecraft.llm.base import ImageGenerationClient, TextGenerationClient
from slidecraft.references import ReferenceImage


PNG_PAYLOAD = base64.b64encode(b"\x89PNG\r\n\x1a\nfake-image").decode("ascii")


class FakeImageClient(ImageGenerationClient):
    """Image client that records calls and fails for chosen scene prompts."""

    def __init__(self, failures: Dict[str, Exception] = None):
        self.failures = failures or {}
        self.calls: List[Dict[str, Any]] = []

    async def generate_image(self, prompt, references, size):
        self.calls.append({"prompt": prompt, "references": list(references), "size": size})
        for scene_prompt, error in self.failures.items():
            if prompt.endswith(scene_prompt):
                raise error
        return f"data:image/png;base64,{PNG_PAYLOAD}#{len(self.calls)}"

    def scene_prompts(self) -> List[str]:
        """The scene part of every prompt sent, in call order."""
        return [call["prompt"].rsplit("\n", 1)[-1] for call in self.calls]


class FakeTextClient(TextGenerationClient):
    """Text client returning a canned answer or raising."""

    def __init__(self, response: Any = None, error: Exception = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate_json(self, contents, system_instruction, response_schema):
        self.calls.append({
            "contents": contents,
            "system_instruction": system_instruction,
            "response_schema": response_schema,
        })
        if self.error:
            raise self.error
        if isinstance(self.response, str):
            return self.response
        return json.dumps(self.response)


# =============================================================================
# SUPABASE FAKE
# =============================================================================

class FakeQuery:
    """Minimal stand-in for the postgrest query builder."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns: Optional[List[str]] = None
        self.filters: List[tuple] = []
        self.payload: Any = None
        self.order_key: Optional[str] = None
        self.order_desc = False
        self.limit_count: Optional[int] = None

    def select(self, columns: str = "*"):
        self.columns = None if columns == "*" else [c.strip() for c in columns.split(",")]
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def eq(self, key, value):
        self.filters.append((key, value))
        return self

    def order(self, key, desc=False):
        self.order_key = key
        self.order_desc = desc
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def _matches(self, row):
        return all(row.get(key) == value for key, value in self.filters)

    def _project(self, row):
        if not self.columns:
            return dict(row)
        return {key: row.get(key) for key in self.columns}

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            error = self.db.insert_errors.get(self.table)
            if error:
                del self.db.insert_errors[self.table]
                hook = self.db.before_insert_error.pop(self.table, None)
                if hook:
                    hook(self.db)
                raise error
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for row in new_rows:
                stored = {"id": f"{self.table}-{self.db.next_id()}", "created_at": self.db.now()}
                stored.update(copy.deepcopy(row))
                rows.append(stored)
                inserted.append(dict(stored))
            return SimpleNamespace(data=inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=[dict(row) for row in matched])

        if self.order_key:
            matched = sorted(matched, key=lambda r: r.get(self.order_key) or "", reverse=self.order_desc)
        if self.limit_count is not None:
            matched = matched[:self.limit_count]
        return SimpleNamespace(data=[self._project(row) for row in matched])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        self.storage.files[(self.name, path)] = content
        return SimpleNamespace(path=path)

    def download(self, path):
        return self.storage.files[(self.name, path)]

    def create_signed_url(self, path, expires_in):
        if path in self.storage.unsignable:
            raise RuntimeError("Object not found")
        self.storage.signed.append((path, expires_in))
        return {"signedURL": f"https://storage.test/{self.name}/{path}?token=abc"}


class FakeStorage:
    def __init__(self):
        self.files: Dict[tuple, bytes] = {}
        self.signed: List[tuple] = []
        self.unsignable: set = set()

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self, tokens: Dict[str, str]):
        self.tokens = tokens

    def get_user(self, token):
        user_id = self.tokens.get(token)
        if not user_id:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id))


class FakeSupabase:
    """In-memory Supabase client: tables, storage and auth."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth({"token-alice": "alice", "token-bob": "bob"})
        self.insert_errors: Dict[str, Exception] = {}
        self.before_insert_error: Dict[str, Any] = {}
        self._ids = 0
        self._clock = 0

    def table(self, name):
        return FakeQuery(self, name)

    def next_id(self) -> int:
        self._ids += 1
        return self._ids

    def now(self) -> str:
        self._clock += 1
        return f"2026-01-01T00:00:{self._clock:02d}+00:00"

    def fail_next_insert(self, table: str, code: str, before_raise=None):
        self.insert_errors[table] = APIError({"message": "insert failed", "code": code})
        if before_raise:
            self.before_insert_error[table] = before_raise


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def references() -> List[ReferenceImage]:
    """Two reference images."""
    return [
        ReferenceImage(data=PNG_PAYLOAD, mime_type="image/png", id="ref-1"),
        ReferenceImage(data=PNG_PAYLOAD, mime_type="image/jpeg", id="ref-2"),
    ]


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def size() -> ImageSize:
    return ImageSize.SIZE_1K


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def yoga_outline() -> List[Dict[str, str]]:
    """Five-slide outline for "Benefits of Yoga" with no closing call to action."""
    return [
        {"title": "Benefits of Yoga", "description": "", "prompt": "The boy sits on a yoga mat smiling."},
        {"title": "Stretch and Grow", "description": "Yoga helps your body stay flexible.",
         "prompt": "The boy reaches up high in a tall stretch."},
        {"title": "Calm Mind", "description": "Breathing slowly helps you feel calm.",
         "prompt": "The boy breathes deeply with closed eyes."},
        {"title": "Strong Body", "description": "Poses build strength and balance.",
         "prompt": "The boy balances on one leg in tree pose."},
        {"title": "Better Sleep", "description": "Yoga before bed helps you rest.",
         "prompt": "The boy yawns happily beside a cozy pillow."},
    ]
