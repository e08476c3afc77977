"""
Library Storage

Saved prompt presets and saved reference sets backed by Supabase tables and
the reference-image storage bucket.
"""

import asyncio
import uuid
from typing import List, Optional, Sequence

from supabase import Client

from slidecraft.core.exceptions import MissingReferenceError
from slidecraft.library import (
    PromptPreset,
    ReferenceSet,
    group_reference_sets,
    prompt_title,
    reference_label,
    reference_storage_path,
)
from slidecraft.references import ReferenceImage

from .logging import get_logger

logger = get_logger("library")

PROMPT_TABLE = "prompt_library"
REFERENCE_TABLE = "reference_library"
PROMPT_COLUMNS = "id, title, prompt_text, created_at"
REFERENCE_COLUMNS = "id, set_id, label, file_path, mime_type, created_at"


class LibraryStore:
    """Per-user prompt and reference libraries."""

    def __init__(self, client: Client, bucket: str = "reference-images", signed_url_ttl: int = 3600):
        self.client = client
        self.bucket = bucket
        self.signed_url_ttl = signed_url_ttl

    # ------------------------------------------------------------------
    # Prompt presets
    # ------------------------------------------------------------------

    def _list_prompt_presets(self, user_id: str) -> List[PromptPreset]:
        response = self.client.table(PROMPT_TABLE) \
            .select(PROMPT_COLUMNS) \
            .eq("user_id", user_id) \
            .order("created_at", desc=True) \
            .execute()
        return [PromptPreset.from_row(row) for row in response.data or []]

    def _get_prompt_preset(self, user_id: str, preset_id: str) -> Optional[PromptPreset]:
        response = self.client.table(PROMPT_TABLE) \
            .select(PROMPT_COLUMNS) \
            .eq("id", preset_id) \
            .eq("user_id", user_id) \
            .limit(1) \
            .execute()
        rows = response.data or []
        return PromptPreset.from_row(rows[0]) if rows else None

    def _create_prompt_preset(self, user_id: str, content: str, title: Optional[str]) -> PromptPreset:
        response = self.client.table(PROMPT_TABLE).insert({
            "user_id": user_id,
            "title": prompt_title(title),
            "prompt_text": content,
        }).execute()

        if not response.data:
            raise RuntimeError("Failed to create prompt preset")
        return PromptPreset.from_row(response.data[0])

    def _update_prompt_preset(
        self,
        user_id: str,
        preset_id: str,
        title: Optional[str],
        content: str
    ) -> Optional[PromptPreset]:
        response = self.client.table(PROMPT_TABLE) \
            .update({"title": prompt_title(title), "prompt_text": content}) \
            .eq("id", preset_id) \
            .eq("user_id", user_id) \
            .execute()
        rows = response.data or []
        return PromptPreset.from_row(rows[0]) if rows else None

    async def list_prompt_presets(self, user_id: str) -> List[PromptPreset]:
        return await asyncio.to_thread(self._list_prompt_presets, user_id)

    async def get_prompt_preset(self, user_id: str, preset_id: str) -> Optional[PromptPreset]:
        return await asyncio.to_thread(self._get_prompt_preset, user_id, preset_id)

    async def create_prompt_preset(
        self,
        user_id: str,
        content: str,
        title: Optional[str] = None
    ) -> PromptPreset:
        return await asyncio.to_thread(self._create_prompt_preset, user_id, content, title)

    async def update_prompt_preset(
        self,
        user_id: str,
        preset_id: str,
        title: Optional[str],
        content: str
    ) -> Optional[PromptPreset]:
        """Returns None when the preset does not exist for this user."""
        return await asyncio.to_thread(
            self._update_prompt_preset, user_id, preset_id, title, content
        )

    # ------------------------------------------------------------------
    # Reference sets
    # ------------------------------------------------------------------

    def _signed_url(self, file_path: str) -> Optional[str]:
        try:
            result = self.client.storage.from_(self.bucket) \
                .create_signed_url(file_path, self.signed_url_ttl)
        except Exception as e:
            logger.error(f"Failed to sign {file_path}: {e}")
            return None
        return result.get("signedURL") or result.get("signedUrl")

    def _save_reference_set(
        self,
        user_id: str,
        references: Sequence[ReferenceImage],
        label: Optional[str]
    ) -> str:
        set_id = str(uuid.uuid4())
        set_label = reference_label(label)
        rows = []

        for index, ref in enumerate(references):
            file_path = reference_storage_path(user_id, set_id, index, ref.extension)
            self.client.storage.from_(self.bucket).upload(
                file_path,
                ref.to_bytes(),
                {"content-type": ref.mime_type, "upsert": "false"},
            )
            rows.append({
                "user_id": user_id,
                "set_id": set_id,
                "label": set_label,
                "file_path": file_path,
                "mime_type": ref.mime_type,
            })

        self.client.table(REFERENCE_TABLE).insert(rows).execute()
        logger.info(f"Saved reference set {set_id} ({len(rows)} images) for {user_id}")
        return set_id

    def _list_reference_sets(self, user_id: str) -> List[ReferenceSet]:
        response = self.client.table(REFERENCE_TABLE) \
            .select(REFERENCE_COLUMNS) \
            .eq("user_id", user_id) \
            .order("created_at", desc=True) \
            .execute()
        rows = response.data or []
        return group_reference_sets((row, self._signed_url(row["file_path"])) for row in rows)

    def _rename_reference_set(self, user_id: str, set_id: str, label: Optional[str]) -> int:
        response = self.client.table(REFERENCE_TABLE) \
            .update({"label": reference_label(label)}) \
            .eq("set_id", set_id) \
            .eq("user_id", user_id) \
            .execute()
        return len(response.data or [])

    def _load_reference_set(self, user_id: str, set_id: str) -> List[ReferenceImage]:
        response = self.client.table(REFERENCE_TABLE) \
            .select(REFERENCE_COLUMNS) \
            .eq("set_id", set_id) \
            .eq("user_id", user_id) \
            .execute()

        images = []
        for row in sorted(response.data or [], key=_upload_index):
            content = self.client.storage.from_(self.bucket).download(row["file_path"])
            images.append(ReferenceImage.from_bytes(content, row.get("mime_type") or "image/png"))
        return images

    async def save_reference_set(
        self,
        user_id: str,
        references: Sequence[ReferenceImage],
        label: Optional[str] = None
    ) -> str:
        """
        Upload references as one set and return its set id.

        Raises:
            MissingReferenceError: nothing to save
        """
        if not references:
            raise MissingReferenceError("No reference images to save")
        return await asyncio.to_thread(self._save_reference_set, user_id, list(references), label)

    async def list_reference_sets(self, user_id: str) -> List[ReferenceSet]:
        return await asyncio.to_thread(self._list_reference_sets, user_id)

    async def rename_reference_set(self, user_id: str, set_id: str, label: Optional[str]) -> int:
        """Relabel every image in a set. Returns the number of rows changed."""
        return await asyncio.to_thread(self._rename_reference_set, user_id, set_id, label)

    async def load_reference_set(self, user_id: str, set_id: str) -> List[ReferenceImage]:
        """Download every image of a set, in upload order."""
        return await asyncio.to_thread(self._load_reference_set, user_id, set_id)


def _upload_index(row) -> int:
    """Position of an image inside its set, taken from ``<user>/<set>/<index>.<ext>``."""
    name = row["file_path"].rsplit("/", 1)[-1]
    stem = name.split(".", 1)[0]
    return int(stem) if stem.isdigit() else 0
