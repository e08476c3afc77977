"""
Saved Libraries

Record types for saved prompt presets and saved reference sets, plus the pure
helpers that shape database rows into them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from slidecraft.core.constants import DEFAULT_PROMPT_TITLE, DEFAULT_REFERENCE_LABEL
from slidecraft.prompts import parse_manual_prompts


@dataclass
class PromptPreset:
    """A saved block of line-delimited prompts."""
    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PromptPreset":
        return cls(
            id=row["id"],
            title=row.get("title") or DEFAULT_PROMPT_TITLE,
            content=row.get("prompt_text") or "",
            created_at=_parse_timestamp(row.get("created_at")),
        )

    def prompts(self) -> List[str]:
        return parse_manual_prompts(self.content)


@dataclass
class ReferenceLibraryItem:
    """One stored reference image with a short-lived signed URL."""
    id: str
    set_id: str
    label: str
    url: str
    mime_type: str
    file_path: str
    created_at: Optional[datetime] = None


@dataclass
class ReferenceSet:
    """A named group of reference images, always selected together."""
    set_id: str
    label: str
    images: List[ReferenceLibraryItem] = field(default_factory=list)
    created_at: Optional[datetime] = None


def prompt_title(title: Optional[str]) -> str:
    return (title or "").strip() or DEFAULT_PROMPT_TITLE


def reference_label(label: Optional[str]) -> str:
    return (label or "").strip() or DEFAULT_REFERENCE_LABEL


def reference_storage_path(user_id: str, set_id: str, index: int, extension: str) -> str:
    return f"{user_id}/{set_id}/{index}.{extension}"


def group_reference_sets(rows: Iterable[Tuple[Dict[str, Any], Optional[str]]]) -> List[ReferenceSet]:
    """
    Group ``(row, signed_url)`` pairs into reference sets, newest first.

    Rows without a signed URL are skipped. Images keep their row order inside
    a set.
    """
    sets: Dict[str, ReferenceSet] = {}

    for row, signed_url in rows:
        if not signed_url:
            continue

        created_at = _parse_timestamp(row.get("created_at"))
        item = ReferenceLibraryItem(
            id=row["id"],
            set_id=row["set_id"],
            label=row.get("label") or DEFAULT_REFERENCE_LABEL,
            url=signed_url,
            mime_type=row.get("mime_type") or "image/png",
            file_path=row["file_path"],
            created_at=created_at,
        )

        if item.set_id not in sets:
            sets[item.set_id] = ReferenceSet(
                set_id=item.set_id,
                label=item.label,
                created_at=created_at,
            )
        sets[item.set_id].images.append(item)

    return sorted(
        sets.values(),
        key=lambda s: s.created_at.timestamp() if s.created_at else 0.0,
        reverse=True,
    )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
