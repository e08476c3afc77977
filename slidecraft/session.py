"""
Generation Session

Everything one user works with between page loads: the reference images, the
current scene list, the chosen size and the cancellation flag for the running
batch.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from slidecraft.core.constants import ImageSize
from slidecraft.outline import SlideContent
from slidecraft.prompts import parse_manual_prompts, scenes_from_prompts, scenes_from_slides
from slidecraft.references import ReferenceCollection
from slidecraft.scenes import SceneStore


class PromptMode(str, Enum):
    """Where the current scene list came from."""
    MANUAL = "manual"
    STORYBOARD = "storyboard"


@dataclass
class GenerationSession:
    user_id: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    mode: PromptMode = PromptMode.MANUAL
    size: ImageSize = ImageSize.SIZE_1K
    topic: Optional[str] = None
    references: ReferenceCollection = field(default_factory=ReferenceCollection)
    store: SceneStore = field(default_factory=SceneStore)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_report: Optional[Dict[str, Any]] = None

    async def set_manual_prompts(self, text: str) -> List[str]:
        """Replace the scene list with one scene per non-blank line."""
        prompts = parse_manual_prompts(text)
        await self.store.replace_all(scenes_from_prompts(prompts))
        self.mode = PromptMode.MANUAL
        self.topic = None
        self.last_report = None
        return prompts

    async def set_storyboard(self, topic: str, slides: Sequence[SlideContent]) -> None:
        await self.store.replace_all(scenes_from_slides(slides))
        self.mode = PromptMode.STORYBOARD
        self.topic = topic
        self.last_report = None

    def pending_count(self) -> int:
        """Scenes a batch would render right now."""
        return sum(
            1 for scene in self.store.snapshot()
            if not (scene.is_cta or scene.is_succeeded or scene.is_loading)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mode": self.mode.value,
            "size": self.size.value,
            "topic": self.topic,
            "references": [
                {"id": ref.id, "mime_type": ref.mime_type}
                for ref in self.references.snapshot()
            ],
            "scenes": [scene.to_dict() for scene in self.store.snapshot()],
            "is_generating": self.store.batch_running,
            "last_report": self.last_report,
            "created_at": self.created_at,
        }
