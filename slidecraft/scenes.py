"""
Scene State

Per-scene state variants and the single-writer store that owns an ordered
scene list for one session.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, AsyncIterator, ClassVar, Dict, Iterable, List, Optional, Tuple, Union

from slidecraft.core.exceptions import BatchInProgressError, SceneBusyError
from slidecraft.core.logging_config import get_logger

logger = get_logger("scenes")


class SceneStatus(str, Enum):
    """Discriminator for the scene state variants."""
    PENDING = "pending"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CALL_TO_ACTION = "call_to_action"


@dataclass(frozen=True)
class Pending:
    status: ClassVar[SceneStatus] = SceneStatus.PENDING


@dataclass(frozen=True)
class Loading:
    status: ClassVar[SceneStatus] = SceneStatus.LOADING


@dataclass(frozen=True)
class Succeeded:
    image_url: str
    status: ClassVar[SceneStatus] = SceneStatus.SUCCEEDED


@dataclass(frozen=True)
class Failed:
    message: str
    code: str = "transport"
    status: ClassVar[SceneStatus] = SceneStatus.FAILED


@dataclass(frozen=True)
class CallToAction:
    """Closing slide; shown as text only and never rendered."""
    status: ClassVar[SceneStatus] = SceneStatus.CALL_TO_ACTION


SceneState = Union[Pending, Loading, Succeeded, Failed, CallToAction]


@dataclass(frozen=True)
class SceneResult:
    """One scene in a batch: its prompt, optional slide text and current state."""
    prompt: str
    state: SceneState = field(default_factory=Pending)
    title: Optional[str] = None
    description: Optional[str] = None

    @property
    def status(self) -> SceneStatus:
        return self.state.status

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def is_cta(self) -> bool:
        return isinstance(self.state, CallToAction)

    @property
    def is_succeeded(self) -> bool:
        return isinstance(self.state, Succeeded)

    @property
    def image_url(self) -> Optional[str]:
        return self.state.image_url if isinstance(self.state, Succeeded) else None

    @property
    def error(self) -> Optional[str]:
        return self.state.message if isinstance(self.state, Failed) else None

    @property
    def error_code(self) -> Optional[str]:
        return self.state.code if isinstance(self.state, Failed) else None

    def with_state(self, state: SceneState) -> "SceneResult":
        return replace(self, state=state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "is_loading": self.is_loading,
            "is_cta": self.is_cta,
            "image_url": self.image_url,
            "error": self.error,
            "error_code": self.error_code,
        }


class SceneStore:
    """
    Single writer for an ordered scene list.

    Every mutation replaces exactly one index under the store lock. Moving a
    scene to ``Loading`` is a claim: only the claimant may settle it. Each
    ``replace_all`` starts a new epoch, and writes tagged with an older epoch
    are dropped so late results never land in a newer list.
    """

    def __init__(self, scenes: Iterable[SceneResult] = ()):
        self._scenes: List[SceneResult] = list(scenes)
        self._lock = asyncio.Lock()
        self._epoch = 0
        self._batch_epoch: Optional[int] = None

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def batch_running(self) -> bool:
        return self._batch_epoch == self._epoch

    def snapshot(self) -> Tuple[SceneResult, ...]:
        return tuple(self._scenes)

    def __len__(self) -> int:
        return len(self._scenes)

    def __getitem__(self, index: int) -> SceneResult:
        return self._scenes[index]

    def check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._scenes):
            raise IndexError(f"Scene index {index} out of range (0-{len(self._scenes) - 1})")

    async def replace_all(self, scenes: Iterable[SceneResult]) -> int:
        """Install a new scene list and return its epoch."""
        async with self._lock:
            self._scenes = list(scenes)
            self._epoch += 1
            logger.debug(f"Scene list replaced ({len(self._scenes)} scenes, epoch {self._epoch})")
            return self._epoch

    async def claim(self, index: int, epoch: int, overwrite: bool = False) -> Optional[SceneResult]:
        """
        Move a scene to ``Loading`` if it is eligible.

        Returns the claimed scene, or None when the scene is skipped (call to
        action, already succeeded without ``overwrite``, already in flight
        during a batch, or a stale epoch).

        Raises:
            SceneBusyError: ``overwrite`` was requested for a scene in flight
        """
        async with self._lock:
            if epoch != self._epoch:
                return None
            self.check_index(index)

            scene = self._scenes[index]
            if scene.is_cta:
                return None
            if scene.is_loading:
                if overwrite:
                    raise SceneBusyError(index)
                return None
            if scene.is_succeeded and not overwrite:
                return None

            claimed = scene.with_state(Loading())
            self._scenes[index] = claimed
            return claimed

    async def apply(self, index: int, state: SceneState, epoch: int) -> Optional[SceneResult]:
        """Settle a claimed scene. Returns None if the write was dropped."""
        async with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Dropping result for scene {index} from epoch {epoch}")
                return None

            scene = self._scenes[index]
            if not scene.is_loading:
                return None

            settled = scene.with_state(state)
            self._scenes[index] = settled
            return settled

    def release(self, index: int, epoch: int) -> None:
        """Return an abandoned claim to ``Pending``. Makes no awaits."""
        if epoch == self._epoch and self._scenes[index].is_loading:
            self._scenes[index] = self._scenes[index].with_state(Pending())

    def reserve_batch(self) -> int:
        """
        Take the batch slot for the current epoch and return that epoch.

        Makes no awaits, so a caller can reserve before queueing a batch that
        starts later.

        Raises:
            BatchInProgressError: the slot is already held
        """
        if self.batch_running:
            raise BatchInProgressError()
        self._batch_epoch = self._epoch
        return self._epoch

    def release_batch(self, epoch: int) -> None:
        """Free the batch slot if ``epoch`` still holds it."""
        if self._batch_epoch == epoch:
            self._batch_epoch = None

    @asynccontextmanager
    async def batch(self, reserved: Optional[int] = None) -> AsyncIterator[int]:
        """
        Hold the batch slot for the duration of a batch.

        With ``reserved`` the slot taken by ``reserve_batch`` is used as is; if
        the list was replaced since, the yielded epoch is already stale.
        """
        epoch = self.reserve_batch() if reserved is None else reserved
        try:
            yield epoch
        finally:
            self.release_batch(epoch)
