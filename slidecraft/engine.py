"""
Scene Generation Engine

Renders an ordered scene list one scene at a time. Each scene gets exactly one
generation request, settles on its own and never blocks its siblings.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from slidecraft.core.constants import ImageSize
from slidecraft.core.exceptions import (
    CreditLimitError,
    GenerationError,
    MissingKeyError,
    MissingReferenceError,
)
from slidecraft.core.logging_config import get_logger
from slidecraft.core.retry import NO_RETRY_CONFIG, RetryConfig, retry_async_call
from slidecraft.llm.base import ImageGenerationClient
from slidecraft.prompts import build_scene_prompt
from slidecraft.references import ReferenceImage
from slidecraft.scenes import Failed, SceneResult, SceneState, SceneStore, Succeeded

logger = get_logger("engine")

CREDIT_CHECK_CODE = "credit_check"
CREDIT_CHECK_MESSAGE = "Unable to check credit balance."


class CreditGuard(ABC):
    """Hook consulted around every rendered scene."""

    @abstractmethod
    async def check(self) -> None:
        """Raise CreditLimitError if one more scene may not be rendered."""

    @abstractmethod
    async def record(self) -> None:
        """Account for one successfully rendered scene."""


@dataclass
class BatchReport:
    """Summary of one ``run_batch`` call. Scene state stays authoritative."""
    total: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    halted: bool = False
    halt_reason: Optional[str] = None
    missing_key: bool = False
    error: Optional[str] = None

    @classmethod
    def not_started(cls, total: int, reason: str, error: str) -> "BatchReport":
        """Report for a batch that stopped before rendering anything."""
        return cls(total=total, halted=True, halt_reason=reason, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SceneGenerationEngine:
    """Sequential multi-scene renderer with per-scene isolation."""

    def __init__(self, image_client: ImageGenerationClient, retry_config: RetryConfig = None):
        self.image_client = image_client
        self.retry_config = retry_config or NO_RETRY_CONFIG

    @staticmethod
    def ensure_references(references: Sequence[ReferenceImage]) -> None:
        if not references:
            raise MissingReferenceError()

    async def render(
        self,
        prompt: str,
        references: Sequence[ReferenceImage],
        size: ImageSize
    ) -> SceneState:
        """Issue one generation request and turn its outcome into a scene state."""
        try:
            image_url = await retry_async_call(
                self.image_client.generate_image,
                build_scene_prompt(prompt),
                references,
                size,
                config=self.retry_config,
            )
        except MissingKeyError as e:
            logger.error(f"Generation credential rejected: {e.message}")
            return Failed(message=e.message, code=MissingKeyError.code)
        except GenerationError as e:
            return Failed(message=e.message, code=e.code)
        except Exception as e:
            return Failed(message=str(e) or type(e).__name__, code=GenerationError.code)

        return Succeeded(image_url=image_url)

    async def _settle(
        self,
        store: SceneStore,
        index: int,
        scene: SceneResult,
        references: Sequence[ReferenceImage],
        size: ImageSize,
        epoch: int,
        credit_guard: Optional[CreditGuard]
    ) -> SceneResult:
        """Render a claimed scene and write the outcome back to the store."""
        try:
            state = None
            if credit_guard:
                try:
                    await credit_guard.check()
                except CreditLimitError as e:
                    await store.apply(index, Failed(e.message, CreditLimitError.code), epoch)
                    raise
                except Exception as e:
                    logger.error(f"Credit check for scene {index} failed: {e}")
                    state = Failed(CREDIT_CHECK_MESSAGE, CREDIT_CHECK_CODE)

            if state is None:
                state = await self.render(scene.prompt, references, size)
        except asyncio.CancelledError:
            store.release(index, epoch)
            raise

        if isinstance(state, Failed):
            logger.warning(f"Scene {index} failed ({state.code}): {state.message}")

        settled = await store.apply(index, state, epoch)

        if credit_guard and isinstance(state, Succeeded):
            try:
                await credit_guard.record()
            except CreditLimitError as e:
                # The next check() stops the batch.
                logger.warning(f"Scene {index} rendered but not recorded: {e.message}")
            except Exception as e:
                logger.error(f"Scene {index} rendered but recording usage failed: {e}")

        return settled if settled is not None else scene.with_state(state)

    async def run_batch(
        self,
        store: SceneStore,
        references: Sequence[ReferenceImage],
        size: ImageSize,
        credit_guard: Optional[CreditGuard] = None,
        cancel_event: Optional[asyncio.Event] = None,
        reservation: Optional[int] = None
    ) -> BatchReport:
        """
        Render every eligible scene in index order.

        Call-to-action scenes, scenes that already succeeded and scenes that
        are in flight elsewhere are skipped, so re-running a partly finished
        batch only renders what is missing.

        ``reservation`` is the epoch returned by ``store.reserve_batch()`` when
        the batch slot was taken before this call; it is released on return.

        Raises:
            MissingReferenceError: no references; no scene is touched
            BatchInProgressError: another batch holds this store
        """
        try:
            self.ensure_references(references)
        except MissingReferenceError:
            if reservation is not None:
                store.release_batch(reservation)
            raise
        references = tuple(references)

        async with store.batch(reservation) as epoch:
            report = BatchReport(total=len(store))
            logger.info(f"Batch started: {report.total} scenes at {ImageSize(size).value}")

            for index in range(report.total):
                if cancel_event is not None and cancel_event.is_set():
                    report.halted = True
                    report.halt_reason = "cancelled"
                    logger.info(f"Batch cancelled before scene {index}")
                    break
                if store.epoch != epoch:
                    report.halted = True
                    report.halt_reason = "replaced"
                    logger.info("Scene list replaced during batch; stopping")
                    break

                scene = await store.claim(index, epoch)
                if scene is None:
                    report.skipped += 1
                    continue

                report.attempted += 1
                try:
                    settled = await self._settle(
                        store, index, scene, references, size, epoch, credit_guard
                    )
                except CreditLimitError as e:
                    report.failed += 1
                    report.halted = True
                    report.halt_reason = CreditLimitError.code
                    logger.warning(f"Batch halted at scene {index}: {e.message}")
                    break

                if settled.is_succeeded:
                    report.succeeded += 1
                else:
                    report.failed += 1
                    if settled.error_code == MissingKeyError.code:
                        report.missing_key = True

            logger.info(
                f"Batch finished: {report.succeeded} succeeded, {report.failed} failed, "
                f"{report.skipped} skipped"
            )
            return report

    async def regenerate_one(
        self,
        store: SceneStore,
        index: int,
        references: Sequence[ReferenceImage],
        size: ImageSize,
        credit_guard: Optional[CreditGuard] = None
    ) -> Optional[SceneResult]:
        """
        Render one scene again, replacing any previous image or error.

        Returns the settled scene, or None for a call-to-action scene, which
        is left untouched.

        Raises:
            MissingReferenceError: no references
            IndexError: index outside the scene list
            SceneBusyError: the scene is already in flight
        """
        self.ensure_references(references)
        store.check_index(index)

        epoch = store.epoch
        scene = await store.claim(index, epoch, overwrite=True)
        if scene is None:
            return None

        try:
            return await self._settle(
                store, index, scene, tuple(references), size, epoch, credit_guard
            )
        except CreditLimitError as e:
            logger.warning(f"Scene {index} not regenerated: {e.message}")
            return scene.with_state(Failed(e.message, CreditLimitError.code))
