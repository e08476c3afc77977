"""
Generation Session API Routes

Reference upload, prompt sources, storyboard generation, batch generation and
single-scene regeneration for one session.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from typing import List, Optional

from slidecraft.core.constants import ImageSize
from slidecraft.core.exceptions import BatchInProgressError, SlideCraftError
from slidecraft.engine import BatchReport, SceneGenerationEngine
from slidecraft.outline import StoryboardOutlineGenerator
from slidecraft.references import ReferenceImage
from slidecraft.session import GenerationSession

from backend.api.deps import (
    get_current_user_id,
    get_engine,
    get_library_store,
    get_outline_generator,
    get_registry,
    get_usage_ledger,
)
from backend.core.config import settings
from backend.core.library import LibraryStore
from backend.core.logging import get_logger
from backend.core.rate_limit import limiter
from backend.core.sessions import SessionRegistry
from backend.core.usage import SceneCreditGuard, UsageLedger
from backend.models.generation import (
    GenerateAccepted,
    GenerateRequest,
    PromptsUpdate,
    ReferenceUpload,
    RegenerateRequest,
    SceneResponse,
    SessionCreate,
    SessionResponse,
    StoryboardRequest,
)

router = APIRouter()
logger = get_logger("sessions")


async def execute_batch(
    session: GenerationSession,
    engine: SceneGenerationEngine,
    credit_guard: SceneCreditGuard,
    size: ImageSize,
    reservation: int
) -> None:
    """Background task: render every pending scene of a session."""
    try:
        report = await engine.run_batch(
            session.store,
            session.references.snapshot(),
            size,
            credit_guard=credit_guard,
            cancel_event=session.cancel_event,
            reservation=reservation,
        )
    except SlideCraftError as e:
        logger.warning(f"Batch for session {session.id} did not run: {e}")
        report = BatchReport.not_started(
            len(session.store), getattr(e, "code", None) or "not_started", e.message
        )
    except Exception as e:
        logger.error(f"Batch for session {session.id} crashed: {e}")
        report = BatchReport.not_started(len(session.store), "error", "Generation failed")
    finally:
        session.store.release_batch(reservation)

    session.last_report = report.to_dict()


@router.get("/", response_model=List[SessionResponse])
async def list_sessions(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """List the current user's sessions."""
    return [session.to_dict() for session in registry.list_for(user_id)]


@router.post("/", response_model=SessionResponse, status_code=201)
async def create_session(
    body: Optional[SessionCreate] = None,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Start a new generation session."""
    size = (body.size if body else None) or settings.default_image_size
    return registry.create(user_id, size=size).to_dict()


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Get session state, including every scene."""
    return registry.get(session_id, user_id).to_dict()


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Delete a session."""
    registry.remove(session_id, user_id)
    return {"message": "Session deleted"}


# =============================================================================
# REFERENCES
# =============================================================================

@router.post("/{session_id}/references", response_model=SessionResponse)
async def add_references(
    session_id: str,
    upload: ReferenceUpload,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Add reference images (base64 data URLs)."""
    session = registry.get(session_id, user_id)
    images = [ReferenceImage.from_data_url(data_url) for data_url in upload.images]
    session.references.add_all(images)
    logger.info(f"Session {session_id}: {len(images)} references added")
    return session.to_dict()


@router.delete("/{session_id}/references/{ref_id}", response_model=SessionResponse)
async def remove_reference(
    session_id: str,
    ref_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Remove one reference image."""
    session = registry.get(session_id, user_id)
    if not session.references.remove(ref_id):
        raise HTTPException(status_code=404, detail="Reference not found")
    return session.to_dict()


@router.post("/{session_id}/references/library/{set_id}", response_model=SessionResponse)
async def add_reference_set(
    session_id: str,
    set_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
    library: LibraryStore = Depends(get_library_store)
):
    """Add every image of a saved reference set."""
    session = registry.get(session_id, user_id)
    try:
        images = await library.load_reference_set(user_id, set_id)
    except Exception as e:
        logger.error(f"Load reference set error: {e}")
        raise HTTPException(status_code=500, detail="Failed to load reference set")

    if not images:
        raise HTTPException(status_code=404, detail="Reference set not found")

    session.references.add_all(images)
    return session.to_dict()


# =============================================================================
# PROMPT SOURCES
# =============================================================================

@router.post("/{session_id}/prompts", response_model=SessionResponse)
async def set_prompts(
    session_id: str,
    update: PromptsUpdate,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Replace the scene list with typed prompts, one per line."""
    session = registry.get(session_id, user_id)
    prompts = await session.set_manual_prompts(update.text)
    if not prompts:
        raise HTTPException(status_code=400, detail="Please enter some manual prompts")
    return session.to_dict()


@router.post("/{session_id}/prompts/preset/{preset_id}", response_model=SessionResponse)
async def apply_prompt_preset(
    session_id: str,
    preset_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
    library: LibraryStore = Depends(get_library_store)
):
    """Replace the scene list with a saved prompt preset."""
    session = registry.get(session_id, user_id)
    try:
        preset = await library.get_prompt_preset(user_id, preset_id)
    except Exception as e:
        logger.error(f"Get prompt preset error: {e}")
        raise HTTPException(status_code=500, detail="Failed to load prompt preset")

    if not preset:
        raise HTTPException(status_code=404, detail="Prompt preset not found")

    await session.set_manual_prompts(preset.content)
    return session.to_dict()


@router.post("/{session_id}/storyboard", response_model=SessionResponse)
@limiter.limit(settings.storyboard_rate_limit)
async def create_storyboard(
    request: Request,
    session_id: str,
    storyboard: StoryboardRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
    outline: StoryboardOutlineGenerator = Depends(get_outline_generator)
):
    """Generate a storyboard for a topic and seed one scene per slide."""
    session = registry.get(session_id, user_id)
    slides = await outline.generate_outline(storyboard.topic)
    await session.set_storyboard(storyboard.topic.strip(), slides)
    return session.to_dict()


# =============================================================================
# GENERATION
# =============================================================================

@router.post("/{session_id}/generate", response_model=GenerateAccepted, status_code=202)
@limiter.limit(settings.generation_rate_limit)
async def generate(
    request: Request,
    session_id: str,
    background_tasks: BackgroundTasks,
    body: Optional[GenerateRequest] = None,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
    engine: SceneGenerationEngine = Depends(get_engine),
    ledger: UsageLedger = Depends(get_usage_ledger)
):
    """
    Render every pending scene in the background.

    References, scene list and credits are checked before the batch starts;
    progress is read back through ``GET /{session_id}``.
    """
    session = registry.get(session_id, user_id)

    if session.store.batch_running:
        raise BatchInProgressError()
    engine.ensure_references(session.references.snapshot())

    if len(session.store) == 0:
        raise HTTPException(status_code=400, detail="Add prompts or create a storyboard first")

    scenes_to_generate = session.pending_count()
    if scenes_to_generate == 0:
        raise HTTPException(status_code=400, detail="All scenes are already generated")

    try:
        subscription = await ledger.get_subscription(user_id)
        await ledger.ensure_capacity(user_id, subscription, scenes_to_generate)
    except SlideCraftError:
        raise
    except Exception as e:
        logger.error(f"Usage check error: {e}")
        raise HTTPException(status_code=503, detail="Unable to check credit balance")

    # No awaits from here until the task is queued.
    reservation = session.store.reserve_batch()

    size = (body.size if body else None) or session.size
    session.size = size
    session.cancel_event.clear()

    background_tasks.add_task(
        execute_batch,
        session,
        engine,
        SceneCreditGuard(ledger, user_id, subscription),
        size,
        reservation,
    )
    logger.info(f"Session {session_id}: batch of {scenes_to_generate} scenes queued")
    return GenerateAccepted(session_id=session_id, scenes_to_generate=scenes_to_generate)


@router.post("/{session_id}/scenes/{index}/regenerate", response_model=SceneResponse)
@limiter.limit(settings.generation_rate_limit)
async def regenerate_scene(
    request: Request,
    session_id: str,
    index: int,
    body: Optional[RegenerateRequest] = None,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
    engine: SceneGenerationEngine = Depends(get_engine),
    ledger: UsageLedger = Depends(get_usage_ledger)
):
    """Render one scene again; call-to-action scenes are returned unchanged."""
    session = registry.get(session_id, user_id)
    engine.ensure_references(session.references.snapshot())

    if index < 0 or index >= len(session.store):
        raise HTTPException(status_code=404, detail="Scene not found")

    try:
        subscription = await ledger.get_subscription(user_id)
    except Exception as e:
        logger.error(f"Subscription lookup error: {e}")
        raise HTTPException(status_code=503, detail="Unable to check credit balance")

    scene = await engine.regenerate_one(
        session.store,
        index,
        session.references.snapshot(),
        (body.size if body else None) or session.size,
        credit_guard=SceneCreditGuard(ledger, user_id, subscription),
    )
    return (scene or session.store[index]).to_dict()


@router.post("/{session_id}/cancel")
async def cancel_generation(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Stop the running batch before its next scene."""
    session = registry.get(session_id, user_id)
    if not session.store.batch_running:
        return {"success": False, "message": "No batch running"}

    session.cancel_event.set()
    return {"success": True, "message": "Cancellation requested"}
