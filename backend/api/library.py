"""
Library API Routes

Saved prompt presets and saved reference sets.
"""

from fastapi import APIRouter, HTTPException, Depends
from typing import List

from slidecraft.core.exceptions import SlideCraftError

from backend.api.deps import get_current_user_id, get_library_store, get_registry
from backend.core.library import LibraryStore
from backend.core.logging import get_logger
from backend.core.sessions import SessionRegistry
from backend.models.library import (
    PromptPresetCreate,
    PromptPresetResponse,
    PromptPresetUpdate,
    ReferenceSetCreate,
    ReferenceSetCreated,
    ReferenceSetRename,
    ReferenceSetResponse,
)

router = APIRouter()
logger = get_logger("library")


@router.get("/prompts", response_model=List[PromptPresetResponse])
async def list_prompt_presets(
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store)
):
    """List saved prompt presets, newest first."""
    try:
        return await library.list_prompt_presets(user_id)
    except Exception as e:
        logger.error(f"List prompt presets error: {e}")
        raise HTTPException(status_code=500, detail="Failed to list prompt presets")


@router.post("/prompts", response_model=PromptPresetResponse, status_code=201)
async def create_prompt_preset(
    preset: PromptPresetCreate,
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store)
):
    """Save a prompt preset."""
    try:
        return await library.create_prompt_preset(user_id, preset.content, preset.title)
    except Exception as e:
        logger.error(f"Create prompt preset error: {e}")
        raise HTTPException(status_code=500, detail="Failed to save prompt preset")


@router.patch("/prompts/{preset_id}", response_model=PromptPresetResponse)
async def update_prompt_preset(
    preset_id: str,
    updates: PromptPresetUpdate,
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store)
):
    """Edit a prompt preset's title and content."""
    try:
        preset = await library.update_prompt_preset(
            user_id, preset_id, updates.title, updates.content
        )
        if not preset:
            raise HTTPException(status_code=404, detail="Prompt preset not found")
        return preset

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update prompt preset error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update prompt preset")


@router.get("/references", response_model=List[ReferenceSetResponse])
async def list_reference_sets(
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store)
):
    """List saved reference sets with signed image URLs, newest first."""
    try:
        return await library.list_reference_sets(user_id)
    except Exception as e:
        logger.error(f"List reference sets error: {e}")
        raise HTTPException(status_code=500, detail="Failed to list reference sets")


@router.post("/references", response_model=ReferenceSetCreated, status_code=201)
async def save_reference_set(
    body: ReferenceSetCreate,
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store),
    registry: SessionRegistry = Depends(get_registry)
):
    """Save the references of a session as one set."""
    session = registry.get(body.session_id, user_id)
    references = session.references.snapshot()
    try:
        set_id = await library.save_reference_set(user_id, references, body.label)
        return ReferenceSetCreated(set_id=set_id, image_count=len(references))

    except SlideCraftError:
        raise
    except Exception as e:
        logger.error(f"Save reference set error: {e}")
        raise HTTPException(status_code=500, detail="Failed to save reference set")


@router.patch("/references/{set_id}")
async def rename_reference_set(
    set_id: str,
    body: ReferenceSetRename,
    user_id: str = Depends(get_current_user_id),
    library: LibraryStore = Depends(get_library_store)
):
    """Relabel every image of a reference set."""
    try:
        updated = await library.rename_reference_set(user_id, set_id, body.label)
        if not updated:
            raise HTTPException(status_code=404, detail="Reference set not found")
        return {"set_id": set_id, "updated": updated}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Rename reference set error: {e}")
        raise HTTPException(status_code=500, detail="Failed to rename reference set")
