"""
API Dependencies

Common dependencies for route handlers.
"""

from fastapi import Header, HTTPException
from functools import lru_cache

from slidecraft.core.retry import generation_retry_config
from slidecraft.engine import SceneGenerationEngine
from slidecraft.llm.gemini import GeminiClient
from slidecraft.outline import StoryboardOutlineGenerator

from backend.core.config import settings
from backend.core.library import LibraryStore
from backend.core.logging import get_logger
from backend.core.sessions import SessionRegistry
from backend.core.supabase import get_data_client, get_supabase_client
from backend.core.usage import UsageLedger

logger = get_logger("deps")


async def get_current_user_id(authorization: str = Header(...)) -> str:
    """Extract and validate user ID from authorization header."""
    try:
        if not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Invalid token format")

        token = authorization[len("Bearer "):].strip()
        client = get_supabase_client()
        response = client.auth.get_user(token)

        if not response or not response.user:
            raise HTTPException(status_code=401, detail="Invalid token")

        return response.user.id

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Auth error: {e}")
        raise HTTPException(status_code=401, detail="Authentication failed")


@lru_cache()
def get_registry() -> SessionRegistry:
    """Process-wide session registry."""
    return SessionRegistry()


@lru_cache()
def get_gemini_client() -> GeminiClient:
    return GeminiClient(
        api_key=settings.gemini_api_key or None,
        base_url=settings.gemini_base_url,
        image_model=settings.image_model,
        text_model=settings.text_model,
        timeout=settings.request_timeout_seconds,
    )


def get_engine() -> SceneGenerationEngine:
    return SceneGenerationEngine(
        get_gemini_client(),
        retry_config=generation_retry_config(settings.generation_max_retries),
    )


def get_outline_generator() -> StoryboardOutlineGenerator:
    return StoryboardOutlineGenerator(get_gemini_client())


def get_usage_ledger() -> UsageLedger:
    return UsageLedger(
        get_data_client(),
        plan_credits=settings.plan_credits,
        default_monthly_credits=settings.default_monthly_credits,
        free_credit_cap=settings.free_credit_cap,
    )


def get_library_store() -> LibraryStore:
    return LibraryStore(
        get_data_client(),
        bucket=settings.reference_bucket,
        signed_url_ttl=settings.signed_url_ttl_seconds,
    )
