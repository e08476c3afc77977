"""
Health Check Endpoints
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from backend.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "slidecraft-api",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness check; reports which integrations are configured."""
    return {
        "status": "ready",
        "gemini_configured": bool(settings.gemini_api_key),
        "supabase_configured": bool(settings.supabase_url),
    }
