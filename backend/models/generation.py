"""
Generation Models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from slidecraft.core.constants import ImageSize


class SessionCreate(BaseModel):
    """Create session request."""
    size: Optional[ImageSize] = None


class ReferenceUpload(BaseModel):
    """Add reference images as base64 data URLs."""
    images: List[str] = Field(min_length=1)


class ReferenceInfo(BaseModel):
    """Reference image summary (payload omitted)."""
    id: str
    mime_type: str


class PromptsUpdate(BaseModel):
    """Line-delimited manual prompts."""
    text: str


class StoryboardRequest(BaseModel):
    """Generate a storyboard for a topic."""
    topic: str = Field(min_length=1, max_length=300)


class GenerateRequest(BaseModel):
    """Start a batch."""
    size: Optional[ImageSize] = None


class RegenerateRequest(BaseModel):
    """Regenerate one scene."""
    size: Optional[ImageSize] = None


class SceneResponse(BaseModel):
    """One scene of a session."""
    prompt: str
    title: Optional[str] = None
    description: Optional[str] = None
    status: str
    is_loading: bool = False
    is_cta: bool = False
    image_url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class SessionResponse(BaseModel):
    """Session state."""
    id: str
    mode: str
    size: ImageSize
    topic: Optional[str] = None
    references: List[ReferenceInfo] = []
    scenes: List[SceneResponse] = []
    is_generating: bool = False
    last_report: Optional[Dict[str, Any]] = None
    created_at: datetime


class GenerateAccepted(BaseModel):
    """Batch accepted for background processing."""
    session_id: str
    scenes_to_generate: int
    status: str = "started"
