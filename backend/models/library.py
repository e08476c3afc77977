"""
Library Models
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class PromptPresetCreate(BaseModel):
    """Save a prompt preset."""
    content: str = Field(min_length=1)
    title: Optional[str] = None


class PromptPresetUpdate(BaseModel):
    """Edit a prompt preset."""
    content: str = Field(min_length=1)
    title: Optional[str] = None


class PromptPresetResponse(BaseModel):
    """Prompt preset."""
    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None


class ReferenceSetCreate(BaseModel):
    """Save a session's references as one set."""
    session_id: str
    label: Optional[str] = None


class ReferenceSetCreated(BaseModel):
    """Saved reference set."""
    set_id: str
    image_count: int


class ReferenceSetRename(BaseModel):
    """Relabel a reference set."""
    label: str


class ReferenceItemResponse(BaseModel):
    """Stored reference image."""
    id: str
    set_id: str
    label: str
    url: str
    mime_type: str
    created_at: Optional[datetime] = None


class ReferenceSetResponse(BaseModel):
    """Reference set with signed image URLs."""
    set_id: str
    label: str
    images: List[ReferenceItemResponse] = []
    created_at: Optional[datetime] = None
