"""
Pydantic Models for API
"""

from .generation import (
    SessionCreate,
    ReferenceUpload,
    ReferenceInfo,
    PromptsUpdate,
    StoryboardRequest,
    GenerateRequest,
    RegenerateRequest,
    SceneResponse,
    SessionResponse,
    GenerateAccepted,
)
from .library import (
    PromptPresetCreate,
    PromptPresetUpdate,
    PromptPresetResponse,
    ReferenceSetCreate,
    ReferenceSetCreated,
    ReferenceSetRename,
    ReferenceItemResponse,
    ReferenceSetResponse,
)
from .usage import UsageResponse

__all__ = [
    "SessionCreate",
    "ReferenceUpload",
    "ReferenceInfo",
    "PromptsUpdate",
    "StoryboardRequest",
    "GenerateRequest",
    "RegenerateRequest",
    "SceneResponse",
    "SessionResponse",
    "GenerateAccepted",
    "PromptPresetCreate",
    "PromptPresetUpdate",
    "PromptPresetResponse",
    "ReferenceSetCreate",
    "ReferenceSetCreated",
    "ReferenceSetRename",
    "ReferenceItemResponse",
    "ReferenceSetResponse",
    "UsageResponse",
]
