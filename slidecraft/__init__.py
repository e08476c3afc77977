"""
SlideCraft - Character-Consistent Illustration Engine

Turns typed prompts or an auto-generated storyboard into a sequence of
illustrations of the same recurring character, grounded on uploaded
reference images.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "SlideCraft"

from .core.exceptions import (
    SlideCraftError,
    MissingReferenceError,
    MissingKeyError,
    NoImageReturnedError,
    GenerationTransportError,
    EmptyTopicError,
)
from .engine import SceneGenerationEngine, BatchReport, CreditGuard
from .outline import StoryboardOutlineGenerator, SlideContent
from .references import ReferenceImage, ReferenceCollection
from .scenes import SceneResult, SceneStore, SceneStatus
from .session import GenerationSession

__all__ = [
    "__version__",
    "SlideCraftError",
    "MissingReferenceError",
    "MissingKeyError",
    "NoImageReturnedError",
    "GenerationTransportError",
    "EmptyTopicError",
    "SceneGenerationEngine",
    "BatchReport",
    "CreditGuard",
    "StoryboardOutlineGenerator",
    "SlideContent",
    "ReferenceImage",
    "ReferenceCollection",
    "SceneResult",
    "SceneStore",
    "SceneStatus",
    "GenerationSession",
]
