"""
Generation Capabilities

Abstract interfaces the engine and outline generator depend on.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from slidecraft.core.constants import ImageSize
from slidecraft.references import ReferenceImage


class ImageGenerationClient(ABC):
    """Renders one illustration from a prompt and the reference images."""

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        references: Sequence[ReferenceImage],
        size: ImageSize
    ) -> str:
        """
        Generate one image.

        Returns:
            The image as a ``data:`` URL

        Raises:
            MissingKeyError: credential absent or rejected
            NoImageReturnedError: call succeeded without image data
            GenerationTransportError: any other failure
        """


class TextGenerationClient(ABC):
    """Produces structured JSON text from a prompt."""

    @abstractmethod
    async def generate_json(
        self,
        contents: str,
        system_instruction: str,
        response_schema: Dict[str, Any]
    ) -> str:
        """Return the raw JSON text of the model's answer."""
