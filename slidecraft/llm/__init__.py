"""
SlideCraft LLM Module

Generation capabilities and the Gemini client that implements them.
"""

from .base import ImageGenerationClient, TextGenerationClient
from .gemini import GeminiClient

__all__ = [
    'ImageGenerationClient',
    'TextGenerationClient',
    'GeminiClient',
]
