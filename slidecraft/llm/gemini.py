"""
Gemini REST Client

Async client for the Gemini ``generateContent`` endpoint covering the two
capabilities SlideCraft needs: reference-grounded image generation and
schema-constrained JSON text.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx

from slidecraft.core.constants import (
    GEMINI_BASE_URL,
    IMAGE_ASPECT_RATIO,
    IMAGE_MODEL_NAME,
    TEXT_MODEL_NAME,
    ImageSize,
)
from slidecraft.core.env_loader import get_gemini_api_key
from slidecraft.core.exceptions import (
    GenerationTransportError,
    MissingKeyError,
    NoImageReturnedError,
)
from slidecraft.core.logging_config import get_logger
from slidecraft.llm.base import ImageGenerationClient, TextGenerationClient
from slidecraft.references import ReferenceImage

logger = get_logger("llm.gemini")

# Upstream messages that mean the key itself is unusable.
KEY_ERROR_MARKERS = (
    "Requested entity was not found",
    "API key not valid",
    "API_KEY_INVALID",
)


class GeminiClient(ImageGenerationClient, TextGenerationClient):
    """Client for the Google Gemini API."""

    MODEL_DISPLAY_NAME = "Gemini"

    def __init__(
        self,
        api_key: str = None,
        base_url: str = GEMINI_BASE_URL,
        image_model: str = IMAGE_MODEL_NAME,
        text_model: str = TEXT_MODEL_NAME,
        timeout: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key if api_key is not None else get_gemini_api_key()
        self.base_url = base_url.rstrip("/")
        self.image_model = image_model
        self.text_model = text_model
        self.timeout = timeout
        self._http_client = http_client

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    def _url(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    async def _post(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise MissingKeyError("GEMINI_API_KEY not set")

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._url(model), json=body, headers=self._get_headers(), timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self._url(model), json=body, headers=self._get_headers()
                    )
        except httpx.TimeoutException as e:
            raise GenerationTransportError(f"{self.MODEL_DISPLAY_NAME} request timed out: {e}")
        except httpx.HTTPError as e:
            raise GenerationTransportError(f"{self.MODEL_DISPLAY_NAME} request failed: {e}")

        if response.status_code >= 400:
            self._raise_for_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise GenerationTransportError(f"Invalid JSON from {self.MODEL_DISPLAY_NAME}: {e}")

    def _raise_for_error(self, response: httpx.Response) -> None:
        message = _error_message(response)

        if response.status_code in (401, 403) or any(m in message for m in KEY_ERROR_MARKERS):
            logger.error(f"Gemini rejected the API key ({response.status_code}): {message}")
            raise MissingKeyError(message or "Gemini API key was rejected")

        raise GenerationTransportError(
            f"Gemini API error {response.status_code}: {message}",
            status_code=response.status_code
        )

    async def generate_image(
        self,
        prompt: str,
        references: Sequence[ReferenceImage],
        size: ImageSize
    ) -> str:
        """Generate one square image grounded on the reference images."""
        parts: List[Dict[str, Any]] = [
            {"inline_data": {"mime_type": ref.mime_type, "data": ref.data}}
            for ref in references
        ]
        parts.append({"text": prompt})

        body = {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "imageConfig": {
                    "aspectRatio": IMAGE_ASPECT_RATIO,
                    "imageSize": ImageSize(size).value,
                }
            },
        }

        result = await self._post(self.image_model, body)

        for part in _candidate_parts(result):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return f"data:{mime_type};base64,{inline['data']}"

        raise NoImageReturnedError(details=_finish_details(result))

    async def generate_json(
        self,
        contents: str,
        system_instruction: str,
        response_schema: Dict[str, Any]
    ) -> str:
        """Generate JSON text constrained by ``response_schema``."""
        body = {
            "contents": [{"parts": [{"text": contents}]}],
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

        result = await self._post(self.text_model, body)
        return "".join(part.get("text", "") for part in _candidate_parts(result))


def _candidate_parts(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    candidates = result.get("candidates") or []
    if not candidates:
        return []
    return (candidates[0].get("content") or {}).get("parts") or []


def _finish_details(result: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    details = {}
    candidates = result.get("candidates") or []
    if candidates and candidates[0].get("finishReason"):
        details["finish_reason"] = candidates[0]["finishReason"]
    block_reason = (result.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        details["block_reason"] = block_reason
    return details or None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500]

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text[:500]
