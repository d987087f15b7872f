"""
Gemini image generator (Google AI generateContent image generation).
Uses generativelanguage.googleapis.com with api_key.
Structured refusals (no image, safety block) come back as failed ImageResults;
HTTP and transport failures raise ImageGenerationError with a message the
regenerate classifier can recognise (timeout, network, rate_limit, ...).
"""
import base64
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from imagegen.services.image_generation.base import (
    GeneratorInfo,
    ImageGenerationError,
    ImageGenerator,
    ImageResult,
    ImageResultMetadata,
    SafetyFiltering,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com"
SUPPORTED_FORMATS = ["image/png", "image/jpeg", "image/webp"]
MAX_PROMPT_LENGTH = 1000

# HTTP status -> marker appended to the error message for retry classification
STATUS_MARKERS = {
    429: "rate_limit",
    500: "internal_error",
    502: "network",
    503: "service_unavailable",
    504: "timeout",
}


def _parse_safety_settings(value: Any) -> list[dict[str, Any]]:
    """Parse safety_settings from config (list of {category, threshold} or JSON string)."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
            return parsed if isinstance(parsed, list) else []
        except json.JSONDecodeError:
            logger.warning("gemini_safety_settings_invalid_json")
            return []
    return []


class GeminiImageGenerator(ImageGenerator):
    """Gemini image generation and editing via Google AI generateContent API."""

    def __init__(self, config: dict, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self.api_key = (config.get("api_key") or "").strip()
        endpoint = (config.get("api_endpoint") or DEFAULT_ENDPOINT).rstrip("/")
        self.base_url = f"{endpoint}/v1beta/models"
        self.timeout = float(config.get("timeout", 120.0))
        self.model_name = (config.get("model") or DEFAULT_MODEL).strip()
        self.safety_settings = _parse_safety_settings(config.get("safety_settings"))
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.api_key)

    def get_info(self) -> GeneratorInfo:
        return GeneratorInfo(
            name="Google Gemini",
            version=self.model_name,
            supported_formats=list(SUPPORTED_FORMATS),
            max_prompt_length=MAX_PROMPT_LENGTH,
        )

    async def generate_image(self, prompt: str) -> ImageResult:
        return await self._generate_content([{"text": prompt}])

    async def edit_image(
        self, prompt: str, buffer: bytes, mime_type: str = "image/png"
    ) -> ImageResult:
        b64 = base64.standard_b64encode(buffer).decode("ascii")
        parts = [
            {"inlineData": {"mimeType": mime_type, "data": b64}},
            {"text": prompt},
        ]
        return await self._generate_content(parts)

    async def _generate_content(self, parts: list[dict[str, Any]]) -> ImageResult:
        if not self.is_available():
            raise ImageGenerationError("Gemini service not available - API key not configured")

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        if self.safety_settings:
            payload["safetySettings"] = self.safety_settings

        url = f"{self.base_url}/{self.model_name}:generateContent"
        started = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=payload)
                resp.raise_for_status()
                result = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            try:
                err_body = e.response.json()
            except ValueError:
                err_body = {}
            msg = (err_body.get("error") or {}).get("message") or str(e)
            marker = STATUS_MARKERS.get(status)
            detail: dict[str, Any] = {"http_status": status}
            if status == 429 and e.response.headers.get("Retry-After") is not None:
                detail["retry_after"] = e.response.headers["Retry-After"]
            logger.warning(
                "gemini_http_error",
                extra={"provider": "gemini", "http_status": status, "error": msg},
            )
            suffix = f" ({marker})" if marker else ""
            raise ImageGenerationError(f"Gemini API error {status}: {msg}{suffix}", detail=detail) from e
        except httpx.TimeoutException as e:
            raise ImageGenerationError(f"Gemini request timeout: {e}") from e
        except httpx.TransportError as e:
            raise ImageGenerationError(f"Gemini network error: {e}") from e
        except ValueError as e:
            raise ImageGenerationError(f"Gemini returned invalid JSON: {e}") from e

        if not isinstance(result, dict):
            raise ImageGenerationError("Gemini returned an unexpected response body")

        processing_ms = int((time.monotonic() - started) * 1000)
        return self._process_response(result, processing_ms)

    def _process_response(self, result: dict[str, Any], processing_ms: int) -> ImageResult:
        """Turn a generateContent response into an ImageResult."""
        candidates = result.get("candidates") or []
        c0 = candidates[0] if candidates else {}
        response_parts = (c0.get("content") or {}).get("parts") or []

        text_response: str | None = None
        for part in response_parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and isinstance(inline.get("data"), str):
                return ImageResult(
                    success=True,
                    buffer=base64.standard_b64decode(inline["data"]),
                    metadata=self._metadata(processing_ms),
                )
            if part.get("text"):
                text_response = part["text"]

        if text_response:
            # Model answered in text instead of drawing; surface its explanation
            return ImageResult(
                success=False,
                error=text_response,
                metadata=self._metadata(processing_ms),
            )

        error = "Failed to generate image"
        safety: SafetyFiltering | None = None
        prompt_feedback = result.get("promptFeedback") or {}
        block_reason = prompt_feedback.get("blockReason")
        if block_reason:
            error = f"Content blocked: {block_reason}"
            safety = SafetyFiltering(
                blocked=True,
                reason=block_reason,
                categories=[
                    r.get("category")
                    for r in prompt_feedback.get("safetyRatings") or []
                    if r.get("category")
                ],
            )

        finish_reason = c0.get("finishReason")
        if finish_reason and finish_reason != "STOP":
            error = f"Generation stopped: {finish_reason}"

        logger.info(
            "gemini_no_image",
            extra={"provider": "gemini", "model": self.model_name, "error": error},
        )
        return ImageResult(
            success=False,
            error=error,
            metadata=self._metadata(processing_ms, safety),
        )

    def _metadata(self, processing_ms: int, safety: SafetyFiltering | None = None) -> ImageResultMetadata:
        return ImageResultMetadata(
            model=self.model_name,
            generated_at=datetime.now(timezone.utc),
            processing_time_ms=processing_ms,
            safety_filtering=safety,
        )
