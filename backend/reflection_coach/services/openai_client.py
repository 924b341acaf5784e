"""
Thin OpenAI REST client for moderation and text responses.

Handles:
- Moderation pre-checks (POST /moderations)
- Text and JSON-schema constrained responses (POST /responses)

Every request carries a bounded timeout. Nothing is retried; callers decide
how a failure surfaces.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from reflection_coach.core.config import get_settings
from reflection_coach.models.moderation import ModerationResult

logger = logging.getLogger(__name__)


class OpenAIServiceError(Exception):
    """Base exception for remote LLM errors."""

    pass


class OpenAINotConfiguredError(OpenAIServiceError):
    """No API key is configured."""

    pass


class OpenAITimeoutError(OpenAIServiceError):
    """The remote call exceeded the configured timeout."""

    pass


@dataclass
class ResponseResult:
    """Text produced by the remote model."""

    text: str
    model: Optional[str] = None


def extract_output_text(payload: dict[str, Any]) -> str:
    """Concatenate the output_text parts of a Responses API payload."""
    if isinstance(payload.get("output_text"), str):
        return payload["output_text"]

    parts = []
    for item in payload.get("output") or []:
        if item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if content.get("type") == "output_text":
                parts.append(content.get("text", ""))
    return "".join(parts)


class OpenAIClient:
    """Client for the OpenAI moderation and responses endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = get_settings()
        self._api_key = api_key if api_key is not None else self._settings.openai_api_key
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        """Check if an API key is configured."""
        return bool(self._api_key and self._api_key.strip())

    @property
    def model(self) -> str:
        return self._settings.openai_model

    async def moderate(self, text: str) -> ModerationResult:
        """
        Run the moderation model over text.

        Raises:
            OpenAIServiceError: If the call fails or the payload is malformed
        """
        payload = await self._post(
            "/moderations",
            {"model": self._settings.openai_moderation_model, "input": text},
        )
        try:
            result = payload["results"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise OpenAIServiceError(f"Malformed moderation response: {e}") from e

        categories = {
            name: bool(value) for name, value in (result.get("categories") or {}).items()
        }
        return ModerationResult(flagged=bool(result.get("flagged")), categories=categories)

    async def create_response(
        self,
        prompt: str,
        max_output_tokens: int,
        text_format: Optional[dict[str, Any]] = None,
    ) -> ResponseResult:
        """
        Generate a response for a single prompt.

        Args:
            prompt: Full prompt text
            max_output_tokens: Output token cap
            text_format: Optional Responses API text.format (e.g. a json_schema)

        Raises:
            OpenAIServiceError: If the call fails or produces no text
        """
        text_options: dict[str, Any] = {"verbosity": "low"}
        if text_format is not None:
            text_options["format"] = text_format

        payload = await self._post(
            "/responses",
            {
                "model": self._settings.openai_model,
                "input": prompt,
                "reasoning": {"effort": "minimal"},
                "max_output_tokens": max_output_tokens,
                "text": text_options,
            },
        )
        text = extract_output_text(payload)
        if not text:
            raise OpenAIServiceError("No response content received from OpenAI")
        return ResponseResult(text=text, model=payload.get("model"))

    # =========================================================================
    # Private Helpers
    # =========================================================================

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self.is_configured:
            raise OpenAINotConfiguredError("OpenAI API key not configured")

        url = f"{self._settings.openai_base_url.rstrip('/')}{path}"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        timeout = self._settings.openai_timeout_seconds

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=body, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json=body, headers=headers, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.warning("OpenAI request to %s timed out after %ss", path, timeout)
            raise OpenAITimeoutError(f"OpenAI request timed out after {timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.error("OpenAI request to %s failed: %s", path, e.response.status_code)
            raise OpenAIServiceError(
                f"OpenAI request failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise OpenAIServiceError(f"OpenAI request failed: {e}") from e
