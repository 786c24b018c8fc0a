"""OpenRouter client for vision model vectorization calls."""
import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from config import DEFAULT_OPENROUTER_URL
from exceptions import (
    ConfigurationError,
    EmptyResponseError,
    InferenceHTTPError,
    InferenceTimeoutError,
    InferenceTransportError,
    ResponseParseError,
)
from vectorization.models import PatternMode, PreparedImage, RawInferenceResult
from vectorization.prompts import SYSTEM_PROMPT, build_user_prompt
from vectorization.validate_response import validate_inference_result

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096
TEMPERATURE = 0.1
APP_REFERER = "https://tracecast.app"
APP_TITLE = "TraceCast"
# Cap on how much of an error body is kept for diagnostics
MAX_ERROR_BODY_CHARS = 2000


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    return text


def build_request_body(model_id: str, image: PreparedImage, mode: PatternMode) -> dict:
    """Chat completions payload: fixed system prompt plus user text and image."""
    return {
        "model": model_id,
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": build_user_prompt(image.width, image.height, mode)},
                    {
                        "type": "image_url",
                        "image_url": {"url": image.data_uri, "detail": "high"},
                    },
                ],
            },
        ],
    }


def extract_content(envelope: Any) -> str:
    """Pull the single text payload out of a chat completions response.

    Raises:
        EmptyResponseError: If there is no non-empty message content
    """
    try:
        content = envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        raise EmptyResponseError("No content in OpenRouter response")
    return content


class OpenRouterClient:
    """Issues one bounded-time vectorization request to a named model."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_OPENROUTER_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenRouter bearer credential, resolved by the caller
            base_url: Chat completions endpoint URL
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
        }

    async def _post(self, body: dict) -> httpx.Response:
        # Wall-clock limit is enforced by asyncio.wait_for in infer()
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            return await client.post(self.base_url, headers=self._headers(), json=body)

    async def infer(
        self,
        model_id: str,
        image: PreparedImage,
        mode: PatternMode,
        timeout_ms: int
    ) -> RawInferenceResult:
        """
        Run one vectorization attempt against ``model_id``.

        The whole request is cancelled once ``timeout_ms`` elapses; no
        retries happen here.

        Args:
            model_id: OpenRouter model identifier (e.g. "google/gemini-1.5-flash")
            image: Prepared JPEG image
            mode: Pattern mode embedded in the user prompt
            timeout_ms: Hard wall-clock budget for the request

        Returns:
            Structurally validated RawInferenceResult

        Raises:
            ConfigurationError: If no API key was configured
            InferenceTimeoutError: If the budget elapsed
            InferenceTransportError: If the request failed before a response
            InferenceHTTPError: On a non-2xx status
            EmptyResponseError: If the envelope has no content
            ResponseParseError: If the envelope or content is not JSON
            SchemaError: If the content fails structural validation
        """
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY not configured")

        body = build_request_body(model_id, image, mode)
        logger.debug(f"Calling {model_id} (timeout {timeout_ms}ms, image {image.size_bytes} bytes)")

        try:
            response = await asyncio.wait_for(self._post(body), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise InferenceTimeoutError(model_id, timeout_ms) from e
        except httpx.HTTPError as e:
            raise InferenceTransportError(f"Request to {model_id} failed: {e}") from e

        if not response.is_success:
            raise InferenceHTTPError(response.status_code, response.text[:MAX_ERROR_BODY_CHARS])

        try:
            envelope = response.json()
        except ValueError as e:
            raise ResponseParseError(f"OpenRouter envelope is not JSON: {e}") from e

        content = extract_content(envelope)

        try:
            parsed = json.loads(strip_code_fence(content))
        except ValueError as e:
            raise ResponseParseError(f"Model output is not valid JSON: {e}") from e

        return validate_inference_result(parsed)
