"""Tests for the OpenRouter inference client.

The endpoint is replaced with httpx.MockTransport; no network calls.
"""

import asyncio
import json

import httpx
import pytest

from exceptions import (
    ConfigurationError,
    EmptyResponseError,
    FaultKind,
    InferenceHTTPError,
    InferenceTimeoutError,
    InferenceTransportError,
    ResponseParseError,
    SchemaError,
)
from pipeline_fakes import make_image_bytes, make_response
from vectorization.inference import (
    OpenRouterClient,
    build_request_body,
    extract_content,
    strip_code_fence,
)
from vectorization.models import PatternMode
from vectorization.preprocess_image import prepare_image

MODEL = "google/gemini-1.5-flash"


@pytest.fixture
def prepared():
    return prepare_image(make_image_bytes(320, 240))


def _envelope(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler) -> OpenRouterClient:
    return OpenRouterClient(api_key="sk-test", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestRequestBody:
    def test_two_message_prompt_with_image(self, prepared):
        body = build_request_body(MODEL, prepared, PatternMode.QUILTING)

        assert body["model"] == MODEL
        assert body["temperature"] == 0.1
        assert body["response_format"] == {"type": "json_object"}
        system, user = body["messages"]
        assert system["role"] == "system"
        assert "pattern vectorization" in system["content"]
        text_part, image_part = user["content"]
        assert "320px x 240px" in text_part["text"]
        assert "PATTERN MODE: quilting" in text_part["text"]
        assert image_part["image_url"]["url"] == prepared.data_uri
        assert image_part["image_url"]["detail"] == "high"


@pytest.mark.unit
class TestHelpers:
    def test_strip_json_code_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_plain_code_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_unchanged(self):
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    @pytest.mark.parametrize("envelope", [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": {"content": "   "}}]},
        [],
    ])
    def test_extract_content_empty(self, envelope):
        with pytest.raises(EmptyResponseError):
            extract_content(envelope)


@pytest.mark.unit
@pytest.mark.asyncio
class TestInfer:
    @pytest.mark.smoke
    async def test_success_returns_validated_result(self, prepared):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_envelope(json.dumps(make_response(confidence=75))))

        result = await _client(handler).infer(MODEL, prepared, PatternMode.SEWING, 5000)

        assert result.confidence == 75
        assert len(result.layers.cutlines) == 1
        assert seen["headers"]["authorization"] == "Bearer sk-test"
        assert seen["headers"]["x-title"] == "TraceCast"
        assert seen["body"]["model"] == MODEL

    async def test_fenced_payload_is_parsed(self, prepared):
        content = "```json\n" + json.dumps(make_response()) + "\n```"

        result = await _client(lambda r: httpx.Response(200, json=_envelope(content))).infer(
            MODEL, prepared, PatternMode.SEWING, 5000
        )

        assert result.success is True

    async def test_missing_api_key_is_configuration_error(self, prepared):
        calls = []
        client = OpenRouterClient(
            api_key=None,
            transport=httpx.MockTransport(lambda r: calls.append(r) or httpx.Response(200)),
        )

        with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)
        assert calls == []

    async def test_non_2xx_is_http_error(self, prepared):
        client = _client(lambda r: httpx.Response(429, text="rate limited"))

        with pytest.raises(InferenceHTTPError) as exc_info:
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)

        assert exc_info.value.status == 429
        assert exc_info.value.body == "rate limited"
        assert exc_info.value.kind is FaultKind.TRANSPORT

    async def test_timeout_cancels_request(self, prepared):
        async def slow_handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json=_envelope(json.dumps(make_response())))

        with pytest.raises(InferenceTimeoutError) as exc_info:
            await _client(slow_handler).infer(MODEL, prepared, PatternMode.SEWING, 50)

        assert exc_info.value.timeout_ms == 50
        assert exc_info.value.retryable is True

    async def test_connection_failure_is_transport_error(self, prepared):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(InferenceTransportError):
            await _client(handler).infer(MODEL, prepared, PatternMode.SEWING, 5000)

    async def test_empty_content(self, prepared):
        client = _client(lambda r: httpx.Response(200, json=_envelope("")))

        with pytest.raises(EmptyResponseError):
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)

    async def test_envelope_not_json(self, prepared):
        client = _client(lambda r: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(ResponseParseError):
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)

    async def test_content_not_json(self, prepared):
        client = _client(lambda r: httpx.Response(200, json=_envelope("I could not find a pattern.")))

        with pytest.raises(ResponseParseError) as exc_info:
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)
        assert exc_info.value.kind is FaultKind.TRANSPORT

    async def test_out_of_range_integers_do_not_abort_attempt(self, prepared):
        payload = make_response(cutlines=[{"id": "c", "points": [[10**400, 1], [2, 3]]}])
        client = _client(lambda r: httpx.Response(200, json=_envelope(json.dumps(payload))))

        result = await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)

        assert result.layers.cutlines[0].points == [(2.0, 3.0)]

    async def test_schema_failure_surfaces_validator_error(self, prepared):
        bad = json.dumps({"success": True, "confidence": 90, "layers": {"cutlines": []}})
        client = _client(lambda r: httpx.Response(200, json=_envelope(bad)))

        with pytest.raises(SchemaError) as exc_info:
            await client.infer(MODEL, prepared, PatternMode.SEWING, 5000)
        assert exc_info.value.field == "layers.markings"


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.requires_api
@pytest.mark.asyncio
class TestInferIntegration:
    """Integration tests that make real API calls."""

    async def test_real_model_returns_valid_structure(self, check_api_key):
        client = OpenRouterClient(api_key=check_api_key)
        image = prepare_image(make_image_bytes(400, 300))

        try:
            result = await client.infer("openai/gpt-4o-mini", image, PatternMode.SEWING, 60000)
        except SchemaError as e:
            pytest.skip(f"Model returned an off-schema payload: {e}")

        assert 0 <= result.confidence <= 100
