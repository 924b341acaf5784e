"""Unit tests for the OpenAI REST client (wire protocol via httpx.MockTransport)."""

import json

import httpx
import pytest

from reflection_coach.services.openai_client import (
    OpenAIClient,
    OpenAINotConfiguredError,
    OpenAIServiceError,
    OpenAITimeoutError,
    extract_output_text,
)


def _client(handler) -> OpenAIClient:
    return OpenAIClient(
        api_key="sk-test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


# =============================================================================
# extract_output_text
# =============================================================================


class TestExtractOutputText:
    @pytest.mark.unit
    def test_prefers_output_text(self) -> None:
        assert extract_output_text({"output_text": "hi", "output": []}) == "hi"

    @pytest.mark.unit
    def test_joins_message_parts(self) -> None:
        payload = {
            "output": [
                {"type": "reasoning", "summary": []},
                {
                    "type": "message",
                    "content": [
                        {"type": "output_text", "text": "Hello "},
                        {"type": "refusal", "refusal": "no"},
                        {"type": "output_text", "text": "there"},
                    ],
                },
            ]
        }
        assert extract_output_text(payload) == "Hello there"

    @pytest.mark.unit
    def test_empty_payload(self) -> None:
        assert extract_output_text({}) == ""


# =============================================================================
# moderate
# =============================================================================


class TestModerate:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_flagged_result(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"results": [{"flagged": True, "categories": {"violence": True, "hate": False}}]},
            )

        result = await _client(handler).moderate("some text")

        assert result.flagged is True
        assert result.categories == {"violence": True, "hate": False}
        assert seen["url"].endswith("/moderations")
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["input"] == "some text"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_malformed_payload_raises(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"results": []}))

        with pytest.raises(OpenAIServiceError):
            await client.moderate("text")


# =============================================================================
# create_response
# =============================================================================


class TestCreateResponse:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_request_body_and_result(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"model": "gpt-5-2025", "output_text": "{}"})

        fmt = {"type": "json_schema", "name": "X", "schema": {}, "strict": True}
        result = await _client(handler).create_response("prompt", 400, text_format=fmt)

        assert result.text == "{}"
        assert result.model == "gpt-5-2025"
        body = seen["body"]
        assert body["input"] == "prompt"
        assert body["max_output_tokens"] == 400
        assert body["reasoning"] == {"effort": "minimal"}
        assert body["text"] == {"verbosity": "low", "format": fmt}

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_plain_text_has_no_format(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"output_text": "Hello"})

        await _client(handler).create_response("prompt", 200)

        assert "format" not in seen["body"]["text"]

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_empty_output_raises(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"output": []}))

        with pytest.raises(OpenAIServiceError, match="No response content"):
            await client.create_response("prompt", 200)


# =============================================================================
# Failure mapping
# =============================================================================


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_missing_key(self) -> None:
        client = OpenAIClient(api_key="")

        assert client.is_configured is False
        with pytest.raises(OpenAINotConfiguredError):
            await client.moderate("text")

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(OpenAITimeoutError):
            await _client(handler).create_response("prompt", 200)

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_http_error_status(self) -> None:
        client = _client(lambda request: httpx.Response(429, json={"error": "slow down"}))

        with pytest.raises(OpenAIServiceError, match="429"):
            await client.moderate("text")

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_non_json_body(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(OpenAIServiceError):
            await client.moderate("text")
