"""
Unit tests for GenerationClient.
"""

import json

import httpx
import pytest

from call_agent.models.conversation import Role, Turn
from call_agent.services.generation_client import GenerationClient
from call_agent.utils.exceptions import GenerationUnavailable


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler):
    client = GenerationClient(transport=httpx.MockTransport(handler))
    client.retry_delay = 0
    return client


class TestBuildMessages:
    """Tests for message construction."""

    def test_system_prompt_first(self):
        messages = GenerationClient.build_messages("Be nice.", [], "hello")

        assert messages[0] == {"role": "system", "content": "Be nice."}
        assert messages[-1] == {"role": "user", "content": "hello"}

    def test_latest_utterance_not_duplicated(self):
        history = [
            Turn(role=Role.ASSISTANT, content="Hi there"),
            Turn(role=Role.USER, content="my name is Sam"),
        ]

        messages = GenerationClient.build_messages("Be nice.", history, "my name is Sam")

        assert [m["content"] for m in messages] == ["Be nice.", "Hi there", "my name is Sam"]

    def test_latest_utterance_appended_when_missing(self):
        history = [Turn(role=Role.ASSISTANT, content="What's your name?")]

        messages = GenerationClient.build_messages("Be nice.", history, "Sam")

        assert messages[-1] == {"role": "user", "content": "Sam"}
        assert len(messages) == 3


class TestGenerate:
    """Tests for generate."""

    @pytest.mark.asyncio
    async def test_success(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("  Nice to meet you, Sam!  "))

        async with _client(handler) as client:
            text = await client.generate("Be nice.", [], "my name is Sam")

        assert text == "Nice to meet you, Sam!"
        assert captured["path"].endswith("/chat/completions")
        assert captured["auth"].startswith("Bearer ")
        assert captured["body"]["messages"][-1]["content"] == "my name is Sam"
        assert "model" in captured["body"]

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, json={"error": {"message": "overloaded"}})
            return httpx.Response(200, json=_completion("Hello"))

        async with _client(handler) as client:
            text = await client.generate("Be nice.", [], "hi")

        assert text == "Hello"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_server_error_exhausts_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "internal"}})

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable) as exc_info:
                await client.generate("Be nice.", [], "hi")

        assert exc_info.value.status_code == 500
        assert len(calls) == client.max_retries + 1

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable) as exc_info:
                await client.generate("Be nice.", [], "hi")

        assert exc_info.value.status_code == 401
        assert "bad key" in str(exc_info.value)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable):
                await client.generate("Be nice.", [], "hi")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        _completion(""),
        _completion("   "),
        {"choices": []},
        {"unexpected": True},
    ])
    async def test_unusable_response(self, payload):
        def handler(request):
            return httpx.Response(200, json=payload)

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable):
                await client.generate("Be nice.", [], "hi")

    @pytest.mark.asyncio
    async def test_non_string_content(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": ["Hello"]}}]})

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable):
                await client.generate("Be nice.", [], "hi")


class TestErrorBodies:
    """Error responses that do not follow the OpenAI error shape."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,kwargs,expected", [
        (400, {"json": {"error": "overloaded"}}, "overloaded"),
        (400, {"json": ["bad gateway"]}, "bad gateway"),
        (400, {"json": {"error": None}}, "error"),
        (422, {"json": {"error": {"code": "invalid"}}}, "invalid"),
        (502, {"text": "Bad Gateway"}, "Bad Gateway"),
    ])
    async def test_unexpected_error_body(self, status, kwargs, expected):
        def handler(request):
            return httpx.Response(status, **kwargs)

        async with _client(handler) as client:
            with pytest.raises(GenerationUnavailable) as exc_info:
                await client.generate("Be nice.", [], "hi")

        assert exc_info.value.status_code == status
        assert expected in str(exc_info.value)
