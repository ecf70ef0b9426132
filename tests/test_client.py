"""Tests for archagent.client: OllamaClient request shape and failure classification."""

import itertools
import json
from unittest.mock import patch

import httpx
import pytest

from archagent.client import OllamaClient, is_model_not_found
from archagent.errors import (
    GenerationTimeoutError,
    InvalidServiceResponseError,
    ModelNotFoundError,
    ServiceUnreachableError,
)


def _client(handler, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    kwargs.setdefault("backoff_seconds", 0)
    return OllamaClient(http_client=http, **kwargs)


def _ok(content: str = '{"ok": true}'):
    def handler(request):
        return httpx.Response(200, json={"message": {"role": "assistant", "content": content}})
    return handler


MESSAGES = [{"role": "user", "content": "hi"}]


class TestIsModelNotFound:
    def test_detects_missing_model(self):
        assert is_model_not_found('{"error":"model \\"qwen\\" not found, try pulling it first"}')

    def test_other_errors(self):
        assert not is_model_not_found('{"error":"internal server error"}')


class TestChat:
    def test_request_payload(self, mock_config):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"content": "{}"}})

        client = _client(handler, response_format={"type": "object"})
        assert client.chat(MESSAGES) == "{}"

        assert seen["url"] == "http://ollama.test:11434/api/chat"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0}
        assert seen["body"]["format"] == {"type": "object"}
        assert seen["body"]["messages"] == MESSAGES

    def test_format_omitted_when_unset(self, mock_config):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"content": "{}"}})

        _client(handler).chat(MESSAGES)
        assert "format" not in seen["body"]

    def test_explicit_model_and_url(self, mock_config):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"message": {"content": "{}"}})

        _client(handler, base_url="http://other:1/", model="llama3").chat(MESSAGES)
        assert seen == {"url": "http://other:1/api/chat", "model": "llama3"}

    def test_model_not_found(self, mock_config):
        def handler(request):
            return httpx.Response(404, json={"error": "model 'test-model' not found"})

        with pytest.raises(ModelNotFoundError) as exc_info:
            _client(handler).chat(MESSAGES)
        assert "ollama pull test-model" in exc_info.value.message

    def test_server_error_is_unreachable(self, mock_config):
        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(ServiceUnreachableError) as exc_info:
            _client(handler).chat(MESSAGES)
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    def test_non_json_body(self, mock_config):
        def handler(request):
            return httpx.Response(200, text="<html>proxy</html>")

        with pytest.raises(ServiceUnreachableError, match="non-JSON"):
            _client(handler).chat(MESSAGES)

    def test_missing_content(self, mock_config):
        def handler(request):
            return httpx.Response(200, json={"message": {"role": "assistant"}})

        with pytest.raises(InvalidServiceResponseError):
            _client(handler).chat(MESSAGES)

    def test_timeout(self, mock_config):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(GenerationTimeoutError) as exc_info:
            _client(handler).chat(MESSAGES)
        assert exc_info.value.timeout_seconds == 5

    def test_connect_error(self, mock_config):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnreachableError):
            _client(handler).chat(MESSAGES)

    def test_slow_body_exceeds_total_deadline(self, mock_config):
        chunks = [b'{"message": ', b'{"content": ', b'"late"}}']

        def handler(request):
            return httpx.Response(200, content=iter(chunks))

        # Each clock read advances 3s against a 5s budget
        with patch("archagent.client.monotonic", side_effect=itertools.count(0.0, 3.0)):
            with pytest.raises(GenerationTimeoutError) as exc_info:
                _client(handler).chat(MESSAGES)
        assert exc_info.value.timeout_seconds == 5

    def test_chunked_body_within_deadline(self, mock_config):
        chunks = [b'{"message": ', b'{"content": ', b'"on time"}}']

        def handler(request):
            return httpx.Response(200, content=iter(chunks))

        with patch("archagent.client.monotonic", side_effect=itertools.count(0.0, 1.0)):
            assert _client(handler).chat(MESSAGES) == "on time"


class TestInvokeRetry:
    def test_succeeds_on_first_try(self, mock_config):
        assert _client(_ok()).invoke(MESSAGES) == '{"ok": true}'

    def test_retries_on_connect_error(self, mock_config):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"message": {"content": "done"}})

        assert _client(handler).invoke(MESSAGES) == "done"
        assert len(calls) == 2

    def test_retries_on_timeout_then_raises(self, mock_config):
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(GenerationTimeoutError):
            _client(handler).invoke(MESSAGES)
        assert len(calls) == 2  # transport_max_attempts

    def test_does_not_retry_model_not_found(self, mock_config):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(404, json={"error": "model not found"})

        with pytest.raises(ModelNotFoundError):
            _client(handler).invoke(MESSAGES)
        assert len(calls) == 1

    def test_does_not_retry_invalid_service_response(self, mock_config):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json={"done": True})

        with pytest.raises(InvalidServiceResponseError):
            _client(handler).invoke(MESSAGES)
        assert len(calls) == 1

    def test_max_attempts_override(self, mock_config):
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnreachableError):
            _client(handler, max_attempts=3).invoke(MESSAGES)
        assert len(calls) == 3
