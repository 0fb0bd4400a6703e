import json
from dataclasses import replace

import httpx
import pytest
from openai import OpenAI

from knowly.services.llm.chat_client import (
    ChatCompletionClient,
    CompletionFailed,
    EmptyCompletion,
    InvalidInput,
)

MESSAGES = [
    {"role": "system", "content": "You are helpful."},
    {"role": "user", "content": "Say hello"},
]


def _completion_body(**overrides):
    body = {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-test",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello!"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }
    body.update(overrides)
    return body


def _client(handler) -> ChatCompletionClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    sdk = OpenAI(api_key="test-key", base_url="http://llm.test/v1", http_client=http, max_retries=0)
    return ChatCompletionClient(client=sdk, default_model="gpt-test")


def test_complete_returns_content_usage_and_finish_reason():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion_body())

    resp = _client(handler).complete(MESSAGES)

    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["model"] == "gpt-test"
    assert seen["body"]["messages"] == MESSAGES

    assert resp.content == "Hello!"
    assert resp.id == "chatcmpl-123"
    assert resp.model == "gpt-test"
    assert resp.usage.prompt_tokens == 12
    assert resp.usage.completion_tokens == 3
    assert resp.usage.total_tokens == 15
    assert resp.finish_reason == "stop"


def test_model_override_is_sent():
    seen = {}

    def handler(request):
        seen["model"] = json.loads(request.content)["model"]
        return httpx.Response(200, json=_completion_body(model="other-model"))

    resp = _client(handler).complete(MESSAGES, model="other-model")
    assert seen["model"] == "other-model"
    assert resp.model == "other-model"


@pytest.mark.parametrize(
    "messages",
    [
        [],
        [{"role": "user", "content": ""}],
        [{"role": "tool", "content": "hi"}],
        [{"content": "no role"}],
        ["not a mapping"],
    ],
)
def test_invalid_input_fails_before_any_request(messages):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_completion_body())

    with pytest.raises(InvalidInput):
        _client(handler).complete(messages)
    assert calls == []


def test_http_error_surfaces_as_completion_failed():
    def handler(request):
        return httpx.Response(500, json={"error": {"message": "upstream exploded"}})

    with pytest.raises(CompletionFailed) as ei:
        _client(handler).complete(MESSAGES)
    assert "500" in str(ei.value)


def test_transport_error_surfaces_as_completion_failed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CompletionFailed):
        _client(handler).complete(MESSAGES)


def test_no_choices_is_empty_completion():
    def handler(request):
        return httpx.Response(200, json=_completion_body(choices=[]))

    with pytest.raises(EmptyCompletion):
        _client(handler).complete(MESSAGES)


def test_choice_without_content_is_empty_completion():
    choice = {"index": 0, "message": {"role": "assistant", "content": None}, "finish_reason": "stop"}

    def handler(request):
        return httpx.Response(200, json=_completion_body(choices=[choice]))

    with pytest.raises(EmptyCompletion):
        _client(handler).complete(MESSAGES)


def test_unknown_finish_reason_maps_to_null():
    choice = {"index": 0, "message": {"role": "assistant", "content": "ok"}, "finish_reason": "tool_calls"}

    def handler(request):
        return httpx.Response(200, json=_completion_body(choices=[choice]))

    assert _client(handler).complete(MESSAGES).finish_reason == "null"


def test_length_finish_reason_is_kept():
    choice = {"index": 0, "message": {"role": "assistant", "content": "cut"}, "finish_reason": "length"}

    def handler(request):
        return httpx.Response(200, json=_completion_body(choices=[choice]))

    assert _client(handler).complete(MESSAGES).finish_reason == "length"


def test_missing_api_key_is_completion_failed(monkeypatch):
    from knowly.services.llm import chat_client

    monkeypatch.setattr(chat_client, "settings", replace(chat_client.settings, openai_api_key=None))
    with pytest.raises(CompletionFailed):
        ChatCompletionClient().complete(MESSAGES)
