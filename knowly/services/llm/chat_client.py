from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import httpx
import openai
from openai import OpenAI

from knowly.core.config import settings

logger = logging.getLogger(__name__)

VALID_ROLES = ("system", "user", "assistant")
FINISH_REASONS = ("stop", "length", "function_call", "content_filter")


class ChatCompletionError(Exception):
    pass


class InvalidInput(ChatCompletionError):
    pass


class CompletionFailed(ChatCompletionError):
    pass


class EmptyCompletion(ChatCompletionError):
    pass


@dataclass(frozen=True)
class ChatUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ChatCompletion:
    content: str
    id: str
    model: str
    usage: ChatUsage
    finish_reason: str  # stop|length|function_call|content_filter|null


def validate_messages(messages: Iterable[Mapping[str, Any]] | None) -> list[dict[str, str]]:
    """
    Returns a plain list of {"role", "content"} dicts or raises InvalidInput.
    """
    if messages is None:
        raise InvalidInput("At least one message is required")

    out: list[dict[str, str]] = []
    for m in messages:
        if not isinstance(m, Mapping):
            raise InvalidInput("Each message must be a mapping with role and content")
        role = m.get("role")
        content = m.get("content")
        if not role or not isinstance(content, str) or not content:
            raise InvalidInput("Each message must have a role and content")
        if role not in VALID_ROLES:
            raise InvalidInput(f"Invalid message role: {role}. Must be 'system', 'user', or 'assistant'")
        out.append({"role": role, "content": content})

    if not out:
        raise InvalidInput("At least one message is required")
    return out


def _build_openai_client() -> OpenAI:
    if not settings.openai_api_key:
        raise CompletionFailed("OPENAI_API_KEY is missing")

    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        timeout=settings.openai_timeout_sec,
        max_retries=settings.openai_max_retries,
    )


class ChatCompletionClient:
    """
    One conversation in, one completion out. No retries happen here;
    callers decide what a failure means for them.
    """

    def __init__(self, client: OpenAI | None = None, default_model: str | None = None) -> None:
        self._client = client
        self.default_model = default_model or settings.openai_model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = _build_openai_client()
        return self._client

    def complete(self, messages: Iterable[Mapping[str, Any]], model: str | None = None) -> ChatCompletion:
        payload = validate_messages(messages)
        model = model or self.default_model

        try:
            resp = self.client.chat.completions.create(model=model, messages=payload)
        except openai.APIStatusError as e:
            raise CompletionFailed(f"Chat completion request failed with status {e.status_code}: {e.message}") from e
        except (openai.APIError, httpx.HTTPError) as e:
            raise CompletionFailed(f"Chat completion request failed: {e}") from e

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise EmptyCompletion("No completion choices returned from API")

        first = choices[0]
        message = getattr(first, "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if not isinstance(content, str) or not content:
            raise EmptyCompletion("No content in completion response")

        finish_reason = getattr(first, "finish_reason", None)
        if finish_reason not in FINISH_REASONS:
            finish_reason = "null"

        u = getattr(resp, "usage", None)
        usage = ChatUsage(
            prompt_tokens=int(getattr(u, "prompt_tokens", 0) or 0),
            completion_tokens=int(getattr(u, "completion_tokens", 0) or 0),
            total_tokens=int(getattr(u, "total_tokens", 0) or 0),
        )

        logger.debug("completion %s model=%s tokens=%s finish=%s", resp.id, resp.model, usage.total_tokens, finish_reason)

        return ChatCompletion(
            content=content,
            id=str(getattr(resp, "id", "") or ""),
            model=str(getattr(resp, "model", "") or model),
            usage=usage,
            finish_reason=finish_reason,
        )


def build_chat_client() -> ChatCompletionClient:
    return ChatCompletionClient()
