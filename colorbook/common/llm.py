"""
Chat-model plumbing shared by the scene planner, photo analyzer and theme suggester.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from litellm import completion

ChatMessage = Mapping[str, Any]

DEFAULT_CHAT_MODEL = "gpt-4o"
API_KEY_ENV_VARS = ("OPENAI_API_KEY", "LITELLM_API_KEY")


@dataclass
class ChatResult:
    """Reply text plus the untouched provider response."""

    text: str
    raw: Any


CompletionCallable = Callable[..., ChatResult]


def resolve_api_key(explicit: str | None = None) -> str | None:
    if explicit:
        return explicit
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def resolve_model(explicit: str | None, *env_vars: str) -> str:
    """
    Pick the chat model: the explicit argument, then the first set variable from
    ``env_vars``, then ``LITELLM_MODEL``, then :data:`DEFAULT_CHAT_MODEL`.
    """
    if explicit:
        return explicit
    for name in (*env_vars, "LITELLM_MODEL"):
        value = os.getenv(name)
        if value:
            return value
    return DEFAULT_CHAT_MODEL


def photo_message(instructions: str, image_url: str) -> dict[str, Any]:
    """A single user turn carrying text instructions and one image."""
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": instructions},
            {"type": "image_url", "image_url": {"url": image_url}},
        ],
    }


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Run one LiteLLM completion and return the stripped reply text.

    Providers sometimes answer with ``content: null`` (refusals, tool-only turns);
    that comes back as ``""`` so each caller can substitute its own fallback.
    """
    optional = {"temperature": temperature, "max_tokens": max_tokens, "api_key": api_key}
    payload = {key: value for key, value in optional.items() if value is not None}
    payload.update(extra_kwargs)

    response = completion(model=model, messages=list(messages), **payload)
    return ChatResult(text=_reply_text(response), raw=response)


def _reply_text(response: Any) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Chat model returned no choices.") from exc
    if content is None:
        return ""
    return str(content).strip()
