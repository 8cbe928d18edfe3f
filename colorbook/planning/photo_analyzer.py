"""
Describe uploaded photos so the illustration model gets scene context.
"""

from __future__ import annotations

from typing import Any

from colorbook.common import (
    ChatResult,
    CompletionCallable,
    call_chat_completion,
    photo_message,
    resolve_api_key,
    resolve_model,
    to_data_url,
)

DEFAULT_DESCRIPTION = "a family scene"

ANALYSIS_INSTRUCTIONS = (
    "Describe the main subjects and scene in this family photo in 2-3 sentences. Focus on the "
    "people, their activities, and the setting. Be specific but concise."
)


class PhotoAnalyzer:
    """
    Uses a multimodal chat model to summarise a photo in a few sentences.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = resolve_api_key(api_key)
        self._model = resolve_model(model, "COLORBOOK_VISION_MODEL")
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        return self._model

    def describe(self, photo: bytes, *, max_output_tokens: int = 300, **response_kwargs: Any) -> str:
        result: ChatResult = self._completion_fn(
            model=self._model,
            messages=[photo_message(ANALYSIS_INSTRUCTIONS, to_data_url(photo))],
            max_tokens=max_output_tokens,
            api_key=self._api_key,
            **response_kwargs,
        )
        return result.text or DEFAULT_DESCRIPTION
