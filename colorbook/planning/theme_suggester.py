"""
Suggest a random coloring book theme.
"""

from __future__ import annotations

from colorbook.common import (
    ChatResult,
    CompletionCallable,
    call_chat_completion,
    resolve_api_key,
    resolve_model,
)

FALLBACK_THEME = "animals on a space adventure"


class ThemeSuggester:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = resolve_api_key(api_key)
        self._model = resolve_model(model, "COLORBOOK_PLANNER_MODEL")
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    def suggest(self) -> str:
        """Return a short (3-8 word) sentence-case theme."""
        result: ChatResult = self._completion_fn(
            model=self._model,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You generate creative, fun, imaginative coloring book themes for kids. "
                        "Respond with ONLY the theme — a short phrase (3-8 words) in sentence case "
                        "(only capitalize the first word), no quotes, no punctuation, no explanation."
                    ),
                },
                {"role": "user", "content": "Give me a random fun coloring book theme for kids."},
            ],
            temperature=1.2,
            max_tokens=60,
            api_key=self._api_key,
        )
        return result.text.strip().strip("\"'") or FALLBACK_THEME
