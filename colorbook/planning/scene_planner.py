"""
Plan scene descriptions for a themed coloring book via LiteLLM-compatible models.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from colorbook.common import (
    ChatResult,
    CompletionCallable,
    call_chat_completion,
    resolve_api_key,
    resolve_model,
)
from colorbook.errors import InputValidationError

logger = logging.getLogger(__name__)

SCENE_COUNT_RANGE = (1, 10)

_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


class ScenePlanner:
    """
    Turns a free-text theme into an ordered list of distinct coloring-page scenes.

    The returned list always has exactly the requested length: missing scenes are
    padded with filler text and surplus scenes are dropped.
    """

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

    @property
    def model(self) -> str:
        return self._model

    def plan_scenes(
        self,
        theme: str,
        count: int,
        *,
        temperature: float = 1.0,
        max_output_tokens: int = 1000,
        **response_kwargs: Any,
    ) -> list[str]:
        if not isinstance(theme, str) or not theme.strip():
            raise InputValidationError("A theme description is required", field="theme")

        lower, upper = SCENE_COUNT_RANGE
        if isinstance(count, bool) or not isinstance(count, int) or not lower <= count <= upper:
            raise InputValidationError(
                f"Page count must be between {lower} and {upper}", field="count"
            )

        theme = theme.strip()
        result: ChatResult = self._completion_fn(
            model=self._model,
            messages=[
                {"role": "system", "content": self._build_system_prompt()},
                {"role": "user", "content": self._build_user_prompt(theme, count)},
            ],
            temperature=temperature,
            max_tokens=max_output_tokens,
            api_key=self._api_key,
            **response_kwargs,
        )

        scenes = self._parse_scenes(result.text)
        if scenes is None:
            logger.warning("Scene plan for theme %r was not a JSON array; using filler scenes.", theme)
            scenes = [f"Scene {i + 1} based on the theme: {theme}" for i in range(count)]

        return fit_scene_count(scenes, count, theme)

    def _build_system_prompt(self) -> str:
        return (
            "You are a creative children's coloring book designer. Given a theme, generate unique "
            "scene descriptions for coloring book pages. Each scene should be distinct and varied "
            "while staying on theme. Return ONLY a JSON array of strings, no other text."
        )

    def _build_user_prompt(self, theme: str, count: int) -> str:
        return (
            f'Theme: "{theme}"\n\n'
            f"Generate exactly {count} unique, vivid scene descriptions for coloring book pages "
            "based on this theme. Each scene should be different (different characters, settings, "
            f"activities, or perspectives). Return a JSON array of {count} strings."
        )

    @staticmethod
    def _parse_scenes(text: str) -> list[str] | None:
        match = _JSON_ARRAY_PATTERN.search(text or "")
        if match is None:
            return []
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
        if not isinstance(payload, list):
            return None
        return [str(item).strip() for item in payload if str(item).strip()]


def fit_scene_count(scenes: list[str], count: int, theme: str) -> list[str]:
    """Pad with filler scenes or truncate so exactly ``count`` scenes remain."""
    fitted = list(scenes[:count])
    while len(fitted) < count:
        fitted.append(f"Another scene based on the theme: {theme}")
    return fitted
