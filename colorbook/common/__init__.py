"""
Common utilities shared across colorbook modules.
"""

from .llm import (
    ChatResult,
    CompletionCallable,
    call_chat_completion,
    photo_message,
    resolve_api_key,
    resolve_model,
)
from .rasters import Raster, coerce_raster, guess_media_type, to_data_url

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "call_chat_completion",
    "photo_message",
    "resolve_api_key",
    "resolve_model",
    "Raster",
    "coerce_raster",
    "guess_media_type",
    "to_data_url",
]
