"""
AI illustration package for colorbook.
"""

from .prompting import (
    VARIATION_STYLES,
    ColoringPagePrompt,
    build_photo_prompt,
    build_scene_prompt,
    complexity_for_age,
    variation_style,
)
from .replicate_service import ReplicateIllustrationService
from .service import IllustrationRequest, IllustrationResult, IllustrationService

__all__ = [
    "VARIATION_STYLES",
    "ColoringPagePrompt",
    "build_photo_prompt",
    "build_scene_prompt",
    "complexity_for_age",
    "variation_style",
    "ReplicateIllustrationService",
    "IllustrationRequest",
    "IllustrationResult",
    "IllustrationService",
]
