"""
Prompt construction utilities for coloring-page illustration generation.
"""

from __future__ import annotations

from dataclasses import dataclass

LINE_ART_RULES = (
    "The image must be pure black outlines on a white background, no shading, no gray tones, "
    "no color — only clean line art suitable for coloring in with crayons."
)

VARIATION_STYLES: tuple[str, ...] = (
    "faithful recreation of the scene",
    "whimsical cartoon interpretation",
    "storybook illustration style",
    "playful chibi/cute style",
    "nature-themed decorative border around the scene",
    "comic book panel style",
)


@dataclass(frozen=True)
class ColoringPagePrompt:
    """Text prompt passed to the image model."""

    positive: str


def complexity_for_age(age_band: int) -> str:
    """Map an age band (1-12) onto line-art complexity guidance."""
    if age_band <= 4:
        return (
            "very simple coloring page for toddlers: large bold outlines, thick lines, very few "
            "elements, big simple shapes, no fine detail"
        )
    if age_band <= 7:
        return (
            "medium complexity coloring page for young children: moderate detail, clear outlines, "
            "some smaller elements but still easy to color, medium-thick lines"
        )
    return (
        "detailed coloring page for older children: fine lines, complex scene with many elements, "
        "intricate patterns and details, thin clean outlines"
    )


def variation_style(variant_index: int) -> str:
    """Cycle deterministically through :data:`VARIATION_STYLES`."""
    return VARIATION_STYLES[variant_index % len(VARIATION_STYLES)]


def build_scene_prompt(
    scene_description: str,
    *,
    age_band: int,
    variant_index: int | None = None,
) -> ColoringPagePrompt:
    """
    Build the prompt for a coloring page drawn from a text scene description.
    """
    if not scene_description or not scene_description.strip():
        raise ValueError("scene_description must be a non-empty string.")

    style_clause = ""
    if variant_index is not None:
        style_clause = f" Artistic approach: {variation_style(variant_index)}."

    positive = (
        "Create a black and white coloring book page. "
        f"Scene: {scene_description.strip()}. "
        f"Style: {complexity_for_age(age_band)}.{style_clause} "
        f"{LINE_ART_RULES}"
    )
    return ColoringPagePrompt(positive=positive)


def build_photo_prompt(
    *,
    age_band: int,
    description: str | None = None,
    variant_index: int | None = None,
) -> ColoringPagePrompt:
    """
    Build the prompt for converting a reference photo into a coloring page.
    """
    context_clause = ""
    if description and description.strip():
        context_clause = f" Scene context: {description.strip()}."

    style_clause = ""
    if variant_index is not None:
        style_clause = f" Artistic approach: {variation_style(variant_index)}."

    positive = (
        "Convert this photo into a black and white coloring book page."
        f"{context_clause} Style: {complexity_for_age(age_band)}.{style_clause} "
        f"{LINE_ART_RULES} Preserve the composition, poses, and key details of the original "
        "photo. Fill the entire frame with the artwork — no large empty margins."
    )
    return ColoringPagePrompt(positive=positive)
