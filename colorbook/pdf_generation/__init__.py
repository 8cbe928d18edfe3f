"""
PDF assembly for colorbook books.
"""

from .builder import (
    COVER_SUBTITLE,
    LANDSCAPE,
    PAGE_SIZES,
    PORTRAIT,
    AssembledDocument,
    ColoringBookPDFBuilder,
    DecodedImage,
    PageLayout,
    decode_image,
    fit_within,
    orientation_for,
)

__all__ = [
    "COVER_SUBTITLE",
    "LANDSCAPE",
    "PAGE_SIZES",
    "PORTRAIT",
    "AssembledDocument",
    "ColoringBookPDFBuilder",
    "DecodedImage",
    "PageLayout",
    "decode_image",
    "fit_within",
    "orientation_for",
]
