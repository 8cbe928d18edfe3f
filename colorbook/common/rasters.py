"""
Helpers for moving encoded raster images between collaborators and the PDF builder.
"""

from __future__ import annotations

import base64
import binascii

Raster = bytes | str

_DATA_URL_PREFIX = "data:"


def coerce_raster(value: Raster) -> bytes:
    """
    Return the encoded image bytes for ``value``.

    Accepts raw bytes, ``data:image/...;base64,`` URLs, or bare base64 text.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)

    if not isinstance(value, str):
        raise TypeError(f"Expected bytes or str raster, got {type(value).__name__}.")

    text = value.strip()
    if text.startswith(_DATA_URL_PREFIX):
        header, _, payload = text.partition(",")
        if ";base64" not in header:
            raise ValueError("Only base64-encoded data URLs are supported.")
        text = payload

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Raster text is not valid base64.") from exc


def guess_media_type(data: bytes) -> str:
    """Best-effort media type from the file signature, defaulting to JPEG."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def to_data_url(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{guess_media_type(data)};base64,{encoded}"
