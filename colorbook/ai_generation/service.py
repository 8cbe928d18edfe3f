"""
Interface between the generation orchestrator and an illustration collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class IllustrationRequest:
    """
    One call to the illustration collaborator.

    Exactly one of ``description`` or ``source_image`` drives the request; a photo
    request may also carry a ``description`` as scene context.
    """

    age_band: int
    description: str | None = None
    source_image: bytes | None = None
    variant_index: int | None = None

    def __post_init__(self) -> None:
        if self.source_image is None and not (self.description and self.description.strip()):
            raise ValueError("IllustrationRequest needs a description or a source image.")

    @property
    def is_photo(self) -> bool:
        return self.source_image is not None


@dataclass(frozen=True)
class IllustrationResult:
    """Either an encoded image or an error message from the collaborator."""

    image: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.image is not None and self.error is None

    @classmethod
    def success(cls, image: bytes) -> "IllustrationResult":
        return cls(image=image)

    @classmethod
    def failure(cls, message: str) -> "IllustrationResult":
        return cls(error=message)


class IllustrationService(Protocol):
    def generate(self, request: IllustrationRequest) -> IllustrationResult:
        ...
