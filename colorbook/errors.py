"""
Error taxonomy shared across colorbook components.
"""

from __future__ import annotations


class ColorbookError(RuntimeError):
    """Base class for every error raised by the colorbook core."""


class InputValidationError(ColorbookError, ValueError):
    """Raised when caller-supplied input fails validation before any external call."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ExternalServiceError(ColorbookError):
    """Raised when a collaborator (illustration, planning, email) reports a failure."""

    def __init__(self, *, service: str, detail: str) -> None:
        super().__init__(detail)
        self.service = service
        self.detail = detail


class AssemblyError(ColorbookError):
    """Raised when a document build cannot complete. No partial document is produced."""

    def __init__(self, message: str, *, page_index: int | None = None) -> None:
        super().__init__(message)
        self.page_index = page_index
