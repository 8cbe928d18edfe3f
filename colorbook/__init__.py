"""
colorbook package: build printable coloring books from generated pages.
"""

from .book import BookSession, BookState, Page
from .errors import AssemblyError, ColorbookError, ExternalServiceError, InputValidationError
from .export import ExportDispatcher, ResendEmailService
from .pdf_generation import AssembledDocument, ColoringBookPDFBuilder
from .pipeline import GenerationBatch, GenerationOrchestrator, ItemStatus, ProgressEvent

__all__ = [
    "AssembledDocument",
    "AssemblyError",
    "BookSession",
    "BookState",
    "ColorbookError",
    "ColoringBookPDFBuilder",
    "ExportDispatcher",
    "ExternalServiceError",
    "GenerationBatch",
    "GenerationOrchestrator",
    "InputValidationError",
    "ItemStatus",
    "Page",
    "ProgressEvent",
    "ResendEmailService",
]
