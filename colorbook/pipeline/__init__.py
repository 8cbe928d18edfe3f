"""
Batch generation of coloring pages.
"""

from .orchestrator import (
    GenerationBatch,
    GenerationItem,
    GenerationOrchestrator,
    ItemStatus,
    ProgressEvent,
    ProgressObserver,
)

__all__ = [
    "GenerationBatch",
    "GenerationItem",
    "GenerationOrchestrator",
    "ItemStatus",
    "ProgressEvent",
    "ProgressObserver",
]
