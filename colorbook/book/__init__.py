"""
Book data model for colorbook sessions.
"""

from .state import (
    AGE_BAND_RANGE,
    DEFAULT_AGE_BAND,
    BookSession,
    BookState,
    Page,
    validate_age_band,
)

__all__ = [
    "AGE_BAND_RANGE",
    "DEFAULT_AGE_BAND",
    "BookSession",
    "BookState",
    "Page",
    "validate_age_band",
]
