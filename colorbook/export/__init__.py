"""
Local and email export of assembled books.
"""

from .dispatcher import (
    DEFAULT_FILENAME,
    DEFAULT_SUBJECT,
    ExportDispatcher,
    ExportOutcome,
    derive_filename,
    derive_subject,
    is_valid_email,
)
from .email_service import EmailDelivery, EmailDeliveryService, EmailResult, ResendEmailService

__all__ = [
    "DEFAULT_FILENAME",
    "DEFAULT_SUBJECT",
    "ExportDispatcher",
    "ExportOutcome",
    "derive_filename",
    "derive_subject",
    "is_valid_email",
    "EmailDelivery",
    "EmailDeliveryService",
    "EmailResult",
    "ResendEmailService",
]
