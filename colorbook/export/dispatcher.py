"""
Route an assembled book to a local file and/or an email recipient.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from colorbook.book import BookState
from colorbook.errors import AssemblyError, ExternalServiceError, InputValidationError
from colorbook.pdf_generation import AssembledDocument, ColoringBookPDFBuilder

from .email_service import EmailDelivery, EmailDeliveryService

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "coloring-book.pdf"
DEFAULT_SUBJECT = "Your Coloring Book"

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WHITESPACE = re.compile(r"\s+")


def derive_filename(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        return DEFAULT_FILENAME
    return f"{_WHITESPACE.sub('-', cleaned.lower())}.pdf"


def derive_subject(title: str | None) -> str:
    return (title or "").strip() or DEFAULT_SUBJECT


def is_valid_email(address: str | None) -> bool:
    return bool(address) and _EMAIL_PATTERN.match(address.strip()) is not None


@dataclass(frozen=True)
class ExportOutcome:
    document: AssembledDocument
    saved_path: Path | None = None
    emailed_to: str | None = None


class ExportDispatcher:
    """
    Sends one built document to any number of destinations.

    Building happens once per :meth:`build` call; :meth:`save_local` and
    :meth:`send_email` only ever reuse the bytes they are given.
    """

    def __init__(
        self,
        *,
        builder: ColoringBookPDFBuilder | None = None,
        email_service: EmailDeliveryService | None = None,
    ) -> None:
        self._builder = builder or ColoringBookPDFBuilder()
        self._email_service = email_service

    async def build(self, book: BookState, *, selected_only: bool = False) -> AssembledDocument:
        images = book.page_images(selected_only=selected_only)
        if not images:
            raise AssemblyError("The book has no pages to export.")
        return await self._builder.assemble(images, book.title)

    def save_local(
        self,
        document: AssembledDocument,
        directory: Path | str = ".",
        *,
        filename: str | None = None,
    ) -> Path:
        output_dir = Path(directory)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / (filename or derive_filename(document.title))
        output_path.write_bytes(document.data)
        logger.info("Saved %s (%d bytes).", output_path, len(document.data))
        return output_path

    async def send_email(self, document: AssembledDocument, recipient: str) -> None:
        """
        Email ``document`` to ``recipient``.

        The address is checked locally first; a malformed address raises
        :class:`InputValidationError` without contacting the email collaborator.
        """
        if not is_valid_email(recipient):
            raise InputValidationError("Invalid email address.", field="recipient")
        if self._email_service is None:
            raise RuntimeError("No email service configured for this dispatcher.")

        delivery = EmailDelivery(
            recipient=recipient.strip(),
            attachment_base64=base64.b64encode(document.data).decode("ascii"),
            filename=derive_filename(document.title),
            subject=derive_subject(document.title),
        )

        try:
            result = await asyncio.to_thread(self._email_service.send, delivery)
        except Exception as exc:
            raise ExternalServiceError(service="email", detail=str(exc)) from exc

        if not result.success:
            raise ExternalServiceError(service="email", detail=result.error or "Failed to send email.")
        logger.info("Emailed %s to %s.", delivery.filename, delivery.recipient)

    async def export(
        self,
        book: BookState,
        *,
        directory: Path | str | None = None,
        recipient: str | None = None,
        selected_only: bool = False,
    ) -> ExportOutcome:
        """Build once, then save and/or email the same bytes."""
        if recipient is not None and not is_valid_email(recipient):
            raise InputValidationError("Invalid email address.", field="recipient")

        document = await self.build(book, selected_only=selected_only)
        saved_path = self.save_local(document, directory) if directory is not None else None
        if recipient is not None:
            await self.send_email(document, recipient)
        return ExportOutcome(document=document, saved_path=saved_path, emailed_to=recipient)
