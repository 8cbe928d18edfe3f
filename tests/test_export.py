"""Tests for local and email export of assembled books."""

from __future__ import annotations

import asyncio
import base64

import pytest

from colorbook.book import BookState
from colorbook.errors import AssemblyError, ExternalServiceError, InputValidationError
from colorbook.export import (
    EmailResult,
    ExportDispatcher,
    derive_filename,
    derive_subject,
    is_valid_email,
)
from colorbook.pdf_generation import ColoringBookPDFBuilder, decode_image
from tests.fakes import FakeEmailService, png_bytes


class CountingDecoder:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, data: bytes):
        self.calls += 1
        return decode_image(data)


def _book(title: str = "", count: int = 2) -> BookState:
    book = BookState()
    book.set_title(title)
    for i in range(count):
        book.add_page(png_bytes(200 + i, 300))
    return book


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Ocean Friends", "ocean-friends.pdf"),
        ("  My   Big\tBook ", "my-big-book.pdf"),
        ("", "coloring-book.pdf"),
        ("   ", "coloring-book.pdf"),
        (None, "coloring-book.pdf"),
    ],
)
def test_derive_filename(title, expected):
    assert derive_filename(title) == expected


def test_derive_subject():
    assert derive_subject(" Farm Day ") == "Farm Day"
    assert derive_subject("") == "Your Coloring Book"


@pytest.mark.parametrize(
    ("address", "valid"),
    [
        ("kid@example.com", True),
        ("a.b@mail.co.uk", True),
        ("no-at-sign.com", False),
        ("missing@dot", False),
        ("spaces in@example.com", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_email(address, valid):
    assert is_valid_email(address) is valid


def test_save_local_writes_built_bytes(tmp_path):
    dispatcher = ExportDispatcher()
    document = asyncio.run(dispatcher.build(_book("Space Cats")))

    path = dispatcher.save_local(document, tmp_path / "out")

    assert path.name == "space-cats.pdf"
    assert path.read_bytes() == document.data
    assert path.read_bytes().startswith(b"%PDF")


def test_invalid_email_never_reaches_collaborator(email_service):
    dispatcher = ExportDispatcher(email_service=email_service)
    document = asyncio.run(dispatcher.build(_book()))

    with pytest.raises(InputValidationError):
        asyncio.run(dispatcher.send_email(document, "not-an-email"))

    assert email_service.deliveries == []


def test_export_rejects_invalid_email_before_building(email_service):
    decoder = CountingDecoder()
    dispatcher = ExportDispatcher(
        builder=ColoringBookPDFBuilder(decoder=decoder),
        email_service=email_service,
    )
    with pytest.raises(InputValidationError):
        asyncio.run(dispatcher.export(_book(), recipient="bad@address"))
    assert decoder.calls == 0
    assert email_service.deliveries == []


def test_send_email_submits_encoded_document(email_service):
    dispatcher = ExportDispatcher(email_service=email_service)
    document = asyncio.run(dispatcher.build(_book("Dino Picnic")))

    asyncio.run(dispatcher.send_email(document, "parent@example.com"))

    (delivery,) = email_service.deliveries
    assert delivery.recipient == "parent@example.com"
    assert delivery.filename == "dino-picnic.pdf"
    assert delivery.subject == "Dino Picnic"
    assert base64.b64decode(delivery.attachment_base64) == document.data


def test_send_email_without_title_uses_defaults(email_service):
    dispatcher = ExportDispatcher(email_service=email_service)
    document = asyncio.run(dispatcher.build(_book()))
    asyncio.run(dispatcher.send_email(document, "parent@example.com"))
    (delivery,) = email_service.deliveries
    assert delivery.filename == "coloring-book.pdf"
    assert delivery.subject == "Your Coloring Book"


def test_collaborator_error_message_is_surfaced_verbatim():
    service = FakeEmailService(result=EmailResult.failure("Domain not verified: example.org"))
    dispatcher = ExportDispatcher(email_service=service)
    document = asyncio.run(dispatcher.build(_book()))

    with pytest.raises(ExternalServiceError) as excinfo:
        asyncio.run(dispatcher.send_email(document, "parent@example.com"))

    assert str(excinfo.value) == "Domain not verified: example.org"
    assert excinfo.value.service == "email"


def test_collaborator_exception_becomes_external_error():
    service = FakeEmailService(exc=ConnectionError("connection reset"))
    dispatcher = ExportDispatcher(email_service=service)
    document = asyncio.run(dispatcher.build(_book()))

    with pytest.raises(ExternalServiceError) as excinfo:
        asyncio.run(dispatcher.send_email(document, "parent@example.com"))
    assert excinfo.value.detail == "connection reset"


@pytest.mark.parametrize("order", ["local-first", "email-first"])
def test_document_is_decoded_once_for_both_exports(tmp_path, email_service, order):
    decoder = CountingDecoder()
    dispatcher = ExportDispatcher(
        builder=ColoringBookPDFBuilder(decoder=decoder),
        email_service=email_service,
    )
    book = _book("Reuse", count=3)
    document = asyncio.run(dispatcher.build(book))
    assert decoder.calls == 3

    if order == "local-first":
        path = dispatcher.save_local(document, tmp_path)
        asyncio.run(dispatcher.send_email(document, "parent@example.com"))
    else:
        asyncio.run(dispatcher.send_email(document, "parent@example.com"))
        path = dispatcher.save_local(document, tmp_path)

    assert decoder.calls == 3
    assert path.read_bytes() == base64.b64decode(email_service.deliveries[0].attachment_base64)


def test_export_to_both_destinations_builds_once(tmp_path, email_service):
    decoder = CountingDecoder()
    dispatcher = ExportDispatcher(
        builder=ColoringBookPDFBuilder(decoder=decoder),
        email_service=email_service,
    )

    outcome = asyncio.run(
        dispatcher.export(_book("Both"), directory=tmp_path, recipient="parent@example.com")
    )

    assert decoder.calls == 2
    assert outcome.saved_path == tmp_path / "both.pdf"
    assert outcome.emailed_to == "parent@example.com"
    assert len(email_service.deliveries) == 1


def test_build_empty_book_fails():
    with pytest.raises(AssemblyError):
        asyncio.run(ExportDispatcher().build(BookState()))


def test_build_selected_only_skips_unselected_pages():
    book = _book(count=3)
    book.toggle_page_selection(1)
    document = asyncio.run(ExportDispatcher().build(book, selected_only=True))
    assert document.page_count == 2
