"""Tests for coloring book PDF assembly."""

from __future__ import annotations

import asyncio
import base64
import os
import threading
import time
from io import BytesIO

import pytest
from PIL import Image
from pypdf import PdfReader

from colorbook.errors import AssemblyError
from colorbook.pdf_generation import (
    COVER_SUBTITLE,
    LANDSCAPE,
    PORTRAIT,
    ColoringBookPDFBuilder,
    decode_image,
    fit_within,
    orientation_for,
)
from tests.fakes import png_bytes


def _pdf_orientations(data: bytes) -> list[str]:
    reader = PdfReader(BytesIO(data))
    return [
        orientation_for(float(page.mediabox.width), float(page.mediabox.height))
        for page in reader.pages
    ]


def test_orientation_follows_each_image():
    builder = ColoringBookPDFBuilder()
    images = [png_bytes(800, 600), png_bytes(600, 800), png_bytes(800, 600)]

    document = asyncio.run(builder.assemble(images))

    assert not document.has_cover
    assert [layout.orientation for layout in document.content_layouts] == [
        LANDSCAPE,
        PORTRAIT,
        LANDSCAPE,
    ]
    assert _pdf_orientations(document.data) == [LANDSCAPE, PORTRAIT, LANDSCAPE]


def test_square_image_is_portrait():
    assert orientation_for(500, 500) == PORTRAIT
    assert orientation_for(501, 500) == LANDSCAPE


def test_title_adds_cover_page_before_content():
    builder = ColoringBookPDFBuilder()
    images = [png_bytes(300, 200), png_bytes(200, 300)]

    document = asyncio.run(builder.assemble(images, "  Jungle Friends  "))

    assert document.page_count == 3
    assert document.has_cover
    assert document.title == "Jungle Friends"
    assert [layout.kind for layout in document.page_layouts] == ["cover", "content", "content"]
    # Cover follows the first image's orientation.
    assert document.page_layouts[0].orientation == LANDSCAPE
    assert _pdf_orientations(document.data) == [LANDSCAPE, LANDSCAPE, PORTRAIT]

    cover_text = PdfReader(BytesIO(document.data)).pages[0].extract_text()
    assert "Jungle Friends" in cover_text
    assert COVER_SUBTITLE in cover_text


@pytest.mark.parametrize("title", [None, "", "   "])
def test_blank_title_has_no_cover(title):
    builder = ColoringBookPDFBuilder()
    document = asyncio.run(builder.assemble([png_bytes(100, 200)], title))
    assert document.page_count == 1
    assert not document.has_cover
    assert len(PdfReader(BytesIO(document.data)).pages) == 1


def test_image_is_scaled_to_fit_and_centered():
    builder = ColoringBookPDFBuilder(margin_inch=0.5)
    document = asyncio.run(builder.assemble([png_bytes(1024, 1536)]))

    layout = document.content_layouts[0]
    x, y, width, height = layout.draw_box
    margin = 36.0
    assert width <= layout.page_width - 2 * margin + 1e-6
    assert height <= layout.page_height - 2 * margin + 1e-6
    assert width / height == pytest.approx(1024 / 1536)
    # One dimension fills the printable area exactly.
    assert (
        width == pytest.approx(layout.page_width - 2 * margin)
        or height == pytest.approx(layout.page_height - 2 * margin)
    )
    assert x == pytest.approx((layout.page_width - width) / 2)
    assert y == pytest.approx((layout.page_height - height) / 2)


def test_small_image_is_scaled_up_not_stretched():
    assert fit_within(10, 20, 100, 100) == (50, 100)
    assert fit_within(400, 100, 200, 200) == (200, 50)


def test_decode_failure_aborts_whole_build():
    builder = ColoringBookPDFBuilder()
    images = [png_bytes(100, 100), b"definitely not an image", png_bytes(100, 100)]

    with pytest.raises(AssemblyError) as excinfo:
        asyncio.run(builder.assemble(images, "Broken"))

    assert excinfo.value.page_index == 1
    assert "page 2" in str(excinfo.value)


def test_empty_input_is_an_assembly_error():
    with pytest.raises(AssemblyError):
        asyncio.run(ColoringBookPDFBuilder().assemble([]))


def test_data_url_images_are_accepted():
    raw = png_bytes(120, 80)
    data_url = "data:image/png;base64," + base64.b64encode(raw).decode("ascii")
    document = asyncio.run(ColoringBookPDFBuilder().assemble([data_url]))
    assert document.content_layouts[0].orientation == LANDSCAPE


def test_decodes_run_concurrently_and_keep_input_order():
    slow = png_bytes(900, 300)
    fast = png_bytes(300, 900)
    active = 0
    peak = 0
    lock = threading.Lock()

    def slow_first_decoder(data: bytes):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.2 if data == slow else 0.01)
        with lock:
            active -= 1
        return decode_image(data)

    builder = ColoringBookPDFBuilder(decoder=slow_first_decoder)
    document = asyncio.run(builder.assemble([slow, fast, fast]))

    assert peak > 1
    assert [layout.image_index for layout in document.content_layouts] == [0, 1, 2]
    assert [layout.orientation for layout in document.content_layouts] == [
        LANDSCAPE,
        PORTRAIT,
        PORTRAIT,
    ]


def test_cover_title_markup_is_escaped():
    document = asyncio.run(
        ColoringBookPDFBuilder().assemble([png_bytes(50, 50)], "Cats & <Dogs>")
    )
    text = PdfReader(BytesIO(document.data)).pages[0].extract_text()
    assert "Cats & <Dogs>" in text


def _noisy_image_bytes(fmt: str, width: int = 400, height: int = 300) -> bytes:
    image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.mark.parametrize("fmt", ["PNG", "JPEG"])
def test_truncated_image_fails_during_decode(fmt):
    whole = _noisy_image_bytes(fmt)
    truncated = whole[: len(whole) // 2]

    with pytest.raises(AssemblyError) as excinfo:
        asyncio.run(ColoringBookPDFBuilder().assemble([png_bytes(400, 300), truncated]))

    assert excinfo.value.page_index == 1


def test_decode_image_rejects_truncated_pixel_data():
    whole = _noisy_image_bytes("PNG")
    with pytest.raises(OSError):
        decode_image(whole[: len(whole) // 2])


def test_rendering_runs_off_the_event_loop_thread():
    render_threads = []

    class RecordingBuilder(ColoringBookPDFBuilder):
        def _render(self, decoded, cover_title):
            render_threads.append(threading.get_ident())
            return super()._render(decoded, cover_title)

    asyncio.run(RecordingBuilder().assemble([png_bytes(100, 100)], "Threads"))

    assert render_threads and render_threads[0] != threading.get_ident()
