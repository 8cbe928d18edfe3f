"""
Assemble ordered coloring pages into a single printable PDF.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, LETTER, landscape, portrait
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from colorbook.common import Raster, coerce_raster
from colorbook.errors import AssemblyError

logger = logging.getLogger(__name__)

LANDSCAPE = "landscape"
PORTRAIT = "portrait"

COVER_SUBTITLE = "A Coloring Book"

PAGE_SIZES = {
    "letter": LETTER,
    "a4": A4,
}


@dataclass(frozen=True)
class CoverStyleConfig:
    title_color: colors.Color
    subtitle_color: colors.Color
    title_size: float = 36
    subtitle_size: float = 14


DEFAULT_COVER_STYLE = CoverStyleConfig(
    title_color=colors.black,
    subtitle_color=colors.Color(0.5, 0.5, 0.5),
)


@dataclass(frozen=True)
class DecodedImage:
    """An input page image after decoding, with its pixel dimensions."""

    index: int
    reader: ImageReader
    width: int
    height: int

    @property
    def orientation(self) -> str:
        return orientation_for(self.width, self.height)


@dataclass(frozen=True)
class PageLayout:
    """Geometry of one emitted PDF page, in points."""

    kind: str
    orientation: str
    page_width: float
    page_height: float
    image_index: int | None = None
    draw_box: tuple[float, float, float, float] | None = None


@dataclass(frozen=True)
class AssembledDocument:
    """
    A finished PDF. The bytes are final: exporting them any number of times never
    re-decodes images or re-runs layout.
    """

    data: bytes
    title: str
    page_layouts: tuple[PageLayout, ...]

    @property
    def has_cover(self) -> bool:
        return bool(self.page_layouts) and self.page_layouts[0].kind == "cover"

    @property
    def content_layouts(self) -> tuple[PageLayout, ...]:
        return tuple(layout for layout in self.page_layouts if layout.kind == "content")

    @property
    def page_count(self) -> int:
        return len(self.page_layouts)


ImageDecoder = Callable[[bytes], ImageReader]


def orientation_for(width: float, height: float) -> str:
    return LANDSCAPE if width > height else PORTRAIT


def decode_image(data: bytes) -> ImageReader:
    reader = ImageReader(BytesIO(data))
    # getSize only reads the header; getRGBData loads every pixel, so truncated or
    # corrupt bodies fail here rather than during rendering or silently for JPEG.
    reader.getRGBData()
    return reader


def fit_within(
    image_width: float,
    image_height: float,
    box_width: float,
    box_height: float,
) -> tuple[float, float]:
    """Largest size with the image's aspect ratio that fits inside the box."""
    scale = min(box_width / image_width, box_height / image_height)
    return image_width * scale, image_height * scale


class ColoringBookPDFBuilder:
    """
    Render an ordered list of page images into a printable coloring book PDF.

    The builder creates:
      * An optional cover page with the book title and a fixed subtitle, in the
        orientation of the first image.
      * One page per image, each oriented to match its own image and drawn at the
        largest size that fits inside the page margins.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = LETTER,
        margin_inch: float = 0.5,
        cover_style: CoverStyleConfig = DEFAULT_COVER_STYLE,
        decoder: ImageDecoder = decode_image,
    ) -> None:
        self.page_size = portrait(page_size)
        self.margin = margin_inch * inch
        self.cover_style = cover_style
        self._decoder = decoder

        title_font, subtitle_font = self._configure_cover_fonts()

        self.title_style = ParagraphStyle(
            name="CoverTitle",
            fontName=title_font,
            fontSize=cover_style.title_size,
            leading=cover_style.title_size * 1.2,
            alignment=TA_CENTER,
            textColor=cover_style.title_color,
        )
        self.subtitle_style = ParagraphStyle(
            name="CoverSubtitle",
            fontName=subtitle_font,
            fontSize=cover_style.subtitle_size,
            leading=cover_style.subtitle_size * 1.3,
            alignment=TA_CENTER,
            textColor=cover_style.subtitle_color,
        )

    async def assemble(
        self,
        images: Sequence[Raster],
        title: str | None = None,
    ) -> AssembledDocument:
        """
        Decode every image concurrently, then lay out and render the whole book.

        Raises :class:`AssemblyError` if there are no images or any image fails to
        decode; nothing is rendered in that case.
        """
        if not images:
            raise AssemblyError("There are no pages to assemble.")

        decoded = await self._decode_all(images)
        cover_title = (title or "").strip()
        data, layouts = await asyncio.to_thread(self._render, decoded, cover_title)
        logger.info(
            "Assembled PDF with %d pages (%d bytes).", len(layouts), len(data)
        )
        return AssembledDocument(data=data, title=cover_title, page_layouts=tuple(layouts))

    async def _decode_all(self, images: Sequence[Raster]) -> list[DecodedImage]:
        tasks = [
            asyncio.to_thread(self._decode_one, index, raster)
            for index, raster in enumerate(images)
        ]
        # gather keeps input order regardless of which decode finishes first.
        return list(await asyncio.gather(*tasks))

    def _decode_one(self, index: int, raster: Raster) -> DecodedImage:
        try:
            reader = self._decoder(coerce_raster(raster))
            width, height = reader.getSize()
        except Exception as exc:
            raise AssemblyError(
                f"Failed to decode image for page {index + 1}: {exc}",
                page_index=index,
            ) from exc
        if width <= 0 or height <= 0:
            raise AssemblyError(
                f"Image for page {index + 1} has no pixels ({width}x{height}).",
                page_index=index,
            )
        return DecodedImage(index=index, reader=reader, width=width, height=height)

    # ------------------------------------------------------------------ rendering

    def _render(self, decoded: Sequence[DecodedImage], title: str) -> tuple[bytes, list[PageLayout]]:
        default_size = self._sized_for(decoded[0].orientation)
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=default_size)
        if title:
            pdf.setTitle(title)

        layouts: list[PageLayout] = []

        if title:
            layouts.append(self._draw_cover_page(pdf, title, default_size))

        for image in decoded:
            layouts.append(self._draw_image_page(pdf, image))

        pdf.save()
        return buffer.getvalue(), layouts

    def _sized_for(self, orientation: str) -> tuple[float, float]:
        return landscape(self.page_size) if orientation == LANDSCAPE else portrait(self.page_size)

    def _draw_cover_page(
        self,
        pdf: canvas.Canvas,
        title: str,
        page_size: tuple[float, float],
    ) -> PageLayout:
        width, height = page_size
        pdf.setPageSize(page_size)

        text_width = width - 2 * self.margin
        title_paragraph = Paragraph(escape(title), self.title_style)
        subtitle_paragraph = Paragraph(COVER_SUBTITLE, self.subtitle_style)
        _, title_height = title_paragraph.wrap(text_width, height - 2 * self.margin)
        _, subtitle_height = subtitle_paragraph.wrap(text_width, height - 2 * self.margin)

        title_y = (height - title_height) / 2
        title_paragraph.drawOn(pdf, self.margin, title_y)
        subtitle_paragraph.drawOn(pdf, self.margin, title_y - subtitle_height)

        pdf.showPage()
        return PageLayout(
            kind="cover",
            orientation=orientation_for(width, height),
            page_width=width,
            page_height=height,
        )

    def _draw_image_page(self, pdf: canvas.Canvas, image: DecodedImage) -> PageLayout:
        page_size = self._sized_for(image.orientation)
        width, height = page_size
        pdf.setPageSize(page_size)

        draw_width, draw_height = fit_within(
            image.width,
            image.height,
            width - 2 * self.margin,
            height - 2 * self.margin,
        )
        x = (width - draw_width) / 2
        y = (height - draw_height) / 2
        pdf.drawImage(image.reader, x, y, draw_width, draw_height, mask="auto")

        pdf.showPage()
        return PageLayout(
            kind="content",
            orientation=image.orientation,
            page_width=width,
            page_height=height,
            image_index=image.index,
            draw_box=(x, y, draw_width, draw_height),
        )

    # ------------------------------------------------------------------ fonts

    def _configure_cover_fonts(self) -> tuple[str, str]:
        playful_options = [
            (
                "ComicSansMS-Bold",
                "ComicSansMS",
                ["Comic Sans MS Bold.ttf", "ComicSansMS-Bold.ttf"],
                ["Comic Sans MS.ttf", "ComicSansMS.ttf"],
            ),
        ]

        search_roots = [
            Path("/Library/Fonts"),
            Path("/System/Library/Fonts"),
            Path.home() / "Library" / "Fonts",
            Path("C:/Windows/Fonts"),
            Path("/usr/share/fonts"),
            Path("/usr/local/share/fonts"),
        ]

        for title_name, subtitle_name, title_candidates, subtitle_candidates in playful_options:
            title_ready = self._register_font_if_available(title_name, title_candidates, search_roots)
            subtitle_ready = self._register_font_if_available(
                subtitle_name, subtitle_candidates, search_roots
            )
            if title_ready and subtitle_ready:
                return title_name, subtitle_name

        return "Helvetica", "Helvetica"

    @staticmethod
    def _register_font_if_available(
        font_name: str,
        candidate_filenames: Sequence[str],
        search_roots: Sequence[Path],
    ) -> bool:
        if font_name in pdfmetrics.getRegisteredFontNames():
            return True

        for root in search_roots:
            for candidate in candidate_filenames:
                font_path = root / candidate
                if font_path.exists():
                    try:
                        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
                        return True
                    except (TTFError, OSError):
                        logger.debug("Could not register font %s from %s.", font_name, font_path)
                        continue
        return False
