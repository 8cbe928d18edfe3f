"""
Render a directory of existing page images into a coloring book PDF.

Usage:
    python scripts/render_book_pdf.py \
        --pages-dir pages/ \
        --title "Ocean Friends" \
        --output-dir out/ [--email someone@example.com]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from colorbook import BookState, ColorbookError, ColoringBookPDFBuilder, ExportDispatcher  # noqa: E402
from colorbook.export import ResendEmailService  # noqa: E402
from colorbook.pdf_generation import PAGE_SIZES  # noqa: E402

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a folder of coloring page images into a printable PDF."
    )
    parser.add_argument(
        "--pages-dir",
        required=True,
        help="Directory of page images; files are used in name order.",
    )
    parser.add_argument("--title", default="", help="Optional cover title.")
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the PDF (default: current directory).",
    )
    parser.add_argument("--email", default=None, help="Also email the PDF to this address.")
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="letter",
        help="Base page size (default: letter).",
    )
    parser.add_argument(
        "--margin-inch",
        type=float,
        default=0.5,
        help="Page margin in inches (default: 0.5).",
    )
    return parser.parse_args()


def load_book(pages_dir: Path, title: str) -> BookState:
    book = BookState()
    book.set_title(title)
    for path in sorted(pages_dir.iterdir()):
        if path.suffix.lower() in IMAGE_SUFFIXES:
            book.add_page(path.read_bytes())
    return book


def main() -> int:
    args = parse_args()

    book = load_book(Path(args.pages_dir), args.title)
    builder = ColoringBookPDFBuilder(
        page_size=PAGE_SIZES[args.page_size],
        margin_inch=args.margin_inch,
    )
    dispatcher = ExportDispatcher(
        builder=builder,
        email_service=ResendEmailService() if args.email else None,
    )

    try:
        outcome = asyncio.run(
            dispatcher.export(book, directory=args.output_dir, recipient=args.email)
        )
    except ColorbookError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(f"Rendered {outcome.document.page_count} pages to {outcome.saved_path}")
    if outcome.emailed_to:
        print(f"Emailed to {outcome.emailed_to}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
