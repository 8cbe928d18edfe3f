"""
CLI to generate a coloring book end-to-end: pages, PDF, and optional email.

Usage:
    python scripts/make_coloring_book.py \
        --theme "dinosaurs having a picnic" --pages 6 --age 5 \
        --title "Dino Picnic" --output-dir out/

    python scripts/make_coloring_book.py \
        --photo photos/beach.jpg --photo photos/park.png --age 8 \
        --email someone@example.com

    python scripts/make_coloring_book.py --request book_request.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import yaml
from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from colorbook import (  # noqa: E402
    BookSession,
    ColorbookError,
    ExportDispatcher,
    GenerationBatch,
    GenerationOrchestrator,
    ItemStatus,
    ProgressEvent,
    ResendEmailService,
)
from colorbook.ai_generation import ReplicateIllustrationService  # noqa: E402
from colorbook.planning import PhotoAnalyzer, ScenePlanner, ThemeSuggester  # noqa: E402


class ProgressTracker:
    """
    Command-line progress bar fed by the orchestrator's per-page events.
    """

    def __init__(self) -> None:
        self._bar: tqdm | None = None

    def __call__(self, event: ProgressEvent) -> None:
        if self._bar is None:
            self._bar = tqdm(total=event.total, desc="Coloring pages", unit="page")
        if event.status is ItemStatus.FAILED:
            tqdm.write(f"  ! {event.phase}")
        self._bar.set_description(event.phase[:60])
        self._bar.update(1)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and export a coloring book.")
    parser.add_argument(
        "--request",
        default=None,
        help="Optional YAML/JSON request file (keys: title, age, theme, pages, photos, email, output_dir).",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--theme", default=None, help="Theme to plan scenes from.")
    source.add_argument(
        "--surprise-theme",
        action="store_true",
        help="Let the planner invent a theme.",
    )
    parser.add_argument(
        "--photo",
        action="append",
        default=[],
        help="Photo to convert into a coloring page (repeatable).",
    )
    parser.add_argument("--pages", type=int, default=None, help="Scene count for themes (1-10).")
    parser.add_argument("--age", type=int, default=None, help="Child's age band (1-12).")
    parser.add_argument("--title", default=None, help="Book title shown on the cover page.")
    parser.add_argument("--output-dir", default=None, help="Directory for the exported PDF.")
    parser.add_argument("--email", default=None, help="Email the PDF to this address.")
    parser.add_argument(
        "--no-describe-photos",
        dest="describe_photos",
        action="store_false",
        default=True,
        help="Skip the photo description step before conversion.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def load_request_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported request file format. Use YAML or JSON.")

    if not isinstance(data, dict):
        raise ValueError("Request file must deserialize to a mapping.")
    return data


def merge_request(args: argparse.Namespace) -> Dict[str, Any]:
    request: Dict[str, Any] = {}
    if args.request:
        request.update(load_request_mapping(Path(args.request)))

    overrides = {
        "theme": args.theme,
        "pages": args.pages,
        "age": args.age,
        "title": args.title,
        "output_dir": args.output_dir,
        "email": args.email,
    }
    request.update({key: value for key, value in overrides.items() if value is not None})
    if args.photo:
        request["photos"] = list(args.photo)

    request.setdefault("age", 3)
    request.setdefault("pages", 5)
    request.setdefault("photos", [])
    if not request.get("output_dir") and not request.get("email"):
        request["output_dir"] = "."
    return request


async def generate(
    request: Dict[str, Any],
    *,
    surprise_theme: bool,
    describe_photos: bool,
    tracker: ProgressTracker,
) -> GenerationBatch:
    illustrator = ReplicateIllustrationService()

    if request["photos"]:
        photos = [Path(photo).expanduser().read_bytes() for photo in request["photos"]]
        orchestrator = GenerationOrchestrator(
            illustration_service=illustrator,
            photo_analyzer=PhotoAnalyzer() if describe_photos else None,
        )
        return await orchestrator.run_photos(photos, age_band=int(request["age"]), observer=tracker)

    theme = request.get("theme")
    if surprise_theme or not theme:
        theme = await asyncio.to_thread(ThemeSuggester().suggest)
        tqdm.write(f"Theme: {theme}")

    orchestrator = GenerationOrchestrator(
        illustration_service=illustrator,
        scene_planner=ScenePlanner(),
    )
    return await orchestrator.run_theme(
        theme,
        page_count=int(request["pages"]),
        age_band=int(request["age"]),
        observer=tracker,
    )


async def run(args: argparse.Namespace) -> int:
    request = merge_request(args)

    session = BookSession()
    book = session.book
    book.set_title(str(request.get("title") or ""))
    book.set_age_band(int(request["age"]))

    tracker = ProgressTracker()
    try:
        batch = await generate(
            request,
            surprise_theme=args.surprise_theme,
            describe_photos=args.describe_photos,
            tracker=tracker,
        )
    finally:
        tracker.close()

    added = book.add_batch_results(batch)
    tqdm.write(f"Generated {added} of {len(batch)} pages ({len(batch.failed_items)} failed).")
    if not added:
        return 1

    recipient = request.get("email")
    dispatcher = ExportDispatcher(email_service=ResendEmailService() if recipient else None)
    outcome = await dispatcher.export(
        book,
        directory=request.get("output_dir"),
        recipient=recipient,
    )

    if outcome.saved_path is not None:
        print(f"Saved coloring book to {outcome.saved_path}")
    if outcome.emailed_to:
        print(f"Emailed coloring book to {outcome.emailed_to}")
    return 0


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return asyncio.run(run(args))
    except ColorbookError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
