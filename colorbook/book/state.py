"""
In-memory book model: the ordered pages, the title, and per-page selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from colorbook.errors import InputValidationError

if TYPE_CHECKING:
    from colorbook.pipeline.orchestrator import GenerationBatch

DEFAULT_AGE_BAND = 3
AGE_BAND_RANGE = (1, 12)


def validate_age_band(age: int) -> int:
    lower, upper = AGE_BAND_RANGE
    if isinstance(age, bool) or not isinstance(age, int) or not lower <= age <= upper:
        raise InputValidationError(
            f"Age must be a number between {lower} and {upper}, received {age!r}.",
            field="age_band",
        )
    return age


@dataclass
class Page:
    """A single coloring page held by the book."""

    image: bytes
    selected: bool = True


@dataclass
class BookState:
    """
    Ordered collection of pages plus the book title.

    List order is the print order. Pages are identified by position only, so the
    same image may appear more than once. Index-based mutations silently ignore
    out-of-range (including negative) indices.
    """

    title: str = ""
    pages: list[Page] = field(default_factory=list)
    age_band: int = DEFAULT_AGE_BAND

    def set_title(self, text: str) -> None:
        self.title = text

    def set_age_band(self, age: int) -> None:
        self.age_band = validate_age_band(age)

    def add_page(self, image: bytes) -> Page:
        page = Page(image=image, selected=True)
        self.pages.append(page)
        return page

    def remove_page(self, index: int) -> None:
        if not self._in_range(index):
            return
        del self.pages[index]

    def toggle_page_selection(self, index: int) -> None:
        if not self._in_range(index):
            return
        page = self.pages[index]
        page.selected = not page.selected

    def reorder_pages(self, from_index: int, to_index: int) -> None:
        if from_index == to_index:
            return
        if not (self._in_range(from_index) and self._in_range(to_index)):
            return
        moved = self.pages.pop(from_index)
        self.pages.insert(to_index, moved)

    def reset(self) -> None:
        self.title = ""
        self.pages = []
        self.age_band = DEFAULT_AGE_BAND

    def add_batch_results(self, batch: "GenerationBatch") -> int:
        """Append every successful batch image in batch order; return how many were added."""
        added = 0
        for image in batch.completed_images:
            self.add_page(image)
            added += 1
        return added

    def selected_pages(self) -> list[Page]:
        return [page for page in self.pages if page.selected]

    def page_images(self, *, selected_only: bool = False) -> list[bytes]:
        pages = self.selected_pages() if selected_only else self.pages
        return [page.image for page in pages]

    def __len__(self) -> int:
        return len(self.pages)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self.pages)


class BookSession:
    """
    Session-scoped owner of a :class:`BookState`.

    Create one per user session and hand it to the consumers that need the book.
    """

    def __init__(self, state: BookState | None = None) -> None:
        self._state = state if state is not None else BookState()

    @property
    def book(self) -> BookState:
        return self._state

    def reset(self) -> None:
        self._state.reset()
