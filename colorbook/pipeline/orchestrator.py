"""
Sequential, failure-tolerant generation of coloring pages from a batch of inputs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Sequence

from colorbook.ai_generation import (
    VARIATION_STYLES,
    IllustrationRequest,
    IllustrationResult,
    IllustrationService,
)
from colorbook.book import validate_age_band
from colorbook.errors import ExternalServiceError, InputValidationError
from colorbook.planning import PhotoAnalyzer, ScenePlanner

logger = logging.getLogger(__name__)


class ItemStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationItem:
    """
    One generation attempt. Moves pending -> in_progress -> done|failed, exactly once.
    """

    index: int
    source_input: str | bytes
    status: ItemStatus = ItemStatus.PENDING
    result_image: bytes | None = None
    error_message: str | None = None
    description: str | None = None

    @property
    def is_photo(self) -> bool:
        return isinstance(self.source_input, (bytes, bytearray))

    def start(self) -> None:
        self._transition(ItemStatus.PENDING, ItemStatus.IN_PROGRESS)

    def complete(self, image: bytes) -> None:
        self._transition(ItemStatus.IN_PROGRESS, ItemStatus.DONE)
        self.result_image = image

    def fail(self, message: str) -> None:
        self._transition(ItemStatus.IN_PROGRESS, ItemStatus.FAILED)
        self.error_message = message

    def _transition(self, expected: ItemStatus, target: ItemStatus) -> None:
        if self.status is not expected:
            raise RuntimeError(
                f"Item {self.index} cannot move to {target.value} from {self.status.value}."
            )
        self.status = target


class GenerationBatch:
    """
    Fixed-length, ordered set of generation items for one request.

    ``cancel()`` is cooperative: it stops the orchestrator from starting further
    items but never interrupts the item currently in flight.
    """

    def __init__(self, items: Sequence[GenerationItem]) -> None:
        self._items = list(items)
        self._cancelled = False

    @classmethod
    def from_inputs(cls, inputs: Sequence[str | bytes]) -> "GenerationBatch":
        return cls([GenerationItem(index=i, source_input=value) for i, value in enumerate(inputs)])

    @property
    def items(self) -> list[GenerationItem]:
        return list(self._items)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[GenerationItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> GenerationItem:
        return self._items[index]

    def _with_status(self, status: ItemStatus) -> list[GenerationItem]:
        return [item for item in self._items if item.status is status]

    @property
    def done_items(self) -> list[GenerationItem]:
        return self._with_status(ItemStatus.DONE)

    @property
    def failed_items(self) -> list[GenerationItem]:
        return self._with_status(ItemStatus.FAILED)

    @property
    def pending_items(self) -> list[GenerationItem]:
        return self._with_status(ItemStatus.PENDING)

    @property
    def completed_images(self) -> list[bytes]:
        return [item.result_image for item in self.done_items if item.result_image is not None]


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted once per resolved item."""

    current_index: int
    total: int
    phase: str
    status: ItemStatus


ProgressObserver = Callable[[ProgressEvent], None]


class GenerationOrchestrator:
    """
    Drives a batch through the illustration collaborator strictly one item at a time.

    Each collaborator call runs in a worker thread and is awaited before the next
    item starts, so items resolve in input order. Collaborator failures and
    exceptions are recorded on the item; they never abort the batch.
    """

    def __init__(
        self,
        *,
        illustration_service: IllustrationService,
        scene_planner: ScenePlanner | None = None,
        photo_analyzer: PhotoAnalyzer | None = None,
        variant_count: int = len(VARIATION_STYLES),
    ) -> None:
        if variant_count < 1:
            raise ValueError("variant_count must be at least 1.")
        self._illustration_service = illustration_service
        self._scene_planner = scene_planner
        self._photo_analyzer = photo_analyzer
        self._variant_count = variant_count

    @staticmethod
    def prepare(inputs: Sequence[str | bytes]) -> GenerationBatch:
        """Create the batch up front so callers hold a handle for cancellation."""
        return GenerationBatch.from_inputs(inputs)

    async def run(
        self,
        inputs: Sequence[str | bytes],
        *,
        age_band: int,
        use_variants: bool = False,
        observer: ProgressObserver | None = None,
    ) -> GenerationBatch:
        batch = self.prepare(inputs)
        return await self.process(
            batch,
            age_band=age_band,
            use_variants=use_variants,
            observer=observer,
        )

    async def run_theme(
        self,
        theme: str,
        *,
        page_count: int,
        age_band: int,
        observer: ProgressObserver | None = None,
    ) -> GenerationBatch:
        """
        Plan ``page_count`` scenes for ``theme`` and generate one page per scene.
        """
        if self._scene_planner is None:
            raise RuntimeError("run_theme requires a scene_planner.")
        validate_age_band(age_band)

        try:
            scenes = await asyncio.to_thread(self._scene_planner.plan_scenes, theme, page_count)
        except InputValidationError:
            raise
        except Exception as exc:
            raise ExternalServiceError(service="scene-planner", detail=str(exc)) from exc

        logger.info("Planned %d scenes for theme %r.", len(scenes), theme)
        return await self.run(scenes, age_band=age_band, observer=observer)

    async def run_photos(
        self,
        photos: Sequence[bytes],
        *,
        age_band: int,
        observer: ProgressObserver | None = None,
    ) -> GenerationBatch:
        """Convert each photo into a coloring page, cycling through the style variants."""
        return await self.run(photos, age_band=age_band, use_variants=True, observer=observer)

    async def process(
        self,
        batch: GenerationBatch,
        *,
        age_band: int,
        use_variants: bool = False,
        observer: ProgressObserver | None = None,
    ) -> GenerationBatch:
        validate_age_band(age_band)
        total = len(batch)

        for item in batch:
            if batch.cancelled:
                logger.info(
                    "Batch cancelled; leaving %d of %d items pending.", total - item.index, total
                )
                break

            item.start()
            logger.info("Generating page %d of %d.", item.index + 1, total)
            variant_index = self._variant_for(item, use_variants)

            try:
                result = await self._generate_item(item, age_band=age_band, variant_index=variant_index)
            except Exception as exc:
                logger.warning("Page %d of %d raised: %s", item.index + 1, total, exc)
                result = IllustrationResult.failure(str(exc) or type(exc).__name__)

            if result.ok:
                item.complete(result.image)  # type: ignore[arg-type]
                phase = f"Generated page {item.index + 1} of {total}"
            else:
                message = result.error or "Failed to generate"
                item.fail(message)
                logger.warning("Page %d of %d failed: %s", item.index + 1, total, message)
                phase = f"Page {item.index + 1} of {total} failed: {message}"

            self._notify(
                observer,
                ProgressEvent(
                    current_index=item.index,
                    total=total,
                    phase=phase,
                    status=item.status,
                ),
            )

        return batch

    async def _generate_item(
        self,
        item: GenerationItem,
        *,
        age_band: int,
        variant_index: int | None,
    ) -> IllustrationResult:
        if item.is_photo:
            photo = bytes(item.source_input)  # type: ignore[arg-type]
            if self._photo_analyzer is not None and item.description is None:
                item.description = await asyncio.to_thread(self._photo_analyzer.describe, photo)
            request = IllustrationRequest(
                age_band=age_band,
                description=item.description,
                source_image=photo,
                variant_index=variant_index,
            )
        else:
            request = IllustrationRequest(
                age_band=age_band,
                description=str(item.source_input),
                variant_index=variant_index,
            )

        return await asyncio.to_thread(self._illustration_service.generate, request)

    def _variant_for(self, item: GenerationItem, use_variants: bool) -> int | None:
        if not use_variants:
            return None
        return item.index % self._variant_count

    @staticmethod
    def _notify(observer: ProgressObserver | None, event: ProgressEvent) -> None:
        if observer is not None:
            observer(event)
