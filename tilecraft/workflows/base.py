"""
Common controller for batch workflows.

A workflow owns one Batch and one BatchJobRunner. Controllers decide when an
item goes back to PENDING (retry, parameter change); the runner only ever
moves items forward.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config.settings import TilecraftConfig
from ..export.archive import ArchiveEntry, build_archive, write_archive
from ..processing.models import Batch, ItemStatus, WorkItem
from ..processing.runner import BatchEvent, BatchJobRunner, RunReport
from ..sampling.codec import load_image

logger = logging.getLogger(__name__)


class BatchWorkflow:
    """
    Base class for Crop, Enhance and Segment (and the tile batch of Split).

    Subclasses implement ``transform`` and may override ``export_name``,
    ``default_params`` and ``skip_completed``.
    """

    name = "batch"
    skip_completed = True

    def __init__(self, config: Optional[TilecraftConfig] = None):
        """
        Initialize workflow.

        Args:
            config: Tilecraft configuration (defaults if omitted)
        """
        self.config = config or TilecraftConfig()
        self.batch = Batch(max_items=self.config.batch.max_items)
        self.runner = BatchJobRunner(
            self.batch,
            transform_timeout=self.config.batch.transform_timeout,
        )

    # ------------------------------------------------------------------
    # Batch contents
    # ------------------------------------------------------------------
    @property
    def is_processing(self) -> bool:
        return self.runner.is_running

    def items(self) -> List[WorkItem]:
        return self.batch.items()

    def get(self, item_id: str) -> Optional[WorkItem]:
        return self.batch.get(item_id)

    def completed_items(self) -> List[WorkItem]:
        return self.batch.with_status(ItemStatus.COMPLETED)

    def subscribe(self, callback: Callable[[BatchEvent], None]) -> Callable[[], None]:
        """Subscribe to item and run events."""
        return self.runner.subscribe(callback)

    def default_params(self) -> dict:
        """Parameters attached to every new item."""
        return {}

    def add_image(self, image: np.ndarray, name: str = "") -> Optional[WorkItem]:
        """
        Add one decoded image.

        Returns:
            The new item, or None if the batch is full
        """
        added = self.add_images([(name, image)])
        return added[0] if added else None

    def add_images(self, images: Iterable[Tuple[str, np.ndarray]]) -> List[WorkItem]:
        """
        Add decoded images, truncating at the batch limit.

        Args:
            images: (name, image) pairs

        Returns:
            The items actually added
        """
        items = [
            WorkItem.create(image, name=name, **self.default_params())
            for name, image in images
        ]
        added = self.batch.extend(items)
        if added:
            logger.info(f"[{self.name}] added {len(added)} item(s), batch size {len(self.batch)}")
        return added

    def add_files(self, paths: Sequence[Union[str, Path]]) -> List[WorkItem]:
        """
        Decode files and add them.

        Every file is decoded before any item is created, so a DecodeError
        leaves the batch unchanged.
        """
        decoded = [(Path(p).name, load_image(p)) for p in paths]
        return self.add_images(decoded)

    def remove(self, item_id: str) -> bool:
        removed = self.batch.remove(item_id)
        if removed:
            logger.debug(f"[{self.name}] removed item {item_id}")
        return removed

    def clear(self) -> None:
        """Cancel any run in progress and drop every item."""
        self.runner.cancel()
        self.batch.clear()
        logger.info(f"[{self.name}] batch cleared")

    def cancel(self) -> None:
        """Cancel the run in progress, keeping items as they are."""
        self.runner.cancel()

    def retry(self, item_id: str) -> Optional[WorkItem]:
        """Send a failed item back to PENDING so the next run picks it up."""
        item = self.batch.get(item_id)
        if item is None or item.status is not ItemStatus.FAILED:
            return item
        return self.batch.replace(item.reset())

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------
    def transform(self, item: WorkItem) -> Any:
        """Item-level transform run by the batch runner."""
        raise NotImplementedError

    async def process_all(self) -> Optional[RunReport]:
        """
        Run the transform over the whole batch.

        Returns:
            RunReport, or None if a run is already in progress
        """
        if self.is_processing:
            logger.warning(f"[{self.name}] a batch run is already in progress")
            return None
        if len(self.batch) == 0:
            logger.info(f"[{self.name}] nothing to process")
        return await self.runner.run_batch(self.transform, skip_completed=self.skip_completed)

    async def process_one(self, item_id: str) -> Optional[WorkItem]:
        """Run the transform over one item unless it is already processing."""
        item = self.batch.get(item_id)
        if item is None or item.status is ItemStatus.PROCESSING:
            return item
        return await self.runner.run_one(item_id, self.transform)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_name(self, item: WorkItem, index: int) -> str:
        stem = Path(item.name).stem if item.name else f"image_{index + 1}"
        return f"{stem}.png"

    def export_entries(self) -> List[ArchiveEntry]:
        """(name, image) pairs of every completed item, in batch order."""
        return [
            (self.export_name(item, i), item.result_image)
            for i, item in enumerate(self.batch.items())
            if item.status is ItemStatus.COMPLETED and item.result_image is not None
        ]

    def export_archive(self, output_path: Optional[Union[str, Path]] = None):
        """
        Bundle the exportable images.

        Returns:
            Archive bytes, or the written Path when ``output_path`` is given
        """
        entries = self.export_entries()
        level = self.config.sampler.png_compress_level
        if output_path is None:
            return build_archive(entries, compress_level=level)
        return write_archive(output_path, entries, compress_level=level)
