"""
Segment workflow: batch background removal.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from ..config.settings import TilecraftConfig
from ..processing.models import WorkItem
from ..processing.runner import RunReport
from ..services.segmenter import BackgroundRemover, GrabCutBackgroundRemover
from .base import BatchWorkflow

logger = logging.getLogger(__name__)

# Progress above which the segmentation model counts as loaded
MODEL_LOADED_PROGRESS = 0.1


class SegmentWorkflow(BatchWorkflow):
    """
    Batch background removal.

    ``loading_model`` is True from the start of a run until the remover
    reports progress beyond 0.1; it only drives a loading indicator.
    """

    name = "segment"

    def __init__(
        self,
        config: Optional[TilecraftConfig] = None,
        remover: Optional[BackgroundRemover] = None,
    ):
        super().__init__(config)
        self.remover = remover or GrabCutBackgroundRemover(self.config.segment)
        self.loading_model = False
        self.progress = 0.0

    def _on_progress(self, value: float) -> None:
        self.progress = value
        if value > MODEL_LOADED_PROGRESS:
            self.loading_model = False

    async def transform(self, item: WorkItem) -> np.ndarray:
        self.progress = 0.0
        try:
            return await self.remover.remove_background(
                item.source_image, progress=self._on_progress
            )
        finally:
            self.loading_model = False

    async def process_all(self) -> Optional[RunReport]:
        if self.is_processing:
            logger.warning(f"[{self.name}] a batch run is already in progress")
            return None
        self.loading_model = True
        try:
            return await super().process_all()
        finally:
            self.loading_model = False

    def export_name(self, item: WorkItem, index: int) -> str:
        stem = Path(item.name).stem if item.name else f"image_{index + 1}"
        return f"no_bg_{stem}.png"
