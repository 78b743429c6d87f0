"""
Crop workflow: every image cropped to one aspect ratio, each with its own pan.

The crop rectangle is recomputed from the item's pan when the transform
runs, so any pan or ratio change sends the item back to PENDING.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np

from ..config.settings import TilecraftConfig
from ..geometry.crop import apply_drag, compute_crop_rect
from ..geometry.models import AspectRatio, CROP_RATIOS, CropSpec, TileRect, parse_ratio
from ..processing.models import ItemStatus, WorkItem
from ..sampling.sampler import ImageSampler
from .base import BatchWorkflow

logger = logging.getLogger(__name__)


def resolve_ratio(value: Union[str, float, AspectRatio]) -> AspectRatio:
    """Look up a preset label, or build an ad-hoc ratio."""
    if isinstance(value, AspectRatio):
        return value
    for preset in CROP_RATIOS:
        if preset.label == value:
            return preset
    ratio = parse_ratio(value)
    return AspectRatio(label=str(value), ratio=ratio)


class CropWorkflow(BatchWorkflow):
    """
    Batch cropping with per-item pan.

    Example:
        >>> workflow = CropWorkflow()
        >>> item = workflow.add_image(image, "photo.jpg")
        >>> workflow.set_ratio("16:9")
        >>> workflow.set_pan(item.id, 10, 0)
        >>> await workflow.process_all()
    """

    name = "crop"
    # A ratio change invalidates every result, so each run reprocesses all items
    skip_completed = False

    def __init__(
        self,
        config: Optional[TilecraftConfig] = None,
        sampler: Optional[ImageSampler] = None,
    ):
        super().__init__(config)
        self.sampler = sampler or ImageSampler(self.config.sampler.quality)
        self.ratio = resolve_ratio(self.config.crop.default_ratio)
        self._drag_origin: Dict[str, Tuple[float, float]] = {}

    def default_params(self) -> dict:
        return {"pan_x": 0.0, "pan_y": 0.0}

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def set_ratio(self, value: Union[str, float, AspectRatio]) -> AspectRatio:
        """
        Select the crop ratio.

        Any run in progress is cancelled and every item goes back to PENDING
        with its pan reset.
        """
        self.ratio = resolve_ratio(value)
        self.runner.cancel()
        for item in self.batch.items():
            self.batch.replace(item.reset(pan_x=0.0, pan_y=0.0))
        logger.info(f"Crop ratio set to {self.ratio.label}")
        return self.ratio

    def pan_of(self, item: WorkItem) -> Tuple[float, float]:
        return (float(item.params.get("pan_x", 0.0)), float(item.params.get("pan_y", 0.0)))

    def set_pan(self, item_id: str, pan_x: float, pan_y: float) -> Optional[WorkItem]:
        """
        Move an item's crop window.

        Ignored while the item is processing.
        """
        item = self.batch.get(item_id)
        if item is None or item.status is ItemStatus.PROCESSING:
            return item
        return self.batch.replace(item.reset(pan_x=float(pan_x), pan_y=float(pan_y)))

    def begin_drag(self, item_id: str) -> Optional[Tuple[float, float]]:
        """Remember the pan at drag start. Returns None if the item cannot be dragged."""
        item = self.batch.get(item_id)
        if item is None or item.status is ItemStatus.PROCESSING:
            return None
        origin = self.pan_of(item)
        self._drag_origin[item_id] = origin
        return origin

    def drag(self, item_id: str, dx: float, dy: float) -> Optional[WorkItem]:
        """
        Update the pan from pointer movement since ``begin_drag``.

        Args:
            dx: Horizontal movement in pixels since drag start
            dy: Vertical movement in pixels since drag start
        """
        origin = self._drag_origin.get(item_id)
        if origin is None:
            origin = self.begin_drag(item_id)
            if origin is None:
                return self.batch.get(item_id)
        pan_x, pan_y = apply_drag(origin, dx, dy, self.config.crop.drag_sensitivity)
        return self.set_pan(item_id, pan_x, pan_y)

    def end_drag(self, item_id: str) -> None:
        self._drag_origin.pop(item_id, None)

    def remove(self, item_id: str) -> bool:
        self._drag_origin.pop(item_id, None)
        return super().remove(item_id)

    def clear(self) -> None:
        self._drag_origin.clear()
        super().clear()

    # ------------------------------------------------------------------
    # Cropping
    # ------------------------------------------------------------------
    def crop_rect(self, item: WorkItem) -> TileRect:
        pan_x, pan_y = self.pan_of(item)
        spec = CropSpec(ratio=self.ratio.ratio, pan_x=pan_x, pan_y=pan_y)
        return compute_crop_rect(item.width, item.height, spec, zoom=self.config.crop.zoom)

    def crop_image(self, item: WorkItem) -> np.ndarray:
        return self.sampler.sample(item.source_image, self.crop_rect(item))

    def preview(self, item_id: str) -> Optional[np.ndarray]:
        """Crop with the current pan without touching the item's status."""
        item = self.batch.get(item_id)
        if item is None:
            return None
        return self.crop_image(item)

    def transform(self, item: WorkItem) -> np.ndarray:
        return self.crop_image(item)

    def export_name(self, item: WorkItem, index: int) -> str:
        stem = Path(item.name).stem if item.name else f"image_{index + 1}"
        label = self.ratio.label.replace(":", "x")
        return f"{stem}_{label}.png"
