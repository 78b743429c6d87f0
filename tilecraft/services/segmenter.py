"""
Background segmentation collaborator.

``BackgroundRemover`` returns a BGRA copy of the input whose alpha channel
masks out the background, reporting fractional progress along the way.
``GrabCutBackgroundRemover`` is the local default, seeded with a rectangle
that assumes a thin border of background around the subject.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import cv2
import numpy as np

from ..config.settings import SegmentSettings
from ..errors import ServiceError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class BackgroundRemover(ABC):
    """Asynchronous, fallible background removal."""

    @abstractmethod
    async def remove_background(
        self,
        image: np.ndarray,
        progress: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        """
        Return a BGRA copy of ``image`` with a transparent background.

        Args:
            image: Source image
            progress: Optional callback receiving values in [0, 1]

        Raises:
            ServiceError: Segmentation failed
        """


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Convert grayscale / BGRA input to 8-bit BGR."""
    if image.dtype != np.uint8:
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


class GrabCutBackgroundRemover(BackgroundRemover):
    """
    GrabCut-based background removal.

    Segmentation runs on a copy downscaled to ``max_side``; the resulting
    mask is scaled back to the source size.

    Example:
        >>> remover = GrabCutBackgroundRemover()
        >>> cutout = await remover.remove_background(image, progress=print)
        >>> cutout.shape[2]
        4
    """

    def __init__(self, settings: Optional[SegmentSettings] = None):
        self.settings = settings or SegmentSettings()

    def segment(
        self,
        image: np.ndarray,
        progress: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        """Synchronous segmentation."""
        report = progress or (lambda value: None)

        if image is None or image.size == 0:
            raise ServiceError("Cannot segment an empty image")

        bgr = to_bgr(image)
        height, width = bgr.shape[:2]
        if width < 3 or height < 3:
            raise ServiceError(f"Image too small to segment: {width}x{height}")

        report(0.0)

        scale = min(1.0, self.settings.max_side / max(width, height))
        if scale < 1.0:
            work = cv2.resize(
                bgr,
                (max(3, int(width * scale)), max(3, int(height * scale))),
                interpolation=cv2.INTER_AREA,
            )
        else:
            work = bgr

        work_h, work_w = work.shape[:2]
        margin_x = max(1, int(work_w * self.settings.margin_ratio))
        margin_y = max(1, int(work_h * self.settings.margin_ratio))
        rect = (margin_x, margin_y, work_w - 2 * margin_x, work_h - 2 * margin_y)
        if rect[2] < 1 or rect[3] < 1:
            raise ServiceError(f"Image too small to segment: {width}x{height}")

        mask = np.zeros((work_h, work_w), dtype=np.uint8)
        bgd_model = np.zeros((1, 65), dtype=np.float64)
        fgd_model = np.zeros((1, 65), dtype=np.float64)

        report(0.2)

        try:
            cv2.grabCut(
                work,
                mask,
                rect,
                bgd_model,
                fgd_model,
                self.settings.iterations,
                cv2.GC_INIT_WITH_RECT,
            )
        except cv2.error as e:
            raise ServiceError(f"Segmentation failed: {e}") from e

        report(0.9)

        foreground = (mask == cv2.GC_FGD) | (mask == cv2.GC_PR_FGD)
        alpha = np.where(foreground, 255, 0).astype(np.uint8)
        if (work_w, work_h) != (width, height):
            alpha = cv2.resize(alpha, (width, height), interpolation=cv2.INTER_LINEAR)

        output = cv2.cvtColor(bgr, cv2.COLOR_BGR2BGRA)
        output[:, :, 3] = alpha

        report(1.0)
        logger.debug(
            f"Segmented {width}x{height} image, "
            f"{float(np.count_nonzero(alpha)) / alpha.size:.1%} foreground"
        )
        return output

    async def remove_background(
        self,
        image: np.ndarray,
        progress: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        loop = asyncio.get_running_loop()

        def report(value: float) -> None:
            # Deliver progress on the event loop thread
            if progress is not None:
                loop.call_soon_threadsafe(progress, value)

        return await asyncio.to_thread(self.segment, image, report)
