"""
Resolution enhancement collaborator.

``ImageEnhancer`` is the boundary the Enhance and Split workflows talk to.
Remote AI services implement it and raise ``AuthError`` for rejected
credentials and ``ServiceError`` for anything else. ``LocalUpscaleEnhancer``
is the default: a high-quality resize to a 4K target width.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from ..config.settings import EnhanceSettings
from ..errors import ServiceError
from ..sampling.sampler import INTERPOLATION

logger = logging.getLogger(__name__)


class ImageEnhancer(ABC):
    """Asynchronous, fallible image enhancement."""

    @abstractmethod
    async def enhance(self, image: np.ndarray) -> np.ndarray:
        """
        Return an enhanced copy of ``image``.

        Raises:
            AuthError: Service rejected the configured credentials
            ServiceError: Any other service failure
        """


class LocalUpscaleEnhancer(ImageEnhancer):
    """
    Upscales images to a fixed target width with Lanczos interpolation.

    Images already at least as wide as the target are returned unchanged.
    The resize runs in a worker thread so the event loop stays responsive.
    """

    def __init__(self, settings: Optional[EnhanceSettings] = None):
        self.settings = settings or EnhanceSettings()

    @property
    def target_width(self) -> int:
        return self.settings.target_width

    def target_size(self, width: int, height: int) -> tuple:
        """(width, height) an image of the given size is upscaled to."""
        if width >= self.target_width:
            return (width, height)
        scale = self.target_width / width
        return (self.target_width, max(1, int(height * scale)))

    def upscale(self, image: np.ndarray) -> np.ndarray:
        """Synchronous upscale."""
        if image is None or image.size == 0:
            raise ServiceError("Cannot enhance an empty image")

        height, width = image.shape[:2]
        new_w, new_h = self.target_size(width, height)
        if (new_w, new_h) == (width, height):
            logger.debug(f"Image already {width}px wide, skipping upscale")
            return image

        try:
            return cv2.resize(
                image,
                (new_w, new_h),
                interpolation=INTERPOLATION[self.settings.quality],
            )
        except cv2.error as e:
            raise ServiceError(f"Upscale failed: {e}") from e

    async def enhance(self, image: np.ndarray) -> np.ndarray:
        return await asyncio.to_thread(self.upscale, image)
