"""
Image sampler: one fractional source rectangle resampled into a new image.

The rasterization surface is OpenCV's affine warp. Source rectangles are
routinely fractional (grid steps such as 1000/3 and zoomed crop windows), so
a smoothing interpolation is requested by default.
"""

import logging
from typing import Dict

import cv2
import numpy as np

from ..errors import RasterizationFailure
from ..geometry.models import TileRect

logger = logging.getLogger(__name__)

INTERPOLATION: Dict[str, int] = {
    "nearest": cv2.INTER_NEAREST,
    "low": cv2.INTER_LINEAR,
    "high": cv2.INTER_CUBIC,
    "highest": cv2.INTER_LANCZOS4,
}

DEFAULT_QUALITY = "high"


def sampling_matrix(rect: TileRect) -> np.ndarray:
    """
    Affine matrix mapping source pixel coordinates to destination coordinates.

    Pixel centers are aligned, so an integer-aligned 1:1 rectangle maps
    every destination pixel exactly onto a source pixel.
    """
    scale_x = rect.dw / rect.sw
    scale_y = rect.dh / rect.sh
    return np.array(
        [
            [scale_x, 0.0, scale_x * (0.5 - rect.sx) - 0.5],
            [0.0, scale_y, scale_y * (0.5 - rect.sy) - 0.5],
        ],
        dtype=np.float64,
    )


class ImageSampler:
    """
    Resamples source rectangles into new images.

    Example:
        >>> sampler = ImageSampler(quality="high")
        >>> tile = sampler.sample(image, TileRect(0, 0, 640, 360, 640, 360))
        >>> tile.shape[:2]
        (360, 640)
    """

    def __init__(self, quality: str = DEFAULT_QUALITY):
        """
        Initialize the sampler.

        Args:
            quality: Smoothing policy, one of "nearest", "low", "high", "highest"
        """
        if quality not in INTERPOLATION:
            raise ValueError(
                f"quality must be one of {sorted(INTERPOLATION)}, got {quality!r}"
            )
        self.quality = quality
        self.interpolation = INTERPOLATION[quality]

    def sample(self, image: np.ndarray, rect: TileRect) -> np.ndarray:
        """
        Resample ``rect`` of ``image`` into a new dw x dh image.

        Parts of the sampling window outside the source are filled with
        zeros (transparent for BGRA images). The source is never modified.

        Args:
            image: Decoded source image (H, W) or (H, W, C)
            rect: Sampling window and destination size

        Returns:
            New image of shape (dh, dw[, C])

        Raises:
            RasterizationFailure: Missing/empty source, empty destination,
                or OpenCV could not produce the output
        """
        self._check_source(image)

        if rect.dw < 1 or rect.dh < 1:
            raise RasterizationFailure(
                f"Destination size must be at least 1x1, got {rect.dw}x{rect.dh}"
            )
        if rect.sw <= 0 or rect.sh <= 0:
            raise RasterizationFailure(
                f"Sampling window must be non-empty, got {rect.sw}x{rect.sh}"
            )

        matrix = sampling_matrix(rect)

        try:
            output = cv2.warpAffine(
                image,
                matrix,
                (rect.dw, rect.dh),
                flags=self.interpolation,
                borderMode=cv2.BORDER_CONSTANT,
                borderValue=0,
            )
        except cv2.error as e:
            raise RasterizationFailure(f"Resampling failed: {e}") from e

        if output is None or output.shape[:2] != (rect.dh, rect.dw):
            raise RasterizationFailure(
                f"Drawing surface returned an unexpected result for {rect.dw}x{rect.dh}"
            )

        # warpAffine drops a trailing singleton channel axis
        if image.ndim == 3 and output.ndim == 2:
            output = output[:, :, np.newaxis]

        return output

    @staticmethod
    def _check_source(image) -> None:
        if image is None:
            raise RasterizationFailure("Source image is missing (failed to decode upstream?)")
        if not isinstance(image, np.ndarray):
            raise RasterizationFailure(
                f"Source image must be a numpy array, got {type(image).__name__}"
            )
        if image.ndim not in (2, 3) or image.size == 0:
            raise RasterizationFailure(f"Source image has unusable shape {image.shape}")
