"""
Crop rectangle derivation from an aspect ratio and a pan offset.
"""

import math
from typing import Tuple

from .models import CropSpec, TileRect
from ..errors import InvalidLayout

# Magnification of the sampling window relative to the fitted crop
DEFAULT_CROP_ZOOM = 1.1

# Pan percentage per pixel of pointer drag
DEFAULT_DRAG_SENSITIVITY = 0.2


def fit_crop_size(width: int, height: int, ratio: float) -> Tuple[int, int]:
    """
    Largest (width, height) of aspect ``ratio`` that fits in the image.

    Raises:
        InvalidLayout: Non-positive dimensions or ratio
    """
    if width <= 0 or height <= 0:
        raise InvalidLayout(f"Image dimensions must be > 0, got {width}x{height}")
    if ratio <= 0 or math.isnan(ratio) or math.isinf(ratio):
        raise InvalidLayout(f"Aspect ratio must be a positive number, got {ratio}")

    if width / height > ratio:
        fit_h = float(height)
        fit_w = height * ratio
    else:
        fit_w = float(width)
        fit_h = width / ratio

    return (max(1, int(fit_w)), max(1, int(fit_h)))


def compute_crop_rect(
    width: int,
    height: int,
    spec: CropSpec,
    zoom: float = DEFAULT_CROP_ZOOM,
) -> TileRect:
    """
    Map a crop request onto a source sampling rectangle.

    The output keeps the fitted crop size. The sampling window is that size
    divided by ``zoom``, centered on the image, then shifted by the pan
    expressed as a percentage of the sampling window, so perceived pan speed
    does not depend on the zoom. The window is not clamped to the image.

    Args:
        width: Source image width
        height: Source image height
        spec: Ratio and pan
        zoom: Magnification constant (> 0)

    Returns:
        TileRect for the image sampler

    Raises:
        InvalidLayout: Non-positive dimensions, ratio or zoom
    """
    if zoom <= 0:
        raise InvalidLayout(f"zoom must be > 0, got {zoom}")

    dest_w, dest_h = fit_crop_size(width, height, spec.ratio)

    sample_w = dest_w / zoom
    sample_h = dest_h / zoom

    sample_x = (width - sample_w) / 2 + spec.pan_x * (sample_w / 100)
    sample_y = (height - sample_h) / 2 + spec.pan_y * (sample_h / 100)

    return TileRect(
        sx=sample_x,
        sy=sample_y,
        sw=sample_w,
        sh=sample_h,
        dw=dest_w,
        dh=dest_h,
    )


def apply_drag(
    start_pan: Tuple[float, float],
    dx: float,
    dy: float,
    sensitivity: float = DEFAULT_DRAG_SENSITIVITY,
) -> Tuple[float, float]:
    """
    Convert a pointer drag into a pan offset.

    Args:
        start_pan: (pan_x, pan_y) when the drag started
        dx: Horizontal pointer movement since drag start, in pixels
        dy: Vertical pointer movement since drag start, in pixels
        sensitivity: Pan percentage per pixel

    Returns:
        New (pan_x, pan_y)
    """
    return (start_pan[0] + dx * sensitivity, start_pan[1] + dy * sensitivity)
