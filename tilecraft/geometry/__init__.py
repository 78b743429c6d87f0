"""
Rect Geometry

Pure, stateless computation of tile and crop sampling rectangles.
"""

from .models import (
    GridType,
    GridSpec,
    GRID_LAYOUTS,
    get_layout,
    TileRect,
    CropSpec,
    AspectRatio,
    CROP_RATIOS,
    parse_ratio,
)
from .grid import compute_grid_tiles, tile_position, canvas_size
from .crop import (
    compute_crop_rect,
    fit_crop_size,
    apply_drag,
    DEFAULT_CROP_ZOOM,
    DEFAULT_DRAG_SENSITIVITY,
)

__all__ = [
    # Models
    "GridType",
    "GridSpec",
    "GRID_LAYOUTS",
    "get_layout",
    "TileRect",
    "CropSpec",
    "AspectRatio",
    "CROP_RATIOS",
    "parse_ratio",
    # Grid
    "compute_grid_tiles",
    "tile_position",
    "canvas_size",
    # Crop
    "compute_crop_rect",
    "fit_crop_size",
    "apply_drag",
    "DEFAULT_CROP_ZOOM",
    "DEFAULT_DRAG_SENSITIVITY",
]
