"""
Data structures for grid splitting and crop geometry.

GridSpec and CropSpec describe what the caller asked for; TileRect is the
sampling/destination rectangle pair handed to the image sampler.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Tuple

from ..errors import InvalidLayout


class GridType(str, Enum):
    """Advertised tile counts for grid splitting."""
    G4 = "4"
    G6 = "6"
    G8 = "8"
    G9 = "9"
    G12 = "12"

    @property
    def tile_count(self) -> int:
        return int(self.value)


@dataclass(frozen=True)
class GridSpec:
    """
    Grid layout: number of columns and rows.

    Attributes:
        cols: Number of tile columns (>= 1)
        rows: Number of tile rows (>= 1)
    """
    cols: int
    rows: int

    def __post_init__(self):
        if self.cols < 1:
            raise InvalidLayout(f"cols must be >= 1, got {self.cols}")
        if self.rows < 1:
            raise InvalidLayout(f"rows must be >= 1, got {self.rows}")

    @property
    def tile_count(self) -> int:
        return self.cols * self.rows

    @property
    def label(self) -> str:
        """Human readable label, e.g. ``"3x2"`` (cols x rows)."""
        return f"{self.cols}x{self.rows}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"cols": self.cols, "rows": self.rows}


# Landscape layout first, portrait alternative second
GRID_LAYOUTS: Dict[GridType, List[GridSpec]] = {
    GridType.G4: [GridSpec(2, 2)],
    GridType.G6: [GridSpec(3, 2), GridSpec(2, 3)],
    GridType.G8: [GridSpec(4, 2), GridSpec(2, 4)],
    GridType.G9: [GridSpec(3, 3)],
    GridType.G12: [GridSpec(4, 3), GridSpec(3, 4)],
}


def get_layout(grid_type, layout_index: int = 0) -> GridSpec:
    """
    Select one GridSpec from the layout catalogue.

    Args:
        grid_type: GridType or its tile count ("9", 9)
        layout_index: Index into the layouts offered for that tile count

    Returns:
        The selected GridSpec

    Raises:
        InvalidLayout: Unknown grid type or layout index out of range
    """
    try:
        key = GridType(str(grid_type.value if isinstance(grid_type, GridType) else grid_type))
    except ValueError:
        raise InvalidLayout(f"Unknown grid type: {grid_type}") from None

    layouts = GRID_LAYOUTS[key]
    if not 0 <= layout_index < len(layouts):
        raise InvalidLayout(
            f"layout_index {layout_index} out of range for grid {key.value} "
            f"({len(layouts)} layout(s) available)"
        )
    return layouts[layout_index]


@dataclass(frozen=True)
class TileRect:
    """
    Source sampling rectangle plus destination size.

    Attributes:
        sx: Left edge of the sampling window in source pixels
        sy: Top edge of the sampling window in source pixels
        sw: Sampling window width (unrounded)
        sh: Sampling window height (unrounded)
        dw: Output width in pixels
        dh: Output height in pixels
    """
    sx: float
    sy: float
    sw: float
    sh: float
    dw: int
    dh: int

    @property
    def source_box(self) -> Tuple[float, float, float, float]:
        """(x1, y1, x2, y2) of the sampling window."""
        return (self.sx, self.sy, self.sx + self.sw, self.sy + self.sh)

    @property
    def dest_size(self) -> Tuple[int, int]:
        """(width, height) of the output image."""
        return (self.dw, self.dh)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sx": self.sx,
            "sy": self.sy,
            "sw": self.sw,
            "sh": self.sh,
            "dw": self.dw,
            "dh": self.dh,
        }


@dataclass(frozen=True)
class CropSpec:
    """
    Crop request.

    Attributes:
        ratio: Target aspect ratio (width / height)
        pan_x: Horizontal pan as a percentage of the sampling window width
        pan_y: Vertical pan as a percentage of the sampling window height
    """
    ratio: float
    pan_x: float = 0.0
    pan_y: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"ratio": self.ratio, "pan_x": self.pan_x, "pan_y": self.pan_y}


@dataclass(frozen=True)
class AspectRatio:
    """A named crop ratio preset."""
    label: str
    ratio: float


CROP_RATIOS: List[AspectRatio] = [
    AspectRatio("1:1", 1 / 1),
    AspectRatio("4:5", 4 / 5),
    AspectRatio("3:4", 3 / 4),
    AspectRatio("4:3", 4 / 3),
    AspectRatio("9:16", 9 / 16),
    AspectRatio("16:9", 16 / 9),
    AspectRatio("21:9", 21 / 9),
    AspectRatio("2.35:1", 2.35 / 1),
    AspectRatio("2:3", 2 / 3),
    AspectRatio("3:2", 3 / 2),
]


def parse_ratio(value) -> float:
    """
    Parse a ratio given as ``"16:9"``, ``"2.35"`` or a number.

    Raises:
        InvalidLayout: Malformed or non-positive ratio
    """
    if isinstance(value, (int, float)):
        ratio = float(value)
    else:
        text = str(value).strip()
        try:
            if ":" in text:
                w, h = text.split(":", 1)
                ratio = float(w) / float(h)
            else:
                ratio = float(text)
        except (ValueError, ZeroDivisionError):
            raise InvalidLayout(f"Invalid aspect ratio: {value!r}") from None

    if ratio <= 0:
        raise InvalidLayout(f"Aspect ratio must be > 0, got {ratio}")
    return ratio
