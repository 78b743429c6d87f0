"""
Uniform grid tile boundary calculation.

The destination size is floor-rounded once and shared by every tile, while
source coordinates advance in exact float steps, so tiles never differ by a
pixel and no rounding error accumulates across a row or column.
"""

from typing import List, Tuple

from .models import GridSpec, TileRect
from ..errors import InvalidLayout


def compute_grid_tiles(width: int, height: int, grid: GridSpec) -> List[TileRect]:
    """
    Calculate the sampling rectangles of a uniform grid.

    Args:
        width: Source image width (>= 1)
        height: Source image height (>= 1)
        grid: Columns and rows of the grid

    Returns:
        cols * rows TileRects in row-major order (row 0 left to right, then row 1, ...)

    Raises:
        InvalidLayout: Non-positive dimensions, or a grid finer than the image

    Example:
        >>> tiles = compute_grid_tiles(1920, 1080, GridSpec(3, 3))
        >>> tiles[-1]
        TileRect(sx=1280.0, sy=720.0, sw=640.0, sh=360.0, dw=640, dh=360)
    """
    if width < 1 or height < 1:
        raise InvalidLayout(f"Image dimensions must be >= 1, got {width}x{height}")
    if grid.cols < 1 or grid.rows < 1:
        raise InvalidLayout(f"Grid must have at least one column and row, got {grid.label}")

    dest_w = width // grid.cols
    dest_h = height // grid.rows
    if dest_w == 0 or dest_h == 0:
        raise InvalidLayout(
            f"Grid {grid.label} is too fine for a {width}x{height} image "
            f"(tile would be {dest_w}x{dest_h})"
        )

    step_x = width / grid.cols
    step_y = height / grid.rows

    tiles = []
    for row in range(grid.rows):
        for col in range(grid.cols):
            tiles.append(TileRect(
                sx=col * step_x,
                sy=row * step_y,
                sw=step_x,
                sh=step_y,
                dw=dest_w,
                dh=dest_h,
            ))

    return tiles


def tile_position(index: int, grid: GridSpec) -> Tuple[int, int]:
    """Return (col, row) of a row-major tile index."""
    if not 0 <= index < grid.tile_count:
        raise IndexError(f"Tile index {index} out of range for grid {grid.label}")
    return (index % grid.cols, index // grid.cols)


def canvas_size(tiles: List[TileRect], grid: GridSpec) -> Tuple[int, int]:
    """
    Size of the canvas obtained by placing every tile back at (col*dw, row*dh).

    Args:
        tiles: Tiles from compute_grid_tiles
        grid: Grid the tiles were computed for

    Returns:
        (width, height) of the reassembled canvas
    """
    if not tiles:
        return (0, 0)
    return (tiles[0].dw * grid.cols, tiles[0].dh * grid.rows)
