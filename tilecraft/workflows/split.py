"""
Split workflow: one source image cut into a uniform grid of tiles.

Splitting is a single local computation, not a batch of jobs: every
rectangle is computed and every tile sampled before the tile batch is
replaced, so a layout either fully succeeds or raises one error. Tiles can
then be enhanced on demand through the batch runner.
"""

import logging
from typing import List, Optional, Union

import numpy as np

from ..config.settings import TilecraftConfig
from ..errors import RasterizationFailure
from ..export.archive import ArchiveEntry
from ..geometry.grid import compute_grid_tiles
from ..geometry.models import GridSpec, GridType, get_layout
from ..processing.models import ItemStatus, WorkItem
from ..processing.runner import on_source
from ..sampling.sampler import ImageSampler
from ..services.enhancer import ImageEnhancer, LocalUpscaleEnhancer
from .base import BatchWorkflow

logger = logging.getLogger(__name__)


class SplitWorkflow(BatchWorkflow):
    """
    Grid splitting with on-demand tile enhancement.

    Example:
        >>> workflow = SplitWorkflow()
        >>> workflow.set_source(image)
        >>> tiles = workflow.split(GridType.G9)
        >>> await workflow.enhance_tile(tiles[4].id)
        >>> archive = workflow.export_archive()
    """

    name = "split"

    def __init__(
        self,
        config: Optional[TilecraftConfig] = None,
        enhancer: Optional[ImageEnhancer] = None,
        sampler: Optional[ImageSampler] = None,
    ):
        super().__init__(config)
        # Tile count is set by the layout, not by the upload limit
        self.batch.max_items = None
        self.enhancer = enhancer or LocalUpscaleEnhancer(self.config.enhance)
        self.sampler = sampler or ImageSampler(self.config.sampler.quality)
        self.source_image: Optional[np.ndarray] = None
        self.grid: Optional[GridSpec] = None
        self._enhance = on_source(self.enhancer.enhance)

    def set_source(self, image: np.ndarray) -> None:
        """Replace the source image, discarding tiles of the previous one."""
        self.clear()
        self.source_image = image
        self.grid = None

    def cut_tiles(self, image: np.ndarray, grid: GridSpec) -> List[np.ndarray]:
        """
        Sample every tile of ``grid`` from ``image``.

        Raises:
            InvalidLayout: Grid does not fit the image
            RasterizationFailure: Missing source or sampling failed
        """
        if image is None:
            raise RasterizationFailure("No source image to split")

        height, width = image.shape[:2]
        rects = compute_grid_tiles(width, height, grid)
        return [self.sampler.sample(image, rect) for rect in rects]

    def split(
        self,
        grid_type: Union[GridType, str, int] = GridType.G9,
        layout_index: int = 0,
        grid: Optional[GridSpec] = None,
    ) -> List[WorkItem]:
        """
        Split the source image and replace the tile batch.

        Args:
            grid_type: Tile count from the layout catalogue
            layout_index: Which layout of that tile count
            grid: Explicit grid, overrides grid_type/layout_index

        Returns:
            The new tile items in row-major order

        Raises:
            InvalidLayout: Unknown layout or grid too fine for the image
            RasterizationFailure: No source image or sampling failed
        """
        spec = grid or get_layout(grid_type, layout_index)
        tiles = self.cut_tiles(self.source_image, spec)

        self.clear()
        self.grid = spec
        items = [
            WorkItem(
                id=f"tile-{idx}",
                source_image=tile,
                name=f"split_image_{idx + 1}.png",
                params={"col": idx % spec.cols, "row": idx // spec.cols},
            )
            for idx, tile in enumerate(tiles)
        ]
        self.batch.extend(items)

        tile_h, tile_w = tiles[0].shape[:2]
        logger.info(f"Split source into {len(items)} tiles ({spec.label}, {tile_w}x{tile_h} each)")
        return items

    def transform(self, item: WorkItem):
        return self._enhance(item)

    async def enhance_tile(self, item_id: str) -> Optional[WorkItem]:
        """
        Enhance one tile.

        Already enhanced or in-flight tiles are returned unchanged.
        """
        item = self.batch.get(item_id)
        if item is None or item.status in (ItemStatus.COMPLETED, ItemStatus.PROCESSING):
            return item
        return await self.runner.run_one(item_id, self.transform)

    def export_name(self, item: WorkItem, index: int) -> str:
        return item.name or f"split_image_{index + 1}.png"

    def export_entries(self) -> List[ArchiveEntry]:
        """Every tile, enhanced when available."""
        return [
            (self.export_name(item, i), item.output_image)
            for i, item in enumerate(self.batch.items())
        ]
