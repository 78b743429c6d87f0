"""
Enhance workflow: batch resolution enhancement through an ImageEnhancer.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from ..config.settings import TilecraftConfig
from ..errors import AuthError
from ..processing.models import WorkItem
from ..services.enhancer import ImageEnhancer, LocalUpscaleEnhancer
from .base import BatchWorkflow

logger = logging.getLogger(__name__)


class EnhanceWorkflow(BatchWorkflow):
    """
    Batch enhancement.

    Credential failures mark the item failed with the remediation message and
    are kept in ``auth_error`` so the caller can prompt for a new key; the
    batch carries on with the next item.
    """

    name = "enhance"

    def __init__(
        self,
        config: Optional[TilecraftConfig] = None,
        enhancer: Optional[ImageEnhancer] = None,
    ):
        super().__init__(config)
        self.enhancer = enhancer or LocalUpscaleEnhancer(self.config.enhance)
        self.auth_error: Optional[AuthError] = None

    async def transform(self, item: WorkItem) -> np.ndarray:
        try:
            return await self.enhancer.enhance(item.source_image)
        except AuthError as e:
            self.auth_error = e
            logger.warning(f"Enhancement service rejected credentials: {e.remediation}")
            raise

    async def enhance_one(self, item_id: str) -> Optional[WorkItem]:
        """Enhance a single item (e.g. to retry a failure)."""
        return await self.process_one(item_id)

    def export_name(self, item: WorkItem, index: int) -> str:
        stem = Path(item.name).stem if item.name else f"image_{index + 1}"
        return f"{stem}_enhanced.png"
