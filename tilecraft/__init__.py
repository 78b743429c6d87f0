"""
Tilecraft

Grid splitting, aspect-ratio cropping, AI enhancement and background
removal for batches of images, with archive export.
"""

from .errors import (
    TilecraftError,
    InvalidLayout,
    RasterizationFailure,
    DecodeError,
    ServiceError,
    AuthError,
)
from .geometry import (
    GridType,
    GridSpec,
    TileRect,
    CropSpec,
    get_layout,
    compute_grid_tiles,
    compute_crop_rect,
)
from .sampling import ImageSampler, decode_image, load_image, encode_png
from .processing import ItemStatus, WorkItem, Batch, BatchJobRunner, RunReport
from .config import TilecraftConfig
from .workflows import SplitWorkflow, CropWorkflow, EnhanceWorkflow, SegmentWorkflow

__version__ = "1.0.0"

__all__ = [
    # Errors
    "TilecraftError",
    "InvalidLayout",
    "RasterizationFailure",
    "DecodeError",
    "ServiceError",
    "AuthError",
    # Geometry
    "GridType",
    "GridSpec",
    "TileRect",
    "CropSpec",
    "get_layout",
    "compute_grid_tiles",
    "compute_crop_rect",
    # Sampling
    "ImageSampler",
    "decode_image",
    "load_image",
    "encode_png",
    # Processing
    "ItemStatus",
    "WorkItem",
    "Batch",
    "BatchJobRunner",
    "RunReport",
    # Config
    "TilecraftConfig",
    # Workflows
    "SplitWorkflow",
    "CropWorkflow",
    "EnhanceWorkflow",
    "SegmentWorkflow",
]
