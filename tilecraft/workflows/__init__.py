"""
Workflow Controllers

Thin configurations of the batch runner for splitting, cropping,
enhancement and background removal.
"""

from .base import BatchWorkflow
from .split import SplitWorkflow
from .crop import CropWorkflow, resolve_ratio
from .enhance import EnhanceWorkflow
from .segment import SegmentWorkflow

__all__ = [
    "BatchWorkflow",
    "SplitWorkflow",
    "CropWorkflow",
    "resolve_ratio",
    "EnhanceWorkflow",
    "SegmentWorkflow",
]
