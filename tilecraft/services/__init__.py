"""
AI collaborators

Enhancement and background segmentation behind narrow async interfaces.
"""

from .enhancer import ImageEnhancer, LocalUpscaleEnhancer
from .segmenter import BackgroundRemover, GrabCutBackgroundRemover, ProgressCallback

__all__ = [
    "ImageEnhancer",
    "LocalUpscaleEnhancer",
    "BackgroundRemover",
    "GrabCutBackgroundRemover",
    "ProgressCallback",
]
