"""Configuration dataclasses."""

from .settings import (
    SamplerSettings,
    CropSettings,
    BatchSettings,
    EnhanceSettings,
    SegmentSettings,
    TilecraftConfig,
)

__all__ = [
    "SamplerSettings",
    "CropSettings",
    "BatchSettings",
    "EnhanceSettings",
    "SegmentSettings",
    "TilecraftConfig",
]
