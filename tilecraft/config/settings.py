"""
Configuration for sampling, cropping, batch processing and the AI collaborators.

Every section validates itself in ``__post_init__`` and round-trips through
``to_dict``/``from_dict``. ``TilecraftConfig.from_yaml`` reads either a bare
mapping or one nested under a top-level ``tilecraft:`` key.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from ..geometry.crop import DEFAULT_CROP_ZOOM, DEFAULT_DRAG_SENSITIVITY
from ..sampling.sampler import INTERPOLATION, DEFAULT_QUALITY


@dataclass
class SamplerSettings:
    """Settings for the image sampler and PNG output."""
    quality: str = DEFAULT_QUALITY
    png_compress_level: int = 6

    def __post_init__(self):
        """Validate sampler settings."""
        if self.quality not in INTERPOLATION:
            raise ValueError(
                f"quality must be one of {sorted(INTERPOLATION)}, got {self.quality!r}"
            )
        if not 0 <= self.png_compress_level <= 9:
            raise ValueError(
                f"png_compress_level must be between 0 and 9, got {self.png_compress_level}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "quality": self.quality,
            "png_compress_level": self.png_compress_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SamplerSettings":
        """Create from dictionary."""
        return cls(
            quality=data.get("quality", DEFAULT_QUALITY),
            png_compress_level=data.get("png_compress_level", 6),
        )


@dataclass
class CropSettings:
    """
    Presentation tuning for the crop workflow.

    Attributes:
        zoom: Magnification of the sampling window relative to the fitted crop
        drag_sensitivity: Pan percentage per pixel of pointer drag
        default_ratio: Ratio label selected when a crop workflow starts
    """
    zoom: float = DEFAULT_CROP_ZOOM
    drag_sensitivity: float = DEFAULT_DRAG_SENSITIVITY
    default_ratio: str = "1:1"

    def __post_init__(self):
        """Validate crop settings."""
        if self.zoom <= 0:
            raise ValueError(f"zoom must be > 0, got {self.zoom}")
        if self.drag_sensitivity <= 0:
            raise ValueError(f"drag_sensitivity must be > 0, got {self.drag_sensitivity}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "zoom": self.zoom,
            "drag_sensitivity": self.drag_sensitivity,
            "default_ratio": self.default_ratio,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CropSettings":
        """Create from dictionary."""
        return cls(
            zoom=data.get("zoom", DEFAULT_CROP_ZOOM),
            drag_sensitivity=data.get("drag_sensitivity", DEFAULT_DRAG_SENSITIVITY),
            default_ratio=data.get("default_ratio", "1:1"),
        )


@dataclass
class BatchSettings:
    """
    Settings shared by every batch workflow.

    Attributes:
        max_items: Maximum number of items a batch accepts
        transform_timeout: Optional per-item timeout in seconds (None = wait forever)
    """
    max_items: int = 20
    transform_timeout: Optional[float] = None

    def __post_init__(self):
        """Validate batch settings."""
        if self.max_items < 1:
            raise ValueError(f"max_items must be >= 1, got {self.max_items}")
        if self.transform_timeout is not None and self.transform_timeout <= 0:
            raise ValueError(
                f"transform_timeout must be > 0 or None, got {self.transform_timeout}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_items": self.max_items,
            "transform_timeout": self.transform_timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchSettings":
        """Create from dictionary."""
        return cls(
            max_items=data.get("max_items", 20),
            transform_timeout=data.get("transform_timeout"),
        )


@dataclass
class EnhanceSettings:
    """Settings for the local upscaling enhancer."""
    target_width: int = 3840
    quality: str = "highest"

    def __post_init__(self):
        """Validate enhancement settings."""
        if self.target_width < 1:
            raise ValueError(f"target_width must be >= 1, got {self.target_width}")
        if self.quality not in INTERPOLATION:
            raise ValueError(
                f"quality must be one of {sorted(INTERPOLATION)}, got {self.quality!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"target_width": self.target_width, "quality": self.quality}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnhanceSettings":
        """Create from dictionary."""
        return cls(
            target_width=data.get("target_width", 3840),
            quality=data.get("quality", "highest"),
        )


@dataclass
class SegmentSettings:
    """
    Settings for the local GrabCut background remover.

    Attributes:
        iterations: GrabCut iterations
        margin_ratio: Fraction of each side assumed to be background
        max_side: Longest side the segmentation runs at (mask is upscaled back)
    """
    iterations: int = 5
    margin_ratio: float = 0.05
    max_side: int = 1024

    def __post_init__(self):
        """Validate segmentation settings."""
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if not 0.0 < self.margin_ratio < 0.5:
            raise ValueError(f"margin_ratio must be between 0 and 0.5, got {self.margin_ratio}")
        if self.max_side < 16:
            raise ValueError(f"max_side must be >= 16, got {self.max_side}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "iterations": self.iterations,
            "margin_ratio": self.margin_ratio,
            "max_side": self.max_side,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentSettings":
        """Create from dictionary."""
        return cls(
            iterations=data.get("iterations", 5),
            margin_ratio=data.get("margin_ratio", 0.05),
            max_side=data.get("max_side", 1024),
        )


@dataclass
class TilecraftConfig:
    """Top-level configuration grouping every section."""
    sampler: SamplerSettings = field(default_factory=SamplerSettings)
    crop: CropSettings = field(default_factory=CropSettings)
    batch: BatchSettings = field(default_factory=BatchSettings)
    enhance: EnhanceSettings = field(default_factory=EnhanceSettings)
    segment: SegmentSettings = field(default_factory=SegmentSettings)

    def __post_init__(self):
        """Convert nested sections given as dicts."""
        sections = {
            "sampler": SamplerSettings,
            "crop": CropSettings,
            "batch": BatchSettings,
            "enhance": EnhanceSettings,
            "segment": SegmentSettings,
        }
        for name, section_cls in sections.items():
            value = getattr(self, name)
            if isinstance(value, dict):
                object.__setattr__(self, name, section_cls.from_dict(value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "sampler": self.sampler.to_dict(),
            "crop": self.crop.to_dict(),
            "batch": self.batch.to_dict(),
            "enhance": self.enhance.to_dict(),
            "segment": self.segment.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TilecraftConfig":
        """Create from dictionary (e.g., from YAML config)."""
        return cls(
            sampler=SamplerSettings.from_dict(data.get("sampler") or {}),
            crop=CropSettings.from_dict(data.get("crop") or {}),
            batch=BatchSettings.from_dict(data.get("batch") or {}),
            enhance=EnhanceSettings.from_dict(data.get("enhance") or {}),
            segment=SegmentSettings.from_dict(data.get("segment") or {}),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "TilecraftConfig":
        """Load configuration from YAML file."""
        import yaml

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("tilecraft", data))

    @classmethod
    def default(cls) -> "TilecraftConfig":
        """Create default configuration."""
        return cls()
