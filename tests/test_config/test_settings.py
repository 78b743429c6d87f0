"""Tests for configuration dataclasses."""

import pytest

from tilecraft.config.settings import (
    BatchSettings,
    CropSettings,
    EnhanceSettings,
    SamplerSettings,
    SegmentSettings,
    TilecraftConfig,
)


class TestSectionDefaults:
    """Tests for default section values."""

    def test_defaults(self):
        """Test the documented defaults."""
        config = TilecraftConfig.default()
        assert config.sampler.quality == "high"
        assert config.crop.zoom == 1.1
        assert config.crop.drag_sensitivity == 0.2
        assert config.crop.default_ratio == "1:1"
        assert config.batch.max_items == 20
        assert config.batch.transform_timeout is None
        assert config.enhance.target_width == 3840
        assert config.segment.iterations == 5


class TestValidation:
    """Tests for __post_init__ validation."""

    def test_sampler(self):
        """Test invalid sampler settings."""
        with pytest.raises(ValueError):
            SamplerSettings(quality="ultra")
        with pytest.raises(ValueError):
            SamplerSettings(png_compress_level=10)

    def test_crop(self):
        """Test invalid crop settings."""
        with pytest.raises(ValueError):
            CropSettings(zoom=0)
        with pytest.raises(ValueError):
            CropSettings(drag_sensitivity=-1)

    def test_batch(self):
        """Test invalid batch settings."""
        with pytest.raises(ValueError):
            BatchSettings(max_items=0)
        with pytest.raises(ValueError):
            BatchSettings(transform_timeout=0)

    def test_enhance(self):
        """Test invalid enhance settings."""
        with pytest.raises(ValueError):
            EnhanceSettings(target_width=0)

    def test_segment(self):
        """Test invalid segment settings."""
        with pytest.raises(ValueError):
            SegmentSettings(margin_ratio=0.5)
        with pytest.raises(ValueError):
            SegmentSettings(max_side=8)


class TestSerialization:
    """Tests for dict and YAML loading."""

    def test_round_trip(self):
        """Test to_dict / from_dict."""
        config = TilecraftConfig(
            crop=CropSettings(zoom=1.5, default_ratio="16:9"),
            batch=BatchSettings(max_items=5, transform_timeout=30.0),
        )
        restored = TilecraftConfig.from_dict(config.to_dict())
        assert restored == config

    def test_partial_dict(self):
        """Test missing sections fall back to defaults."""
        config = TilecraftConfig.from_dict({"batch": {"max_items": 3}})
        assert config.batch.max_items == 3
        assert config.crop == CropSettings()

    def test_dict_sections(self):
        """Test sections passed as dicts are converted."""
        config = TilecraftConfig(enhance={"target_width": 1920})
        assert isinstance(config.enhance, EnhanceSettings)
        assert config.enhance.target_width == 1920

    def test_from_yaml(self, tmp_path):
        """Test loading a YAML file with a top-level key."""
        path = tmp_path / "tilecraft.yaml"
        path.write_text(
            "tilecraft:\n"
            "  crop:\n"
            "    zoom: 1.25\n"
            "  sampler:\n"
            "    quality: nearest\n"
        )

        config = TilecraftConfig.from_yaml(str(path))

        assert config.crop.zoom == 1.25
        assert config.sampler.quality == "nearest"
        assert config.batch.max_items == 20

    def test_from_yaml_bare_mapping(self, tmp_path):
        """Test loading a YAML file without the top-level key."""
        path = tmp_path / "config.yaml"
        path.write_text("batch:\n  max_items: 4\n")
        assert TilecraftConfig.from_yaml(str(path)).batch.max_items == 4

    def test_from_yaml_empty(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert TilecraftConfig.from_yaml(str(path)) == TilecraftConfig()

    def test_from_yaml_invalid_value(self, tmp_path):
        """Test validation applies to loaded values."""
        path = tmp_path / "bad.yaml"
        path.write_text("crop:\n  zoom: -1\n")
        with pytest.raises(ValueError):
            TilecraftConfig.from_yaml(str(path))
