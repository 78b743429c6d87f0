"""Tests for the tilecraft command-line interface."""

import json
import zipfile

import pytest

from tilecraft.cli import main, setup_argparse

from tests.fixtures.image_fixtures import create_gradient, create_subject, write_image


class TestArgparse:
    """Tests for argument parsing."""

    def test_split_defaults(self):
        """Test split defaults."""
        args = setup_argparse().parse_args(["split", "in.png"])
        assert args.grid == "9"
        assert args.layout == 0
        assert args.enhance is False
        assert args.output == "tiles.zip"

    def test_invalid_grid(self):
        """Test unsupported tile counts are rejected by argparse."""
        with pytest.raises(SystemExit):
            setup_argparse().parse_args(["split", "in.png", "--grid", "5"])

    def test_no_command(self):
        """Test running without a command prints help."""
        assert main([]) == 0


class TestSplitCommand:
    """Tests for the split command."""

    @pytest.fixture
    def image_path(self, tmp_path):
        return write_image(tmp_path / "poster.png", create_gradient(120, 90))

    def test_split(self, image_path, tmp_path):
        """Test splitting into an archive."""
        output = tmp_path / "tiles.zip"

        code = main(["split", image_path, "--grid", "6", "--layout", "1", "-o", str(output)])

        assert code == 0
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == [f"split_image_{i}.png" for i in range(1, 7)]

    def test_split_with_enhance(self, image_path, tmp_path):
        """Test splitting and enhancing every tile."""
        config = tmp_path / "config.yaml"
        config.write_text("enhance:\n  target_width: 80\n")
        output = tmp_path / "tiles.zip"

        code = main(["--config", str(config), "split", image_path, "--grid", "4", "--enhance", "-o", str(output)])

        assert code == 0
        with zipfile.ZipFile(output) as zf:
            assert len(zf.namelist()) == 4

    def test_split_missing_file(self, tmp_path):
        """Test a missing source image."""
        assert main(["split", str(tmp_path / "missing.png")]) == 1

    def test_split_too_fine(self, tmp_path):
        """Test a grid finer than the image."""
        path = write_image(tmp_path / "tiny.png", create_gradient(2, 2))
        assert main(["split", path, "--grid", "12", "-o", str(tmp_path / "out.zip")]) == 1


class TestBatchCommands:
    """Tests for crop, enhance and segment commands."""

    @pytest.fixture
    def image_paths(self, tmp_path):
        return [
            write_image(tmp_path / "first.png", create_gradient(64, 32)),
            write_image(tmp_path / "second.png", create_gradient(48, 48)),
        ]

    def test_crop(self, image_paths, tmp_path):
        """Test cropping several images."""
        output = tmp_path / "crops.zip"

        code = main(["crop", *image_paths, "--ratio", "4:3", "--pan-x", "10", "-o", str(output)])

        assert code == 0
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["first_4x3.png", "second_4x3.png"]

    def test_crop_invalid_ratio(self, image_paths, tmp_path):
        """Test malformed ratios."""
        assert main(["crop", *image_paths, "--ratio", "wide", "-o", str(tmp_path / "c.zip")]) == 1

    def test_crop_with_unreadable_file(self, image_paths, tmp_path):
        """Test unreadable inputs are reported and the rest processed."""
        output = tmp_path / "crops.zip"

        code = main(["crop", image_paths[0], str(tmp_path / "missing.png"), "-o", str(output)])

        assert code == 1
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["first_1x1.png"]

    def test_enhance(self, image_paths, tmp_path):
        """Test enhancing with a custom target width."""
        output = tmp_path / "enhanced.zip"

        code = main(["enhance", *image_paths, "--target-width", "96", "-o", str(output)])

        assert code == 0
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["first_enhanced.png", "second_enhanced.png"]

    def test_enhance_invalid_width(self, image_paths):
        """Test a non-positive target width."""
        assert main(["enhance", *image_paths, "--target-width", "0"]) == 1

    def test_segment(self, tmp_path):
        """Test background removal."""
        path = write_image(tmp_path / "subject.png", create_subject())
        output = tmp_path / "cutouts.zip"

        code = main(["segment", path, "-o", str(output)])

        assert code == 0
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["no_bg_subject.png"]


class TestLayoutsCommand:
    """Tests for the layouts command."""

    def test_layouts_json(self, capsys):
        """Test the catalogue is printed as JSON."""
        assert main(["layouts"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["grids"]["6"] == [{"cols": 3, "rows": 2}, {"cols": 2, "rows": 3}]
        assert {"label": "16:9", "ratio": pytest.approx(16 / 9)} in output["crop_ratios"]

    def test_invalid_config(self, tmp_path):
        """Test invalid configuration files."""
        config = tmp_path / "bad.yaml"
        config.write_text("batch:\n  max_items: 0\n")
        assert main(["--config", str(config), "layouts"]) == 1

    def test_malformed_yaml_config(self, tmp_path):
        """Test unparsable YAML is reported instead of raising."""
        config = tmp_path / "broken.yaml"
        config.write_text("tilecraft: [unclosed\n")
        assert main(["--config", str(config), "layouts"]) == 1
