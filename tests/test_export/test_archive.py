"""Tests for ZIP archive export."""

import io
import zipfile

import numpy as np
import pytest

from tilecraft.errors import RasterizationFailure
from tilecraft.export.archive import (
    build_archive,
    numbered_names,
    png_name,
    unique_name,
    write_archive,
)
from tilecraft.sampling.codec import decode_image

from tests.fixtures.image_fixtures import create_gradient, create_solid


class TestNames:
    """Tests for archive naming helpers."""

    def test_numbered_names(self):
        """Test 1-based numbering."""
        assert numbered_names(3) == ["split_image_1.png", "split_image_2.png", "split_image_3.png"]
        assert numbered_names(0) == []

    @pytest.mark.parametrize("name,expected", [
        ("photo.jpg", "photo.png"),
        ("photo.png", "photo.png"),
        ("dir/sub/photo.webp", "photo.png"),
        ("C:\\images\\scan.tif", "scan.png"),
        ("", "image.png"),
        ("noext", "noext.png"),
    ])
    def test_png_name(self, name, expected):
        """Test extension and directory normalization."""
        assert png_name(name) == expected

    def test_unique_name(self):
        """Test collisions get numeric suffixes, case-insensitively."""
        used = set()
        assert unique_name("a.png", used) == "a.png"
        assert unique_name("a.png", used) == "a_2.png"
        assert unique_name("A.PNG", used) == "A_3.PNG"
        assert unique_name("b.png", used) == "b.png"


class TestBuildArchive:
    """Tests for build_archive."""

    def test_entries_in_order(self):
        """Test every image is stored once, in order, as PNG."""
        images = [create_solid(value=v) for v in (10, 20, 30)]
        entries = list(zip(numbered_names(3), images))

        data = build_archive(entries)

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == numbered_names(3)
            for name, image in entries:
                np.testing.assert_array_equal(decode_image(zf.read(name)), image)

    def test_duplicate_names(self):
        """Test duplicate names do not overwrite each other."""
        data = build_archive([("x.png", create_solid()), ("x.png", create_solid())])

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == ["x.png", "x_2.png"]

    def test_deflated(self):
        """Test entries are compressed."""
        data = build_archive([("g.png", create_gradient(64, 64))])
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.infolist()[0].compress_type == zipfile.ZIP_DEFLATED

    def test_empty(self):
        """Test an archive with no entries is still valid."""
        with zipfile.ZipFile(io.BytesIO(build_archive([]))) as zf:
            assert zf.namelist() == []

    def test_unencodable_image(self):
        """Test empty images abort the export."""
        with pytest.raises(RasterizationFailure):
            build_archive([("bad.png", np.zeros((0, 0, 3), dtype=np.uint8))])


class TestWriteArchive:
    """Tests for write_archive."""

    def test_write_file(self, tmp_path):
        """Test writing to an explicit file."""
        path = write_archive(tmp_path / "out.zip", [("a.png", create_solid())])
        assert path == tmp_path / "out.zip"
        assert zipfile.is_zipfile(path)

    def test_write_directory(self, tmp_path):
        """Test directories get the default archive name."""
        path = write_archive(tmp_path, [("a.png", create_solid())])
        assert path.name == "all_images.zip"

    def test_zip_suffix_forced(self, tmp_path):
        """Test a missing .zip suffix is added."""
        path = write_archive(tmp_path / "nested" / "bundle", [("a.png", create_solid())])
        assert path == tmp_path / "nested" / "bundle.zip"
        assert path.exists()
