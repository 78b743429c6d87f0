"""
ZIP archive exporter.

Every supplied image is written exactly once as a PNG, under a name that is
unique within the archive.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable, List, Sequence, Set, Tuple, Union

import numpy as np

from ..sampling.codec import encode_png

logger = logging.getLogger(__name__)

ArchiveEntry = Tuple[str, np.ndarray]

DEFAULT_ARCHIVE_NAME = "all_images.zip"


def numbered_names(count: int, prefix: str = "split_image") -> List[str]:
    """``prefix_1.png`` ... ``prefix_<count>.png``."""
    return [f"{prefix}_{i + 1}.png" for i in range(count)]


def png_name(name: str) -> str:
    """Force a ``.png`` extension and strip directory components."""
    stem = Path(name.replace("\\", "/")).name or "image"
    return f"{Path(stem).stem or 'image'}.png"


def unique_name(name: str, used: Set[str]) -> str:
    """
    Return ``name`` or ``name_2``, ``name_3``... whichever is not in ``used``.

    The returned name is added to ``used``.
    """
    candidate = name
    stem, suffix = Path(name).stem, Path(name).suffix
    counter = 2
    while candidate.lower() in used:
        candidate = f"{stem}_{counter}{suffix}"
        counter += 1
    used.add(candidate.lower())
    return candidate


def build_archive(
    entries: Iterable[ArchiveEntry],
    compress_level: int = 6,
) -> bytes:
    """
    Bundle images into a ZIP archive.

    Args:
        entries: (name, image) pairs in archive order
        compress_level: PNG compression level

    Returns:
        ZIP file bytes
    """
    buffer = io.BytesIO()
    used: Set[str] = set()
    count = 0

    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, image in entries:
            arcname = unique_name(png_name(name), used)
            zf.writestr(arcname, encode_png(image, compress_level=compress_level))
            count += 1

    logger.info(f"Packed {count} image(s) into archive")
    return buffer.getvalue()


def write_archive(
    output_path: Union[str, Path],
    entries: Sequence[ArchiveEntry],
    compress_level: int = 6,
) -> Path:
    """
    Write a ZIP archive to disk.

    Args:
        output_path: Target file, or a directory to place ``all_images.zip`` in

    Returns:
        Path to the created archive
    """
    output_path = Path(output_path)
    if output_path.is_dir():
        output_path = output_path / DEFAULT_ARCHIVE_NAME
    elif output_path.suffix.lower() != ".zip":
        output_path = output_path.with_suffix(".zip")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(build_archive(entries, compress_level=compress_level))

    logger.info(f"Exported {len(entries)} image(s) to {output_path}")
    return output_path
