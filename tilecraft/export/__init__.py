"""Archive Export"""

from .archive import (
    ArchiveEntry,
    DEFAULT_ARCHIVE_NAME,
    build_archive,
    write_archive,
    numbered_names,
    png_name,
    unique_name,
)

__all__ = [
    "ArchiveEntry",
    "DEFAULT_ARCHIVE_NAME",
    "build_archive",
    "write_archive",
    "numbered_names",
    "png_name",
    "unique_name",
]
