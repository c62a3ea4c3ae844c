"""
Directory photo fetcher implementation.

Lists image files in a directory, oldest first.
"""

from collections.abc import Iterable
from pathlib import Path

from typing_extensions import override

from ..interfaces import PhotoFetcher, PhotoSource
from ..logging_config import get_logger

DEFAULT_EXTENSIONS = (".jpg", ".jpeg", ".png")


class DirectoryPhotoFetcher(PhotoFetcher):
    """
    Photo fetcher that reads a single directory (not recursive).

    Treats photos as opaque files - only stores paths and modification times.
    """

    def __init__(self, photos_dir: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        """
        Initialize directory photo fetcher.

        Args:
            photos_dir: Directory containing photo files
            extensions: File extensions to include (case-insensitive)
        """
        self.photos_dir: Path = Path(photos_dir)
        self.extensions: tuple[str, ...] = tuple(ext.lower() for ext in extensions)

        self.logger = get_logger("directory_fetcher")

        if not self.photos_dir.exists():
            raise FileNotFoundError(f"Photos directory does not exist: {self.photos_dir}")

        if not self.photos_dir.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {self.photos_dir}")

    @override
    def list_photos(self) -> list[PhotoSource]:
        """Return matching photo files sorted by modification time, oldest first."""
        sources = list[PhotoSource]()
        for path in self.photos_dir.iterdir():
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            sources.append(PhotoSource(path=str(path), created_at=path.stat().st_mtime))

        # Name breaks ties between files written in the same instant
        sources.sort(key=lambda s: (s.created_at, s.path))

        if not sources:
            self.logger.warning(
                f"No files with extensions {self.extensions} found in {self.photos_dir}"
            )
        else:
            self.logger.info(f"Found {len(sources)} photos in {self.photos_dir}")
        return sources
