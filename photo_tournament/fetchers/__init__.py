"""
Photo fetcher implementations.

Available implementations:
- DirectoryPhotoFetcher: Lists image files from a directory ordered by modification time
"""

from .directory_fetcher import DirectoryPhotoFetcher

__all__ = ["DirectoryPhotoFetcher"]
