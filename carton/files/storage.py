"""Removal of on-disk file artifacts referenced by file records."""

from pathlib import Path
from typing import Protocol


class BlobDeleter(Protocol):
    """Filesystem capability the store needs when a file record is deleted."""

    def exists(self, path: str) -> bool:
        ...

    def remove(self, path: str) -> None:
        """Remove the artifact. Raises FileNotFoundError if it does not exist."""
        ...


class LocalBlobDeleter:
    """BlobDeleter for artifacts on the local filesystem."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def remove(self, path: str) -> None:
        """
        Delete a regular file. Raises FileNotFoundError if it does not exist and
        IsADirectoryError if path is a directory (directories are never removed).
        """
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if target.is_dir():
            raise IsADirectoryError(f"Not a file: {path}")
        target.unlink()
