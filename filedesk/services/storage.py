"""
Storage location manager.

A single directory holds uploaded sources and produced artifacts alike.
Deletions made on behalf of cleanup are best-effort: failures are logged
and reported through the return value, never raised.
"""

from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from filedesk.exceptions import StorageError, ValidationError
from filedesk.utils.fs import ensure_directory
from filedesk.utils.naming import generate_unique_filename


class StorageManager:
    """Manages the shared upload/output directory."""

    def __init__(self, directory: str | Path):
        """
        Initialize the storage manager.

        Args:
            directory: Storage directory; created by ``ensure_ready``
        """
        self.directory = Path(directory).resolve()

    def ensure_ready(self) -> Path:
        """Create the storage directory if needed."""
        return ensure_directory(self.directory)

    def path_for(self, name: str) -> Path:
        """
        Absolute path of a stored file.

        Raises:
            ValidationError: If ``name`` is not a bare file name
        """
        if not name or Path(name).name != name or name in (".", ".."):
            raise ValidationError(f"Invalid file name: {name!r}", details={"name": name})
        return self.directory / name

    def new_path(self, extension: str = "") -> Path:
        """Fresh collision-free path in the storage directory."""
        return self.directory / generate_unique_filename(extension)

    def contains(self, path: str | Path) -> bool:
        """Whether ``path`` lives directly in the storage directory."""
        return Path(path).resolve().parent == self.directory

    def exists(self, path: str | Path) -> bool:
        """Whether ``path`` is an existing regular file."""
        return Path(path).is_file()

    def delete(self, path: str | Path) -> bool:
        """
        Delete a file, swallowing filesystem errors.

        Returns:
            True if the file was removed, False if it was absent or removal failed
        """
        path = Path(path)
        try:
            path.unlink()
            logger.debug(f"Deleted file: {path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            error = StorageError(f"Failed to delete file: {exc}", str(path))
            logger.warning(f"{error.error_type}: {error} ({path})")
            return False

    def iter_files(self) -> Iterator[Path]:
        """
        Yield the regular files currently in the storage directory.

        Directory read errors are logged and end the iteration.
        """
        try:
            entries = list(self.directory.iterdir())
        except OSError as exc:
            error = StorageError(f"Failed to read storage directory: {exc}", str(self.directory))
            logger.error(f"{error.error_type}: {error}")
            return

        for entry in entries:
            if entry.is_file():
                yield entry

    def modified_time(self, path: str | Path) -> float | None:
        """Last-modified timestamp of ``path``, or None if it cannot be stat-ed."""
        try:
            return Path(path).stat().st_mtime
        except OSError as exc:
            error = StorageError(f"Failed to stat file: {exc}", str(path))
            logger.warning(f"{error.error_type}: {error}")
            return None

    def usage(self) -> dict[str, int]:
        """File count and total bytes in the storage directory."""
        files = 0
        total = 0
        for path in self.iter_files():
            try:
                total += path.stat().st_size
                files += 1
            except OSError:
                continue
        return {"files": files, "bytes": total}
