"""
Filesystem helpers for the storage directory.

Paths handed to these helpers are checked against traversal and system
locations before anything is created or copied.
"""

import shutil
from pathlib import Path

import psutil
from loguru import logger

_SYSTEM_PREFIXES = ("/etc/", "/sys/", "/proc/", "/dev/")


def ensure_directory(path: str | Path) -> Path:
    """
    Create ``path`` (and parents) if it does not exist yet.

    Returns:
        The directory path

    Raises:
        OSError: If the directory cannot be created
        ValueError: If the path is unsafe
    """
    path = Path(path)
    _validate_path_safety(path)

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error(f"Cannot create storage directory {path}: {exc}")
        raise
    logger.debug(f"Storage directory ready: {path}")
    return path


def safe_copy_file(src: str | Path, dst: str | Path, overwrite: bool = False) -> Path:
    """
    Copy file contents byte for byte; metadata is not carried over.

    Args:
        src: Existing source file
        dst: Destination path; its directory must already exist
        overwrite: Replace an existing destination

    Returns:
        The destination path

    Raises:
        OSError: If the copy fails
        ValueError: If a path is unsafe, the source is missing, or the
            destination exists and ``overwrite`` is False
    """
    src, dst = Path(src), Path(dst)
    for candidate in (src, dst):
        _validate_path_safety(candidate)

    if not src.is_file():
        raise ValueError(f"Source file does not exist: {src}")
    if dst.exists() and not overwrite:
        raise ValueError(f"Destination already exists: {dst}")

    try:
        shutil.copyfile(src, dst)
    except OSError as exc:
        logger.error(f"Copy {src.name} -> {dst.name} failed: {exc}")
        raise
    return dst


def ensure_sufficient_disk_space(path: str | Path, required_mb: int) -> None:
    """
    Check that the filesystem holding ``path`` has room for ``required_mb``.

    Raises:
        OSError: If free space is below the requirement
    """
    usage = psutil.disk_usage(str(path))
    free_mb = usage.free / (1024 * 1024)
    if free_mb < required_mb:
        raise OSError(
            f"Only {free_mb:.0f} MB free at {path}, {required_mb} MB required"
        )


def _validate_path_safety(path: Path) -> None:
    """
    Reject traversal components and paths under system directories.

    Raises:
        ValueError: If path is unsafe
    """
    if ".." in path.parts:
        raise ValueError(f"Path traversal detected: {path}")

    try:
        resolved = str(path.resolve()).lower() + "/"
    except OSError as exc:
        raise ValueError(f"Invalid path: {path}") from exc

    if resolved.startswith(_SYSTEM_PREFIXES):
        raise ValueError(f"Access to system directory not allowed: {path}")
