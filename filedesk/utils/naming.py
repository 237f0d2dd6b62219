"""
Unique file naming for uploads and conversion outputs.

Names are a random UUID4 token followed by an extension. The token alone
doubles as the conversion task id.
"""

import re
import uuid
from pathlib import Path

_STORED_NAME_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}(\.[A-Za-z0-9]{1,10})?$"
)


def generate_unique_filename(extension: str = "") -> str:
    """
    Generate a collision-free file name.

    Args:
        extension: Extension with or without the leading dot (may be empty)

    Returns:
        ``<uuid4><.extension>``
    """
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{uuid.uuid4()}{extension}"


def get_extension(filename: str | Path) -> str:
    """Lower-cased extension with the leading dot, or an empty string."""
    return Path(filename).suffix.lower()


def get_basename(filename: str | Path) -> str:
    """File name without directory and without its last extension."""
    return Path(filename).stem


def task_id_from_filename(filename: str | Path) -> str:
    """Task id encoded in a generated output name."""
    return Path(filename).stem


def is_generated_name(name: str) -> bool:
    """Whether ``name`` looks like a name produced by this module."""
    return bool(_STORED_NAME_PATTERN.match(name))
