"""
Utilities package for the filedesk conversion service.

This package contains utility modules for common operations.
"""

from .fs import (
    ensure_directory,
    ensure_sufficient_disk_space,
    safe_copy_file,
)
from .naming import (
    generate_unique_filename,
    get_basename,
    get_extension,
    is_generated_name,
    task_id_from_filename,
)
from .shell import (
    check_command_available,
    managed_process,
)
from .validation import ValidationUtils

__all__ = [
    "ensure_directory", "ensure_sufficient_disk_space", "safe_copy_file",
    "generate_unique_filename", "get_basename", "get_extension", "is_generated_name",
    "task_id_from_filename",
    "managed_process", "check_command_available",
    "ValidationUtils"
]
