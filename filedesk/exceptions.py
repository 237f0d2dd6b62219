"""
Base exception classes for the filedesk conversion service.

Every error raised by the services carries a machine-readable
``error_type`` and a ``details`` dict next to its human-readable message.
"""

from typing import Any


class BaseServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, error_type: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}


class ValidationError(BaseServiceError):
    """Raised when a request is rejected before any task is created."""

    def __init__(self, message: str, error_type: str = "VALIDATION_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message, error_type, details)


class LookupFailedError(BaseServiceError):
    """Base class for task and artifact lookup failures."""


class TaskNotFoundError(LookupFailedError):
    """Raised when a task id is unknown."""

    def __init__(self, task_id: str):
        super().__init__(
            "File does not exist or has expired",
            ErrorTypes.NOT_FOUND,
            {"task_id": task_id}
        )


class TaskNotReadyError(LookupFailedError):
    """Raised when a task exists but has not completed."""

    def __init__(self, task_id: str, status: str):
        super().__init__(
            "File conversion has not completed",
            ErrorTypes.NOT_READY,
            {"task_id": task_id, "status": status}
        )


class MissingArtifactError(LookupFailedError):
    """Raised when a completed task's output is no longer on disk."""

    def __init__(self, task_id: str, output_path: str):
        super().__init__(
            "Converted file has been deleted",
            ErrorTypes.MISSING_ARTIFACT,
            {"task_id": task_id, "file_path": output_path}
        )


class ConversionError(BaseServiceError):
    """Raised when a converter routine fails or produces no output."""

    def __init__(self, message: str, error_type: str = "CONVERSION_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message, error_type, details)


class RenderTimeoutError(ConversionError):
    """Raised when document rendering exceeds its time budget."""

    def __init__(self, timeout_seconds: int):
        super().__init__(
            f"Document rendering timed out after {timeout_seconds} seconds",
            ErrorTypes.TIMEOUT_ERROR,
            {"timeout_seconds": timeout_seconds}
        )


class StorageError(BaseServiceError):
    """Filesystem failure in the storage directory; logged during cleanup and cancellation."""

    def __init__(self, message: str, file_path: str):
        super().__init__(message, ErrorTypes.FILE_ERROR, {"file_path": file_path})


# Common error types for consistency
class ErrorTypes:
    """Common error type constants."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NOT_READY = "NOT_READY"
    MISSING_ARTIFACT = "MISSING_ARTIFACT"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    FILE_ERROR = "FILE_ERROR"
    INVALID_EXTENSION = "INVALID_EXTENSION"
    INVALID_FORMAT = "INVALID_FORMAT"
    UNSUPPORTED_PAIR = "UNSUPPORTED_PAIR"
    FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
    MISSING_FIELD = "MISSING_FIELD"
    NO_OUTPUT = "NO_OUTPUT"
