"""
FastAPI dependencies and upload handling shared by the routers.
"""

from pathlib import Path

from fastapi import Request, UploadFile
from fastapi.responses import JSONResponse
from loguru import logger

from filedesk.config import Settings
from filedesk.exceptions import ErrorTypes, StorageError, ValidationError
from filedesk.models.response import ErrorResponse
from filedesk.services.images import ImageService
from filedesk.services.storage import StorageManager
from filedesk.services.tracker import ConversionTaskTracker
from filedesk.utils.fs import ensure_sufficient_disk_space
from filedesk.utils.naming import get_extension
from filedesk.utils.validation import ValidationUtils

UPLOAD_CHUNK_SIZE = 1024 * 1024


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageManager:
    return request.app.state.storage


def get_tracker(request: Request) -> ConversionTaskTracker:
    return request.app.state.tracker


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


async def save_upload(
    upload: UploadFile | None,
    storage: StorageManager,
    settings: Settings,
    max_size: int | None = None,
) -> Path:
    """
    Stream an upload into storage under a generated name.

    The stored name keeps the upload's extension. A partial file is removed
    when the size limit is exceeded.

    Args:
        upload: Uploaded file, or None if the field was missing
        storage: Destination storage
        settings: Application settings (allowed extensions, size limit)
        max_size: Byte limit; defaults to ``MAX_UPLOAD_SIZE``

    Returns:
        Path of the stored file

    Raises:
        ValidationError: Missing file, disallowed extension or too large
        StorageError: Not enough free disk space for the upload
    """
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded", ErrorTypes.MISSING_FIELD)

    extension = ValidationUtils.validate_extension(
        get_extension(upload.filename), settings.ALLOWED_UPLOAD_EXTENSIONS
    )
    limit = min(max_size or settings.MAX_UPLOAD_SIZE, settings.MAX_UPLOAD_SIZE)

    storage.ensure_ready()
    try:
        ensure_sufficient_disk_space(storage.directory, required_mb=max(1, limit // (1024 * 1024)))
    except OSError as exc:
        raise StorageError(str(exc), str(storage.directory)) from exc

    destination = storage.new_path(extension)
    written = 0
    try:
        with open(destination, "wb") as handle:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                written += len(chunk)
                ValidationUtils.validate_file_size(written, limit)
                handle.write(chunk)
    except (ValidationError, OSError):
        storage.delete(destination)
        raise
    finally:
        await upload.close()

    logger.info(f"Saved upload {upload.filename!r} as {destination.name} ({written} bytes)")
    return destination


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """JSON error body in the ``{message, ...}`` shape clients expect."""
    body = ErrorResponse(message=message, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True)
    )
