"""
Document conversion API endpoints.

Uploads are stored, converted through the task tracker, and served back
by task id until they are cancelled or reclaimed.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse
from loguru import logger

from filedesk.api.dependencies import (
    error_response,
    get_app_settings,
    get_storage,
    get_tracker,
    save_upload,
)
from filedesk.config import Settings
from filedesk.exceptions import ConversionError, LookupFailedError, ValidationError
from filedesk.models.response import ConvertResponse, FormatsResponse, MessageResponse
from filedesk.services.formats import get_supported_formats
from filedesk.services.storage import StorageManager
from filedesk.services.tracker import ConversionTaskTracker
from filedesk.utils.validation import ValidationUtils

router = APIRouter()

PASSTHROUGH_MESSAGE = (
    "No converter is available for this format pair; "
    "the file was copied without conversion"
)


@router.get("/formats", response_model=FormatsResponse)
async def list_supported_formats() -> FormatsResponse:
    """List source formats and the targets each converts to."""
    return FormatsResponse.model_validate(get_supported_formats())


@router.post("/convert", response_model=ConvertResponse)
async def convert_file(
    file: UploadFile | None = File(None),
    target_format: str | None = Form(None, alias="targetFormat"),
    settings: Settings = Depends(get_app_settings),
    storage: StorageManager = Depends(get_storage),
    tracker: ConversionTaskTracker = Depends(get_tracker),
) -> ConvertResponse | JSONResponse:
    """
    Upload a document and convert it to ``targetFormat``.

    Returns:
        ConvertResponse with the task id to download or cancel by
    """
    if file is None or not file.filename:
        return error_response(400, "No file uploaded")
    try:
        target = ValidationUtils.validate_format_token(target_format)
        source_path = await save_upload(file, storage, settings, max_size=settings.MAX_DOCUMENT_SIZE)
    except ValidationError as exc:
        return error_response(400, exc.message)

    try:
        result = await run_in_threadpool(tracker.submit, source_path, target, file.filename)
    except ValidationError as exc:
        storage.delete(source_path)
        return error_response(400, exc.message)
    except ConversionError as exc:
        logger.error(f"Conversion of {file.filename!r} failed: {exc}")
        return error_response(500, f"File conversion failed: {exc.message}")

    return ConvertResponse(
        message=PASSTHROUGH_MESSAGE if result.passthrough else "File converted successfully",
        file_id=result.task_id,
        original_name=result.original_name,
        extension=result.extension,
        passthrough=result.passthrough,
    )


@router.get("/download/{file_id}", response_model=None)
async def download_file(
    file_id: str,
    tracker: ConversionTaskTracker = Depends(get_tracker),
) -> FileResponse | JSONResponse:
    """Stream a converted artifact as an attachment."""
    try:
        artifact = tracker.resolve(file_id)
    except LookupFailedError as exc:
        logger.info(f"Download of {file_id} refused: {exc.error_type}")
        return error_response(404, f"File download failed: {exc.message}")

    return FileResponse(
        artifact.output_path,
        media_type=artifact.mime_type,
        filename=artifact.download_name,
    )


@router.post("/cancel/{file_id}", response_model=MessageResponse)
async def cancel_conversion(
    file_id: str,
    tracker: ConversionTaskTracker = Depends(get_tracker),
) -> MessageResponse | JSONResponse:
    """Cancel a conversion and delete its files."""
    cancelled = await run_in_threadpool(tracker.cancel, file_id)
    if not cancelled:
        return error_response(404, "Conversion task to cancel was not found")
    return MessageResponse(message="File conversion cancelled")
