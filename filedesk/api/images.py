"""
Image compression and format conversion API endpoints.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from filedesk.api.dependencies import (
    error_response,
    get_app_settings,
    get_image_service,
    get_storage,
    save_upload,
)
from filedesk.config import Settings
from filedesk.exceptions import BaseServiceError, ValidationError
from filedesk.models.request import IMAGE_TARGET_FORMATS, ImageCompressOptions
from filedesk.models.response import CompressResponse, FormatConvertResponse
from filedesk.services.formats import get_mime_type
from filedesk.services.images import ImageService
from filedesk.services.storage import StorageManager
from filedesk.utils.naming import is_generated_name
from filedesk.utils.validation import ValidationUtils

router = APIRouter()


def _image_url(image_id: str) -> str:
    return f"/api/image/download/{image_id}"


@router.post("/compress", response_model=CompressResponse)
async def compress_image(
    image: UploadFile | None = File(None),
    quality: str | None = Form(None),
    scale: str | None = Form(None),
    settings: Settings = Depends(get_app_settings),
    storage: StorageManager = Depends(get_storage),
    image_service: ImageService = Depends(get_image_service),
) -> CompressResponse | JSONResponse:
    """
    Upload an image and re-encode it as JPEG.

    ``quality`` and ``scale`` are percentages; the compression ratio in the
    response is negative when the result is larger than the upload.
    """
    if image is None or not image.filename:
        return error_response(400, "No image uploaded", success=False)
    try:
        options = ImageCompressOptions(
            quality=quality if quality not in (None, "") else settings.DEFAULT_IMAGE_QUALITY,
            scale=scale if scale not in (None, "") else settings.DEFAULT_IMAGE_SCALE,
        )
    except PydanticValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors())
        return error_response(
            400,
            f"Invalid compression options: {fields} must be integers between 1 and 100",
            success=False,
        )

    try:
        input_path = await save_upload(image, storage, settings)
    except ValidationError as exc:
        return error_response(400, exc.message, success=False)

    try:
        result = await run_in_threadpool(
            image_service.compress_image, input_path, options.quality, options.scale
        )
    except BaseServiceError as exc:
        logger.error(f"Image compression failed: {exc}")
        return error_response(500, "Image compression failed", success=False, error=exc.message)

    return CompressResponse(
        message="Image compressed successfully",
        original_size=result.original_size,
        compressed_size=result.compressed_size,
        compression_ratio=result.compression_ratio,
        image_url=_image_url(result.image_id),
    )


@router.post("/format-convert", response_model=FormatConvertResponse)
async def convert_image_format(
    image: UploadFile | None = File(None),
    target_format: str | None = Form(None, alias="targetFormat"),
    settings: Settings = Depends(get_app_settings),
    storage: StorageManager = Depends(get_storage),
    image_service: ImageService = Depends(get_image_service),
) -> FormatConvertResponse | JSONResponse:
    """Upload an image and re-encode it in one of the allowed formats."""
    if image is None or not image.filename:
        return error_response(400, "No image uploaded", success=False)
    if not target_format:
        return error_response(400, "Target format not specified", success=False)
    try:
        target = ValidationUtils.validate_allowed_format(target_format, IMAGE_TARGET_FORMATS)
        input_path = await save_upload(image, storage, settings)
    except ValidationError as exc:
        return error_response(400, exc.message, success=False)

    try:
        result = await run_in_threadpool(image_service.convert_image_format, input_path, target)
    except BaseServiceError as exc:
        logger.error(f"Image format conversion failed: {exc}")
        return error_response(500, "Image format conversion failed", success=False, error=exc.message)

    return FormatConvertResponse(
        message="Image format converted successfully",
        original_format=result.original_format,
        converted_format=result.converted_format,
        original_size=result.original_size,
        converted_size=result.converted_size,
        image_url=_image_url(result.image_id),
    )


@router.get("/download/{image_id}", response_model=None)
async def download_image(
    image_id: str,
    storage: StorageManager = Depends(get_storage),
) -> FileResponse | JSONResponse:
    """Stream a processed image."""
    if not is_generated_name(image_id):
        return error_response(404, "Image does not exist")
    image_path = storage.path_for(image_id)
    if not storage.exists(image_path):
        return error_response(404, "Image does not exist")

    return FileResponse(image_path, media_type=get_mime_type(image_path.suffix))
