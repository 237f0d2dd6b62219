"""
Image compression and format conversion with Pillow.

These operations are synchronous and untracked: each call reads one
uploaded image and writes one new file into storage.
"""

import math
from pathlib import Path
from typing import Any

from loguru import logger
from PIL import Image, UnidentifiedImageError

from filedesk.exceptions import BaseServiceError
from filedesk.models.request import IMAGE_TARGET_FORMATS
from filedesk.models.task import CompressionResult, FormatConversionResult
from filedesk.services.storage import StorageManager
from filedesk.utils.validation import ValidationUtils


class ImageProcessingError(BaseServiceError):
    """Raised when an image cannot be read or encoded."""

    def __init__(self, message: str, image_file: str, details: dict[str, Any] | None = None):
        super().__init__(message, "IMAGE_PROCESSING_ERROR", details)
        self.image_file = image_file


# Format mappings for Pillow
PILLOW_FORMAT_MAP = {
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
    "tiff": "TIFF",
}

_PALETTE_SAFE_MODES = ("1", "L", "LA", "P", "RGB", "RGBA")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded towards +infinity."""
    return math.floor(value + 0.5)


def compression_ratio(original_size: int, new_size: int) -> int:
    """Percent saved; negative when the new file is larger."""
    if original_size <= 0:
        return 0
    return round_half_up((1 - new_size / original_size) * 100)


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Convert to RGB, filling transparency with white."""
    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _prepare_for_format(img: Image.Image, pillow_format: str) -> Image.Image:
    """Bring ``img`` into a mode the target encoder accepts."""
    if pillow_format == "JPEG":
        return _flatten_to_rgb(img)
    if pillow_format in ("PNG", "WEBP", "GIF") and img.mode not in _PALETTE_SAFE_MODES:
        return img.convert("RGBA" if "A" in img.getbands() else "RGB")
    return img


class ImageService:
    """Compression and format conversion of uploaded images."""

    def __init__(self, storage: StorageManager):
        self.storage = storage

    def compress_image(self, input_path: str | Path, quality: int = 70, scale: int = 100) -> CompressionResult:
        """
        Re-encode an image as JPEG, optionally scaled down.

        Only the width is computed from ``scale``; the height follows the
        aspect ratio. The reported ratio may be negative when re-encoding
        makes the file larger.

        Args:
            input_path: Uploaded image
            quality: JPEG quality (1-100)
            scale: Width scale in percent (1-100)

        Returns:
            CompressionResult with sizes and the new image id

        Raises:
            ValidationError: If options are out of range
            ImageProcessingError: If the image cannot be read or written
        """
        ValidationUtils.validate_percentage(quality, "quality")
        ValidationUtils.validate_percentage(scale, "scale")
        input_path = self._require_file(input_path)
        output_path = self.storage.new_path(".jpg")

        try:
            with Image.open(input_path) as img:
                img.load()
                if scale < 100:
                    new_width = max(1, round_half_up(img.width * scale / 100))
                    new_height = max(1, round_half_up(img.height * new_width / img.width))
                    img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)
                img = _flatten_to_rgb(img)
                img.save(output_path, format="JPEG", quality=quality)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            self.storage.delete(output_path)
            raise ImageProcessingError(
                f"Image compression failed: {exc}", str(input_path)
            ) from exc

        original_size = input_path.stat().st_size
        compressed_size = output_path.stat().st_size
        result = CompressionResult(
            image_id=output_path.name,
            original_size=original_size,
            compressed_size=compressed_size,
            compression_ratio=compression_ratio(original_size, compressed_size),
        )
        logger.info(
            f"Compressed {input_path.name}: {original_size} -> {compressed_size} bytes "
            f"({result.compression_ratio}%)"
        )
        return result

    def convert_image_format(self, input_path: str | Path, target_format: str) -> FormatConversionResult:
        """
        Re-encode an image in another format.

        The target is checked against the allow-list before any file is
        touched.

        Raises:
            ValidationError: If ``target_format`` is not allowed
            ImageProcessingError: If the image cannot be read or written
        """
        target = ValidationUtils.validate_allowed_format(target_format, IMAGE_TARGET_FORMATS)
        input_path = self._require_file(input_path)
        pillow_format = PILLOW_FORMAT_MAP[target]
        output_path = self.storage.new_path(target)

        try:
            with Image.open(input_path) as img:
                img.load()
                img = _prepare_for_format(img, pillow_format)
                img.save(output_path, format=pillow_format)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            self.storage.delete(output_path)
            raise ImageProcessingError(
                f"Image format conversion failed: {exc}", str(input_path)
            ) from exc

        result = FormatConversionResult(
            image_id=output_path.name,
            original_format=input_path.suffix.lstrip(".").lower(),
            converted_format=target,
            original_size=input_path.stat().st_size,
            converted_size=output_path.stat().st_size,
        )
        logger.info(f"Converted {input_path.name} to {target}: {output_path.name}")
        return result

    def _require_file(self, input_path: str | Path) -> Path:
        input_path = Path(input_path)
        if not input_path.is_file():
            raise ImageProcessingError("Image file does not exist", str(input_path))
        return input_path
