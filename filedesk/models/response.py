"""
Response models for the filedesk API.

Field names follow the camelCase wire format the web client consumes;
Python attributes stay snake_case through aliases.
"""

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class TargetFormatEntry(_WireModel):
    """One conversion target for a source format."""

    extension: str
    name: str


class FormatEntry(_WireModel):
    """A source format and the targets it converts to."""

    extension: str
    name: str
    target_formats: list[TargetFormatEntry] = Field(default=[], alias="targetFormats")


class FormatsResponse(_WireModel):
    """Response model for the supported formats catalog."""

    formats: list[FormatEntry]


class ConvertResponse(_WireModel):
    """
    Response model for a document conversion.

    ``passthrough`` is true when no converter exists for the requested pair
    and the artifact is an unchanged copy of the upload.
    """

    message: str
    file_id: str = Field(..., alias="fileId")
    original_name: str = Field(..., alias="originalName")
    extension: str
    passthrough: bool = False


class MessageResponse(_WireModel):
    """Plain message response."""

    message: str


class CompressResponse(_WireModel):
    """Response model for image compression."""

    success: bool = True
    message: str
    original_size: int = Field(..., alias="originalSize")
    compressed_size: int = Field(..., alias="compressedSize")
    compression_ratio: int = Field(..., alias="compressionRatio")
    image_url: str = Field(..., alias="imageUrl")


class FormatConvertResponse(_WireModel):
    """Response model for image format conversion."""

    success: bool = True
    message: str
    original_format: str = Field(..., alias="originalFormat")
    converted_format: str = Field(..., alias="convertedFormat")
    original_size: int = Field(..., alias="originalSize")
    converted_size: int = Field(..., alias="convertedSize")
    image_url: str = Field(..., alias="imageUrl")


class ErrorResponse(_WireModel):
    """
    Response model for error responses.

    ``error`` carries the underlying error text for image operations, or a
    traceback when tracebacks are exposed.
    """

    success: bool | None = None
    message: str
    error: str | None = None
    request_id: str | None = Field(default=None, alias="requestId")
