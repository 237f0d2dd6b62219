"""
Conversion task models for the filedesk conversion service.

This module defines Pydantic models for the tracked conversion task
and the values the task tracker hands back to its callers.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Enumeration of conversion task statuses."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ConversionTask(BaseModel):
    """Model representing one tracked conversion."""

    task_id: str = Field(..., description="Unique task identifier, also the output file stem")
    source_path: Path = Field(..., description="Uploaded input file")
    output_path: Path = Field(..., description="Where the artifact is written")
    status: TaskStatus = Field(default=TaskStatus.PROCESSING, description="Task status")

    # Display metadata
    original_name: str = Field(..., description="Original file name without extension")
    extension: str = Field(..., description="Target format")

    # Converter information
    converter: str = Field(default="", description="Name of the converter routine used")
    passthrough: bool = Field(default=False, description="Output is an unchanged copy of the input")

    # Timing
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Task creation time")
    completed_at: datetime | None = Field(None, description="Task completion time")

    error_message: str | None = Field(None, description="Error message if task failed")


class SubmitResult(BaseModel):
    """What ``submit`` returns to the caller."""

    task_id: str
    original_name: str
    extension: str
    passthrough: bool = False


class ResolvedArtifact(BaseModel):
    """A downloadable conversion artifact."""

    output_path: Path
    mime_type: str
    original_name: str
    extension: str

    @property
    def download_name(self) -> str:
        return f"{self.original_name}.{self.extension}"


class CompressionResult(BaseModel):
    """Result of an image compression."""

    image_id: str
    original_size: int = Field(..., ge=0)
    compressed_size: int = Field(..., ge=0)
    # May be negative when the re-encoded image is larger than the original
    compression_ratio: int


class FormatConversionResult(BaseModel):
    """Result of an image format conversion."""

    image_id: str
    original_format: str
    converted_format: str
    original_size: int = Field(..., ge=0)
    converted_size: int = Field(..., ge=0)
