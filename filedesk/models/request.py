"""
Request models for the filedesk API.

This module defines Pydantic models for API request validation.
"""

from pydantic import BaseModel, Field, field_validator

IMAGE_TARGET_FORMATS: tuple[str, ...] = ("jpeg", "png", "webp", "gif", "tiff")


class ImageCompressOptions(BaseModel):
    """
    Options for image compression.

    Both values are percentages.
    """

    quality: int = Field(default=70, description="Encoder quality (1-100)")
    scale: int = Field(default=100, description="Width scale in percent (1-100)")

    @field_validator("quality", "scale")
    @classmethod
    def validate_percentage(cls, v: int) -> int:
        """Validate percentage range."""
        if v < 1 or v > 100:
            raise ValueError("must be between 1 and 100")
        return v

