"""
Configuration settings for the filedesk conversion service.

This module handles environment variables, application settings,
and configuration validation using Pydantic Settings.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden using environment variables
    with the same name (case-insensitive).
    """

    # Application settings
    APP_NAME: str = "filedesk"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 5002

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    ALLOWED_HOSTS: list[str] = ["localhost", "127.0.0.1"]

    # Logging settings
    LOG_LEVEL: str = "INFO"

    # Upload settings
    STORAGE_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # transport limit for any upload
    MAX_DOCUMENT_SIZE: int = 10 * 1024 * 1024  # policy limit for documents
    ALLOWED_UPLOAD_EXTENSIONS: list[str] = [
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt",
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tif", ".tiff",
        ".csv", ".json", ".xml",
    ]

    # Reclamation settings
    RETENTION_HOURS: int = 24
    CLEANUP_INTERVAL_SECONDS: int = 3600

    # Conversion settings
    ALLOW_PASSTHROUGH_FALLBACK: bool = True
    RENDER_BACKEND: str = "reportlab"
    BROWSER_PATH: str = "/usr/bin/chromium"
    RENDER_TIMEOUT: int = 60
    RENDER_UNICODE_FONT: str = "STSong-Light"  # reportlab CID font, or the name for RENDER_UNICODE_FONT_PATH
    RENDER_UNICODE_FONT_PATH: str | None = None  # optional TrueType file

    # Image settings
    DEFAULT_IMAGE_QUALITY: int = 70
    DEFAULT_IMAGE_SCALE: int = 100

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        allowed_envs = ["development", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("MAX_UPLOAD_SIZE", "MAX_DOCUMENT_SIZE")
    @classmethod
    def validate_size_limit(cls, v: int) -> int:
        """Validate upload size limits."""
        if v <= 0:
            raise ValueError("Size limits must be positive")
        if v > 500 * 1024 * 1024:  # 500MB
            raise ValueError("Size limits cannot exceed 500MB")
        return v

    @field_validator("ALLOWED_UPLOAD_EXTENSIONS")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        """Normalize extensions to lower case with a leading dot."""
        if not v:
            raise ValueError("At least one extension must be allowed")
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("RETENTION_HOURS", "CLEANUP_INTERVAL_SECONDS", "RENDER_TIMEOUT")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v

    @field_validator("RENDER_BACKEND")
    @classmethod
    def validate_render_backend(cls, v: str) -> str:
        """Validate document renderer backend."""
        allowed_backends = ["reportlab", "browser"]
        if v.lower() not in allowed_backends:
            raise ValueError(f"RENDER_BACKEND must be one of {allowed_backends}")
        return v.lower()

    @field_validator("DEFAULT_IMAGE_QUALITY", "DEFAULT_IMAGE_SCALE")
    @classmethod
    def validate_percentage(cls, v: int) -> int:
        """Validate image defaults are percentages."""
        if not 1 <= v <= 100:
            raise ValueError("Image defaults must be between 1 and 100")
        return v

    @property
    def retention_seconds(self) -> int:
        """Retention threshold for the reclamation sweep, in seconds."""
        return self.RETENTION_HOURS * 3600

    @property
    def expose_tracebacks(self) -> bool:
        """Whether error responses may carry tracebacks."""
        return self.DEBUG and self.ENVIRONMENT != "production"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Create settings instance
settings = Settings()


# Example production .env:
#   ENVIRONMENT=production
#   DEBUG=false
#   LOG_LEVEL=WARNING
#   STORAGE_DIR=/var/lib/filedesk/uploads
#   ALLOWED_ORIGINS=["https://your-domain.com"]
#   ALLOWED_HOSTS=["your-domain.com"]
