"""
Services package for the filedesk conversion service.

This package contains the task tracker and its collaborators.
"""

from .converters import (
    PASSTHROUGH,
    ConverterRegistry,
    ConverterRoutine,
    build_default_registry,
    decode_text,
)
from .formats import DocumentFormat, get_mime_type, get_supported_formats
from .images import ImageProcessingError, ImageService
from .reclamation import ReclamationLoop
from .renderers import BrowserRenderer, DocumentRenderer, ReportLabRenderer, get_renderer
from .storage import StorageManager
from .tracker import ConversionTaskTracker, TaskStore

__all__ = [
    # Tracker
    "ConversionTaskTracker",
    "TaskStore",
    "ReclamationLoop",
    # Storage
    "StorageManager",
    # Converters
    "ConverterRegistry",
    "ConverterRoutine",
    "PASSTHROUGH",
    "build_default_registry",
    "decode_text",
    # Renderers
    "DocumentRenderer",
    "ReportLabRenderer",
    "BrowserRenderer",
    "get_renderer",
    # Formats
    "DocumentFormat",
    "get_mime_type",
    "get_supported_formats",
    # Images
    "ImageService",
    "ImageProcessingError",
]
