"""
Shared validation utilities for the filedesk conversion service.

These helpers raise ``ValidationError`` so callers can reject requests
before any task is created.
"""

import re

from filedesk.exceptions import ErrorTypes, ValidationError

_FORMAT_TOKEN = re.compile(r"^[a-z0-9]{1,10}$")


class ValidationUtils:
    """Shared validation utilities for common validation patterns."""

    @staticmethod
    def validate_format_token(format_str: str | None) -> str:
        """
        Validate a target format token.

        Args:
            format_str: Format token, e.g. ``pdf`` or ``.PDF``

        Returns:
            Lower-cased token without a leading dot

        Raises:
            ValidationError: If the token is missing or malformed
        """
        if not format_str or not format_str.strip():
            raise ValidationError("Missing target format", ErrorTypes.MISSING_FIELD)
        token = format_str.strip().lower().lstrip(".")
        if not _FORMAT_TOKEN.match(token):
            raise ValidationError(
                f"Invalid target format: {format_str}",
                ErrorTypes.INVALID_FORMAT,
                {"target_format": format_str}
            )
        return token

    @staticmethod
    def validate_allowed_format(format_str: str, allowed_formats: list[str] | tuple[str, ...]) -> str:
        """
        Validate a format against an allow-list.

        Raises:
            ValidationError: If format is not allowed
        """
        normalized = (format_str or "").strip().lower()
        if normalized not in allowed_formats:
            raise ValidationError(
                f"Unsupported target format: {format_str}. Allowed: {list(allowed_formats)}",
                ErrorTypes.INVALID_FORMAT,
                {"target_format": format_str, "allowed": list(allowed_formats)}
            )
        return normalized

    @staticmethod
    def validate_percentage(value: int, field_name: str) -> int:
        """
        Validate an integer percentage in 1-100.

        Raises:
            ValidationError: If value is out of range
        """
        if not 1 <= value <= 100:
            raise ValidationError(
                f"{field_name} must be between 1 and 100",
                details={field_name: value}
            )
        return value

    @staticmethod
    def validate_extension(extension: str, allowed_extensions: list[str]) -> str:
        """
        Validate an upload extension.

        Raises:
            ValidationError: If the extension is not allowed
        """
        extension = extension.lower()
        if extension not in allowed_extensions:
            raise ValidationError(
                f"Unsupported file type: {extension or '(none)'}",
                ErrorTypes.INVALID_EXTENSION,
                {"extension": extension}
            )
        return extension

    @staticmethod
    def validate_file_size(size: int, max_size: int) -> int:
        """
        Validate file size.

        Raises:
            ValidationError: If file size exceeds the limit
        """
        if size > max_size:
            raise ValidationError(
                f"File size exceeds limit, maximum supported is {_format_limit(max_size)}",
                ErrorTypes.FILE_SIZE_EXCEEDED,
                {"size": size, "max_size": max_size}
            )
        return size


def _format_limit(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size // (1024 * 1024)}MB"
    return f"{size} bytes"
