"""
Converter capability registry.

Routines are keyed by a ``(DocumentFormat, DocumentFormat)`` pair. Pairs
without a registered routine fall back to a passthrough copy, which is
flagged on the returned routine so callers can tell the user no real
conversion happened.
"""

import codecs
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from filedesk.exceptions import ErrorTypes, ValidationError
from filedesk.services.formats import DocumentFormat
from filedesk.services.renderers import DocumentRenderer
from filedesk.utils.fs import safe_copy_file

ConversionPair = tuple[DocumentFormat, DocumentFormat]


@dataclass(frozen=True)
class ConverterRoutine:
    """A conversion routine: ``func(input_path, output_path)`` writes the artifact."""

    name: str
    func: Callable[[Path, Path], None]
    passthrough: bool = False

    def __call__(self, input_path: Path, output_path: Path) -> None:
        self.func(input_path, output_path)


def decode_text(data: bytes) -> str:
    """
    Decode uploaded text, honoring a byte order mark.

    UTF-16 (either byte order) and UTF-8 with BOM are recognized; anything
    else is read as UTF-8 with undecodable bytes replaced.
    """
    if data.startswith(codecs.BOM_UTF16_LE):
        return data[len(codecs.BOM_UTF16_LE):].decode("utf-16-le", errors="replace")
    if data.startswith(codecs.BOM_UTF16_BE):
        return data[len(codecs.BOM_UTF16_BE):].decode("utf-16-be", errors="replace")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    return data.decode("utf-8", errors="replace")


def passthrough_copy(input_path: Path, output_path: Path) -> None:
    """Placeholder routine: copy input bytes to the output unchanged."""
    safe_copy_file(input_path, output_path, overwrite=True)
    logger.info(f"Passthrough copy: {input_path.name} -> {output_path.name}")


PASSTHROUGH = ConverterRoutine(name="passthrough", func=passthrough_copy, passthrough=True)


def make_text_to_pdf(renderer: DocumentRenderer) -> ConverterRoutine:
    """Routine rendering a plain text file to PDF through ``renderer``."""

    def convert(input_path: Path, output_path: Path) -> None:
        text = decode_text(input_path.read_bytes())
        logger.debug(f"Read {len(text)} characters from {input_path.name}")
        document = renderer.render_to_document(text, title=input_path.stem)
        output_path.write_bytes(document)
        logger.info(f"Rendered PDF with {renderer.name}: {output_path.name} ({len(document)} bytes)")

    return ConverterRoutine(name=f"txt-to-pdf:{renderer.name}", func=convert)


class ConverterRegistry:
    """Dispatch table from format pairs to converter routines."""

    def __init__(self, allow_passthrough: bool = True):
        """
        Initialize an empty registry.

        Args:
            allow_passthrough: Fall back to a passthrough copy for unknown pairs
                instead of rejecting them
        """
        self.allow_passthrough = allow_passthrough
        self._routines: dict[ConversionPair, ConverterRoutine] = {}

    def register(self, source: DocumentFormat, target: DocumentFormat, routine: ConverterRoutine) -> None:
        """Register ``routine`` for ``source -> target``."""
        self._routines[(source, target)] = routine
        logger.debug(f"Registered converter {routine.name} for {source.value} -> {target.value}")

    def supports(self, source: DocumentFormat, target: DocumentFormat) -> bool:
        """Whether a real routine exists for the pair."""
        return (source, target) in self._routines

    def select(self, source_extension: str, target_format: str) -> ConverterRoutine:
        """
        Pick the routine for an extension/format pair.

        Args:
            source_extension: Source extension, e.g. ``.txt``
            target_format: Target format token, e.g. ``pdf``

        Returns:
            The registered routine, or ``PASSTHROUGH``

        Raises:
            ValidationError: If no routine exists and passthrough is disabled
        """
        source = DocumentFormat.parse(source_extension)
        target = DocumentFormat.parse(target_format)
        if source is not None and target is not None and self.supports(source, target):
            return self._routines[(source, target)]

        if not self.allow_passthrough:
            raise ValidationError(
                f"Conversion from {source_extension or '(none)'} to {target_format} is not supported",
                ErrorTypes.UNSUPPORTED_PAIR,
                {"source": source_extension, "target": target_format}
            )
        logger.warning(
            f"No converter for {source_extension or '(none)'} -> {target_format}, "
            "falling back to passthrough copy"
        )
        return PASSTHROUGH


def build_default_registry(renderer: DocumentRenderer, allow_passthrough: bool = True) -> ConverterRegistry:
    """Registry with every built-in routine registered."""
    registry = ConverterRegistry(allow_passthrough=allow_passthrough)
    registry.register(DocumentFormat.TXT, DocumentFormat.PDF, make_text_to_pdf(renderer))
    return registry
