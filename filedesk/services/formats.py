"""
Supported document formats and the extension to MIME type table.
"""

from enum import Enum


class DocumentFormat(str, Enum):
    """Document formats the conversion service knows by name."""

    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    PPT = "ppt"
    PPTX = "pptx"
    TXT = "txt"
    CSV = "csv"

    @classmethod
    def parse(cls, token: str) -> "DocumentFormat | None":
        """Map ``"pdf"``, ``".PDF"`` etc. to a member, or ``None``."""
        try:
            return cls(token.lower().lstrip("."))
        except ValueError:
            return None


FORMAT_NAMES: dict[DocumentFormat, str] = {
    DocumentFormat.PDF: "PDF",
    DocumentFormat.DOC: "Word (DOC)",
    DocumentFormat.DOCX: "Word (DOCX)",
    DocumentFormat.XLS: "Excel (XLS)",
    DocumentFormat.XLSX: "Excel (XLSX)",
    DocumentFormat.PPT: "PowerPoint (PPT)",
    DocumentFormat.PPTX: "PowerPoint (PPTX)",
    DocumentFormat.TXT: "Text (TXT)",
    DocumentFormat.CSV: "CSV",
}

# Source format -> targets offered to clients, in display order
SUPPORTED_CONVERSIONS: dict[DocumentFormat, list[DocumentFormat]] = {
    DocumentFormat.PDF: [DocumentFormat.DOCX, DocumentFormat.TXT],
    DocumentFormat.DOCX: [DocumentFormat.PDF, DocumentFormat.TXT],
    DocumentFormat.DOC: [DocumentFormat.PDF, DocumentFormat.DOCX, DocumentFormat.TXT],
    DocumentFormat.XLSX: [DocumentFormat.PDF, DocumentFormat.CSV],
    DocumentFormat.XLS: [DocumentFormat.PDF, DocumentFormat.XLSX, DocumentFormat.CSV],
    DocumentFormat.PPTX: [DocumentFormat.PDF],
    DocumentFormat.PPT: [DocumentFormat.PDF, DocumentFormat.PPTX],
    DocumentFormat.TXT: [DocumentFormat.PDF, DocumentFormat.DOCX],
}

MIME_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".json": "application/json",
    ".xml": "application/xml",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(extension: str) -> str:
    """MIME type for an extension (with or without dot); unknown maps to binary."""
    extension = extension.lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def get_supported_formats() -> dict:
    """Catalog of convertible pairs in the wire shape of ``/api/file/formats``."""
    return {
        "formats": [
            {
                "extension": source.value,
                "name": FORMAT_NAMES[source],
                "targetFormats": [
                    {"extension": target.value, "name": FORMAT_NAMES[target]}
                    for target in targets
                ],
            }
            for source, targets in SUPPORTED_CONVERSIONS.items()
        ]
    }
