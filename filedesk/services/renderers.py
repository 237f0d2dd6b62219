"""
Document renderers for text to PDF conversion.

A renderer turns plain text into the bytes of a paginated PDF. Two
backends are available:

- ``ReportLabRenderer`` lays the text out in-process with reportlab.
- ``BrowserRenderer`` prints an HTML page with headless Chromium. The
  browser process runs inside ``managed_process`` so it is killed and
  reaped on every exit path, including timeouts.
"""

import html
import subprocess
import tempfile
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path

from loguru import logger
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from filedesk.config import Settings
from filedesk.exceptions import ConversionError, RenderTimeoutError
from filedesk.utils.shell import managed_process

DEFAULT_UNICODE_FONT = "STSong-Light"


class DocumentRenderer(ABC):
    """Narrow interface to a text-to-document rendering capability."""

    name: str = "renderer"

    @abstractmethod
    def render_to_document(self, text: str, title: str = "Document") -> bytes:
        """Render ``text`` to PDF bytes."""


class ReportLabRenderer(DocumentRenderer):
    """
    Paginated A4 text layout with reportlab.

    Lines the standard ``font_name`` can encode (WinAnsi) are drawn with it;
    any other line is drawn with a Unicode font so CJK, Cyrillic and Greek
    text keeps its glyphs.
    """

    name = "reportlab"

    def __init__(
        self,
        font_name: str = "Helvetica",
        font_size: float = 11,
        line_spacing: float = 1.5,
        margin: float = 20 * mm,
        unicode_font_name: str = DEFAULT_UNICODE_FONT,
        unicode_font_path: str | None = None,
    ):
        self.font_name = font_name
        self.font_size = font_size
        self.leading = font_size * line_spacing
        self.margin = margin
        self.unicode_font_name = register_unicode_font(unicode_font_name, unicode_font_path)

    def render_to_document(self, text: str, title: str = "Document") -> bytes:
        buffer = BytesIO()
        page_width, page_height = A4
        usable_width = page_width - 2 * self.margin

        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(title)

        y = page_height - self.margin
        pages = 1
        for raw_line in text.expandtabs(4).splitlines() or [""]:
            font = self._font_for(raw_line)
            for line in self._wrap(raw_line, usable_width, font):
                if y - self.leading < self.margin:
                    pdf.showPage()
                    y = page_height - self.margin
                    pages += 1
                y -= self.leading
                pdf.setFont(font, self.font_size)
                pdf.drawString(self.margin, y, line)

        pdf.save()
        logger.debug(f"Rendered {len(text)} characters onto {pages} page(s)")
        return buffer.getvalue()

    def _font_for(self, line: str) -> str:
        """Standard font when the line is WinAnsi-encodable, the Unicode font otherwise."""
        try:
            line.encode("cp1252")
        except UnicodeEncodeError:
            return self.unicode_font_name
        return self.font_name

    def _wrap(self, line: str, width: float, font: str | None = None) -> list[str]:
        """Word-wrap ``line``; words wider than the page are broken by character."""
        font = font or self.font_name
        wrapped: list[str] = []
        for piece in simpleSplit(line, font, self.font_size, width) or [""]:
            if stringWidth(piece, font, self.font_size) <= width:
                wrapped.append(piece)
                continue
            current = ""
            for char in piece:
                if current and stringWidth(current + char, font, self.font_size) > width:
                    wrapped.append(current)
                    current = ""
                current += char
            wrapped.append(current)
        return wrapped


def register_unicode_font(font_name: str = DEFAULT_UNICODE_FONT, font_path: str | None = None) -> str:
    """
    Register the font used for text outside WinAnsi and return its name.

    A TrueType file is registered when ``font_path`` is given; otherwise
    ``font_name`` must be one of reportlab's built-in CID fonts.

    Raises:
        ConversionError: If the font cannot be loaded
    """
    if font_name in pdfmetrics.getRegisteredFontNames():
        return font_name
    try:
        if font_path:
            pdfmetrics.registerFont(TTFont(font_name, font_path))
        else:
            pdfmetrics.registerFont(UnicodeCIDFont(font_name))
    except Exception as exc:
        raise ConversionError(
            f"Cannot load Unicode font {font_name}: {exc}",
            details={"font_name": font_name, "font_path": font_path}
        ) from exc
    logger.debug(f"Registered Unicode font {font_name}")
    return font_name


class BrowserRenderer(DocumentRenderer):
    """Print-to-PDF through a headless Chromium process."""

    name = "browser"

    def __init__(self, browser_path: str, timeout: int = 60):
        """
        Initialize the browser renderer.

        Args:
            browser_path: Chromium/Chrome executable
            timeout: Seconds the browser may run before it is killed
        """
        self.browser_path = browser_path
        self.timeout = timeout

    def render_to_document(self, text: str, title: str = "Document") -> bytes:
        with tempfile.TemporaryDirectory(prefix="filedesk_render_") as temp_dir:
            work_dir = Path(temp_dir)
            html_file = work_dir / "document.html"
            pdf_file = work_dir / "document.pdf"
            html_file.write_text(build_html_document(text, title), encoding="utf-8")

            cmd = self._build_command(html_file, pdf_file, work_dir / "profile")
            with managed_process(cmd, cwd=work_dir) as process:
                try:
                    _, stderr = process.communicate(timeout=self.timeout)
                except subprocess.TimeoutExpired as exc:
                    logger.error(f"Browser rendering timed out after {self.timeout}s")
                    raise RenderTimeoutError(self.timeout) from exc

            if process.returncode != 0 or not pdf_file.is_file():
                raise ConversionError(
                    "Browser failed to render document",
                    details={"returncode": process.returncode, "stderr": (stderr or "")[:500]}
                )
            return pdf_file.read_bytes()

    def _build_command(self, html_file: Path, pdf_file: Path, profile_dir: Path) -> list[str]:
        """Build the headless print command."""
        return [
            self.browser_path,
            "--headless=new",
            "--disable-gpu",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--no-pdf-header-footer",
            f"--user-data-dir={profile_dir}",
            f"--print-to-pdf={pdf_file}",
            html_file.as_uri(),
        ]


def build_html_document(text: str, title: str = "Document") -> str:
    """Wrap escaped text in a printable A4 HTML page."""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{html.escape(title)}</title>
  <style>
    @page {{ size: A4; margin: 20mm; }}
    body {{
      font-family: Arial, "Microsoft YaHei", SimSun, "Noto Sans CJK SC", sans-serif;
      margin: 0;
      line-height: 1.5;
      white-space: pre-wrap;
      word-break: break-all;
    }}
  </style>
</head>
<body>{html.escape(text, quote=False)}</body>
</html>"""


def get_renderer(settings: Settings) -> DocumentRenderer:
    """Renderer selected by ``RENDER_BACKEND``."""
    if settings.RENDER_BACKEND == "browser":
        return BrowserRenderer(settings.BROWSER_PATH, timeout=settings.RENDER_TIMEOUT)
    return ReportLabRenderer(
        unicode_font_name=settings.RENDER_UNICODE_FONT,
        unicode_font_path=settings.RENDER_UNICODE_FONT_PATH,
    )
