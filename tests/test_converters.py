"""
Test the converter registry, built-in routines and format catalog.
"""

import codecs

import pytest

from filedesk.exceptions import ErrorTypes, ValidationError
from filedesk.services.converters import (
    PASSTHROUGH,
    ConverterRegistry,
    ConverterRoutine,
    build_default_registry,
    decode_text,
    make_text_to_pdf,
    passthrough_copy,
)
from filedesk.services.formats import (
    DEFAULT_MIME_TYPE,
    DocumentFormat,
    get_mime_type,
    get_supported_formats,
)
from filedesk.services.renderers import DocumentRenderer, ReportLabRenderer


class RecordingRenderer(DocumentRenderer):
    """Renderer stub capturing its input."""

    name = "recording"

    def __init__(self):
        self.calls = []

    def render_to_document(self, text, title="Document"):
        self.calls.append((text, title))
        return b"%PDF-1.4 stub"


class TestDecodeText:
    """Test byte order mark detection."""

    def test_plain_utf8(self):
        assert decode_text("naïve café".encode("utf-8")) == "naïve café"

    def test_utf8_bom_stripped(self):
        assert decode_text(codecs.BOM_UTF8 + "hello".encode("utf-8")) == "hello"

    def test_utf16_le(self):
        data = codecs.BOM_UTF16_LE + "héllo".encode("utf-16-le")
        assert decode_text(data) == "héllo"

    def test_utf16_be(self):
        data = codecs.BOM_UTF16_BE + "héllo".encode("utf-16-be")
        assert decode_text(data) == "héllo"

    def test_invalid_bytes_replaced(self):
        """Undecodable bytes do not fail the conversion."""
        assert decode_text(b"ok \xc3\x28") == "ok �("


class TestRoutines:
    """Test the built-in routines."""

    def test_passthrough_copy_is_byte_identical(self, tmp_path):
        source = tmp_path / "in.docx"
        target = tmp_path / "out.pdf"
        payload = bytes(range(256)) * 4
        source.write_bytes(payload)

        passthrough_copy(source, target)

        assert target.read_bytes() == payload

    def test_passthrough_flagged(self):
        assert PASSTHROUGH.passthrough is True

    def test_text_to_pdf_uses_renderer(self, tmp_path):
        """The routine decodes the text and writes what the renderer returns."""
        renderer = RecordingRenderer()
        routine = make_text_to_pdf(renderer)
        source = tmp_path / "letter.txt"
        target = tmp_path / "letter.pdf"
        source.write_bytes(codecs.BOM_UTF16_LE + "Dear reader".encode("utf-16-le"))

        routine(source, target)

        assert renderer.calls == [("Dear reader", "letter")]
        assert target.read_bytes() == b"%PDF-1.4 stub"
        assert routine.name == "txt-to-pdf:recording"
        assert routine.passthrough is False


class TestConverterRegistry:
    """Test converter selection."""

    def test_registered_pair_selected(self):
        registry = build_default_registry(ReportLabRenderer())

        routine = registry.select(".txt", "pdf")

        assert routine.name == "txt-to-pdf:reportlab"
        assert registry.supports(DocumentFormat.TXT, DocumentFormat.PDF)

    @pytest.mark.parametrize("source,target", [
        (".docx", "pdf"),
        (".pdf", "docx"),
        (".txt", "docx"),
        (".xyz", "pdf"),
        ("", "txt"),
        (".txt", "abc"),
    ])
    def test_unknown_pairs_fall_back(self, source, target):
        """Pairs without a routine, known formats or not, fall back to passthrough."""
        registry = build_default_registry(ReportLabRenderer())

        assert registry.select(source, target) is PASSTHROUGH

    def test_strict_registry_rejects(self):
        registry = build_default_registry(ReportLabRenderer(), allow_passthrough=False)

        with pytest.raises(ValidationError) as exc_info:
            registry.select(".docx", "pdf")

        assert exc_info.value.error_type == ErrorTypes.UNSUPPORTED_PAIR
        assert registry.select(".txt", "pdf").passthrough is False

    def test_register_custom_routine(self):
        registry = ConverterRegistry()
        routine = ConverterRoutine("csv-to-xlsx", lambda i, o: None)

        registry.register(DocumentFormat.CSV, DocumentFormat.XLSX, routine)

        assert registry.select(".CSV", "xlsx") is routine
        assert registry.supports(DocumentFormat.CSV, DocumentFormat.XLSX)
        assert not registry.supports(DocumentFormat.XLSX, DocumentFormat.CSV)


class TestFormats:
    """Test the format catalog and MIME table."""

    @pytest.mark.parametrize("extension,expected", [
        (".pdf", "application/pdf"),
        ("pdf", "application/pdf"),
        (".TXT", "text/plain"),
        (".docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        (".xyz", DEFAULT_MIME_TYPE),
        ("", DEFAULT_MIME_TYPE),
    ])
    def test_mime_lookup(self, extension, expected):
        assert get_mime_type(extension) == expected

    def test_parse(self):
        assert DocumentFormat.parse(".DOCX") is DocumentFormat.DOCX
        assert DocumentFormat.parse("xyz") is None

    def test_catalog_shape(self):
        """Every catalog entry lists its targets with display names."""
        catalog = get_supported_formats()["formats"]
        by_extension = {entry["extension"]: entry for entry in catalog}

        assert "pdf" in by_extension
        pdf_targets = [t["extension"] for t in by_extension["pdf"]["targetFormats"]]
        assert "docx" in pdf_targets
        for entry in catalog:
            assert entry["name"]
            for target in entry["targetFormats"]:
                assert set(target) == {"extension", "name"}
