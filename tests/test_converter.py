"""Integration tests for the Converter orchestrator."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from pypdf import PdfReader

from htmlpdf.assembler import PAGE_SIZES
from htmlpdf.converter import PDF_CONTENT_TYPE, Converter
from htmlpdf.errors import ConversionError, HtmlPdfError, StorageError
from htmlpdf.storage import LocalStorage, StoredObject

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SETTLEMENT_HTML = FIXTURE_DIR / "settlement.html"
SAMPLE_MD = FIXTURE_DIR / "sample.md"


def _reader(data: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(data))


class TestConverterInit:
    """Test Converter construction."""

    def test_default_format(self):
        assert Converter().page_format == "LETTER"

    def test_custom_format(self):
        assert Converter(page_format="a4").page_format == "A4"

    def test_invalid_format_raises(self):
        with pytest.raises(ValueError):
            Converter(page_format="nonexistent")

    def test_all_formats_valid(self):
        for page_format in Converter.PAGE_FORMATS:
            assert Converter(page_format=page_format).page_format == page_format


class TestConvertText:
    """Test convert_text produces valid PDF bytes."""

    def test_simple_heading(self):
        data = Converter().convert_text("<h1>Hello World</h1>")
        assert isinstance(data, bytes)
        assert data.startswith(b"%PDF")

    def test_scenario_text_and_size(self):
        reader = _reader(Converter().convert_text("<body><h1>Report</h1><p>Hello</p></body>"))
        text = reader.pages[0].extract_text()
        assert "Report" in text
        assert "Hello" in text
        assert float(reader.pages[0].mediabox.width) == pytest.approx(612)

    def test_page_format_applied(self):
        reader = _reader(Converter(page_format="A5").convert_text("<body><p>x</p></body>"))
        assert float(reader.pages[0].mediabox.height) == pytest.approx(PAGE_SIZES["A5"][1])

    def test_title_metadata(self):
        data = Converter().convert_text("<title>Statement</title><body><p>x</p></body>")
        assert _reader(data).metadata.title == "Statement"

    def test_idempotent(self):
        html = SETTLEMENT_HTML.read_text(encoding="utf-8")
        converter = Converter()
        assert converter.convert_text(html) == converter.convert_text(html)

    def test_malformed_markup_still_converts(self):
        data = Converter().convert_text(
            "<style>}}} .x { color</style><body><div><p>Unclosed <b>bold<div></body>"
        )
        assert data.startswith(b"%PDF")

    def test_empty_input(self):
        assert len(_reader(Converter().convert_text("")).pages) == 1

    def test_settlement_fixture(self):
        reader = _reader(Converter().convert_text(SETTLEMENT_HTML.read_text(encoding="utf-8")))
        text = "\n".join(page.extract_text() for page in reader.pages)
        assert "Settlement Form" in text
        assert "Harbor Point" in text
        assert "$475.00" in text
        assert "Payments are due at closing." in text
        assert reader.metadata.title.startswith("Settlement Form")

    def test_serialisation_failure_wrapped(self, monkeypatch):
        converter = Converter()

        def boom(_document):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(converter.renderer, "render", boom)
        with pytest.raises(ConversionError) as info:
            converter.convert_text("<body><p>x</p></body>")
        assert "disk on fire" in info.value.message
        assert info.value.user_message == "Document generation failed."
        assert isinstance(info.value.__cause__, RuntimeError)
        assert isinstance(info.value, HtmlPdfError)


class TestConvertMarkdown:

    def test_markdown_text(self):
        data = Converter().convert_markdown("# Notes\n\nSome **bold** text.", title="Notes")
        reader = _reader(data)
        assert reader.metadata.title == "Notes"
        assert "bold" in reader.pages[0].extract_text()

    def test_sample_fixture(self):
        data = Converter().convert_markdown(SAMPLE_MD.read_text(encoding="utf-8"))
        text = "\n".join(page.extract_text() for page in _reader(data).pages)
        assert "Resale Certificate Checklist" in text
        assert "Transfer" in text


class TestConvertFile:
    """Test convert_file writes output."""

    def test_convert_file(self, tmp_path):
        out = tmp_path / "output.pdf"
        Converter().convert_file(SETTLEMENT_HTML, out)
        assert out.exists()
        assert out.read_bytes().startswith(b"%PDF")

    def test_creates_parent_dirs(self, tmp_path):
        out = tmp_path / "sub" / "dir" / "output.pdf"
        Converter().convert_file(SETTLEMENT_HTML, out)
        assert out.exists()

    def test_markdown_file_title_from_stem(self, tmp_path):
        out = tmp_path / "sample.pdf"
        Converter().convert_file(SAMPLE_MD, out, markdown=True)
        assert _reader(out.read_bytes()).metadata.title == "sample"

    def test_custom_encoding(self, tmp_path):
        src = tmp_path / "latin.html"
        src.write_bytes("<body><p>Caf\xe9</p></body>".encode("latin-1"))
        out = tmp_path / "latin.pdf"
        Converter().convert_file(src, out, encoding="latin-1")
        assert "Café" in _reader(out.read_bytes()).pages[0].extract_text()


class RecordingStorage:
    def __init__(self):
        self.calls = []

    def upload(self, path, data, content_type):
        self.calls.append((path, data, content_type))
        return StoredObject(path=path, url=f"https://storage.test/{path}")


class RejectingStorage:
    def upload(self, path, data, content_type):
        raise StorageError("bucket not found")


class TestConvertAndUpload:

    def test_uploads_pdf(self):
        storage = RecordingStorage()
        stored = Converter().convert_and_upload("<body><p>x</p></body>", "forms/1.pdf", storage)
        assert stored.url == "https://storage.test/forms/1.pdf"
        (path, data, content_type), = storage.calls
        assert path == "forms/1.pdf"
        assert data.startswith(b"%PDF")
        assert content_type == PDF_CONTENT_TYPE

    def test_local_storage(self, tmp_path):
        stored = Converter().convert_and_upload(
            "<body><p>x</p></body>", "forms/1.pdf", LocalStorage(tmp_path)
        )
        assert (tmp_path / "forms" / "1.pdf").read_bytes().startswith(b"%PDF")
        assert stored.url.startswith("file://")

    def test_storage_error_propagates(self):
        with pytest.raises(StorageError):
            Converter().convert_and_upload("<body><p>x</p></body>", "a.pdf", RejectingStorage())
