"""High-level HTML-to-PDF conversion orchestrator.

Ties together the parser, style manager, element converter, assembler and
renderer into a single public API for converting HTML text or files to PDF
output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from htmlpdf.assembler import DEFAULT_FORMAT, PAGE_SIZES, Document, DocumentAssembler
from htmlpdf.authoring import markdown_to_html
from htmlpdf.errors import ConversionError
from htmlpdf.logger import get_logger
from htmlpdf.renderer import PdfRenderer
from htmlpdf.storage import Storage, StoredObject

LOGGER = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class Converter:
    """Convert HTML content to PDF.

    Usage::

        converter = Converter(page_format="A4")
        converter.convert_file("input.html", "output.pdf")

        # or from string
        pdf_bytes = converter.convert_text("<h1>Hello</h1>")
    """

    PAGE_FORMATS = list(PAGE_SIZES)

    def __init__(self, page_format: str = DEFAULT_FORMAT) -> None:
        self.assembler = DocumentAssembler(page_format)
        self.renderer = PdfRenderer()

    @property
    def page_format(self) -> str:
        return self.assembler.page_format

    def assemble(self, html: str) -> Document:
        """Run every stage up to, but not including, PDF serialisation."""
        return self.assembler.assemble_markup(html)

    def convert_text(self, html: str) -> bytes:
        """Convert an HTML document string to PDF bytes.

        Args:
            html: HTML source string.

        Returns:
            PDF file content as bytes.

        Raises:
            ConversionError: if the PDF could not be produced.
        """
        document = self.assemble(html)
        try:
            pdf_bytes = self.renderer.render(document)
        except Exception as exc:
            LOGGER.exception("PDF serialisation failed for %r", document.title)
            raise ConversionError(str(exc)) from exc
        LOGGER.info(
            "Converted %r to %d bytes (%s)", document.title, len(pdf_bytes), self.page_format
        )
        return pdf_bytes

    def convert_markdown(
        self,
        markdown_text: str,
        *,
        title: Optional[str] = None,
        stylesheet: Optional[str] = None,
    ) -> bytes:
        """Convert Markdown to PDF via the HTML authoring vocabulary."""
        html = markdown_to_html(markdown_text, title=title, stylesheet=stylesheet)
        return self.convert_text(html)

    def convert_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        encoding: str = "utf-8",
        markdown: bool = False,
        title: Optional[str] = None,
    ) -> None:
        """Read an HTML (or Markdown) file and write the PDF output.

        Args:
            input_path: Path to the input file.
            output_path: Path for the output ``.pdf`` file.
            encoding: Text encoding of the source file.
            markdown: Treat the input as Markdown.
            title: Document title for Markdown input.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        source = input_path.read_text(encoding=encoding)
        if markdown:
            pdf_bytes = self.convert_markdown(source, title=title or input_path.stem)
        else:
            pdf_bytes = self.convert_text(source)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(pdf_bytes)

    def convert_and_upload(self, html: str, path: str, storage: Storage) -> StoredObject:
        """Convert *html* and hand the PDF to *storage* under *path*.

        Raises:
            ConversionError: if the PDF could not be produced.
            StorageError: if the upload was rejected.
        """
        pdf_bytes = self.convert_text(html)
        stored = storage.upload(path, pdf_bytes, PDF_CONTENT_TYPE)
        LOGGER.info("Uploaded %s (%d bytes) to %s", path, len(pdf_bytes), stored.url)
        return stored
