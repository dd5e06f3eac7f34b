"""FastAPI web service for HTML to PDF conversion.

Endpoints::

    GET  /health            Health check.
    GET  /formats           List available page formats.
    POST /convert           Upload an .html file and receive .pdf back.
    POST /convert/text      Send raw HTML text, receive .pdf bytes.
    POST /convert/markdown  Send Markdown text, receive .pdf bytes.

Run::

    uvicorn htmlpdf.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from htmlpdf import __version__
from htmlpdf.assembler import DEFAULT_FORMAT, PAGE_SIZES
from htmlpdf.converter import PDF_CONTENT_TYPE, Converter
from htmlpdf.errors import ConversionError
from htmlpdf.logger import get_logger

LOGGER = get_logger(__name__)

app = FastAPI(
    title="htmlpdf",
    description="HTML to PDF conversion service",
    version=__version__,
)


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


def _converter(page_format: str) -> Converter:
    try:
        return Converter(page_format=page_format)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _pdf_response(pdf_bytes: bytes, filename: str) -> Response:
    return Response(
        content=pdf_bytes,
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _run(converter: Converter, html: str) -> bytes:
    try:
        return converter.convert_text(html)
    except ConversionError as exc:
        raise HTTPException(status_code=500, detail=exc.user_message) from exc


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/formats")
async def list_formats() -> dict[str, list[str]]:
    """List available page formats."""
    return {"formats": list(PAGE_SIZES)}


@app.post("/convert")
async def convert_file(
    file: UploadFile = File(...),
    format: str = Form(DEFAULT_FORMAT),
    encoding: str = Form("utf-8"),
) -> Response:
    """Upload an HTML file and receive PDF back.

    - **file**: HTML document (.html)
    - **format**: Page format (LETTER, A4, ...)
    - **encoding**: Source file encoding
    """
    converter = _converter(format)
    raw = await file.read()
    try:
        html = raw.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Cannot decode upload: {exc}") from exc

    pdf_bytes = _run(converter, html)
    filename = (file.filename or "document.html").rsplit(".", 1)[0] + ".pdf"
    return _pdf_response(pdf_bytes, filename)


@app.post("/convert/text")
async def convert_text(
    html: str = Form(...),
    format: str = Form(DEFAULT_FORMAT),
) -> Response:
    """Send raw HTML text and receive PDF bytes.

    - **html**: HTML document source
    - **format**: Page format
    """
    converter = _converter(format)
    return _pdf_response(_run(converter, html), "document.pdf")


@app.post("/convert/markdown")
async def convert_markdown(
    markdown: str = Form(...),
    title: str = Form(""),
    format: str = Form(DEFAULT_FORMAT),
) -> Response:
    """Send Markdown text and receive PDF bytes."""
    converter = _converter(format)
    try:
        pdf_bytes = converter.convert_markdown(markdown, title=title or None)
    except ConversionError as exc:
        raise HTTPException(status_code=500, detail=exc.user_message) from exc
    return _pdf_response(pdf_bytes, "document.pdf")
