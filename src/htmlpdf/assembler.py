"""Assemble converted layout nodes into a single-page-flow document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from reportlab.lib.pagesizes import A3, A4, A5, LEGAL, LETTER
from reportlab.lib.units import inch

from htmlpdf.elements import ElementConverter
from htmlpdf.fonts import SANS
from htmlpdf.layout import LayoutNode
from htmlpdf.logger import get_logger
from htmlpdf.parser import HtmlParser, ParsedDocument
from htmlpdf.style_manager import StyleManager, leading_number

LOGGER = get_logger(__name__)

PAGE_SIZES: dict[str, tuple[float, float]] = {
    "LETTER": LETTER,
    "LEGAL": LEGAL,
    "TABLOID": (11 * inch, 17 * inch),
    "LEDGER": (17 * inch, 11 * inch),
    "A3": A3,
    "A4": A4,
    "A5": A5,
}

DEFAULT_FORMAT = "LETTER"
DEFAULT_TITLE = "Document"
DEFAULT_MARGIN = 20.0
# Web stylesheets assume browser margin collapsing; a fixed page does not.
MAX_MARGIN = 20.0
BASE_FONT_SIZE = 12.0
BASE_LINE_HEIGHT = 1.6


@dataclass
class Document:
    title: str = DEFAULT_TITLE
    page_size: tuple[float, float] = LETTER
    margin: float = DEFAULT_MARGIN
    page_style: dict[str, Any] = field(default_factory=dict)
    content: list[LayoutNode] = field(default_factory=list)


def page_size_for(page_format: str) -> tuple[float, float]:
    """Return the ``(width, height)`` in points for a page format identifier."""
    key = (page_format or DEFAULT_FORMAT).upper()
    if key not in PAGE_SIZES:
        raise ValueError(
            f"Unknown page format {page_format!r}. Choose from: {', '.join(PAGE_SIZES)}"
        )
    return PAGE_SIZES[key]


class DocumentAssembler:
    """Build a :class:`Document` from parsed markup.

    Usage::

        assembler = DocumentAssembler("LETTER")
        document = assembler.assemble_markup(html)
    """

    def __init__(self, page_format: str = DEFAULT_FORMAT) -> None:
        self.page_format = (page_format or DEFAULT_FORMAT).upper()
        self.page_size = page_size_for(self.page_format)
        self.parser = HtmlParser()

    # -- public API ---------------------------------------------------------

    def assemble_markup(self, html: str) -> Document:
        """Parse *html* and assemble it."""
        return self.assemble(self.parser.parse(html))

    def assemble(self, parsed: ParsedDocument) -> Document:
        styles = StyleManager.from_stylesheets(parsed.stylesheets)
        margin = self._page_margin(styles)

        page_style: dict[str, Any] = {
            "padding": margin,
            "fontFamily": SANS,
            "fontSize": BASE_FONT_SIZE,
            "lineHeight": BASE_LINE_HEIGHT,
        }
        page_style.update(styles.rule("page"))

        content: list[LayoutNode] = []
        if parsed.body is not None:
            content = ElementConverter(styles).convert_children(parsed.body)

        title = (parsed.title or "").strip() or DEFAULT_TITLE
        LOGGER.debug(
            "Assembled %r: %d top-level node(s), margin %s, format %s",
            title, len(content), margin, self.page_format,
        )
        return Document(
            title=title,
            page_size=self.page_size,
            margin=margin,
            page_style=page_style,
            content=content,
        )

    # -- internals ----------------------------------------------------------

    @staticmethod
    def _page_margin(styles: StyleManager) -> float:
        declared: Optional[float] = None
        body_margin = styles.rule("body").get("margin")
        if body_margin is not None:
            declared = leading_number(str(body_margin).replace("px", ""))
        return min(declared or DEFAULT_MARGIN, MAX_MARGIN)
