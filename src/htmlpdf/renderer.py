"""PDF renderer - serialises an assembled :class:`Document` to PDF bytes.

Layout nodes are turned into reportlab platypus flowables and laid out in a
single frame per page. Text properties (font, size, colour, alignment,
leading) are inherited from the page base style down through containers;
box properties (margins, padding, background, borders) apply to the node
that declares them.
"""

from __future__ import annotations

import io
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.fonts import tt2ps
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Flowable,
    Image as PdfImage,
    Indenter,
    Paragraph as PdfParagraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from htmlpdf import __version__
from htmlpdf.assembler import Document
from htmlpdf.fonts import SANS
from htmlpdf.layout import (
    INLINE_KINDS,
    Block,
    Heading,
    Image,
    Inline,
    LayoutNode,
    LineBreak,
    ListContainer,
    ListItem,
    NodeKind,
    Paragraph,
    Row,
    TextRun,
)
from htmlpdf.logger import get_logger
from htmlpdf.style_manager import leading_number

LOGGER = get_logger(__name__)

_ALIGN_MAP = {
    "left": TA_LEFT,
    "center": TA_CENTER,
    "right": TA_RIGHT,
    "justify": TA_JUSTIFY,
}

# Default inner padding of a reportlab Frame, on each side.
_FRAME_PADDING = 6.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _color(value: Any) -> Optional[colors.Color]:
    """Return a reportlab colour for a CSS colour string, ``None`` if invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return colors.toColor(value.strip())
    except ValueError:
        return None


def _hex(color: colors.Color) -> str:
    return "#" + color.hexval()[2:]


def _length(value: Any, reference: float) -> Optional[float]:
    """Resolve a numeric or percentage length against *reference* points."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.strip().endswith("%"):
        number = leading_number(value)
        return reference * number / 100.0 if number is not None else None
    return leading_number(value)


def _is_bold(style: dict[str, Any]) -> Optional[bool]:
    weight = style.get("fontWeight")
    if weight is None:
        return None
    if weight in ("bold", "bolder"):
        return True
    number = leading_number(weight)
    return number is not None and number >= 600


def _is_italic(style: dict[str, Any]) -> Optional[bool]:
    font_style = style.get("fontStyle")
    if font_style is None:
        return None
    return font_style in ("italic", "oblique")


# ---------------------------------------------------------------------------
# Inherited text properties
# ---------------------------------------------------------------------------

@dataclass
class TextStyle:
    """Text properties inherited from the page down to each run."""

    family: str = SANS
    size_pt: float = 12.0
    line_height: float = 1.6
    bold: bool = False
    italic: bool = False
    color: Optional[colors.Color] = None
    align: str = "left"

    def derive(self, **overrides) -> TextStyle:
        """Return a copy with selected fields overridden."""
        clone = deepcopy(self)
        for k, v in overrides.items():
            if hasattr(clone, k):
                setattr(clone, k, v)
        return clone

    def apply(self, style: dict[str, Any]) -> TextStyle:
        """Return the text style a child inherits once *style* is applied."""
        overrides: dict[str, Any] = {}
        if style.get("fontFamily"):
            overrides["family"] = style["fontFamily"]
        # Percentages are relative to the inherited size; 150% line height is 1.5.
        size = _length(style.get("fontSize"), self.size_pt)
        if size:
            overrides["size_pt"] = size
        line_height = _length(style.get("lineHeight"), 1.0)
        if line_height:
            overrides["line_height"] = line_height
        bold = _is_bold(style)
        if bold is not None:
            overrides["bold"] = bold
        italic = _is_italic(style)
        if italic is not None:
            overrides["italic"] = italic
        color = _color(style.get("color"))
        if color is not None:
            overrides["color"] = color
        if style.get("textAlign") in _ALIGN_MAP:
            overrides["align"] = style["textAlign"]
        return self.derive(**overrides) if overrides else self

    @property
    def leading(self) -> float:
        # Small values are multipliers, larger ones absolute point sizes.
        if self.line_height <= 4:
            return self.size_pt * self.line_height
        return self.line_height

    @property
    def font_name(self) -> str:
        try:
            return tt2ps(self.family, int(self.bold), int(self.italic))
        except ValueError:
            return self.family

    def paragraph_style(self, **extra) -> ParagraphStyle:
        return ParagraphStyle(
            name="htmlpdf",
            fontName=self.font_name,
            fontSize=self.size_pt,
            leading=self.leading,
            textColor=self.color or colors.black,
            alignment=_ALIGN_MAP.get(self.align, TA_LEFT),
            **extra,
        )


# ---------------------------------------------------------------------------
# PdfRenderer
# ---------------------------------------------------------------------------

class PdfRenderer:
    """Render a :class:`~htmlpdf.assembler.Document` to PDF bytes."""

    # ======================================================================
    # Public API
    # ======================================================================

    def render(self, document: Document) -> bytes:
        """Return a complete PDF file as *bytes* for *document*."""
        page_width, page_height = document.page_size
        padding = _length(document.page_style.get("padding"), page_width)
        if padding is None:
            padding = document.margin

        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=document.page_size,
            leftMargin=padding,
            rightMargin=padding,
            topMargin=padding,
            bottomMargin=padding,
            title=document.title,
            creator=f"htmlpdf {__version__}",
            invariant=1,
        )
        base = TextStyle().apply(document.page_style)
        width = doc.width - 2 * _FRAME_PADDING

        story = self._render_children(document.content, base, width)
        # An empty story would produce a file with no pages.
        doc.build(story or [Spacer(1, 0)])
        return buf.getvalue()

    def render_to_file(self, document: Document, path: str) -> None:
        """Render and write to *path*."""
        data = self.render(document)
        with open(path, "wb") as fh:
            fh.write(data)

    # ======================================================================
    # Node dispatch
    # ======================================================================

    def _render_node(self, node: LayoutNode, ctx: TextStyle, width: float) -> list[Flowable]:
        handler = getattr(self, f"_render_{node.kind.value}")
        return handler(node, ctx, width)

    def _render_children(
        self, nodes: list[LayoutNode], ctx: TextStyle, width: float
    ) -> list[Flowable]:
        """Render block-level *nodes*; adjacent inline nodes share a paragraph."""
        flowables: list[Flowable] = []
        pending: list[LayoutNode] = []
        for node in nodes:
            if node.kind in INLINE_KINDS:
                pending.append(node)
                continue
            flowables.extend(self._inline_paragraph(pending, ctx))
            pending = []
            flowables.extend(self._render_node(node, ctx, width))
        flowables.extend(self._inline_paragraph(pending, ctx))
        return flowables

    # ======================================================================
    # Per-NodeKind renderers
    # ======================================================================

    def _render_text_run(self, node: TextRun, ctx: TextStyle, _width: float) -> list[Flowable]:
        return self._inline_paragraph([node], ctx)

    def _render_line_break(self, node: LineBreak, ctx: TextStyle, _width: float) -> list[Flowable]:
        return [Spacer(1, ctx.leading)]

    def _render_inline(self, node: Inline, ctx: TextStyle, _width: float) -> list[Flowable]:
        return self._inline_paragraph([node], ctx)

    def _render_paragraph(self, node: Paragraph, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        return self._box(self._inline_paragraph(node.children, ctx), node.style, width)

    def _render_heading(self, node: Heading, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        return self._box(self._inline_paragraph(node.children, ctx), node.style, width)

    def _render_block(self, node: Block, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        inner = self._render_children(node.children, ctx, self._content_width(node.style, width))
        return self._box(inner, node.style, width)

    def _render_row(self, node: Row, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        children = node.children
        spread = node.style.get("justifyContent") == "space-between"

        # Inline-only rows flow as one wrapping line of text.
        if not spread and all(child.kind in INLINE_KINDS for child in children):
            return self._box(self._inline_paragraph(children, ctx), node.style, width)

        inner_width = self._content_width(node.style, width)
        count = len(children)
        if not count:
            return self._box([], node.style, width)
        col_width = inner_width / count

        cells: list = []
        for idx, child in enumerate(children):
            cell_ctx = ctx
            if spread and count > 1 and idx == count - 1:
                cell_ctx = ctx.derive(align="right")
            cells.append(self._render_children([child], cell_ctx, col_width) or "")

        table = Table([cells], colWidths=[col_width] * count, hAlign="LEFT")
        valign = "MIDDLE" if node.style.get("alignItems") == "center" else "TOP"
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), valign),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, -1), 0),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
        ]))
        return self._box([table], node.style, width)

    def _render_list(self, node: ListContainer, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        inner_width = self._content_width(node.style, width)
        flowables: list[Flowable] = []
        for item in node.items:
            flowables.extend(self._render_list_item(item, ctx, inner_width))
        return self._box(flowables, node.style, width)

    def _render_list_item(self, node: ListItem, ctx: TextStyle, width: float) -> list[Flowable]:
        ctx = ctx.apply(node.style)
        markup = escape(node.marker) + self._join_markup(node.children, ctx)
        para = PdfParagraph(markup, ctx.paragraph_style())
        return self._box([para], node.style, width)

    def _render_image(self, node: Image, ctx: TextStyle, width: float) -> list[Flowable]:
        try:
            reader = ImageReader(io.BytesIO(node.data))
            natural_w, natural_h = reader.getSize()
        except (OSError, ValueError) as exc:
            LOGGER.warning("Skipping unreadable embedded image: %s", exc)
            return []
        if not natural_w or not natural_h:
            return []

        style = node.style
        img_w = _length(style.get("width"), width)
        img_h = _length(style.get("height"), width)
        if img_w and not img_h:
            img_h = natural_h * img_w / natural_w
        elif img_h and not img_w:
            img_w = natural_w * img_h / natural_h
        elif not img_w and not img_h:
            max_w = _length(style.get("maxWidth"), width) or natural_w
            max_h = _length(style.get("maxHeight"), width) or natural_h
            scale = min(1.0, max_w / natural_w, max_h / natural_h)
            img_w, img_h = natural_w * scale, natural_h * scale

        # Never wider than the frame.
        if img_w > width:
            img_h = img_h * width / img_w
            img_w = width

        image = PdfImage(io.BytesIO(node.data), width=img_w, height=img_h)
        image.hAlign = "LEFT"
        flowables: list[Flowable] = [image]
        margin_bottom = _length(style.get("marginBottom"), width)
        if margin_bottom:
            flowables.append(Spacer(1, margin_bottom))
        return flowables

    # ======================================================================
    # Inline markup
    # ======================================================================

    def _inline_paragraph(self, nodes: list[LayoutNode], ctx: TextStyle) -> list[Flowable]:
        markup = self._join_markup(nodes, ctx)
        if not markup.strip():
            return []
        return [PdfParagraph(markup, ctx.paragraph_style())]

    def _join_markup(self, nodes: list[LayoutNode], ctx: TextStyle) -> str:
        parts = (self._inline_markup(node, ctx) for node in nodes)
        return " ".join(part for part in parts if part)

    def _inline_markup(self, node: LayoutNode, ctx: TextStyle) -> str:
        """Return reportlab paragraph markup for *node* and its descendants."""
        if node.kind is NodeKind.LINE_BREAK:
            return "<br/>"
        if node.kind is NodeKind.TEXT_RUN:
            return escape(node.text)
        if node.kind is NodeKind.IMAGE:
            return ""
        if node.kind is NodeKind.LIST:
            return "<br/>".join(
                escape(item.marker) + self._join_markup(item.children, ctx)
                for item in node.items
            )
        if node.kind is NodeKind.LIST_ITEM:
            return escape(node.marker) + self._join_markup(node.children, ctx)
        if node.kind is NodeKind.INLINE:
            inner = self._join_markup(node.children, ctx.apply(node.style))
            return self._styled_markup(inner, node.style, ctx)
        # Block-like content spliced into a text flow contributes its text.
        return self._join_markup(node.children, ctx.apply(node.style))

    @staticmethod
    def _styled_markup(inner: str, style: dict[str, Any], ctx: TextStyle) -> str:
        if not inner:
            return ""
        attrs: list[str] = []
        if style.get("fontFamily"):
            attrs.append(f'face="{style["fontFamily"]}"')
        size = _length(style.get("fontSize"), ctx.size_pt)
        if size:
            attrs.append(f'size="{size:g}"')
        color = _color(style.get("color"))
        if color is not None:
            attrs.append(f'color="{_hex(color)}"')

        markup = inner
        if _is_bold(style):
            markup = f"<b>{markup}</b>"
        if _is_italic(style):
            markup = f"<i>{markup}</i>"
        decoration = str(style.get("textDecoration", ""))
        if "underline" in decoration:
            markup = f"<u>{markup}</u>"
        if "line-through" in decoration:
            markup = f"<strike>{markup}</strike>"
        if attrs:
            markup = f"<font {' '.join(attrs)}>{markup}</font>"
        return markup

    # ======================================================================
    # Box model
    # ======================================================================

    @staticmethod
    def _sides(style: dict[str, Any], prop: str, width: float) -> tuple[float, float, float, float]:
        """Return (top, right, bottom, left) for ``margin`` or ``padding``."""
        shorthand = _length(style.get(prop), width) or 0.0
        values = []
        for side in ("Top", "Right", "Bottom", "Left"):
            value = _length(style.get(f"{prop}{side}"), width)
            values.append(max(0.0, shorthand if value is None else value))
        return values[0], values[1], values[2], values[3]

    def _content_width(self, style: dict[str, Any], width: float) -> float:
        _mt, mr, _mb, ml = self._sides(style, "margin", width)
        _pt, pr, _pb, pl = self._sides(style, "padding", width)
        return max(width - ml - mr - pl - pr, 1.0)

    @staticmethod
    def _border(style: dict[str, Any], side: str) -> Optional[tuple[float, colors.Color]]:
        border_width = leading_number(style.get(f"border{side}Width", ""))
        if not border_width:
            return None
        return border_width, _color(style.get(f"border{side}Color")) or colors.black

    def _box(self, flowables: list[Flowable], style: dict[str, Any], width: float) -> list[Flowable]:
        """Apply margins, padding, background and top/bottom borders."""
        mt, mr, mb, ml = self._sides(style, "margin", width)
        pt, pr, pb, pl = self._sides(style, "padding", width)
        background = _color(style.get("backgroundColor"))
        top = self._border(style, "Top")
        bottom = self._border(style, "Bottom")

        content = flowables
        if flowables and (background or top or bottom or pt or pr or pb or pl):
            # One row per flowable so long boxes can still split across pages.
            rows = [[flowable] for flowable in flowables]
            box = Table(rows, colWidths=[max(width - ml - mr, 1.0)], hAlign="LEFT")
            last = len(rows) - 1
            commands: list[tuple] = [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), pl),
                ("RIGHTPADDING", (0, 0), (-1, -1), pr),
                ("TOPPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, 0), pt),
                ("BOTTOMPADDING", (0, last), (-1, last), pb),
            ]
            if background is not None:
                commands.append(("BACKGROUND", (0, 0), (-1, -1), background))
            if top is not None:
                commands.append(("LINEABOVE", (0, 0), (-1, 0), top[0], top[1]))
            if bottom is not None:
                commands.append(("LINEBELOW", (0, last), (-1, last), bottom[0], bottom[1]))
            box.setStyle(TableStyle(commands))
            content = [box]

        result: list[Flowable] = []
        if mt:
            result.append(Spacer(1, mt))
        if ml or mr:
            result.append(Indenter(left=ml, right=mr))
        result.extend(content)
        if ml or mr:
            result.append(Indenter(left=-ml, right=-mr))
        if mb:
            result.append(Spacer(1, mb))
        return result
