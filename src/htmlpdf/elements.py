"""Convert markup nodes into layout nodes.

Every handler is fail-soft: unsupported or malformed input yields ``None``
(the node is dropped) or a best-effort default, never an exception.
"""

from __future__ import annotations

import base64
import binascii
from typing import Callable, Optional

from htmlpdf.layout import (
    Block,
    Heading,
    Image,
    Inline,
    LayoutNode,
    LineBreak,
    ListContainer,
    ListItem,
    Paragraph,
    Row,
    TextRun,
)
from htmlpdf.logger import get_logger
from htmlpdf.parser import MarkupNode
from htmlpdf.style_manager import Style, StyleManager, leading_number

LOGGER = get_logger(__name__)

BULLET = "• "

HEADING_SIZES = {1: 24.0, 2: 20.0, 3: 18.0}
DEFAULT_HEADING_SIZE = 16.0

# Tags that never carry renderable body content.
_SKIPPED_TAGS = frozenset({"style", "script", "head", "title", "meta", "link"})


def _clamp(style: Style, key: str, default: float, maximum: float) -> None:
    # Missing, zero and non-numeric values (auto, unitless 0) take the default.
    value = leading_number(style.get(key, ""))
    style[key] = min(value or default, maximum)


# ---------------------------------------------------------------------------
# Structural policies for container tags
# ---------------------------------------------------------------------------

def _is_flex(style: Style, class_name: str) -> bool:
    return style.get("display") == "flex" or "company-header" in class_name


def _apply_flex(style: Style, class_name: str) -> Style:
    style["flexDirection"] = "row"
    if not style.get("justifyContent") and any(
        marker in class_name
        for marker in ("justify-between", "space-between", "company-header")
    ):
        style["justifyContent"] = "space-between"
    if not style.get("alignItems") and any(
        marker in class_name
        for marker in ("align-center", "items-center", "company-header")
    ):
        style["alignItems"] = "center"
    style.pop("display", None)
    return style


def _is_field(style: Style, class_name: str) -> bool:
    return "field" in class_name and "textarea-field" not in class_name


def _apply_field(style: Style, class_name: str) -> Style:
    style["flexDirection"] = "row"
    _clamp(style, "marginBottom", 4, 6)
    _clamp(style, "marginTop", 0, 4)
    style["flexWrap"] = "wrap"
    return style


def _is_section(style: Style, class_name: str) -> bool:
    return "section" in class_name


def _apply_section(style: Style, class_name: str) -> Style:
    _clamp(style, "marginTop", 5, 8)
    _clamp(style, "marginBottom", 5, 8)
    style["marginLeft"] = 0
    style["marginRight"] = 0
    return style


def _is_section_title(style: Style, class_name: str) -> bool:
    return "section-title" in class_name


def _apply_section_title(style: Style, class_name: str) -> Style:
    _clamp(style, "marginTop", 8, 10)
    _clamp(style, "marginBottom", 3, 5)
    style["marginLeft"] = 0
    style["marginRight"] = 0
    return style


Predicate = Callable[[Style, str], bool]
Transform = Callable[[Style, str], Style]

# (predicate, transform, emits_row); the first matching policy is the only
# one applied.
CONTAINER_POLICIES: tuple[tuple[Predicate, Transform, bool], ...] = (
    (_is_flex, _apply_flex, True),
    (_is_field, _apply_field, True),
    (_is_section, _apply_section, False),
    (_is_section_title, _apply_section_title, False),
)


# ---------------------------------------------------------------------------
# ElementConverter
# ---------------------------------------------------------------------------

class ElementConverter:
    """Convert :class:`MarkupNode` trees into layout nodes.

    Usage::

        converter = ElementConverter(StyleManager.from_stylesheets(css))
        nodes = converter.convert_children(body)
    """

    def __init__(self, style_manager: Optional[StyleManager] = None) -> None:
        self.style = style_manager or StyleManager()

    # -- public API ---------------------------------------------------------

    def convert(self, node: MarkupNode) -> Optional[LayoutNode]:
        """Return the layout node for *node*, or ``None`` if it renders nothing."""
        if node.is_text:
            return self._handle_text(node)
        if node.tag in _SKIPPED_TAGS:
            return None
        handler = getattr(self, f"_handle_{node.tag}", None)
        if handler is None:
            handler = self._handle_unknown
        return handler(node, self.style.resolve(node))

    def convert_children(self, node: MarkupNode) -> list[LayoutNode]:
        children: list[LayoutNode] = []
        for child in node.children:
            converted = self.convert(child)
            if converted is not None:
                children.append(converted)
        return children

    # -- text ---------------------------------------------------------------

    def _handle_text(self, node: MarkupNode) -> Optional[TextRun]:
        text = node.text.strip()
        return TextRun(text=text) if text else None

    def _handle_br(self, _node: MarkupNode, _style: Style) -> LineBreak:
        return LineBreak()

    # -- containers ---------------------------------------------------------

    def _handle_container(self, node: MarkupNode, style: Style) -> Optional[LayoutNode]:
        children = self.convert_children(node)
        if not children:
            return None

        class_name = node.class_name
        for predicate, transform, emits_row in CONTAINER_POLICIES:
            if predicate(style, class_name):
                style = transform(style, class_name)
                if emits_row:
                    return Row(children=self._row_children(children), style=style)
                break
        return Block(children=children, style=style)

    _handle_div = _handle_container
    _handle_section = _handle_container
    _handle_header = _handle_container
    _handle_footer = _handle_container

    @staticmethod
    def _row_children(children: list[LayoutNode]) -> list[LayoutNode]:
        # Bare text cannot sit directly in a row.
        kept = [child for child in children if not isinstance(child, TextRun)]
        if len(kept) != len(children):
            LOGGER.debug("Dropped %d bare text run(s) from a row", len(children) - len(kept))
        return kept

    # -- text flow ----------------------------------------------------------

    def _handle_p(self, node: MarkupNode, style: Style) -> Paragraph:
        # Block children stay inside the paragraph and render inline.
        style["marginBottom"] = style.get("marginBottom") or 8
        return Paragraph(children=self.convert_children(node), style=style)

    def _handle_inline(self, node: MarkupNode, style: Style) -> Inline:
        if node.tag in ("strong", "b"):
            style["fontWeight"] = "bold"
        elif node.tag in ("em", "i"):
            style["fontStyle"] = "italic"
        return Inline(children=self.convert_children(node), style=style)

    _handle_span = _handle_inline
    _handle_strong = _handle_inline
    _handle_b = _handle_inline
    _handle_em = _handle_inline
    _handle_i = _handle_inline

    def _handle_heading(self, node: MarkupNode, style: Style) -> Heading:
        level = int(node.tag[1])
        style["fontSize"] = HEADING_SIZES.get(level, DEFAULT_HEADING_SIZE)
        style["fontWeight"] = "bold"
        _clamp(style, "marginBottom", 8, 10)
        _clamp(style, "marginTop", 15, 20)
        return Heading(level=level, children=self.convert_children(node), style=style)

    _handle_h1 = _handle_heading
    _handle_h2 = _handle_heading
    _handle_h3 = _handle_heading
    _handle_h4 = _handle_heading
    _handle_h5 = _handle_heading
    _handle_h6 = _handle_heading

    # -- images -------------------------------------------------------------

    def _handle_img(self, node: MarkupNode, style: Style) -> Optional[Image]:
        src = node.attributes.get("src", "")
        if not src.startswith("data:image"):
            LOGGER.debug("Dropping image with unsupported source %.60r", src)
            return None
        data = _decode_data_uri(src)
        if data is None:
            LOGGER.debug("Dropping image with undecodable data URI")
            return None

        image_style: Style = {
            "maxWidth": style.get("maxWidth") or 200,
            "maxHeight": style.get("maxHeight") or 80,
            "marginBottom": style.get("marginBottom") or 0,
            "marginRight": style.get("marginRight") or 10,
        }
        for key in ("width", "height"):
            if style.get(key):
                image_style[key] = style[key]
        return Image(src=src, data=data, style=image_style)

    # -- lists --------------------------------------------------------------

    def _handle_list(self, node: MarkupNode, style: Style) -> ListContainer:
        ordered = node.tag == "ol"
        items: list[ListItem] = []
        for child in node.children:
            if child.tag != "li":
                continue
            marker = f"{len(items) + 1}. " if ordered else BULLET
            items.append(ListItem(
                marker=marker,
                children=self.convert_children(child),
                style={"marginBottom": 5},
            ))
        return ListContainer(ordered=ordered, items=items, style={"marginLeft": 20, **style})

    _handle_ul = _handle_list
    _handle_ol = _handle_list

    def _handle_li(self, _node: MarkupNode, _style: Style) -> None:
        # Only meaningful under ul / ol.
        return None

    # -- fallback -----------------------------------------------------------

    def _handle_unknown(self, node: MarkupNode, _style: Style) -> Optional[Block]:
        children = self.convert_children(node)
        return Block(children=children) if children else None


def _decode_data_uri(src: str) -> Optional[bytes]:
    header, sep, payload = src.partition(",")
    if not sep:
        return None
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=False)
        return payload.encode("latin-1")
    except (binascii.Error, ValueError, UnicodeEncodeError):
        return None
