"""Layout node definitions.

The element converter emits a tree of these nodes; the renderer consumes
it. Each variant is a dataclass tagged with a :class:`NodeKind`, and the
renderer dispatches on ``node.kind`` with one handler per kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class NodeKind(Enum):
    TEXT_RUN = "text_run"
    LINE_BREAK = "line_break"
    INLINE = "inline"
    PARAGRAPH = "paragraph"
    BLOCK = "block"
    ROW = "row"
    HEADING = "heading"
    LIST = "list"
    LIST_ITEM = "list_item"
    IMAGE = "image"


@dataclass
class TextRun:
    kind: ClassVar[NodeKind] = NodeKind.TEXT_RUN
    text: str
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class LineBreak(TextRun):
    """A forced line break, carried as a single-newline text run."""

    kind: ClassVar[NodeKind] = NodeKind.LINE_BREAK
    text: str = "\n"


@dataclass
class Inline:
    """Styled inline container (``span``, ``strong``, ``em``, ...)."""

    kind: ClassVar[NodeKind] = NodeKind.INLINE
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Paragraph:
    kind: ClassVar[NodeKind] = NodeKind.PARAGRAPH
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Block:
    kind: ClassVar[NodeKind] = NodeKind.BLOCK
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Row:
    """Horizontal flex container. Children are never bare text runs."""

    kind: ClassVar[NodeKind] = NodeKind.ROW
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Heading:
    kind: ClassVar[NodeKind] = NodeKind.HEADING
    level: int = 1
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class ListItem:
    kind: ClassVar[NodeKind] = NodeKind.LIST_ITEM
    marker: str = ""
    children: list[LayoutNode] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class ListContainer:
    kind: ClassVar[NodeKind] = NodeKind.LIST
    ordered: bool = False
    items: list[ListItem] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Image:
    kind: ClassVar[NodeKind] = NodeKind.IMAGE
    src: str = ""
    data: bytes = b""
    style: dict[str, Any] = field(default_factory=dict)


LayoutNode = Union[
    TextRun, LineBreak, Inline, Paragraph, Block, Row, Heading,
    ListContainer, ListItem, Image,
]

# Variants that flow as text inside a paragraph.
INLINE_KINDS = frozenset({NodeKind.TEXT_RUN, NodeKind.LINE_BREAK, NodeKind.INLINE})


def plain_text(node: LayoutNode) -> str:
    """Recursively extract plain text from a layout subtree."""
    if isinstance(node, TextRun):
        return node.text
    if isinstance(node, ListContainer):
        return "\n".join(plain_text(item) for item in node.items)
    if isinstance(node, ListItem):
        return node.marker + "".join(plain_text(c) for c in node.children)
    children = getattr(node, "children", [])
    return "".join(plain_text(child) for child in children)
