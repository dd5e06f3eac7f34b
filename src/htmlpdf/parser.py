"""HTML parser that produces an intermediate markup tree for PDF conversion.

Uses BeautifulSoup (``html.parser`` backend) to parse the markup and copies
the result into plain :class:`MarkupNode` objects, so downstream stages never
depend on bs4 types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.element import CData, Declaration, ProcessingInstruction

# Tag name used for raw text nodes.
TEXT = "#text"

_NON_CONTENT_STRINGS = (Comment, Doctype, CData, Declaration, ProcessingInstruction)


# ---------------------------------------------------------------------------
# Tree definitions
# ---------------------------------------------------------------------------

@dataclass
class MarkupNode:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[MarkupNode] = field(default_factory=list)
    # Text nodes only
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")


@dataclass
class ParsedDocument:
    title: Optional[str] = None
    stylesheets: list[str] = field(default_factory=list)
    body: Optional[MarkupNode] = None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class HtmlParser:
    """Parse HTML text into a :class:`ParsedDocument`."""

    features = "html.parser"

    # -- public API ---------------------------------------------------------

    def parse(self, html: str) -> ParsedDocument:
        """Return the title, raw ``<style>`` texts and body tree of *html*."""
        soup = BeautifulSoup(html or "", self.features)

        title_tag = soup.find("title")
        title = title_tag.get_text() if title_tag is not None else None

        stylesheets = [tag.get_text() for tag in soup.find_all("style")]

        body_tag = soup.find("body")
        body = self._convert_tag(body_tag) if body_tag is not None else None

        return ParsedDocument(title=title, stylesheets=stylesheets, body=body)

    # -- conversion ---------------------------------------------------------

    def _convert_tag(self, tag: Tag) -> MarkupNode:
        children: list[MarkupNode] = []
        for child in tag.children:
            node = self._convert_child(child)
            if node is not None:
                children.append(node)
        return MarkupNode(
            tag=tag.name.lower(),
            attributes=self._attributes(tag),
            children=children,
        )

    def _convert_child(self, child) -> Optional[MarkupNode]:
        if isinstance(child, Tag):
            return self._convert_tag(child)
        if isinstance(child, _NON_CONTENT_STRINGS):
            return None
        if isinstance(child, NavigableString):
            return MarkupNode(tag=TEXT, text=str(child))
        return None

    @staticmethod
    def _attributes(tag: Tag) -> dict[str, str]:
        attrs: dict[str, str] = {}
        for name, value in tag.attrs.items():
            # Multi-valued attributes (class, rel, ...) come back as lists.
            if isinstance(value, (list, tuple)):
                value = " ".join(value)
            attrs[name.lower()] = str(value)
        return attrs
