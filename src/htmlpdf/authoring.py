"""Markdown authoring front-end.

Uses mistune v3 in AST mode and emits HTML restricted to the vocabulary the
layout engine understands (headings, paragraphs, inline emphasis, lists,
``div`` containers and flex rows). Tables become flex rows of ``div`` cells.
"""

from __future__ import annotations

from html import escape
from typing import Any, Optional

import mistune

DEFAULT_STYLESHEET = """\
h1 { border-bottom: 1px solid #cccccc; padding-bottom: 4px; }
.code { font-family: 'Courier New', monospace; }
.code-block { font-family: monospace; background-color: #f5f5f5; padding: 6px; margin-bottom: 8px; }
.blockquote { margin-left: 12px; color: #555555; }
.table-row { display: flex; border-bottom: 1px solid #dddddd; }
"""


class MarkdownAuthoring:
    """Render Markdown text as an HTML document for :class:`~htmlpdf.converter.Converter`."""

    def __init__(self) -> None:
        self._md = mistune.create_markdown(
            renderer=None,  # AST mode
            plugins=["table", "strikethrough", "task_lists"],
        )

    # -- public API ---------------------------------------------------------

    def to_html(
        self,
        markdown_text: str,
        *,
        title: Optional[str] = None,
        stylesheet: Optional[str] = None,
    ) -> str:
        tokens: list[dict[str, Any]] = self._md(markdown_text)  # type: ignore[assignment]
        body = self._render_tokens(tokens)

        css = DEFAULT_STYLESHEET + (stylesheet or "")
        head = f"<title>{escape(title)}</title>" if title else ""
        return (
            "<!DOCTYPE html>\n<html><head>"
            f"{head}<style>{css}</style>"
            f"</head><body>{body}</body></html>"
        )

    # -- token dispatch -----------------------------------------------------

    def _render_tokens(self, tokens: Any) -> str:
        if tokens is None:
            return ""
        if isinstance(tokens, str):
            return escape(tokens)
        return "".join(self._render_token(tok) for tok in tokens)

    def _render_token(self, tok: dict[str, Any]) -> str:
        handler = getattr(self, f"_handle_{tok.get('type', '')}", None)
        if handler:
            return handler(tok)
        # Unknown tokens keep their text, if any.
        raw = tok.get("raw", tok.get("text", ""))
        return escape(str(raw)) if raw else ""

    def _children(self, tok: dict[str, Any]) -> str:
        return self._render_tokens(tok.get("children") or tok.get("text", ""))

    # -- blocks -------------------------------------------------------------

    def _handle_heading(self, tok: dict) -> str:
        level = min(max(int(tok.get("attrs", {}).get("level", 1)), 1), 6)
        return f"<h{level}>{self._children(tok)}</h{level}>"

    def _handle_paragraph(self, tok: dict) -> str:
        return f"<p>{self._children(tok)}</p>"

    def _handle_block_text(self, tok: dict) -> str:
        return self._children(tok)

    def _handle_block_code(self, tok: dict) -> str:
        lines = str(tok.get("raw", "")).rstrip("\n").split("\n")
        return '<div class="code-block">' + "<br>".join(escape(line) for line in lines) + "</div>"

    def _handle_block_quote(self, tok: dict) -> str:
        return f'<div class="blockquote">{self._children(tok)}</div>'

    def _handle_thematic_break(self, _tok: dict) -> str:
        return "<br>"

    def _handle_blank_line(self, _tok: dict) -> str:
        return ""

    # -- lists --------------------------------------------------------------

    def _handle_list(self, tok: dict) -> str:
        tag = "ol" if tok.get("attrs", {}).get("ordered") else "ul"
        return f"<{tag}>{self._children(tok)}</{tag}>"

    def _handle_list_item(self, tok: dict) -> str:
        return f"<li>{self._children(tok)}</li>"

    def _handle_task_list_item(self, tok: dict) -> str:
        box = "[x] " if tok.get("attrs", {}).get("checked") else "[ ] "
        return f"<li>{box}{self._children(tok)}</li>"

    # -- tables -------------------------------------------------------------

    def _handle_table(self, tok: dict) -> str:
        rows: list[str] = []
        for section in tok.get("children", []):
            cells = section.get("children", [])
            if section.get("type") == "table_head":
                rows.append(self._table_row(cells, header=True))
            else:
                rows.extend(self._table_row(row.get("children", []), header=False) for row in cells)
        return "".join(rows)

    def _table_row(self, cells: list[dict], *, header: bool) -> str:
        rendered = []
        for cell in cells:
            content = self._children(cell) or "-"
            if header:
                content = f"<strong>{content}</strong>"
            rendered.append(f"<div>{content}</div>")
        return f'<div class="table-row">{"".join(rendered)}</div>'

    # -- inline -------------------------------------------------------------

    def _handle_text(self, tok: dict) -> str:
        return escape(str(tok.get("raw", tok.get("text", ""))))

    def _handle_strong(self, tok: dict) -> str:
        return f"<strong>{self._children(tok)}</strong>"

    def _handle_emphasis(self, tok: dict) -> str:
        return f"<em>{self._children(tok)}</em>"

    def _handle_strikethrough(self, tok: dict) -> str:
        return f'<span style="text-decoration: line-through">{self._children(tok)}</span>'

    def _handle_codespan(self, tok: dict) -> str:
        return f'<span class="code">{escape(str(tok.get("raw", "")))}</span>'

    def _handle_link(self, tok: dict) -> str:
        return f"<span>{self._children(tok)}</span>"

    def _handle_image(self, tok: dict) -> str:
        attrs = tok.get("attrs", {})
        return f'<img src="{escape(attrs.get("url", ""), quote=True)}">'

    def _handle_linebreak(self, _tok: dict) -> str:
        return "<br>"

    def _handle_softbreak(self, _tok: dict) -> str:
        return " "


def markdown_to_html(
    markdown_text: str,
    *,
    title: Optional[str] = None,
    stylesheet: Optional[str] = None,
) -> str:
    """Render *markdown_text* as a complete HTML document.

    *stylesheet* is appended after the default rules, so its selectors win.
    """
    return MarkdownAuthoring().to_html(markdown_text, title=title, stylesheet=stylesheet)
