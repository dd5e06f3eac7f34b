"""Stylesheet parsing and style resolution.

Turns the embedded ``<style>`` blocks and inline ``style=""`` attributes of a
document into flat property maps keyed by camel-cased CSS names, with values
already in the units the renderer expects (points, colour strings or
keywords).

Cascade order for a node, later wins::

    class rule  <  tag rule  <  inline style

Tag rules are applied *after* class rules. This is not standard CSS
specificity, but existing templates rely on it, so it is kept as is.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from htmlpdf.fonts import normalize_font_family
from htmlpdf.logger import get_logger
from htmlpdf.parser import MarkupNode

LOGGER = get_logger(__name__)

# Size in points of one em / rem.
BASE_FONT_SIZE = 12.0

Style = dict[str, Any]

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_RULE_RE = re.compile(r"([^{]+)\{([^}]+)\}")
_CAMEL_RE = re.compile(r"-([a-z])")
_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")
_EM_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+))\s*r?em$")
_BORDER_RE = re.compile(r"(\d+)px\s+(solid|dashed|dotted)\s+(#[0-9a-fA-F]+|\w+)")
_WHITESPACE_RE = re.compile(r"\s+")

# Properties stored exactly as written.
_VERBATIM = {"textAlign", "justifyContent", "alignItems", "backgroundColor", "display"}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def camel_case(name: str) -> str:
    """``margin-bottom`` -> ``marginBottom``."""
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def leading_number(value: Any) -> Optional[float]:
    """Return the numeric prefix of *value* (``"10px 0"`` -> ``10.0``), if any."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_RE.match(str(value))
    return float(match.group(1)) if match else None


def _border_shorthand(side: str, value: str, style: Style) -> None:
    match = _BORDER_RE.search(value)
    if not match:
        LOGGER.debug("Dropping unsupported border-%s value %r", side.lower(), value)
        return
    style[f"border{side}Width"] = float(match.group(1))
    style[f"border{side}Style"] = match.group(2)
    style[f"border{side}Color"] = match.group(3)


def _normalize_value(key: str, value: str, style: Style) -> None:
    """Store the normalised form of one ``key: value`` declaration in *style*."""
    if key == "fontFamily":
        style["fontFamily"] = normalize_font_family(value)
        return
    if key == "borderBottom":
        _border_shorthand("Bottom", value, style)
        return
    if key == "borderTop":
        _border_shorthand("Top", value, style)
        return
    if key == "borderRadius":
        radius = leading_number(value)
        if radius:
            style["borderRadius"] = radius
        return
    if key in _VERBATIM:
        style[key] = value
        return

    if "px" in value:
        number = leading_number(value)
        if number is not None:
            style[key] = number
            return
    em = _EM_RE.match(value)
    if em:
        style[key] = float(em.group(1)) * BASE_FONT_SIZE
    elif "%" in value or value.startswith("#"):
        style[key] = value
    elif value == "bold":
        style["fontWeight"] = "bold"
    elif value == "italic":
        style["fontStyle"] = "italic"
    else:
        style[key] = value


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_declarations(text: Optional[str]) -> Style:
    """Parse ``prop: value; ...`` into a normalised style map.

    Used for both stylesheet rule bodies and inline ``style`` attributes.
    Declarations without a colon, key or value are skipped.
    """
    style: Style = {}
    if not text:
        return style
    for declaration in text.split(";"):
        key, sep, value = declaration.partition(":")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            continue
        _normalize_value(camel_case(key), value, style)
    return style


def selector_key(selector: str) -> str:
    """Rule key for *selector*: one leading ``.`` and all whitespace removed."""
    selector = selector.strip()
    if selector.startswith("."):
        selector = selector[1:]
    return _WHITESPACE_RE.sub("", selector)


def parse_stylesheet(css: Optional[str]) -> dict[str, Style]:
    """Parse a ``<style>`` block into rules keyed by class or tag name.

    A selector that appears twice keeps only its last rule. Rules that end
    up with no declarations are omitted.
    """
    rules: dict[str, Style] = {}
    if not css:
        return rules
    css = _COMMENT_RE.sub("", css)
    for match in _RULE_RE.finditer(css):
        declarations = parse_declarations(match.group(2).strip())
        if declarations:
            rules[selector_key(match.group(1))] = declarations
    return rules


# ---------------------------------------------------------------------------
# StyleManager
# ---------------------------------------------------------------------------

class StyleManager:
    """Holds the parsed stylesheet of one document and resolves node styles.

    Usage::

        sm = StyleManager.from_stylesheets(parsed.stylesheets)
        style = sm.resolve(node)
    """

    def __init__(self, rules: Optional[Mapping[str, Style]] = None) -> None:
        self._rules: dict[str, Style] = {k: dict(v) for k, v in (rules or {}).items()}

    @classmethod
    def from_stylesheets(cls, stylesheets: Iterable[str]) -> StyleManager:
        """Merge several ``<style>`` texts in order; a later selector wins."""
        rules: dict[str, Style] = {}
        for css in stylesheets:
            rules.update(parse_stylesheet(css))
        return cls(rules)

    # -- public API ---------------------------------------------------------

    @property
    def rules(self) -> dict[str, Style]:
        return self._rules

    def rule(self, name: str) -> Style:
        """Return a copy of the rule keyed *name*, or an empty map."""
        return dict(self._rules.get(name, {}))

    def resolve(self, node: MarkupNode) -> Style:
        """Return the cascaded style of *node*. Never raises."""
        if node.is_text:
            return {}

        style: Style = {}
        class_key = _WHITESPACE_RE.sub("", node.class_name)
        if class_key:
            style.update(self._rules.get(class_key, {}))
        style.update(self._rules.get(node.tag, {}))
        style.update(parse_declarations(node.attributes.get("style")))

        if style.get("fontFamily"):
            style["fontFamily"] = normalize_font_family(style["fontFamily"])
        return style
