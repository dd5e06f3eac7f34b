"""Map CSS ``font-family`` declarations onto the PDF base-14 families."""

from __future__ import annotations

from typing import Optional

SANS = "Helvetica"
SERIF = "Times-Roman"
MONOSPACE = "Courier"

# Three canonical families; every input normalises to one of them.
CANONICAL_FONTS = (SANS, SERIF, MONOSPACE)

# Checked in order; "sans-serif" must be tested before "serif".
_FAMILY_HINTS = (
    (("arial", "sans-serif", "helvetica"), SANS),
    (("times", "serif"), SERIF),
    (("courier", "monospace"), MONOSPACE),
)


def normalize_font_family(font_family: Optional[str]) -> str:
    """Return the canonical font for the first family in *font_family*.

    Unknown, empty and missing values fall back to Helvetica.
    """
    if not font_family:
        return SANS
    font = font_family.split(",")[0].strip().strip("'\"").lower()
    for hints, canonical in _FAMILY_HINTS:
        if any(hint in font for hint in hints):
            return canonical
    return SANS
