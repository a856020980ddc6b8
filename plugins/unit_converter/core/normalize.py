"""Unit-text normalisation shared by the alias index and the parser."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")

_GLYPHS: dict[str, str] = {
    "°": "deg",
    "º": "deg",
    "µ": "u",  # micro sign
    "μ": "u",  # greek small mu
    "å": "angstrom",
    "Å": "angstrom",
    "Å": "angstrom",  # angstrom sign
    "“": '"',
    "”": '"',
    "″": '"',
    "‘": "'",
    "’": "'",
    "′": "'",
    "–": "-",
    "—": "-",
    "²": "2",
    "³": "3",
    "·": "*",
}


def normalize_unit_text(text: str) -> str:
    """Lowercase, trim, collapse whitespace and map unit glyphs to ASCII."""

    lowered = text.strip().lower()
    for glyph, replacement in _GLYPHS.items():
        if glyph in lowered:
            lowered = lowered.replace(glyph, replacement)
    return _WHITESPACE.sub(" ", lowered).strip()


__all__ = ["normalize_unit_text"]
