"""Repair HTML that Confluence escaped one time too many.

Exports sometimes carry ``&lt;p&gt;`` where a real ``<p>`` was meant.  Only a
small, fixed set of entities is decoded, plus numeric references in the
printable ASCII range; anything above it is left alone because decoding high
code points would corrupt text that legitimately contains ``&#``.
"""

from __future__ import annotations

import re

from confluence2md.tables import HTML_ENTITIES

# Numeric references are decoded only when 0 < value < 127.
MAX_ASCII_CODE_POINT = 127

_HEX_ENTITY_RE = re.compile(r"&#[xX]([0-9a-fA-F]+);")
_DEC_ENTITY_RE = re.compile(r"&#(\d+);")

# Longer digit runs cannot be below the bound; skip int() on them entirely.
_MAX_DIGITS = 8


def _decode_numeric(match: re.Match[str], base: int) -> str:
    digits = match.group(1)
    if len(digits) > _MAX_DIGITS:
        return match.group(0)
    value = int(digits, base)
    if 0 < value < MAX_ASCII_CODE_POINT:
        return chr(value)
    return match.group(0)


def needs_entity_decoding(text: str) -> bool:
    """Return True if *text* shows signs of double-encoded markup."""
    return "&lt;" in text or "&#" in text


def replace_named_entities(text: str) -> str:
    """Replace the fixed entity table only (no generic numeric decoding)."""
    for entity, char in HTML_ENTITIES.items():
        text = text.replace(entity, char)
    return text


def decode_html_entities(text: str) -> str:
    """Decode double-encoded HTML in *text*.

    Returns *text* itself, untouched, when it contains neither ``&lt;`` nor
    ``&#``.  Otherwise the fixed entity table is applied, followed by hex
    (``&#x3C;``) and decimal (``&#60;``) references below 127.  Out-of-range
    or malformed references are kept verbatim.
    """
    if not needs_entity_decoding(text):
        return text

    text = replace_named_entities(text)
    text = _HEX_ENTITY_RE.sub(lambda m: _decode_numeric(m, 16), text)
    return _DEC_ENTITY_RE.sub(lambda m: _decode_numeric(m, 10), text)
