"""Paired-marker balance enforcement.

The expander conversion emits ``<details>`` / ``</details>`` pairs from a
string rewrite that cannot see the document structure, so stray closers are
possible.  :func:`balance_markers` removes surplus closers from the right
until no more closers than openers remain.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PairedMarker:
    """A named open/close delimiter pair that may nest."""

    open: str
    close: str


DETAILS = PairedMarker("<details>", "</details>")


def balance_markers(text: str, marker: PairedMarker = DETAILS) -> str:
    """Delete excess *marker* closers, rightmost first.

    Counts are recomputed from the live text after every deletion: removing a
    closer can join the characters on either side into a brand-new closer
    (``"<</details>/details>"`` becomes ``"</details>"``), which a running
    counter would miss.  Openers and all other text are never touched.
    """
    if not marker.close:
        return text
    while True:
        opens = text.count(marker.open)
        closes = text.count(marker.close)
        if closes <= opens:
            return text
        idx = text.rfind(marker.close)
        if idx == -1:
            return text
        text = text[:idx] + text[idx + len(marker.close):]


def balance_details_tags(text: str) -> str:
    """Balance ``<details>`` / ``</details>`` in converted Markdown."""
    return balance_markers(text, DETAILS)
