"""Structural clean-up of Confluence HTML before it reaches the converter.

Confluence wraps page content in several levels of layout containers, leaves
plugin placeholders and hidden form fields behind, and decorates nearly every
tag with presentation attributes.  Converters either choke on that markup or
fall back to emitting raw HTML, so :data:`PRE_RULES` strips it down to the
plain structure a converter understands.

The rules run in order.  Attribute stripping must precede image
simplification, span unwrapping must follow table clean-up, and the div
balance repair must come last because every earlier group deletes opening
``<div>`` tags while leaving their closers in place.
"""

from __future__ import annotations

import re
from bisect import bisect_left
from collections.abc import Callable

from confluence2md.balance import PairedMarker, balance_markers
from confluence2md.entities import decode_html_entities
from confluence2md.rules import RewriteRule, run_rules
from confluence2md.tables import LAYOUT_WRAPPER_CLASSES, TABLE_TAGS

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

# Tag bodies are scanned with ``[^<>]*`` so an opener that never closes
# costs at most the distance to the next ``<``, not the rest of the input.
TAG_BODY = "[^<>]*"

_SRC_ATTR_RE = re.compile(r'(?<![\w-])src="([^"]*)"')
_ALT_ATTR_RE = re.compile(r'(?<![\w-])alt="([^"]*)"')
_CLASS_ATTR_RE = re.compile(r'(?<![\w-])class="([^"]*)"')


def image_attributes(tag: str) -> tuple[str, str]:
    """Return ``(src, alt)`` from an ``<img>`` tag, empty strings if absent."""
    src = _SRC_ATTR_RE.search(tag)
    alt = _ALT_ATTR_RE.search(tag)
    return (src.group(1) if src else "", alt.group(1) if alt else "")


def class_contains(tag: str, *needles: str) -> bool:
    """True if the tag's ``class`` attribute value contains any of *needles*."""
    m = _CLASS_ATTR_RE.search(tag)
    if not m:
        return False
    value = m.group(1)
    return any(needle in value for needle in needles)


def unwrap_elements(
    text: str,
    opener: re.Pattern[str],
    closer: str,
    *,
    keep_inner: bool = True,
    predicate: Callable[[str], bool] | None = None,
    flags: int = 0,
) -> str:
    """Replace ``opener ... closer`` with its inner text (or nothing).

    Each accepted opener pairs with the first *closer* after it, mirroring a
    lazy ``opener([\\s\\S]*?)closer`` substitution, but closer positions are
    found with a binary search instead of rescanning the tail for every
    opener.  Openers with no closer after them are left as literal text.
    *flags* apply to the closer search only; compile them into *opener*.
    """
    closers = [m.start() for m in re.finditer(re.escape(closer), text, flags)]
    if not closers:
        return text

    out: list[str] = []
    pos = 0
    for m in opener.finditer(text):
        if m.start() < pos:
            continue
        if predicate is not None and not predicate(m.group(0)):
            continue
        i = bisect_left(closers, m.end())
        if i == len(closers):
            break
        end = closers[i]
        out.append(text[pos:m.start()])
        if keep_inner:
            out.append(text[m.end():end])
        pos = end + len(closer)
    out.append(text[pos:])
    return "".join(out)


# ---------------------------------------------------------------------------
# Layout and plugin wrappers
# ---------------------------------------------------------------------------

def _layout_opener(class_name: str) -> str:
    if class_name.endswith("*"):
        return rf'<div class="{re.escape(class_name[:-1])}[^"<>]*"{TAG_BODY}>'
    return rf'<div class="{re.escape(class_name)}"{TAG_BODY}>'


_LAYOUT_RULES = tuple(
    RewriteRule.regex(f"layout:{name.rstrip('*')}", _layout_opener(name))
    for name in LAYOUT_WRAPPER_CLASSES
)

_PLUGIN_RULES = (
    RewriteRule.function(
        "hidden-fieldset",
        lambda html: unwrap_elements(
            html,
            re.compile(rf'<fieldset class="hidden"{TAG_BODY}>'),
            "</fieldset>",
            keep_inner=False,
        ),
    ),
    RewriteRule.regex("hidden-input", rf'<input type="hidden"{TAG_BODY}>'),
    RewriteRule.function(
        "pagetree-list",
        lambda html: unwrap_elements(
            html,
            re.compile(rf"<ul\b{TAG_BODY}>"),
            "</ul>",
            keep_inner=False,
            predicate=lambda tag: class_contains(tag, "plugin_pagetree"),
        ),
    ),
)

# ---------------------------------------------------------------------------
# Empty paragraphs and presentation attributes
# ---------------------------------------------------------------------------

_EMPTY_PARAGRAPH_RULES = (
    RewriteRule.regex("empty-paragraph", r"<p>\s*</p>"),
    RewriteRule.regex("break-only-paragraph", r"<p>\s*<br\s*/?>\s*</p>"),
    RewriteRule.regex("escaped-break-paragraph", rf"<p{TAG_BODY}>\s*\\?<br\s*/?>\\?\s*</p>"),
)


def attribute_pattern(attr: str) -> str:
    """Regex for ``<whitespace>attr="value"``.

    The look-behind lets only the first character of a whitespace run start
    a match, so a long run is scanned once instead of once per position.
    """
    return rf'(?<!\s)\s+{attr}="[^"]*"'


_ATTRIBUTE_RULES = (
    RewriteRule.regex("style-attr", attribute_pattern("style")),
    RewriteRule.regex("data-attr", attribute_pattern("data-[a-z-]+")),
    RewriteRule.regex("tabindex-attr", attribute_pattern("tabindex")),
    RewriteRule.regex("draggable-attr", attribute_pattern("draggable")),
)

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_IMG_TAG_RE = re.compile(rf"<img\b{TAG_BODY}>")


def _simplify_image(match: re.Match[str]) -> str:
    src, alt = image_attributes(match.group(0))
    if not src:
        return ""
    return f'<img src="{src}" alt="{alt}">'


_IMAGE_RULES = (RewriteRule.regex("simplify-img", _IMG_TAG_RE, _simplify_image),)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_TABLE_TAG_ALT = "|".join(TABLE_TAGS)
_CELL_TOKEN_RE = re.compile(r"</?t[dh]>")
_PARAGRAPH_OPEN_RE = re.compile(rf"<p\b{TAG_BODY}>")
_BREAK_RE = re.compile(r"<br\s*/?>")
_CELL_LINE_BREAK_RE = re.compile(r"(?<!\s)\s*\n\s*")
_TABLE_OPEN_RE = re.compile(rf"<(?:{_TABLE_TAG_ALT})\b{TAG_BODY}")
_CELL_OPEN_RE = re.compile(rf"<(?:th|td)\b{TAG_BODY}")


def _flatten_cell(tag: str, inner: str) -> str:
    inner = _PARAGRAPH_OPEN_RE.sub("", inner)
    inner = inner.replace("</p>", " ")
    inner = _BREAK_RE.sub(" ", inner)
    inner = _CELL_LINE_BREAK_RE.sub(" ", inner).strip()
    return f"<{tag}>{inner}</{tag}>"


def merge_cell_paragraphs(html: str) -> str:
    """Unwrap ``<p>`` inside each ``<td>``/``<th>`` and join them with spaces.

    A cell runs from an opener to the first closer after it; nested cell tags
    inside that span are dropped.  The cell keeps the opener's tag name.
    """
    out: list[str] = []
    pos = 0
    open_at = -1
    open_end = 0
    open_tag = ""
    for m in _CELL_TOKEN_RE.finditer(html):
        token = m.group(0)
        if token[1] != "/":
            if open_at == -1:
                open_at, open_end, open_tag = m.start(), m.end(), token[1:3]
            continue
        if open_at == -1:
            continue
        inner = _CELL_TOKEN_RE.sub("", html[open_end:m.start()])
        out.append(html[pos:open_at])
        out.append(_flatten_cell(open_tag, inner))
        pos = m.end()
        open_at = -1
    out.append(html[pos:])
    return "".join(out)


def drop_tag_attribute(opener: re.Pattern[str], attr: str) -> Callable[[str], str]:
    """Remove the first *attr* from every tag *opener* matches."""
    attr_re = re.compile(attribute_pattern(attr))
    return lambda html: opener.sub(lambda m: attr_re.sub("", m.group(0), count=1), html)


_TABLE_RULES = (
    RewriteRule.function(
        "colgroup",
        lambda html: unwrap_elements(
            html,
            re.compile(rf"<colgroup{TAG_BODY}>", re.IGNORECASE),
            "</colgroup>",
            keep_inner=False,
            flags=re.IGNORECASE,
        ),
    ),
    RewriteRule.regex("col", rf"<col{TAG_BODY}>", flags=re.IGNORECASE),
    RewriteRule.function("table-class", drop_tag_attribute(_TABLE_OPEN_RE, "class")),
    RewriteRule.function("cell-scope", drop_tag_attribute(_CELL_OPEN_RE, "scope")),
    RewriteRule.regex("table-wrap", rf'<div class="table-wrap"{TAG_BODY}>'),
    RewriteRule.regex("table-attrs", rf"<({_TABLE_TAG_ALT})\b{TAG_BODY}>", r"<\1>"),
    RewriteRule.regex(
        "cell-break",
        r"(<t[dh]>)([^<]*)<br\s*/?>([^<]*)(</t[dh]>)",
        r"\1\2 \3\4",
    ),
    RewriteRule.regex("empty-td-break", r"<td>\s*<br\s*/?>\s*</td>", "<td></td>"),
    RewriteRule.regex("empty-th-break", r"<th>\s*<br\s*/?>\s*</th>", "<th></th>"),
    RewriteRule.regex("cell-single-paragraph", r"(<t[dh]>)\s*<p>([^<]*)</p>\s*(</t[dh]>)", r"\1\2\3"),
    RewriteRule.function("cell-paragraphs", merge_cell_paragraphs),
)

# ---------------------------------------------------------------------------
# Spans and wrapper divs
# ---------------------------------------------------------------------------

_SPAN_OPEN_RE = re.compile(rf"<span\b{TAG_BODY}>")
_DIV_OPEN_RE = re.compile(rf"<div\b{TAG_BODY}>")
_EMPTY_SPAN_RE = re.compile(rf"<span\b{TAG_BODY}>\s*</span>")


def _unwrap_spans(predicate: Callable[[str], bool] | None = None) -> Callable[[str], str]:
    return lambda html: unwrap_elements(html, _SPAN_OPEN_RE, "</span>", predicate=predicate)


_SPAN_RULES = (
    RewriteRule.function("nolink-span", _unwrap_spans(lambda tag: class_contains(tag, "nolink"))),
    RewriteRule.function(
        "status-span",
        _unwrap_spans(
            lambda tag: class_contains(tag, "status-macro", "aui-message", "aui-lozenge"),
        ),
    ),
    RewriteRule.regex(
        "empty-icon-span",
        _EMPTY_SPAN_RE,
        lambda m: "" if class_contains(m.group(0), "icon") else m.group(0),
    ),
    RewriteRule.function("span", _unwrap_spans()),
    # Nested or unterminated spans survive pairwise unwrapping.
    RewriteRule.regex("stray-span-tag", rf"</?span\b{TAG_BODY}>"),
)

_WRAPPER_RULES = (
    RewriteRule.function(
        "content-wrapper",
        lambda html: unwrap_elements(
            html,
            _DIV_OPEN_RE,
            "</div>",
            predicate=lambda tag: class_contains(tag, "content-wrapper"),
        ),
    ),
)

_DIV_MARKER = PairedMarker("<div", "</div>")

_BALANCE_RULES = (
    RewriteRule.function("div-balance", lambda html: balance_markers(html, _DIV_MARKER)),
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

PRE_RULES: tuple[RewriteRule, ...] = (
    RewriteRule.function("decode-entities", decode_html_entities),
    *_LAYOUT_RULES,
    *_PLUGIN_RULES,
    *_EMPTY_PARAGRAPH_RULES,
    *_ATTRIBUTE_RULES,
    *_IMAGE_RULES,
    *_TABLE_RULES,
    *_SPAN_RULES,
    *_WRAPPER_RULES,
    *_BALANCE_RULES,
)


def preprocess_html(html: str) -> str:
    """Strip Confluence layout and presentation markup from *html*."""
    return run_rules(html, PRE_RULES)
