"""Clean up converter output into final Markdown.

The converter passes through any HTML it cannot express (Confluence macros,
expanders, panels) and escapes some tags it only half understands.
:data:`POST_RULES` maps the known Confluence constructs to Markdown, drops
the rest, normalises whitespace and finally enforces ``<details>`` balance.
"""

from __future__ import annotations

import re

from confluence2md.balance import balance_details_tags
from confluence2md.preprocess import TAG_BODY, image_attributes
from confluence2md.rules import RewriteRule, literal_rules, run_rules
from confluence2md.tables import (
    EMOTICON_ALT_TEXT,
    HTML_ENTITIES,
    INFO_MACRO_LABELS,
    TEXT_EMOJI,
)

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")

# ---------------------------------------------------------------------------
# Emoticons
# ---------------------------------------------------------------------------

_IMG_TAG_RE = re.compile(rf"<img\b{TAG_BODY}>")


def _replace_emoticon(match: re.Match[str]) -> str:
    tag = match.group(0)
    _, alt = image_attributes(tag)
    if alt in EMOTICON_ALT_TEXT:
        return EMOTICON_ALT_TEXT[alt]
    if "expand-control-image" in tag:
        return ""
    return tag


_EMOTICON_RULES = (RewriteRule.regex("emoticon-img", _IMG_TAG_RE, _replace_emoticon),)

# ---------------------------------------------------------------------------
# Confluence block macros
# ---------------------------------------------------------------------------

_WRAPPER_RULES = (
    RewriteRule.regex("section1", r'<div class="Section1">\s*'),
    RewriteRule.regex("toc-macro", rf'<div class="toc-macro[^"<>]*"{TAG_BODY}>\s*'),
)

_INFO_MACRO_RULES = tuple(
    RewriteRule.regex(
        f"info-macro:{variant}",
        rf'<div class="confluence-information-macro confluence-information-macro-{variant}"{TAG_BODY}>\s*',
        f"\n> **{label}:** ",
    )
    for variant, label in INFO_MACRO_LABELS.items()
)

_ICON_RULES = (
    RewriteRule.regex("aui-icon", rf'<span class="aui-icon[^"<>]*"{TAG_BODY}></span>\s*'),
    RewriteRule.regex("macro-body", r'<div class="confluence-information-macro-body">\s*'),
)

_PANEL_RULES = (
    RewriteRule.regex("panel", rf'<div class="panel"{TAG_BODY}>\s*', "\n> "),
    RewriteRule.regex("panel-content", rf'<div class="panelContent"{TAG_BODY}>\s*'),
)

# ---------------------------------------------------------------------------
# Expanders -> <details>/<summary>
# ---------------------------------------------------------------------------

_EXPANDER_RULES = (
    RewriteRule.regex("expander", rf'<div id="expander-\d+"{TAG_BODY}>\s*', "\n<details>\n"),
    RewriteRule.regex("expander-control", rf'<div id="expander-control-\d+"{TAG_BODY}>\s*', "<summary>"),
    RewriteRule.regex(
        "expander-icon-text",
        r'<span class="expand-control-icon">[^<]*</span>'
        r'<span class="expand-control-text">([^<]*)</span>\s*',
        r"\1",
    ),
    RewriteRule.regex("expander-text", r'<span class="expand-control-text">([^<]*)</span>\s*', r"\1"),
    RewriteRule.regex("expander-icon", r'<span class="expand-control-icon">[^<]*</span>\s*'),
    RewriteRule.regex("expander-content", rf'<div id="expander-content-\d+"{TAG_BODY}>\s*', "</summary>\n"),
)

_ADJACENCY_RULES = (
    RewriteRule.regex("summary-then-details", r"</summary>[ \t\r\f\v]*\n\s*<details>\s*\n", "</summary>\n\n"),
    RewriteRule.regex("details-then-fence", r"<details>\s*\n```", "\n```"),
)

# ---------------------------------------------------------------------------
# Code blocks, links, leftover wrappers
# ---------------------------------------------------------------------------

_CODE_RULES = (
    RewriteRule.regex("code-panel", rf'<div class="code panel[^"<>]*"{TAG_BODY}>\s*'),
    RewriteRule.regex("code-content", rf'<div class="codeContent[^"<>]*"{TAG_BODY}>\s*'),
    RewriteRule.regex("code-header", rf'<div class="codeHeader[^"<>]*"{TAG_BODY}>\s*'),
    RewriteRule.literal_text("syntaxhighlighter", "``` syntaxhighlighter-pre", "```"),
    RewriteRule.regex("fence-attributes", r"```\s*\{[^}`]*\}", "```"),
)

_LINK_RULES = (
    RewriteRule.regex("anchor", rf'<a\s+href="([^"]*)"{TAG_BODY}>([^<]*)</a>', r"[\2](\1)"),
    RewriteRule.regex("underlined-anchor", rf'<a\s+href="([^"]*)"{TAG_BODY}><u>([^<]*)</u></a>', r"[\2](\1)"),
    RewriteRule.regex("underline", r"</?u>"),
)

_CLOSING_DIV_RULES = (
    RewriteRule.regex("three-div-close", r"</div>\s*</div>\s*</div>\s*", "\n</details>\n\n"),
    RewriteRule.regex("two-div-close", r"</div>\s*</div>\s*", "\n\n"),
    RewriteRule.literal_text("div-close", "</div>"),
)

_SPAN_RULES = (RewriteRule.regex("span-tag", rf"</?span{TAG_BODY}>"),)

_ENTITY_RULES = literal_rules("entity", HTML_ENTITIES)

# ---------------------------------------------------------------------------
# Escaped HTML the converter did not translate (\<tag\>)
# ---------------------------------------------------------------------------

_ESCAPED_IMG_RE = re.compile(rf"\\<img\b{TAG_BODY}>")


def _escaped_image(match: re.Match[str]) -> str:
    src, alt = image_attributes(match.group(0))
    if not src:
        return ""
    return f"![{alt or 'image'}]({src})"


_ESCAPED_TAG_RULES = (
    RewriteRule.regex("escaped-br", r"\\<br\\?/?>", "\n"),
    RewriteRule.regex("escaped-p", r"\\</?p\\?>", "\n"),
    RewriteRule.regex("escaped-div", rf"\\</?div{TAG_BODY}>"),
    RewriteRule.regex("escaped-span", rf"\\</?span{TAG_BODY}>"),
    RewriteRule.regex("escaped-img", _ESCAPED_IMG_RE, _escaped_image),
    RewriteRule.regex("escaped-tag", rf"\\<{TAG_BODY}>"),
)

# ---------------------------------------------------------------------------
# Lists, stray tags, whitespace
# ---------------------------------------------------------------------------

_LIST_RULES = (
    RewriteRule.regex("double-dash-list", r"^([ \t]*)- - ", r"\1  - ", flags=re.MULTILINE),
)

_STRAY_TAG_RULES = (
    RewriteRule.regex("br", r"<br\s*/?>", "\n"),
    RewriteRule.regex("empty-div", rf"<div{TAG_BODY}>\s*</div>"),
    RewriteRule.literal_text("stray-div-close", "</div>"),
)


def normalize_whitespace(md: str) -> str:
    """Collapse blank-line runs, strip line ends, end with exactly one newline."""
    md = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", md)
    md = "\n".join(line.rstrip(" \t") for line in md.split("\n"))
    return md.strip() + "\n"


_FINISHING_RULES = (
    RewriteRule.function("whitespace", normalize_whitespace),
    RewriteRule.function("balance-details", balance_details_tags),
    *literal_rules("text-emoji", TEXT_EMOJI),
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

POST_RULES: tuple[RewriteRule, ...] = (
    *_EMOTICON_RULES,
    *_WRAPPER_RULES,
    *_INFO_MACRO_RULES,
    *_ICON_RULES,
    *_PANEL_RULES,
    *_EXPANDER_RULES,
    *_ADJACENCY_RULES,
    *_CODE_RULES,
    *_LINK_RULES,
    *_CLOSING_DIV_RULES,
    *_SPAN_RULES,
    *_ENTITY_RULES,
    *_ESCAPED_TAG_RULES,
    *_LIST_RULES,
    *_STRAY_TAG_RULES,
    *_FINISHING_RULES,
)


def postprocess_markdown(md: str) -> str:
    """Turn converter output into clean, balanced Markdown."""
    return run_rules(md, POST_RULES)
