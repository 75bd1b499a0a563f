"""Static lookup tables shared by the rewrite passes."""

from __future__ import annotations

from types import MappingProxyType

# Entities a double-encoded export leaves behind. ``&nbsp;`` maps to a plain
# space so converters do not emit literal non-breaking spaces.
HTML_ENTITIES: MappingProxyType[str, str] = MappingProxyType(
    {
        "&lt;": "<",
        "&gt;": ">",
        "&amp;": "&",
        "&quot;": '"',
        "&#39;": "'",
        "&apos;": "'",
        "&#x27;": "'",
        "&#34;": '"',
        "&#60;": "<",
        "&#62;": ">",
        "&#38;": "&",
        "&nbsp;": " ",
    },
)

# Confluence emoticon images, keyed by their ``alt`` text.
EMOTICON_ALT_TEXT: MappingProxyType[str, str] = MappingProxyType(
    {
        "(tick)": "✅ ",
        "(error)": "❌ ",
        "(blue star)": "\U0001f6a7",
        "(warning)": "⚠️ ",
        "(info)": "ℹ️ ",
        "(question)": "❓ ",
        "(plus)": "➕ ",
        "(minus)": "➖ ",
        "(on)": "\U0001f4a1 ",
        "(off)": "⭕ ",
        "(star)": "⭐ ",
        "(thumbs up)": "\U0001f44d ",
        "(thumbs down)": "\U0001f44e ",
    },
)

# Shortcodes typed directly into page text.
TEXT_EMOJI: MappingProxyType[str, str] = MappingProxyType(
    {
        ":celebration:": "\U0001f389",
        ":thumbsup:": "\U0001f44d",
        ":thumbsdown:": "\U0001f44e",
        ":check:": "✅",
        ":cross:": "❌",
        ":warning:": "⚠️",
        ":info:": "ℹ️",
        ":question:": "❓",
        ":star:": "⭐",
        ":fire:": "\U0001f525",
        ":rocket:": "\U0001f680",
        ":sparkles:": "✨",
    },
)

# Information macro variant (class suffix) -> blockquote label.
INFO_MACRO_LABELS: MappingProxyType[str, str] = MappingProxyType(
    {
        "tip": "Tip",
        "note": "Note",
        "warning": "Warning",
        "information": "Info",
    },
)

# Opening tags of layout containers whose children are promoted.
LAYOUT_WRAPPER_CLASSES: tuple[str, ...] = (
    "contentLayout2",
    "columnLayout*",
    "cell*",
    "innerCell",
    "sectionColumnWrapper",
    "sectionMacro",
    "sectionMacroRow",
    "plugin_pagetree*",
    "plugin_pagetree_children*",
    "plugin-tabmeta-details",
)

TABLE_TAGS: tuple[str, ...] = ("table", "thead", "tbody", "tr", "th", "td")
