"""confluence2md.query - convert single Confluence exports from Python.

Basic usage::

    from confluence2md.query import extract_and_convert, sniff

    if sniff("Team+Handbook.doc"):
        markdown = extract_and_convert("Team+Handbook.doc")

With provenance::

    doc = convert_document("Team+Handbook.doc")
    print(doc.converter, doc.html_chars)
    print(doc.markdown)

Low-level access::

    from confluence2md.query import convert_html

    markdown = convert_html("<h1>Title</h1><p>Body</p>")
"""

from __future__ import annotations

import logging
from pathlib import Path

from confluence2md.converters import Converter, build_converter
from confluence2md.converters import check_converter as _check_backend
from confluence2md.errors import Confluence2MdError
from confluence2md.items import ConvertedDocument
from confluence2md.mime import Source, extract_html, is_confluence_export
from confluence2md.postprocess import postprocess_markdown
from confluence2md.preprocess import preprocess_html
from confluence2md.settings import Settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def sniff(path: Source) -> bool:
    """Return True if *path* looks like a Confluence MIME export.

    Raises:
        InputReadError: The file cannot be read (never reported as ``False``).
    """
    return is_confluence_export(path)


def check_converter(settings: Settings | None = None) -> None:
    """Raise ``ConversionError`` if the configured backend cannot run."""
    _check_backend(settings)


def convert_html(
    html: str,
    converter: Converter | None = None,
    settings: Settings | None = None,
) -> str:
    """Run the normalisation pipeline on raw Confluence HTML.

    Args:
        html:      Confluence page HTML (entity double-escaping is repaired).
        converter: Backend to use.  Built from *settings* when omitted.
        settings:  Settings for building the backend; defaults when omitted.

    Returns:
        Markdown ending in exactly one newline.

    Raises:
        ConversionError: The backend failed or timed out.
    """
    if converter is None:
        converter = build_converter(settings)
    cleaned = preprocess_html(html)
    raw = converter.convert(cleaned)
    return postprocess_markdown(raw)


def convert_document(
    path: Source,
    settings: Settings | None = None,
    converter: Converter | None = None,
) -> ConvertedDocument:
    """Extract the HTML from an export at *path* and convert it.

    Raises:
        InputReadError:       The file cannot be read.
        ContainerFormatError: The MIME envelope is unusable.
        MissingContentError:  No ``text/html`` part.
        ConversionError:      The backend failed or timed out.
    """
    source_name = str(path) if isinstance(path, (str, Path)) else str(getattr(path, "name", ""))
    html = extract_html(path)
    if converter is None:
        converter = build_converter(settings)
    logger.debug("Converting %s (%d chars) with %s", source_name, len(html), converter.name)
    try:
        markdown = convert_html(html, converter)
    except Confluence2MdError as exc:
        if not exc.path:
            exc.path = source_name
        raise
    return ConvertedDocument(
        source_path=source_name,
        markdown=markdown,
        html_chars=len(html),
        converter=converter.name,
    )


def extract_and_convert(
    path: Source,
    settings: Settings | None = None,
    converter: Converter | None = None,
) -> str:
    """Return the Markdown for the export at *path*.

    See :func:`convert_document` for the errors raised.
    """
    return convert_document(path, settings=settings, converter=converter).markdown


def output_path_for(input_path: str | Path) -> Path:
    """Derive the ``.md`` path for an export: drop ``.doc``, ``+`` becomes ``-``."""
    p = Path(input_path)
    name = p.name.removesuffix(".doc").replace("+", "-")
    return p.with_name(name + ".md")
