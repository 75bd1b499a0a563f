"""confluence2md - turn Confluence "Export to Word" files into clean Markdown.

Quick usage::

    from confluence2md import extract_and_convert, sniff

    if sniff("Team+Handbook.doc"):
        print(extract_and_convert("Team+Handbook.doc"))

Choosing a backend::

    from confluence2md import load_settings, extract_and_convert

    settings = load_settings(backend="markdownify")
    markdown = extract_and_convert("Team+Handbook.doc", settings=settings)
"""

from confluence2md.errors import (
    Confluence2MdError,
    ContainerFormatError,
    ConversionError,
    InputReadError,
    MissingContentError,
)
from confluence2md.items import ConvertedDocument
from confluence2md.query import (
    check_converter,
    convert_document,
    convert_html,
    extract_and_convert,
    output_path_for,
    sniff,
)
from confluence2md.settings import Settings, load_settings

__version__ = "0.1.0"

__all__ = [
    "Confluence2MdError",
    "ContainerFormatError",
    "ConversionError",
    "ConvertedDocument",
    "InputReadError",
    "MissingContentError",
    "Settings",
    "check_converter",
    "convert_document",
    "convert_html",
    "extract_and_convert",
    "load_settings",
    "output_path_for",
    "sniff",
]
