"""Read Confluence "Word" exports: MIME multipart messages wrapping HTML.

Confluence's *Export to Word* produces a ``.doc`` file that is really an
RFC 5322 message with a ``multipart/related`` body: one ``text/html`` part
holding the page (usually quoted-printable) followed by image parts.

Usage::

    from confluence2md.mime import extract_html, is_confluence_export

    if is_confluence_export("Page+Title.doc"):
        html = extract_html("Page+Title.doc")
"""

from __future__ import annotations

import contextlib
import email
import email.errors
import logging
import quopri
from collections.abc import Iterator
from email.message import Message
from pathlib import Path
from typing import BinaryIO

from confluence2md.errors import ContainerFormatError, InputReadError, MissingContentError

logger = logging.getLogger(__name__)

# The Date / MIME-Version / Subject headers sit at the very top of an export.
HEADER_SCAN_LIMIT = 10
# Longer header lines are read in chunks, each chunk counting as a line.
HEADER_LINE_LIMIT = 8192

_CONFLUENCE_MARKER = "Exported From Confluence"

Source = str | Path | BinaryIO


@contextlib.contextmanager
def _open_binary(source: Source) -> Iterator[BinaryIO]:
    if isinstance(source, (str, Path)):
        try:
            fp = open(source, "rb")
        except OSError as exc:
            raise InputReadError(f"failed to open file: {exc}", path=str(source)) from exc
        with fp:
            yield fp
    else:
        yield source


def _source_name(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return str(getattr(source, "name", ""))


# ---------------------------------------------------------------------------
# Sniffing
# ---------------------------------------------------------------------------

def is_confluence_export(source: Source) -> bool:
    """Return True if the first lines look like a Confluence MIME export.

    Only the first :data:`HEADER_SCAN_LIMIT` lines are read, each capped at
    :data:`HEADER_LINE_LIMIT` bytes.  All three of a ``Date:`` line, a
    ``MIME-Version:`` line and a line mentioning ``Exported From Confluence``
    must be present.  This is a heuristic: a
    file can pass here and still fail :func:`extract_html`.

    Raises:
        InputReadError: The file cannot be opened or read.  A read failure is
            never reported as ``False``.
    """
    name = _source_name(source)
    has_date = has_mime_version = has_marker = False
    with _open_binary(source) as fp:
        try:
            lines: list[bytes] = []
            for _ in range(HEADER_SCAN_LIMIT):
                line = fp.readline(HEADER_LINE_LIMIT)
                if not line:
                    break
                lines.append(line)
        except OSError as exc:
            raise InputReadError(f"failed to read file: {exc}", path=name) from exc

    for raw in lines:
        line = raw.decode("utf-8", errors="replace")
        if line.startswith("Date:"):
            has_date = True
        if line.startswith("MIME-Version:"):
            has_mime_version = True
        if _CONFLUENCE_MARKER in line:
            has_marker = True
    return has_date and has_mime_version and has_marker


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _payload_bytes(part: Message) -> bytes:
    """Return the part body exactly as it appeared in the file."""
    payload = part.get_payload()
    if isinstance(payload, bytes):
        return payload
    if not isinstance(payload, str):
        return b""
    # The bytes parser smuggles non-ASCII bytes through as surrogates.
    return payload.encode("utf-8", errors="surrogateescape")


def _decode_part(part: Message) -> str:
    raw = _payload_bytes(part)
    encoding = str(part.get("Content-Transfer-Encoding", "")).strip().lower()
    if encoding == "quoted-printable":
        raw = quopri.decodestring(raw)
    charset = part.get_content_charset() or "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        logger.debug("Unknown charset %r, decoding as UTF-8", charset)
        return raw.decode("utf-8", errors="replace")


def extract_html(source: Source) -> str:
    """Return the decoded HTML of the first ``text/html`` part of *source*.

    Args:
        source: Path to the export, or a binary file object positioned at the
                start of the message.

    Returns:
        The HTML text.  Quoted-printable bodies are decoded; any other
        transfer encoding is returned verbatim.

    Raises:
        InputReadError:       The file cannot be opened or read.
        ContainerFormatError: No ``Content-Type``, not ``multipart/*``, no
                              ``boundary`` parameter, or an unreadable body.
        MissingContentError:  The message has no ``text/html`` part.
    """
    name = _source_name(source)
    with _open_binary(source) as fp:
        try:
            msg = email.message_from_binary_file(fp)
        except OSError as exc:
            raise InputReadError(f"failed to read file: {exc}", path=name) from exc
        except (email.errors.MessageError, ValueError) as exc:
            raise ContainerFormatError(f"failed to parse MIME message: {exc}", path=name) from exc

    if msg.get("Content-Type") is None:
        raise ContainerFormatError("failed to parse Content-Type: header missing", path=name)
    media_type = msg.get_content_type()
    if msg.get_content_maintype() != "multipart":
        raise ContainerFormatError(f"expected multipart message, got: {media_type}", path=name)
    if not msg.get_boundary():
        raise ContainerFormatError("no boundary found in Content-Type", path=name)

    parts = msg.get_payload()
    if not isinstance(parts, list):
        raise ContainerFormatError("failed to read MIME part: boundary not found in body", path=name)

    for index, part in enumerate(parts):
        if part.get_content_type() != "text/html":
            continue
        html = _decode_part(part)
        logger.debug("Extracted %d chars of HTML from part %d of %s", len(html), index, name or "<stream>")
        return html

    raise MissingContentError("no text/html part found in MIME message", path=name)
