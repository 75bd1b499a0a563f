"""Exception hierarchy for confluence2md.

Every failure that reaches a caller is a :class:`Confluence2MdError` so batch
callers can catch one type and still branch on the concrete stage.
"""

from __future__ import annotations


class Confluence2MdError(RuntimeError):
    """Base error for every conversion stage.

    Attributes:
        path  -- input file the failure relates to ("" when not file based)
        stage -- pipeline stage that failed ("read", "mime", "convert", ...)
    """

    stage_name = "convert"

    def __init__(self, message: str, path: str = "", stage: str | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path else ""
        self.stage = stage or self.stage_name


class InputReadError(Confluence2MdError):
    """The input file could not be opened or read."""

    stage_name = "read"


class ContainerFormatError(Confluence2MdError):
    """The MIME envelope is malformed, not multipart, or lacks a boundary."""

    stage_name = "mime"


class MissingContentError(Confluence2MdError):
    """A well-formed multipart message carried no ``text/html`` part."""

    stage_name = "mime"


class ConversionError(Confluence2MdError):
    """The external HTML to Markdown converter failed or timed out.

    Attributes:
        returncode -- exit status of the converter process (None if it never ran
                      or was killed on timeout)
        stderr     -- diagnostic output captured from the converter
    """

    stage_name = "convert"

    def __init__(
        self,
        message: str,
        path: str = "",
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, path=path)
        self.returncode = returncode
        self.stderr = stderr
