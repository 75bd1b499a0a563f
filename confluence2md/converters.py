"""HTML -> Markdown converter backends.

The pipeline treats the converter as an opaque ``convert(html) -> str``
step.  Two backends ship with the package:

- :class:`PandocConverter` runs ``pandoc -f html -t gfm --wrap=none`` with the
  HTML on stdin (never on the command line) under a timeout.
- :class:`MarkdownifyConverter` is a pure-Python fallback for machines
  without pandoc.

Failures of either raise :class:`~confluence2md.errors.ConversionError`; the
caller decides whether to retry, nothing here does.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, runtime_checkable

from confluence2md.errors import ConversionError
from confluence2md.pandoc import PandocLocator, get_locator
from confluence2md.settings import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class Converter(Protocol):
    """Anything that turns pre-processed HTML into Markdown-like text."""

    name: str

    def convert(self, html: str) -> str:
        """Return the converted text or raise ``ConversionError``."""
        ...


# ---------------------------------------------------------------------------
# pandoc
# ---------------------------------------------------------------------------

class PandocConverter:
    """Convert by piping HTML through the pandoc executable."""

    name = "pandoc"

    def __init__(
        self,
        settings: Settings | None = None,
        locator: PandocLocator | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._locator = locator or get_locator(self._settings.pandoc_path)

    def command(self, executable: str) -> list[str]:
        s = self._settings
        return [executable, "-f", s.pandoc_from, "-t", s.pandoc_to, *s.pandoc_args]

    def convert(self, html: str) -> str:
        executable = self._locator.get()
        cmd = self.command(executable)
        logger.debug("Running %s on %d chars of HTML", " ".join(cmd), len(html))
        try:
            proc = subprocess.run(
                cmd,
                input=html.encode("utf-8"),
                capture_output=True,
                timeout=self._settings.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
            raise ConversionError(
                f"pandoc timed out after {self._settings.timeout:g}s",
                stderr=stderr,
            ) from exc
        except OSError as exc:
            raise ConversionError(f"pandoc could not be started: {exc}") from exc

        stderr = proc.stderr.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise ConversionError(
                f"pandoc failed (exit {proc.returncode}): {stderr.strip()}",
                returncode=proc.returncode,
                stderr=stderr,
            )
        if stderr.strip():
            logger.debug("pandoc stderr: %s", stderr.strip())
        return proc.stdout.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# markdownify
# ---------------------------------------------------------------------------

def _detect_lang(el: object) -> str:
    """Extract a language hint from an element's class list for markdownify."""
    getter = getattr(el, "get", None)
    classes = (getter("class") if getter else None) or []
    for cls in classes:
        if isinstance(cls, str) and cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


class MarkdownifyConverter:
    """Convert with the ``markdownify`` library; no external executable.

    The library call runs in a worker thread so ``Settings.timeout`` bounds
    it like the pandoc subprocess.  A thread cannot be killed: on timeout the
    worker is abandoned and its eventual result discarded.
    """

    name = "markdownify"

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def convert(self, html: str) -> str:
        from markdownify import markdownify

        timeout = self._settings.timeout
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="markdownify")
        future = executor.submit(
            markdownify,
            html,
            heading_style="ATX",
            bullets="-",
            code_language_callback=_detect_lang,
            strip=["script", "style"],
        )
        try:
            return future.result(timeout=timeout)
        except TimeoutError as exc:
            future.cancel()
            raise ConversionError(f"markdownify timed out after {timeout:g}s") from exc
        except Exception as exc:
            raise ConversionError(f"markdownify failed: {exc}") from exc
        finally:
            executor.shutdown(wait=False)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def build_converter(
    settings: Settings | None = None,
    locator: PandocLocator | None = None,
) -> Converter:
    """Return the backend selected by *settings*.

    ``backend="auto"`` picks pandoc when it resolves and markdownify
    otherwise.  The choice is made once, up front; a pandoc failure during
    conversion is not retried with markdownify.
    """
    settings = settings or Settings()
    if settings.backend == "markdownify":
        return MarkdownifyConverter(settings)
    locator = locator or get_locator(settings.pandoc_path)
    pandoc = PandocConverter(settings, locator)
    if settings.backend == "pandoc" or locator.available():
        return pandoc
    logger.debug("pandoc unavailable, falling back to markdownify")
    return MarkdownifyConverter(settings)


def check_converter(
    settings: Settings | None = None,
    locator: PandocLocator | None = None,
) -> None:
    """Raise ``ConversionError`` if the configured backend cannot run."""
    settings = settings or Settings()
    if settings.backend == "markdownify":
        try:
            import markdownify  # noqa: F401
        except ImportError as exc:
            raise ConversionError("markdownify is not installed: pip install markdownify") from exc
        return
    if settings.backend == "pandoc":
        (locator or get_locator(settings.pandoc_path)).get()
