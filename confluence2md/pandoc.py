"""Locate and verify the pandoc executable once per process.

Resolution order: an explicit path, then ``$CONFLUENCE2MD_PANDOC``, then
``pandoc`` on ``$PATH``.  The resolved path, or the failure, is cached until
:meth:`PandocLocator.invalidate` is called, so a batch of conversions pays for
the ``pandoc --version`` check exactly once.

Usage::

    from confluence2md.pandoc import get_locator

    locator = get_locator()
    path = locator.get()          # raises ConversionError if unusable
    print(locator.version())      # "pandoc 3.6.4"
    locator.invalidate()          # force re-resolution on next get()
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading

from confluence2md.errors import ConversionError

logger = logging.getLogger(__name__)

PANDOC_ENV_VAR = "CONFLUENCE2MD_PANDOC"
VERIFY_TIMEOUT = 10.0

_INSTALL_HINT = "pandoc not found in PATH. Please install pandoc: https://pandoc.org/installing.html"


def _run_version(path: str) -> str:
    try:
        proc = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=VERIFY_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise ConversionError(f"binary not executable: {path}: {exc}") from exc
    if proc.returncode != 0:
        raise ConversionError(
            f"binary not executable: {path} exited with {proc.returncode}",
            returncode=proc.returncode,
            stderr=proc.stderr,
        )
    if "pandoc" not in proc.stdout:
        raise ConversionError(f"unexpected output from {path} --version")
    return proc.stdout


class PandocLocator:
    """Thread-safe, lazily-resolved handle on a pandoc executable.

    Both outcomes of the first resolution are sticky: a successful path is
    returned to every later caller, and so is the error.
    """

    def __init__(self, explicit_path: str | None = None) -> None:
        self._explicit_path = explicit_path
        self._lock = threading.Lock()
        self._resolved = False
        self._path: str | None = None
        self._error: ConversionError | None = None
        self._version_line = ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _candidate(self) -> str | None:
        if self._explicit_path:
            return self._explicit_path
        env_path = os.environ.get(PANDOC_ENV_VAR, "").strip()
        if env_path:
            return env_path
        return shutil.which("pandoc")

    def _resolve(self) -> None:
        candidate = self._candidate()
        if not candidate:
            raise ConversionError(_INSTALL_HINT)
        output = _run_version(candidate)
        self._path = candidate
        self._version_line = output.splitlines()[0].strip() if output.strip() else ""
        logger.debug("Resolved pandoc at %s (%s)", candidate, self._version_line)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self) -> str:
        """Return the verified pandoc path, resolving it on first use.

        Raises:
            ConversionError: pandoc is missing or fails verification.  The same
                error is raised again on every call until :meth:`invalidate`.
        """
        with self._lock:
            if not self._resolved:
                try:
                    self._resolve()
                except ConversionError as exc:
                    logger.debug("pandoc resolution failed: %s", exc)
                    self._error = exc
                self._resolved = True
            if self._error is not None:
                raise self._error
            if self._path is None:
                raise ConversionError(_INSTALL_HINT)
            return self._path

    def available(self) -> bool:
        """Return True if :meth:`get` would succeed."""
        try:
            self.get()
        except ConversionError:
            return False
        return True

    def version(self) -> str:
        """Return the first line of ``pandoc --version``."""
        self.get()
        return self._version_line

    @property
    def path(self) -> str | None:
        """The cached path, or None if unresolved or resolution failed."""
        return self._path

    def invalidate(self) -> None:
        """Drop the cached outcome so the next :meth:`get` resolves again."""
        with self._lock:
            self._resolved = False
            self._path = None
            self._error = None
            self._version_line = ""


_DEFAULT_LOCATOR = PandocLocator()
_explicit_locators: dict[str, PandocLocator] = {}
_registry_lock = threading.Lock()


def get_locator(explicit_path: str | None = None) -> PandocLocator:
    """Return the shared locator for *explicit_path* (or the default one)."""
    if not explicit_path:
        return _DEFAULT_LOCATOR
    with _registry_lock:
        locator = _explicit_locators.get(explicit_path)
        if locator is None:
            locator = PandocLocator(explicit_path)
            _explicit_locators[explicit_path] = locator
        return locator
