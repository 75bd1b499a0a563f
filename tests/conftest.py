"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class EchoConverter:
    """Converter double that returns its input, so post-processing sees raw HTML."""

    name = "echo"

    def __init__(self) -> None:
        self.calls: list[str] = []

    def convert(self, html: str) -> str:
        self.calls.append(html)
        return html


@pytest.fixture
def export_path() -> Path:
    return FIXTURES_DIR / "confluence_export.doc"


@pytest.fixture
def plain_parts_path() -> Path:
    return FIXTURES_DIR / "plain_parts.doc"


@pytest.fixture
def no_html_path() -> Path:
    return FIXTURES_DIR / "no_html.doc"


@pytest.fixture
def notes_path() -> Path:
    return FIXTURES_DIR / "notes.txt"


@pytest.fixture
def echo_converter() -> EchoConverter:
    return EchoConverter()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONFLUENCE2MD_CONFIG", raising=False)
    monkeypatch.delenv("CONFLUENCE2MD_PANDOC", raising=False)
