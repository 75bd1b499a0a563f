"""Tests for confluence2md.query - the single-file conversion API."""

from __future__ import annotations

import shutil
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from confluence2md.errors import ContainerFormatError, ConversionError, InputReadError, MissingContentError
from confluence2md.items import ConvertedDocument
from confluence2md.query import (
    convert_document,
    convert_html,
    extract_and_convert,
    output_path_for,
    sniff,
)
from confluence2md.settings import Settings

requires_pandoc = pytest.mark.skipif(shutil.which("pandoc") is None, reason="pandoc is not installed")


# ---------------------------------------------------------------------------
# sniff()
# ---------------------------------------------------------------------------

class TestSniff:
    def test_export(self, export_path):
        assert sniff(export_path) is True

    def test_not_export(self, notes_path):
        assert sniff(notes_path) is False

    def test_unreadable(self, tmp_path):
        with pytest.raises(InputReadError):
            sniff(tmp_path / "missing.doc")


# ---------------------------------------------------------------------------
# convert_html() - pipeline with a stand-in converter
# ---------------------------------------------------------------------------

class TestConvertHtml:
    def test_converter_sees_preprocessed_html(self, echo_converter):
        convert_html('<div class="contentLayout2"><p style="x">Hi</p></div>', echo_converter)
        assert echo_converter.calls == ["<p>Hi</p>"]

    def test_output_is_postprocessed(self, echo_converter):
        md = convert_html('<p>Done <img class="emoticon" src="t.png" alt="(tick)"></p>', echo_converter)
        assert "✅" in md
        assert "<img" not in md
        assert md.endswith("\n")
        assert not md.endswith("\n\n")

    def test_conversion_error_propagates(self):
        failing = MagicMock()
        failing.convert.side_effect = ConversionError("pandoc failed (exit 1)")
        with pytest.raises(ConversionError):
            convert_html("<p>x</p>", failing)

    def test_builds_converter_from_settings(self):
        md = convert_html("<h1>Title</h1>", settings=Settings(backend="markdownify"))
        assert "# Title" in md


# ---------------------------------------------------------------------------
# convert_document() / extract_and_convert()
# ---------------------------------------------------------------------------

class TestConvertDocument:
    def test_returns_converted_document(self, export_path, echo_converter):
        doc = convert_document(export_path, converter=echo_converter)
        assert isinstance(doc, ConvertedDocument)
        assert doc.source_path == str(export_path)
        assert doc.converter == "echo"
        assert doc.html_chars > 0
        assert doc.line_count == doc.markdown.count("\n")

    def test_full_pipeline_on_export(self, export_path, echo_converter):
        md = extract_and_convert(export_path, converter=echo_converter)
        assert "Team Handbook" in md
        assert "café team" in md
        assert "> **Tip:** " in md
        assert "Read this first" in md
        assert "<td>Alice Bob</td>" in md
        assert "✅" in md
        assert "<img" not in md
        assert "<span" not in md
        assert "contentLayout2" not in md
        assert 'class="Section1"' not in md
        assert md.endswith("\n") and not md.endswith("\n\n")

    def test_missing_html_part(self, no_html_path, echo_converter):
        with pytest.raises(MissingContentError):
            extract_and_convert(no_html_path, converter=echo_converter)
        assert echo_converter.calls == []

    def test_not_mime(self, notes_path, echo_converter):
        with pytest.raises(ContainerFormatError):
            extract_and_convert(notes_path, converter=echo_converter)

    def test_conversion_error_gets_path(self, export_path):
        failing = MagicMock()
        failing.name = "pandoc"
        failing.convert.side_effect = ConversionError("pandoc timed out after 120s")
        with pytest.raises(ConversionError) as exc_info:
            extract_and_convert(export_path, converter=failing)
        assert exc_info.value.path == str(export_path)

    def test_markdownify_backend(self, export_path):
        md = extract_and_convert(export_path, settings=Settings(backend="markdownify"))
        assert "# Team Handbook" in md
        assert "café" in md

    @requires_pandoc
    def test_real_pandoc(self, export_path):
        md = extract_and_convert(export_path, settings=Settings(backend="pandoc"))
        assert "# Team Handbook" in md
        assert "> **Tip:**" in md


# ---------------------------------------------------------------------------
# output_path_for()
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    ("given", "expected"),
    [
        ("Team+Handbook.doc", "Team-Handbook.md"),
        ("docs/Release+Notes+v2.doc", "docs/Release-Notes-v2.md"),
        ("notes.txt", "notes.txt.md"),
        ("archive.doc.doc", "archive.doc.md"),
    ],
)
def test_output_path_for(given, expected):
    assert output_path_for(given) == Path(expected)
