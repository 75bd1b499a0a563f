"""Tests for the confluence2md command line (confluence2md.__main__)."""

from __future__ import annotations

import shutil
from unittest.mock import patch

import pytest

from confluence2md import __version__
from confluence2md.__main__ import _build_parser, main
from confluence2md.errors import ConversionError


@pytest.fixture
def patched_converter(echo_converter):
    with patch("confluence2md.__main__.build_converter", return_value=echo_converter), \
         patch("confluence2md.__main__.check_converter"):
        yield echo_converter


@pytest.fixture
def docs_dir(tmp_path, export_path, notes_path):
    shutil.copy(export_path, tmp_path / "Team+Handbook.doc")
    shutil.copy(export_path, tmp_path / "Release+Notes.doc")
    shutil.copy(notes_path, tmp_path / "notes.doc")
    (tmp_path / "ignored.txt").write_text("not a doc")
    return tmp_path


class TestParser:
    def test_defaults(self):
        args = _build_parser().parse_args(["in.doc"])
        assert args.input == "in.doc"
        assert args.output is None
        assert args.dir is None
        assert not args.verbose
        assert not args.dry_run
        assert args.converter is None

    def test_short_and_long_flags(self):
        args = _build_parser().parse_args(["-o", "out.md", "-v", "in.doc"])
        assert args.output == "out.md"
        assert args.verbose
        args = _build_parser().parse_args(["--output", "out.md", "--verbose", "in.doc"])
        assert args.output == "out.md"
        assert args.verbose

    def test_converter_choices(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--converter", "word", "in.doc"])


class TestSingleFile:
    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert f"confluence2md {__version__}" in capsys.readouterr().out

    def test_no_input(self, capsys):
        assert main([]) == 1
        assert "Usage:" in capsys.readouterr().err

    def test_convert_default_output(self, tmp_path, export_path, patched_converter, capsys):
        src = tmp_path / "Team+Handbook.doc"
        shutil.copy(export_path, src)
        assert main([str(src)]) == 0
        out = tmp_path / "Team-Handbook.md"
        assert out.exists()
        assert "Team Handbook" in out.read_text(encoding="utf-8")
        assert "Converted: Team+Handbook.doc -> Team-Handbook.md" in capsys.readouterr().out

    def test_convert_custom_output(self, tmp_path, export_path, patched_converter):
        out = tmp_path / "custom.md"
        assert main([str(export_path), "-o", str(out)]) == 0
        assert out.read_text(encoding="utf-8").endswith("\n")

    def test_dry_run_writes_nothing(self, tmp_path, export_path, patched_converter, capsys):
        src = tmp_path / "Page.doc"
        shutil.copy(export_path, src)
        assert main(["--dry-run", str(src)]) == 0
        assert not (tmp_path / "Page.md").exists()
        assert "[dry-run] Would convert" in capsys.readouterr().out
        assert patched_converter.calls == []

    def test_missing_input(self, tmp_path, patched_converter, capsys):
        assert main([str(tmp_path / "nope.doc")]) == 1
        assert "input file does not exist" in capsys.readouterr().err

    def test_not_confluence(self, notes_path, patched_converter, capsys):
        assert main([str(notes_path)]) == 1
        assert "does not appear to be a Confluence MIME export" in capsys.readouterr().err

    def test_missing_converter(self, export_path, capsys):
        with patch("confluence2md.__main__.check_converter", side_effect=ConversionError("pandoc not found in PATH")):
            assert main(["--converter", "pandoc", str(export_path)]) == 1
        assert "Error: pandoc not found" in capsys.readouterr().err

    def test_conversion_failure(self, tmp_path, export_path, capsys):
        src = tmp_path / "Page.doc"
        shutil.copy(export_path, src)
        with patch("confluence2md.__main__.check_converter"), \
             patch("confluence2md.query.postprocess_markdown", side_effect=ConversionError("boom")):
            assert main(["--converter", "markdownify", str(src)]) == 1
        assert "Error: boom" in capsys.readouterr().err
        assert not (tmp_path / "Page.md").exists()

    def test_bad_config(self, tmp_path, export_path, capsys):
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("converter:\n  timeout: -5\n")
        assert main(["--config", str(cfg), str(export_path)]) == 1
        assert "invalid converter settings" in capsys.readouterr().err

    def test_verbose_banner(self, tmp_path, export_path, patched_converter, capsys):
        src = tmp_path / "Page.doc"
        shutil.copy(export_path, src)
        assert main(["-v", str(src)]) == 0
        out = capsys.readouterr().out
        assert "Converting:" in out
        assert "Done:" in out


class TestDirectory:
    def test_converts_only_exports(self, docs_dir, patched_converter, capsys):
        assert main(["--dir", str(docs_dir)]) == 0
        out = capsys.readouterr().out
        assert "Found 2 Confluence export(s) to convert" in out
        assert "Converted 2/2 files" in out
        assert (docs_dir / "Team-Handbook.md").exists()
        assert (docs_dir / "Release-Notes.md").exists()
        assert not (docs_dir / "notes.md").exists()

    def test_verbose_reports_skips(self, docs_dir, patched_converter, capsys):
        assert main(["--dir", str(docs_dir), "-v"]) == 0
        assert "Skipping (not Confluence MIME)" in capsys.readouterr().out

    def test_dry_run(self, docs_dir, patched_converter, capsys):
        assert main(["--dir", str(docs_dir), "--dry-run"]) == 0
        out = capsys.readouterr().out
        assert out.count("[dry-run] Would convert") == 2
        assert not list(docs_dir.glob("*.md"))

    def test_failure_does_not_stop_batch(self, docs_dir, capsys):
        calls = {"n": 0}

        def flaky(html):
            calls["n"] += 1
            if calls["n"] == 1:
                raise ConversionError("pandoc timed out after 120s")
            return html

        with patch("confluence2md.__main__.check_converter"), \
             patch("confluence2md.converters.MarkdownifyConverter.convert", side_effect=flaky):
            assert main(["--dir", str(docs_dir), "--converter", "markdownify"]) == 0
        captured = capsys.readouterr()
        assert "Converted 1/2 files" in captured.out
        assert "Warning: failed to convert" in captured.err
        assert len(list(docs_dir.glob("*.md"))) == 1

    def test_no_doc_files(self, tmp_path, patched_converter, capsys):
        assert main(["--dir", str(tmp_path)]) == 0
        assert "No .doc files found in directory" in capsys.readouterr().out

    def test_no_exports(self, tmp_path, notes_path, patched_converter, capsys):
        shutil.copy(notes_path, tmp_path / "notes.doc")
        assert main(["--dir", str(tmp_path)]) == 0
        assert "No Confluence MIME exports found in directory" in capsys.readouterr().out

    def test_not_a_directory(self, tmp_path, patched_converter, capsys):
        assert main(["--dir", str(tmp_path / "missing")]) == 1
        assert "not a directory" in capsys.readouterr().err
