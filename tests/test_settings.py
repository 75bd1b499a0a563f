"""Tests for confluence2md.settings - defaults, YAML config and env overrides."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from confluence2md.errors import Confluence2MdError, InputReadError
from confluence2md.settings import CONFIG_ENV_VAR, DEFAULT_TIMEOUT, Settings, load_settings


class TestSettingsModel:
    def test_defaults(self):
        s = Settings()
        assert s.backend == "auto"
        assert s.pandoc_path is None
        assert s.timeout == DEFAULT_TIMEOUT
        assert (s.pandoc_from, s.pandoc_to) == ("html", "gfm")
        assert s.pandoc_args == ["--wrap=none"]

    def test_default_args_not_shared(self):
        a, b = Settings(), Settings()
        a.pandoc_args.append("--standalone")
        assert b.pandoc_args == ["--wrap=none"]

    def test_blank_path_is_none(self):
        assert Settings(pandoc_path="   ").pandoc_path is None
        assert Settings(pandoc_path=" /opt/pandoc ").pandoc_path == "/opt/pandoc"

    @pytest.mark.parametrize("bad", [{"backend": "word"}, {"timeout": 0}, {"timeout": -3}, {"colour": "red"}])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValidationError):
            Settings(**bad)


class TestLoadSettings:
    def test_no_file_gives_defaults(self):
        assert load_settings() == Settings()

    def test_yaml_file(self, tmp_path):
        cfg = tmp_path / "c2m.yaml"
        cfg.write_text("converter:\n  backend: pandoc\n  timeout: 300\n  pandoc_args: ['--wrap=none', '--columns=120']\n")
        s = load_settings(cfg)
        assert s.backend == "pandoc"
        assert s.timeout == 300
        assert s.pandoc_args == ["--wrap=none", "--columns=120"]

    def test_other_sections_ignored(self, tmp_path):
        cfg = tmp_path / "c2m.yaml"
        cfg.write_text("logging:\n  level: DEBUG\n")
        assert load_settings(cfg) == Settings()

    def test_empty_file(self, tmp_path):
        cfg = tmp_path / "empty.yaml"
        cfg.write_text("")
        assert load_settings(cfg) == Settings()

    def test_env_config_path(self, tmp_path, monkeypatch):
        cfg = tmp_path / "env.yaml"
        cfg.write_text("converter:\n  backend: markdownify\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(cfg))
        assert load_settings().backend == "markdownify"

    def test_overrides_win_over_file(self, tmp_path):
        cfg = tmp_path / "c2m.yaml"
        cfg.write_text("converter:\n  backend: pandoc\n  timeout: 30\n")
        s = load_settings(cfg, backend="markdownify", timeout=None)
        assert s.backend == "markdownify"
        assert s.timeout == 30

    def test_pandoc_env_var_wins(self, tmp_path, monkeypatch):
        cfg = tmp_path / "c2m.yaml"
        cfg.write_text("converter:\n  pandoc_path: /from/file\n")
        monkeypatch.setenv("CONFLUENCE2MD_PANDOC", "/from/env")
        assert load_settings(cfg).pandoc_path == "/from/env"

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputReadError):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("converter: [unclosed\n")
        with pytest.raises(Confluence2MdError) as exc_info:
            load_settings(cfg)
        assert exc_info.value.stage == "config"

    @pytest.mark.parametrize("text", ["- a\n- b\n", "converter: fast\n"])
    def test_wrong_shape(self, tmp_path, text):
        cfg = tmp_path / "shape.yaml"
        cfg.write_text(text)
        with pytest.raises(Confluence2MdError) as exc_info:
            load_settings(cfg)
        assert exc_info.value.stage == "config"

    def test_invalid_values(self, tmp_path):
        cfg = tmp_path / "values.yaml"
        cfg.write_text("converter:\n  timeout: -1\n")
        with pytest.raises(Confluence2MdError, match="invalid converter settings") as exc_info:
            load_settings(cfg)
        assert exc_info.value.stage == "config"
        assert exc_info.value.path == str(cfg)
