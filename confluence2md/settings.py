"""Conversion settings: defaults, optional YAML file, environment overrides.

A config file only needs the keys it changes::

    # confluence2md.yaml
    converter:
      backend: pandoc
      timeout: 300
      pandoc_args: ["--wrap=none", "--columns=120"]

The file is chosen by ``--config`` on the command line or by
``$CONFLUENCE2MD_CONFIG``.  ``$CONFLUENCE2MD_PANDOC`` always wins for the
pandoc path.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from confluence2md.errors import Confluence2MdError, InputReadError
from confluence2md.pandoc import PANDOC_ENV_VAR

CONFIG_ENV_VAR = "CONFLUENCE2MD_CONFIG"

# Maximum time allowed for one converter run, in seconds.
DEFAULT_TIMEOUT = 120.0


class Settings(BaseModel):
    """Converter selection and invocation options."""

    backend: Literal["auto", "pandoc", "markdownify"] = "auto"
    pandoc_path: str | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    pandoc_from: str = "html"
    pandoc_to: str = "gfm"
    pandoc_args: list[str] = Field(default_factory=lambda: ["--wrap=none"])

    model_config = {"extra": "forbid"}

    @field_validator("pandoc_path")
    @classmethod
    def blank_path_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputReadError(f"failed to read config file: {exc}", path=str(path)) from exc
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise Confluence2MdError(f"invalid YAML in config file: {exc}", path=str(path), stage="config") from exc
    if not isinstance(data, dict):
        raise Confluence2MdError("config file must contain a mapping", path=str(path), stage="config")
    section = data.get("converter", {})
    if not isinstance(section, dict):
        raise Confluence2MdError("'converter' must be a mapping", path=str(path), stage="config")
    return section


def load_settings(path: str | Path | None = None, **overrides: Any) -> Settings:
    """Build :class:`Settings` from defaults, a YAML file and the environment.

    Args:
        path:       YAML config file.  Falls back to ``$CONFLUENCE2MD_CONFIG``;
                    no file at all means pure defaults.
        **overrides: Values that win over the file (e.g. from CLI flags).
                    ``None`` values are ignored.

    Raises:
        InputReadError:     The config file cannot be read.
        Confluence2MdError: The file is not valid YAML or has invalid values
                            (``stage == "config"``).
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        path = env_path or None

    merged: dict[str, Any] = {}
    if path is not None:
        merged.update(_read_yaml(Path(path)))
    merged.update({k: v for k, v in overrides.items() if v is not None})

    env_pandoc = os.environ.get(PANDOC_ENV_VAR, "").strip()
    if env_pandoc:
        merged["pandoc_path"] = env_pandoc

    try:
        return Settings(**merged)
    except ValidationError as exc:
        raise Confluence2MdError(
            f"invalid converter settings: {exc}",
            path=str(path or ""),
            stage="config",
        ) from exc
