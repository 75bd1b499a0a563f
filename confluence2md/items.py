"""Pydantic schema for a converted Confluence export."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


class ConvertedDocument(BaseModel):
    """Result of converting one export file."""

    # Identity
    source_path: str = ""

    # Content
    markdown: str = ""

    # Stats
    html_chars: int = 0

    # Provenance
    converter: str = ""   # backend name: "pandoc" | "markdownify" | custom

    @field_validator("source_path", mode="before")
    @classmethod
    def stringify_path(cls, v: Any) -> Any:
        if v is None:
            return ""
        return str(v)

    @property
    def line_count(self) -> int:
        return self.markdown.count("\n")
