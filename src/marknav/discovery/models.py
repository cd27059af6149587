"""Discovery data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class MarkdownFile(BaseModel):
    """A Markdown file found by one discovery pass.

    Attributes:
        path: Absolute path; unique within a pass.
        name: Base filename.
        folder: Containing directory relative to the root, or its base name.
        last_modified: Modification time (UTC).
        tags: Normalized tag set.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    name: str
    folder: str
    last_modified: datetime
    tags: frozenset[str] = Field(default_factory=frozenset)

    @field_serializer("tags")
    def _serialize_tags(self, tags: frozenset[str]) -> List[str]:
        return sorted(tags)


__all__ = ["MarkdownFile"]
