"""Cache payload models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from marknav.discovery.models import MarkdownFile


class CacheEntry(BaseModel):
    """Snapshot of one unlimited discovery pass."""

    root: str
    files: List[MarkdownFile] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["CacheEntry"]
