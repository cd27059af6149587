"""Markdown discovery package."""

from .errors import DiscoveryError, SearchIndexError, WalkError
from .models import MarkdownFile
from .search_index import SearchIndex, SpotlightIndex
from .service import DiscoveryService, ensure_root
from .walker import MarkdownWalker

__all__ = [
    "DiscoveryError",
    "SearchIndexError",
    "WalkError",
    "MarkdownFile",
    "SearchIndex",
    "SpotlightIndex",
    "DiscoveryService",
    "ensure_root",
    "MarkdownWalker",
]
