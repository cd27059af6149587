"""Tag extraction and vocabulary helpers."""

from .extractor import TagExtractor, extract_tags, is_color_tag, is_numeric_tag
from .vocabulary import (
    DEFAULT_SYSTEM_TAGS,
    SystemTagTable,
    filter_display_tags,
    get_all_unique_tags,
    sort_tags,
)

__all__ = [
    "TagExtractor",
    "extract_tags",
    "is_color_tag",
    "is_numeric_tag",
    "DEFAULT_SYSTEM_TAGS",
    "SystemTagTable",
    "filter_display_tags",
    "get_all_unique_tags",
    "sort_tags",
]
