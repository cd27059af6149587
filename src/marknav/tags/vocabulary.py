"""Tag ordering, colour-tag filtering and the unique tag vocabulary."""

from __future__ import annotations

import locale
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from .extractor import is_color_tag

if TYPE_CHECKING:
    from marknav.discovery.models import MarkdownFile

DEFAULT_SYSTEM_TAGS: dict[str, Optional[str]] = {
    "important": "red",
    "draft": "yellow",
    "complete": "green",
    "review": "orange",
    "archive": "blue",
}


class SystemTagTable:
    """Enumerated vocabulary of system tags and their display colours.

    System tags sort ahead of every other tag. Membership is an exact match on
    the normalized tag; colour lookup also matches tags that contain a system
    tag name (``"very-important"`` is shown red).
    """

    def __init__(self, tags: Mapping[str, Optional[str]] | None = None) -> None:
        source = DEFAULT_SYSTEM_TAGS if tags is None else tags
        self._colors = {
            name.strip().lower(): color for name, color in source.items() if name.strip()
        }

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._colors)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and tag.strip().lower() in self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def color_for(self, tag: str) -> Optional[str]:
        """Return the display colour for ``tag``, or None when it has none."""
        normalized = tag.strip().lower()
        if normalized in self._colors:
            return self._colors[normalized]
        for name, color in self._colors.items():
            if name in normalized:
                return color
        return None


def _collation_key(tag: str) -> tuple[str, str]:
    try:
        collated = locale.strxfrm(tag)
    except (OSError, ValueError):
        collated = tag
    return collated, tag


def sort_tags(tags: Iterable[str], system_tags: SystemTagTable | None = None) -> list[str]:
    """Return ``tags`` with system tags first, each group in locale collation order."""
    table = system_tags if system_tags is not None else SystemTagTable()
    return sorted(set(tags), key=lambda tag: (tag not in table, _collation_key(tag)))


def filter_display_tags(
    tags: Iterable[str],
    show_color_tags: bool = False,
    system_tags: SystemTagTable | None = None,
) -> list[str]:
    """Return the tags to display for one file, hiding colour codes unless requested."""
    visible = [tag for tag in tags if show_color_tags or not is_color_tag(tag)]
    return sort_tags(visible, system_tags)


def get_all_unique_tags(
    files: Iterable["MarkdownFile"],
    show_color_tags: bool = False,
    system_tags: SystemTagTable | None = None,
) -> list[str]:
    """Return the sorted union of every file's tags."""
    vocabulary: set[str] = set()
    for file in files:
        vocabulary.update(file.tags)
    return filter_display_tags(vocabulary, show_color_tags, system_tags)


__all__ = [
    "DEFAULT_SYSTEM_TAGS",
    "SystemTagTable",
    "filter_display_tags",
    "get_all_unique_tags",
    "sort_tags",
]
