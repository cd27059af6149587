"""Tag extraction from Markdown text.

Tags come from two places:

* inline tokens such as ``#project-plan`` or ``#筆記`` anywhere in the body;
* a ``tags:`` entry in a frontmatter block at the very start of the file,
  written as ``tags: [a, b]``, ``tags: a, b`` or a block sequence.

Hex colour codes (``#fff``, ``#a0b1c2``) and purely numeric tokens (``#123``)
are never tags. Neither is a ``#`` inside link text, a link destination or a
reference definition. Everything is trimmed and lowercased, so the result is
a case-insensitive set.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator

LOGGER = logging.getLogger(__name__)

_TAG_CHARS = r"A-Za-z0-9_\u4e00-\u9fff"
# `[#x` is link text, `&#x` an HTML entity, `/#x` a URL fragment.
_INLINE_TAG = re.compile(
    rf"(?<![\w#&/\[])#([{_TAG_CHARS}]+(?:-[{_TAG_CHARS}]+)*)(?![{_TAG_CHARS}])"
)
# Link text followed by a destination or reference label: `[see #x](...)`, `[see #x][ref]`.
_LINK_TEXT = re.compile(r"\[[^\[\]\n]*\](?=[(\[])")
# Link destinations: `[text](#anchor)`, `[text](page.md#frag)`, `<a href="#x">`.
_LINK_DESTINATION = re.compile(r"\]\([^)\n]*\)")
# Reference definitions: `[ref]: #anchor`.
_LINK_DEFINITION = re.compile(r"^[ \t]*\[[^\]\n]+\]:[ \t]*\S+.*$", re.MULTILINE)
_HREF_ATTRIBUTE = re.compile(r"""href\s*=\s*(["'])[^"'\n]*\1""", re.IGNORECASE)

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_TAGS_ENTRY = re.compile(r"^tags:[ \t]*(?:\[(?P<list>.*?)\]|(?P<scalar>.*?))[ \t]*$", re.MULTILINE)
_BLOCK_ITEM = re.compile(r"^[ \t]*-[ \t]+(?P<item>.+?)[ \t]*$")

_COLOR_CODE = re.compile(r"^(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
_NUMERIC = re.compile(r"^\d+$")
_QUOTES = "'\""


def is_color_tag(tag: str) -> bool:
    """Return True when ``tag`` is a 3- or 6-digit hexadecimal colour code."""
    return bool(_COLOR_CODE.match(tag))


def is_numeric_tag(tag: str) -> bool:
    """Return True when ``tag`` consists only of digits."""
    return bool(_NUMERIC.match(tag))


def inline_tags(content: str) -> list[str]:
    """Return inline ``#tag`` tokens in discovery order, anchors excluded."""
    masked = _LINK_DEFINITION.sub("", content)
    masked = _LINK_TEXT.sub("[]", masked)
    masked = _LINK_DESTINATION.sub("]", masked)
    masked = _HREF_ATTRIBUTE.sub("href", masked)
    return [match.group(1) for match in _INLINE_TAG.finditer(masked)]


def frontmatter_tags(content: str) -> list[str]:
    """Return the raw values of the frontmatter ``tags:`` entry, if any."""
    block = _FRONTMATTER.match(content.lstrip("\ufeff"))
    if block is None:
        return []

    frontmatter = block.group(1)
    entry = _TAGS_ENTRY.search(frontmatter)
    if entry is None:
        return []

    if entry.group("list") is not None:
        return _split_values(entry.group("list"))

    scalar = entry.group("scalar") or ""
    if scalar.strip():
        return _split_values(scalar)
    return list(_block_sequence(frontmatter[entry.end() :]))


def extract_tags(content: str) -> frozenset[str]:
    """Return the normalized tag set for one document.

    Args:
        content: Raw Markdown text.

    Returns:
        frozenset[str]: Lowercased, deduplicated tags; empty when none are found.
    """
    return frozenset(normalize_tags([*inline_tags(content), *frontmatter_tags(content)]))


def normalize_tags(candidates: Iterable[str]) -> list[str]:
    """Trim, filter and lowercase candidate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for candidate in candidates:
        tag = candidate.strip()
        if not tag or is_color_tag(tag) or is_numeric_tag(tag):
            continue
        seen.setdefault(tag.lower(), None)
    return list(seen)


class TagExtractor:
    """Read files and extract their tags, failing soft on I/O errors."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def extract(self, content: str) -> frozenset[str]:
        """Return tags for already-loaded ``content``."""
        return extract_tags(content)

    def extract_from_path(self, path: Path) -> frozenset[str]:
        """Read ``path`` and return its tags.

        Unreadable files are logged and yield an empty set.
        """
        try:
            content = path.read_text(encoding=self.encoding, errors="replace")
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not read %s for tags: %s", path, exc)
            return frozenset()
        return self.extract(content)


def _split_values(raw: str) -> list[str]:
    values = []
    for part in raw.split(","):
        value = _clean_value(part)
        if value:
            values.append(value)
    return values


def _block_sequence(remainder: str) -> Iterator[str]:
    for line in remainder.splitlines():
        if not line.strip():
            continue
        item = _BLOCK_ITEM.match(line)
        if item is None:
            return
        value = _clean_value(item.group("item"))
        if value:
            yield value


def _clean_value(raw: str) -> str:
    value = raw.strip().strip(_QUOTES).strip()
    return value[1:].strip() if value.startswith("#") else value


__all__ = [
    "TagExtractor",
    "extract_tags",
    "frontmatter_tags",
    "inline_tags",
    "is_color_tag",
    "is_numeric_tag",
    "normalize_tags",
]
