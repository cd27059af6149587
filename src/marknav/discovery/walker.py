"""Recursive directory walk used when the search index is unavailable."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .errors import WalkError


def _is_hidden(name: str) -> bool:
    return name.startswith(".") and name not in (".", "..")


class MarkdownWalker:
    """Find Markdown files under a root, skipping hidden and excluded directories."""

    def __init__(
        self,
        *,
        extensions: Iterable[str] = (".md",),
        excluded_directories: Iterable[str] = ("node_modules",),
        follow_symlinks: bool = False,
    ) -> None:
        self.extensions = tuple(suffix.lower() for suffix in extensions)
        self.excluded_directories = frozenset(excluded_directories)
        self.follow_symlinks = follow_symlinks

    def walk(
        self,
        root: Path,
        limit: int | None = None,
        exclude: Callable[[Path], bool] | None = None,
    ) -> list[Path]:
        """Return Markdown paths under ``root`` in sorted walk order.

        Args:
            root: Directory to search.
            limit: Stop after this many matches when given.
            exclude: Predicate rejecting individual matches before they count.

        Raises:
            WalkError: If ``root`` is not a directory or cannot be listed.
        """
        if not root.is_dir():
            raise WalkError(f"{root} is not a directory.")

        found: list[Path] = []
        for path in self._iter_matches(root):
            if limit is not None and len(found) >= limit:
                break
            if exclude is not None and exclude(path):
                continue
            found.append(path)
        return found

    def _iter_matches(self, root: Path) -> Iterator[Path]:
        errors: list[OSError] = []
        walker = os.walk(root, onerror=errors.append, followlinks=self.follow_symlinks)
        for current, dirnames, filenames in walker:
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not _is_hidden(name) and name not in self.excluded_directories
            )
            for filename in sorted(filenames):
                if _is_hidden(filename):
                    continue
                if filename.lower().endswith(self.extensions):
                    yield Path(current) / filename

        # Unreadable subdirectories are skipped; only an unreadable root fails the walk.
        if errors and Path(errors[0].filename or "") == root:
            raise WalkError(f"Could not list {root}: {errors[0]}") from errors[0]


__all__ = ["MarkdownWalker"]
