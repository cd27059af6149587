"""Markdown discovery: locate files under a root and annotate them."""

from __future__ import annotations

import asyncio
import logging
import stat as stat_module
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from marknav.config.models import DiscoverySettings
from marknav.tags import TagExtractor

from .errors import DiscoveryError, SearchIndexError, WalkError
from .models import MarkdownFile
from .search_index import SearchIndex, SpotlightIndex
from .walker import MarkdownWalker

LOGGER = logging.getLogger(__name__)


def ensure_root(root: str | Path, *, create: bool = True) -> Path:
    """Return the absolute root directory, creating it when allowed.

    Raises:
        DiscoveryError: If the root is missing and may not be created, cannot
            be created, or is not a directory.
    """
    path = Path(root).expanduser().resolve()
    if not path.exists():
        if not create:
            raise DiscoveryError(f"Markdown directory {path} does not exist.")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DiscoveryError(f"Could not create Markdown directory {path}: {exc}") from exc
        LOGGER.info("Created Markdown directory %s", path)
    if not path.is_dir():
        raise DiscoveryError(f"Markdown directory {path} is not a directory.")
    return path


class DiscoveryService:
    """Find Markdown files under one root, newest first.

    The search index is tried first; when it is absent or fails, the tree is
    walked instead. Each path is then stat-ed and read for tags.
    """

    def __init__(
        self,
        root: Path,
        *,
        extractor: TagExtractor | None = None,
        index: SearchIndex | None = None,
        walker: MarkdownWalker | None = None,
        excluded_directories: Iterable[str] = ("node_modules",),
        excluded_path_fragments: Iterable[str] = (),
        max_concurrency: int = 16,
    ) -> None:
        self.root = Path(root)
        self.extractor = extractor or TagExtractor()
        self.index = index
        self.walker = walker or MarkdownWalker(excluded_directories=excluded_directories)
        self.excluded_directories = frozenset(excluded_directories)
        self.excluded_path_fragments = tuple(excluded_path_fragments)
        # `~/...` fragments match only under the home directory.
        self._home_prefixes = tuple(
            Path(fragment).expanduser().resolve().as_posix().rstrip("/") + "/"
            for fragment in self.excluded_path_fragments
            if fragment.startswith("~")
        )
        self.max_concurrency = max(1, max_concurrency)

    @classmethod
    def from_settings(cls, root: Path, settings: DiscoverySettings) -> DiscoveryService:
        """Build a service for ``root`` from the ``discovery`` configuration section."""
        index: SearchIndex | None = None
        if settings.use_search_index:
            spotlight = SpotlightIndex(
                command=settings.search_command,
                query=settings.search_query,
                timeout=settings.search_timeout_seconds,
            )
            if spotlight.available():
                index = spotlight
            else:
                LOGGER.info("'%s' not found; walking the directory tree", settings.search_command)
        walker = MarkdownWalker(
            extensions=settings.extensions,
            excluded_directories=settings.excluded_directories,
            follow_symlinks=settings.follow_symlinks,
        )
        return cls(
            root,
            index=index,
            walker=walker,
            excluded_directories=settings.excluded_directories,
            excluded_path_fragments=settings.excluded_path_fragments,
            max_concurrency=settings.max_concurrency,
        )

    async def discover(self, limit: int | None = None) -> list[MarkdownFile]:
        """Return the Markdown files under the root, most recently modified first.

        Args:
            limit: Maximum number of listed paths to annotate; None for all.

        Returns:
            list[MarkdownFile]: Files sorted by descending modification time.
                Files with equal timestamps keep their listing order.

        Raises:
            ValueError: If ``limit`` is negative.
            DiscoveryError: If both the search index and the walk fail.
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must be zero or positive")
        if limit == 0:
            return []

        paths = await self._locate(limit)
        files = await self._annotate(paths)
        files.sort(key=lambda item: item.last_modified, reverse=True)
        LOGGER.info("Discovered %d Markdown files under %s", len(files), self.root)
        return files

    def folder_for(self, path: Path) -> str:
        """Return the grouping folder for ``path``."""
        try:
            relative = path.parent.relative_to(self.root).as_posix()
        except ValueError:
            relative = ""
        if relative in ("", "."):
            return path.parent.name
        return relative

    def is_excluded(self, path: Path) -> bool:
        """Return True for noise paths such as dependency caches or editor history."""
        try:
            relative = path.relative_to(self.root)
            parts = relative.parts[:-1]
            probe = "/" + relative.as_posix()
        except ValueError:
            parts = path.parts[:-1]
            probe = path.as_posix()
        if any(part in self.excluded_directories for part in parts):
            return True
        absolute = path.as_posix()
        if any(absolute.startswith(prefix) for prefix in self._home_prefixes):
            return True
        return any(
            fragment in probe
            for fragment in self.excluded_path_fragments
            if not fragment.startswith("~")
        )

    async def _locate(self, limit: int | None) -> list[Path]:
        failures: list[str] = []

        if self.index is not None:
            try:
                reported = await self.index.search(self.root)
            except SearchIndexError as exc:
                LOGGER.warning("Search index failed, walking %s instead: %s", self.root, exc)
                failures.append(str(exc))
            else:
                return self._truncate(self._filter(reported), limit)

        try:
            walked = await asyncio.to_thread(self.walker.walk, self.root, limit, self.is_excluded)
        except WalkError as exc:
            failures.append(str(exc))
            raise DiscoveryError(
                f"Could not list Markdown files under {self.root}: " + "; ".join(failures)
            ) from exc
        return self._truncate(self._filter(walked), limit)

    def _filter(self, paths: Iterable[Path]) -> list[Path]:
        seen: set[Path] = set()
        kept = []
        for path in paths:
            if path in seen or self.is_excluded(path):
                continue
            seen.add(path)
            kept.append(path)
        return kept

    @staticmethod
    def _truncate(paths: Sequence[Path], limit: int | None) -> list[Path]:
        return list(paths if limit is None else paths[:limit])

    async def _annotate(self, paths: Sequence[Path]) -> list[MarkdownFile]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _one(path: Path) -> MarkdownFile | None:
            async with semaphore:
                return await asyncio.to_thread(self._describe, path)

        described = await asyncio.gather(*(_one(path) for path in paths))
        return [item for item in described if item is not None]

    def _describe(self, path: Path) -> MarkdownFile | None:
        try:
            stat = path.stat()
        except FileNotFoundError:
            LOGGER.warning("Skipping %s: file vanished during discovery", path)
            return None
        except OSError as exc:
            LOGGER.warning("Skipping %s: %s", path, exc)
            return None
        if not stat_module.S_ISREG(stat.st_mode):
            return None

        return MarkdownFile(
            path=path,
            name=path.name,
            folder=self.folder_for(path),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            tags=self.extractor.extract_from_path(path),
        )


__all__ = ["DiscoveryService", "ensure_root"]
