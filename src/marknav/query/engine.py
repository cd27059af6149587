"""Filtering, pagination and incremental loading over discovered files."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from marknav.discovery import DiscoveryError, MarkdownFile
from marknav.tags import SystemTagTable, filter_display_tags, get_all_unique_tags

from .models import FolderGroup, PageView, QueryState

if TYPE_CHECKING:
    from marknav.cache import ResultCache

LOGGER = logging.getLogger(__name__)


def filter_files(
    files: Iterable[MarkdownFile],
    query: str = "",
    tag: Optional[str] = None,
) -> list[MarkdownFile]:
    """Return files matching both the text query and the selected tag.

    Args:
        files: Candidate files, in display order.
        query: Case-insensitive substring matched against name or folder.
            An empty query matches everything.
        tag: Tag every result must carry exactly; None disables the check.

    Returns:
        list[MarkdownFile]: A new list preserving the input order.
    """
    needle = query.lower()
    matched = []
    for file in files:
        if needle and needle not in file.name.lower() and needle not in file.folder.lower():
            continue
        if tag and tag not in file.tags:
            continue
        matched.append(file)
    return matched


def total_pages(count: int, page_size: int) -> int:
    """Return the number of pages needed for ``count`` items."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(count / page_size)


def paginate(files: Sequence[MarkdownFile], page: int, page_size: int) -> list[MarkdownFile]:
    """Return the slice for ``page``; pages outside the range are empty."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if page < 0:
        return []
    return list(files[page * page_size : (page + 1) * page_size])


def group_by_folder(files: Iterable[MarkdownFile]) -> list[FolderGroup]:
    """Group files by folder, ordering groups by first occurrence."""
    groups: dict[str, FolderGroup] = {}
    for file in files:
        group = groups.get(file.folder)
        if group is None:
            group = groups[file.folder] = FolderGroup(folder=file.folder)
        group.files.append(file)
    return list(groups.values())


class QueryEngine:
    """Browse the files of one root: filter, page through and load more.

    The engine owns a :class:`QueryState` for one session. Changing the query
    or the tag always returns to the first page.
    """

    def __init__(
        self,
        cache: ResultCache,
        *,
        page_size: int = 20,
        initial_load_limit: int = 50,
        load_increment: int = 50,
        system_tags: SystemTagTable | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.cache = cache
        self.page_size = page_size
        self.load_increment = max(1, load_increment)
        self.system_tags = system_tags if system_tags is not None else SystemTagTable()
        self.state = QueryState(load_limit=max(0, initial_load_limit))
        self.files: list[MarkdownFile] = []
        self.total_files = 0
        self.last_error: DiscoveryError | None = None

    async def refresh(self, force: bool = False) -> list[MarkdownFile]:
        """Reload the visible file set.

        The full set is always fetched through the cache to learn the total;
        when the load limit is below it, a limited pass supplies the visible
        files instead.

        Args:
            force: Bypass a fresh cache entry.

        Returns:
            list[MarkdownFile]: The files now loaded, newest first.

        Raises:
            DiscoveryError: If no file set could be produced. The engine is
                left with an empty set and ``last_error`` set.
        """
        try:
            everything = await self.cache.get_all(force_refresh=force)
            self.total_files = len(everything)
            if self.state.load_limit < self.total_files:
                self.files = await self.cache.get_limited(self.state.load_limit)
            else:
                self.files = everything
        except DiscoveryError as exc:
            LOGGER.error("Could not load Markdown files: %s", exc)
            self.files = []
            self.total_files = 0
            self.last_error = exc
            raise
        self.last_error = None
        return list(self.files)

    async def load_more(self) -> bool:
        """Raise the load limit by one increment and reload.

        Returns:
            bool: False when every file is already loaded.
        """
        if self.state.load_limit >= self.total_files:
            return False
        self.state.load_limit = min(self.state.load_limit + self.load_increment, self.total_files)
        LOGGER.debug("Raising load limit to %d", self.state.load_limit)
        await self.refresh()
        return True

    def on_query_changed(self, query: str) -> None:
        self.state.query = query
        self.state.page = 0

    def on_tag_changed(self, tag: Optional[str]) -> None:
        self.state.selected_tag = tag or None
        self.state.page = 0

    def set_page(self, page: int) -> None:
        self.state.page = page

    def next_page(self) -> bool:
        """Advance one page; return False on the last page."""
        if self.state.page >= self._page_count() - 1:
            return False
        self.state.page += 1
        return True

    def previous_page(self) -> bool:
        """Go back one page; return False on the first page."""
        if self.state.page <= 0:
            return False
        self.state.page -= 1
        return True

    def toggle_color_tags(self) -> bool:
        self.state.show_color_tags = not self.state.show_color_tags
        return self.state.show_color_tags

    def filtered(self) -> list[MarkdownFile]:
        return filter_files(self.files, self.state.query, self.state.selected_tag)

    def view(self) -> PageView:
        """Return the current page of filtered files."""
        matched = self.filtered()
        items = paginate(matched, self.state.page, self.page_size)
        return PageView(
            page=self.state.page,
            total_pages=total_pages(len(matched), self.page_size),
            page_size=self.page_size,
            filtered_count=len(matched),
            total_files=self.total_files,
            items=items,
            groups=group_by_folder(items),
        )

    def all_tags(self) -> list[str]:
        """Return the tag vocabulary of the loaded files."""
        return get_all_unique_tags(self.files, self.state.show_color_tags, self.system_tags)

    def display_tags(self, file: MarkdownFile) -> list[str]:
        return filter_display_tags(file.tags, self.state.show_color_tags, self.system_tags)

    def _page_count(self) -> int:
        return total_pages(len(self.filtered()), self.page_size)


__all__ = ["QueryEngine", "filter_files", "paginate", "total_pages", "group_by_folder"]
