"""View-state and view models for browsing discovered files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from marknav.discovery.models import MarkdownFile


@dataclass(slots=True)
class QueryState:
    """Per-session browsing state; never persisted.

    Attributes:
        query: Free-text filter matched against file and folder names.
        selected_tag: Tag every listed file must carry, if any.
        page: Zero-based page index.
        load_limit: Number of files discovery is asked for.
        show_color_tags: Whether hex colour tags are displayed.
    """

    query: str = ""
    selected_tag: Optional[str] = None
    page: int = 0
    load_limit: int = 50
    show_color_tags: bool = False


@dataclass(slots=True)
class FolderGroup:
    """Files of one page that share a folder."""

    folder: str
    files: list[MarkdownFile] = field(default_factory=list)


@dataclass(slots=True)
class PageView:
    """One page of filtered results, grouped by folder.

    Attributes:
        page: Zero-based page index.
        total_pages: Number of pages for the filtered set.
        page_size: Maximum number of files per page.
        filtered_count: Number of files matching the query and tag.
        total_files: Number of files under the root.
        items: Files on this page, newest first.
        groups: Page files grouped by folder, in first-occurrence order.
    """

    page: int
    total_pages: int
    page_size: int
    filtered_count: int
    total_files: int
    items: list[MarkdownFile] = field(default_factory=list)
    groups: list[FolderGroup] = field(default_factory=list)

    @property
    def start_item(self) -> int:
        return self.page * self.page_size + 1

    @property
    def end_item(self) -> int:
        return min((self.page + 1) * self.page_size, self.filtered_count)

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1

    def summary(self) -> str:
        """Return the "Showing a-b of n" line shown above the list."""
        if not self.filtered_count or self.start_item > self.end_item:
            return "File not found"
        return (
            f"Showing {self.start_item}-{self.end_item} of {self.filtered_count} "
            f"(Total {self.total_files} files)"
        )


__all__ = ["QueryState", "FolderGroup", "PageView"]
