"""Query engine, pagination and formatting tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from marknav.cache import MemoryStore, ResultCache
from marknav.discovery import DiscoveryError, DiscoveryService, MarkdownFile, ensure_root
from marknav.query import (
    PageView,
    QueryEngine,
    filter_files,
    format_relative_date,
    group_by_folder,
    paginate,
    total_pages,
)

NOW = datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)


def _file(name: str, folder: str = "notes", *tags: str, minutes: int = 0) -> MarkdownFile:
    return MarkdownFile(
        path=Path("/root") / folder / name,
        name=name,
        folder=folder,
        last_modified=NOW - timedelta(minutes=minutes),
        tags=frozenset(tags),
    )


class FakeService:
    def __init__(self, root: Path, files: list[MarkdownFile]) -> None:
        self.root = root
        self.files = files
        self.error: Exception | None = None
        self.calls: list[int | None] = []

    async def discover(self, limit: int | None = None) -> list[MarkdownFile]:
        self.calls.append(limit)
        if self.error is not None:
            raise self.error
        return list(self.files if limit is None else self.files[:limit])


def _engine(files: list[MarkdownFile], **kwargs: int) -> tuple[QueryEngine, FakeService]:
    service = FakeService(Path("/root"), files)
    cache = ResultCache(service, MemoryStore(), clock=lambda: NOW)  # type: ignore[arg-type]
    return QueryEngine(cache, **kwargs), service


def test_filter_matches_name_or_folder_case_insensitively() -> None:
    files = [_file("Budget.md", "finance"), _file("ideas.md", "Projects"), _file("misc.md")]

    assert [f.name for f in filter_files(files, "BUDGET")] == ["Budget.md"]
    assert [f.name for f in filter_files(files, "project")] == ["ideas.md"]
    assert filter_files(files, "") == files
    assert filter_files(files, "") is not files


def test_filter_requires_exact_tag_membership() -> None:
    files = [_file("a.md", "notes", "todo"), _file("b.md", "notes", "todo-later")]

    assert [f.name for f in filter_files(files, tag="todo")] == ["a.md"]
    assert [f.name for f in filter_files(files, "b", "todo")] == []


def test_pagination_with_page_size_two() -> None:
    files = [_file(f"{name}.md", minutes=index) for index, name in enumerate("abc")]

    assert [f.name for f in paginate(files, 0, 2)] == ["a.md", "b.md"]
    assert [f.name for f in paginate(files, 1, 2)] == ["c.md"]
    assert paginate(files, 2, 2) == []
    assert paginate(files, -1, 2) == []
    assert total_pages(3, 2) == 2
    assert total_pages(0, 2) == 0
    assert total_pages(4, 2) == 2


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        total_pages(3, 0)
    with pytest.raises(ValueError):
        paginate([], 0, 0)


def test_group_by_folder_keeps_first_occurrence_order() -> None:
    files = [_file("1.md", "b"), _file("2.md", "a"), _file("3.md", "b")]

    groups = group_by_folder(files)

    assert [group.folder for group in groups] == ["b", "a"]
    assert [f.name for f in groups[0].files] == ["1.md", "3.md"]


@pytest.mark.asyncio
async def test_end_to_end_listing(tmp_path: Path) -> None:
    """Newest first, frontmatter tags filtered, tag filter and vocabulary."""
    root = ensure_root(tmp_path / "notes")
    for name, content, mtime in [
        ("a.md", "Remember #todo\n", 1_700_000_300),
        ("b.md", "Plain text\n", 1_700_000_200),
        ("c.md", "---\ntags: [Draft, 42, aabbcc]\n---\nBody\n", 1_700_000_100),
    ]:
        path = root / name
        path.write_text(content, encoding="utf-8")
        os.utime(path, (mtime, mtime))
    engine = QueryEngine(ResultCache(DiscoveryService(root), MemoryStore()))

    files = await engine.refresh()

    assert [f.name for f in files] == ["a.md", "b.md", "c.md"]
    assert files[2].tags == frozenset({"draft"})
    assert engine.all_tags() == ["draft", "todo"]

    engine.on_tag_changed("todo")
    assert [f.name for f in engine.view().items] == ["a.md"]


@pytest.mark.asyncio
async def test_view_pages_and_summary() -> None:
    files = [_file(f"{index}.md", minutes=index) for index in range(3)]
    engine, _ = _engine(files, page_size=2)
    await engine.refresh()

    first = engine.view()
    assert [f.name for f in first.items] == ["0.md", "1.md"]
    assert first.total_pages == 2
    assert first.summary() == "Showing 1-2 of 3 (Total 3 files)"

    assert engine.next_page() is True
    assert engine.view().summary() == "Showing 3-3 of 3 (Total 3 files)"
    assert engine.next_page() is False
    assert engine.previous_page() is True
    assert engine.previous_page() is False

    engine.set_page(5)
    assert engine.view().items == []
    assert engine.view().summary() == "File not found"


def test_summary_for_page_past_the_end() -> None:
    view = PageView(page=5, total_pages=2, page_size=20, filtered_count=25, total_files=25)

    assert view.summary() == "File not found"


@pytest.mark.asyncio
async def test_query_and_tag_changes_reset_page() -> None:
    files = [_file(f"{index}.md", "notes", "work", minutes=index) for index in range(5)]
    engine, _ = _engine(files, page_size=2)
    await engine.refresh()

    engine.set_page(2)
    engine.on_query_changed("1")
    assert engine.state.page == 0
    assert [f.name for f in engine.view().items] == ["1.md"]

    engine.set_page(1)
    engine.on_tag_changed("work")
    assert engine.state.page == 0

    engine.on_tag_changed("missing")
    assert engine.view().summary() == "File not found"


@pytest.mark.asyncio
async def test_load_limit_and_load_more() -> None:
    """A limited pass supplies the visible set until everything is loaded."""
    files = [_file(f"{index}.md", minutes=index) for index in range(5)]
    engine, service = _engine(files, initial_load_limit=2, load_increment=2)

    await engine.refresh()
    assert len(engine.files) == 2
    assert engine.total_files == 5
    assert engine.view().summary() == "Showing 1-2 of 2 (Total 5 files)"

    assert await engine.load_more() is True
    assert engine.state.load_limit == 4
    assert len(engine.files) == 4

    assert await engine.load_more() is True
    assert engine.state.load_limit == 5
    assert len(engine.files) == 5

    assert await engine.load_more() is False
    assert service.calls == [None, 2, 4]


@pytest.mark.asyncio
async def test_refresh_failure_empties_file_set() -> None:
    engine, service = _engine([_file("a.md")])
    service.error = DiscoveryError("unreadable root")

    with pytest.raises(DiscoveryError):
        await engine.refresh()

    assert engine.files == []
    assert isinstance(engine.last_error, DiscoveryError)
    assert engine.view().summary() == "File not found"


@pytest.mark.asyncio
async def test_colour_tags_toggle() -> None:
    engine, _ = _engine([_file("a.md", "notes", "fff", "work")])
    await engine.refresh()

    assert engine.all_tags() == ["work"]
    assert engine.toggle_color_tags() is True
    assert engine.all_tags() == ["fff", "work"]
    assert engine.display_tags(engine.files[0]) == ["fff", "work"]


def test_format_relative_date() -> None:
    assert format_relative_date(NOW - timedelta(hours=2), NOW) == "Today, 13:30"
    assert format_relative_date(NOW - timedelta(days=1, hours=1), NOW) == "Yesterday, 14:30"
    assert format_relative_date(NOW - timedelta(days=3), NOW) == "3 days ago"
    assert format_relative_date(datetime(2024, 3, 4, tzinfo=timezone.utc), NOW) == "Mar 4, 2024"
