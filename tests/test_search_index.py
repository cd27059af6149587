"""Search index subprocess tests using stand-in scripts."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from marknav.discovery import SearchIndexError, SpotlightIndex

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def _script(tmp_path: Path, body: str) -> str:
    """Write an executable shell script standing in for the search command.

    The script receives ``-onlyin ROOT QUERY`` like the real tool.
    """
    path = tmp_path / "fake-search"
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return str(path)


@pytest.mark.asyncio
async def test_search_parses_reported_paths(tmp_path: Path) -> None:
    command = _script(tmp_path, 'echo "$2/a.md"\necho ""\necho "$2/sub/b.md"')
    root = tmp_path / "notes"

    paths = await SpotlightIndex(command=command).search(root)

    assert paths == [root / "a.md", root / "sub" / "b.md"]


@pytest.mark.asyncio
async def test_search_passes_query(tmp_path: Path) -> None:
    command = _script(tmp_path, 'echo "$2/$3"')

    paths = await SpotlightIndex(command=command, query="custom").search(tmp_path)

    assert paths == [tmp_path / "custom"]


@pytest.mark.asyncio
async def test_non_zero_exit_raises(tmp_path: Path) -> None:
    command = _script(tmp_path, "echo 'index disabled' >&2\nexit 3")

    with pytest.raises(SearchIndexError) as excinfo:
        await SpotlightIndex(command=command).search(tmp_path)

    assert "status 3" in str(excinfo.value)
    assert "index disabled" in str(excinfo.value)


@pytest.mark.asyncio
async def test_timeout_raises(tmp_path: Path) -> None:
    command = _script(tmp_path, "exec sleep 5")

    with pytest.raises(SearchIndexError) as excinfo:
        await SpotlightIndex(command=command, timeout=0.2).search(tmp_path)

    assert "did not finish" in str(excinfo.value)


@pytest.mark.asyncio
async def test_missing_command_raises(tmp_path: Path) -> None:
    index = SpotlightIndex(command=str(tmp_path / "absent"))

    with pytest.raises(SearchIndexError):
        await index.search(tmp_path)
