"""CLI tests for browsing, tags, note creation and the cache."""

from __future__ import annotations

import json
import os
from pathlib import Path

from click.testing import CliRunner

from marknav.cli import cli


def _env(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    The search index is disabled so every run walks the notes directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping for the CLI runner.
    """
    env = {key: value for key, value in os.environ.items() if not key.startswith("MARKNAV")}
    env["HOME"] = str(tmp_path / "home")
    env["MARKNAV__DISCOVERY__USE_SEARCH_INDEX"] = "false"
    return env


def _notes(tmp_path: Path) -> Path:
    """Create the three-note fixture directory: a (newest, #todo), b, c (oldest, draft)."""
    root = tmp_path / "notes"
    (root / "work").mkdir(parents=True)
    for relative, content, mtime in [
        ("a.md", "Remember #todo\n", 1_700_000_300),
        ("work/b.md", "Plain text\n", 1_700_000_200),
        ("c.md", "---\ntags: [Draft, 42, aabbcc]\n---\nBody\n", 1_700_000_100),
    ]:
        path = root / relative
        path.write_text(content, encoding="utf-8")
        os.utime(path, (mtime, mtime))
    return root


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Marknav browses" in result.output
    for command in ("list", "tags", "new", "cache", "config"):
        assert command in result.output


def test_list_renders_groups_and_summary(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(cli, ["list", "--root", str(root)], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert "a.md" in result.output
    assert "#todo" in result.output
    assert "Showing 1-3 of 3 (Total 3 files)" in result.output


def test_list_json_orders_newest_first(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(cli, ["list", "--root", str(root), "--json"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [item["name"] for item in payload["files"]] == ["a.md", "b.md", "c.md"]
    assert payload["files"][1]["folder"] == "work"
    assert payload["files"][2]["tags"] == ["draft"]
    assert payload["counts"] == {"matched": 3, "loaded": 3, "total": 3}
    assert [group["folder"] for group in payload["groups"]] == ["notes", "work"]


def test_list_filters_by_tag_and_query(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)

    by_tag = runner.invoke(cli, ["list", "--root", str(root), "--tag", "#TODO", "--json"], env=env)
    by_query = runner.invoke(cli, ["list", "--root", str(root), "-q", "WORK", "--json"], env=env)

    assert [item["name"] for item in json.loads(by_tag.output)["files"]] == ["a.md"]
    assert [item["name"] for item in json.loads(by_query.output)["files"]] == ["b.md"]


def test_list_paginates(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)
    env["MARKNAV__BROWSE__PAGE_SIZE"] = "2"

    result = runner.invoke(cli, ["list", "--root", str(root), "--page", "2", "--json"], env=env)

    payload = json.loads(result.output)
    assert payload["page"] == 2
    assert payload["total_pages"] == 2
    assert [item["name"] for item in payload["files"]] == ["c.md"]


def test_list_limit_reports_partial_load(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(cli, ["list", "--root", str(root), "--limit", "1"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Loaded 1 of 3 files" in result.output


def test_list_quiet_suppresses_output(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(cli, ["list", "--root", str(root), "--quiet"], env=_env(tmp_path))

    assert result.exit_code == 0
    assert result.output.strip() == ""


def test_list_json_and_quiet_conflict(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(
        cli, ["list", "--root", str(root), "--json", "--quiet"], env=_env(tmp_path)
    )

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"


def test_list_invalid_config_emits_json_error(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    env["MARKNAV__BROWSE__PAGE_SIZE"] = "0"

    result = runner.invoke(cli, ["list", "--root", str(tmp_path), "--json"], env=env)

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "config_error"


def test_list_missing_root_without_create(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    env["MARKNAV__LIBRARY__CREATE_IF_MISSING"] = "false"

    result = runner.invoke(cli, ["list", "--root", str(tmp_path / "absent")], env=env)

    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_tags_lists_vocabulary_with_counts(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(cli, ["tags", "--root", str(root), "--json"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["tags"] == [
        {"name": "draft", "files": 1},
        {"name": "todo", "files": 1},
    ]


def test_new_creates_note_and_invalidates_cache(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)
    runner.invoke(cli, ["list", "--root", str(root)], env=env)

    created = runner.invoke(
        cli,
        ["new", "Weekly Sync", "--tags", "team, review", "--dir", "work", "--root", str(root)],
        env=env,
    )
    listed = runner.invoke(cli, ["list", "--root", str(root), "--json"], env=env)

    assert created.exit_code == 0, created.output
    note = root / "work" / "weekly-sync.md"
    assert note.exists()
    assert "#team #review" in note.read_text(encoding="utf-8")
    assert "weekly-sync.md" in [item["name"] for item in json.loads(listed.output)["files"]]


def test_new_refuses_to_overwrite(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)

    runner.invoke(cli, ["new", "Twice", "--root", str(root)], env=env)
    result = runner.invoke(cli, ["new", "Twice", "--root", str(root), "--json"], env=env)

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "note_exists"


def test_cache_clear(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)
    runner.invoke(cli, ["list", "--root", str(root)], env=env)

    cleared = runner.invoke(cli, ["cache", "clear", "--root", str(root)], env=env)
    again = runner.invoke(cli, ["cache", "clear", "--root", str(root)], env=env)

    assert cleared.exit_code == 0
    assert "Cleared cached results" in cleared.output
    assert "No cached results" in again.output


def test_list_page_past_the_end_is_rejected(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)
    env = _env(tmp_path)

    result = runner.invoke(cli, ["list", "--root", str(root), "--page", "9"], env=env)
    as_json = runner.invoke(cli, ["list", "--root", str(root), "--page", "9", "--json"], env=env)

    assert result.exit_code == 1
    assert "Page 9 is out of range" in result.output
    assert "Showing" not in result.output
    assert json.loads(as_json.output)["error"]["code"] == "cli_error"


def test_new_rejects_folder_outside_root(tmp_path: Path) -> None:
    runner = CliRunner()
    root = _notes(tmp_path)

    result = runner.invoke(
        cli,
        ["new", "Escape", "--dir", "../elsewhere", "--root", str(root), "--json"],
        env=_env(tmp_path),
    )

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"
    assert not (tmp_path / "elsewhere").exists()
