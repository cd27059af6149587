"""Command line interface for marknav."""

from __future__ import annotations

import asyncio
import difflib
import sys
from collections import Counter
from datetime import timedelta
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.color import Color, ColorParseError
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from marknav._logging import configure_logging
from marknav.cache import JsonFileStore, KeyValueStore, MemoryStore, ResultCache
from marknav.config import ConfigError, ConfigManager, MarknavConfig, resolve_with_precedence
from marknav.discovery import DiscoveryError, DiscoveryService, ensure_root
from marknav.notes import TEMPLATES, NoteExistsError, create_note
from marknav.query import PageView, QueryEngine, format_relative_date
from marknav.tags import SystemTagTable

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool) -> None:
    """Print CLI output unless quiet mode suppresses it.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
    """

    if quiet and mode != "error":
        return
    console.print(message)


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Args:
        target: Mapping to mutate in-place.
        path: Sequence of keys representing the nested location.
        value: Value to assign at the nested location.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _resolve_quiet(
    ctx: click.Context, quiet: bool, json_output: bool, config: MarknavConfig
) -> bool:
    """Return the effective quiet flag, honoring config defaults and JSON mode.

    Raises:
        click.ClickException: If ``--json`` and ``--quiet`` are both given.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    if json_output:
        if explicit_quiet and quiet:
            raise click.ClickException("--json cannot be combined with --quiet.")
        return False
    return quiet if explicit_quiet else config.cli.quiet_default


def _load_config(cli_overrides: dict[str, Any] | None = None) -> MarknavConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load(cli_overrides=cli_overrides)
    configure_logging(config.logging.level)
    return config


def _build_cache(config: MarknavConfig) -> ResultCache:
    """Wire discovery and the result cache for the configured root.

    Raises:
        DiscoveryError: If the root directory is unusable.
    """
    root = ensure_root(config.library.root, create=config.library.create_if_missing)
    service = DiscoveryService.from_settings(root, config.discovery)
    store: KeyValueStore
    if config.cache.enabled:
        store = JsonFileStore(Path(config.cache.path))
    else:
        store = MemoryStore()
    return ResultCache(service, store, ttl=timedelta(seconds=config.cache.ttl_seconds))


def _build_engine(config: MarknavConfig, cache: ResultCache) -> QueryEngine:
    engine = QueryEngine(
        cache,
        page_size=config.browse.page_size,
        initial_load_limit=config.browse.initial_load_limit,
        load_increment=config.browse.load_increment,
        system_tags=SystemTagTable(config.tags.system_tags),
    )
    engine.state.show_color_tags = config.tags.show_color_tags
    return engine


def _root_overrides(root: str | None, show_color_tags: bool = False) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if root:
        overrides["library.root"] = root
    if show_color_tags:
        overrides["tags.show_color_tags"] = True
    return overrides


def _tag_markup(tag: str, system_tags: SystemTagTable) -> str:
    """Return Rich markup for ``tag``, coloured when it is a system tag."""
    label = escape(f"#{tag}")
    color = system_tags.color_for(tag)
    if not color:
        return label
    try:
        Color.parse(color)
    except ColorParseError:
        return f"[bold]{label}[/bold]"
    return f"[{color}]{label}[/{color}]"


def _render_page(engine: QueryEngine, view: PageView, *, quiet: bool) -> None:
    for group in view.groups:
        table = Table(title=escape(group.folder or "."), title_justify="left", expand=False)
        table.add_column("File")
        table.add_column("Modified")
        table.add_column("Tags")
        for file in group.files:
            tags = " ".join(
                _tag_markup(tag, engine.system_tags) for tag in engine.display_tags(file)
            )
            table.add_row(escape(file.name), format_relative_date(file.last_modified), tags)
        _emit_message(table, mode="detail", quiet=quiet)

    summary = view.summary()
    if view.total_pages > 1:
        summary += f" | Page {view.page + 1}/{view.total_pages}"
    _emit_message(f"[green]{summary}[/green]", mode="summary", quiet=quiet)

    loaded = len(engine.files)
    if loaded < engine.total_files:
        _emit_message(
            f"[yellow]Loaded {loaded} of {engine.total_files} files; "
            "use --limit or --all to load more.[/yellow]",
            mode="warning",
            quiet=quiet,
        )


def _page_payload(engine: QueryEngine, view: PageView) -> dict[str, Any]:
    files = []
    for file in view.items:
        record = file.model_dump(mode="json")
        record["tags"] = engine.display_tags(file)
        files.append(record)
    return {
        "context": {
            "root": str(engine.cache.service.root),
            "query": engine.state.query,
            "tag": engine.state.selected_tag,
        },
        "page": view.page + 1,
        "total_pages": view.total_pages,
        "page_size": view.page_size,
        "counts": {
            "matched": view.filtered_count,
            "loaded": len(engine.files),
            "total": view.total_files,
        },
        "groups": [
            {"folder": group.folder, "files": [str(file.path) for file in group.files]}
            for group in view.groups
        ],
        "files": files,
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="marknav")
def cli() -> None:
    """Marknav browses, searches and creates Markdown notes.

    Returns:
        None: This function is invoked for its side effects.
    """


@cli.command("list")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=str),
    help="Markdown directory to browse.",
)
@click.option("-q", "--query", default="", help="Match file or folder names containing this text.")
@click.option("-t", "--tag", default=None, help="Only list files carrying this tag.")
@click.option(
    "--page", type=click.IntRange(min=1), default=1, show_default=True, help="Page to display."
)
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Number of files to load.")
@click.option("--all", "load_all", is_flag=True, help="Load every file under the root.")
@click.option("--refresh", is_flag=True, help="Ignore cached results and rescan.")
@click.option("--show-color-tags", is_flag=True, help="Include hex colour tags.")
@click.option("--json", "json_output", is_flag=True, help="Emit the page as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def list_files(
    ctx: click.Context,
    root: str | None,
    query: str,
    tag: str | None,
    page: int,
    limit: int | None,
    load_all: bool,
    refresh: bool,
    show_color_tags: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """List Markdown files, newest first, grouped by folder.

    Unless --all is given, only the first files reported by discovery are
    loaded and sorted, so older files may appear before newer unloaded ones.

    Args:
        ctx: Click context used for parameter source inspection.
        root: Overrides the configured Markdown directory.
        query: Case-insensitive name or folder filter.
        tag: Tag filter.
        page: One-based page number.
        limit: Number of files to load instead of the configured initial limit.
        load_all: When True, load every file.
        refresh: When True, bypass the result cache.
        show_color_tags: When True, display hex colour tags.
        json_output: When True, emit JSON instead of tables.
        quiet: When True, suppress non-error output.

    Raises:
        click.ClickException: If configuration or discovery fails.
    """

    try:
        config = _load_config(_root_overrides(root, show_color_tags))
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)
        if limit is not None and load_all:
            raise click.ClickException("--limit cannot be combined with --all.")

        engine = _build_engine(config, _build_cache(config))
        if load_all:
            engine.state.load_limit = sys.maxsize
        elif limit is not None:
            engine.state.load_limit = limit

        asyncio.run(engine.refresh(force=refresh))
        engine.on_query_changed(query)
        engine.on_tag_changed(tag.lstrip("#").lower() if tag else None)
        engine.set_page(page - 1)
        view = engine.view()
        if view.filtered_count and not view.items:
            raise click.ClickException(
                f"Page {page} is out of range; choose a page from 1 to {view.total_pages}."
            )

        if json_output:
            console.print_json(data=_page_payload(engine, view))
            return
        _render_page(engine, view, quiet=quiet_enabled)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except DiscoveryError as exc:
        _handle_cli_error(str(exc), code="discovery_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while listing files: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command("tags")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=str),
    help="Markdown directory to scan.",
)
@click.option("--refresh", is_flag=True, help="Ignore cached results and rescan.")
@click.option("--show-color-tags", is_flag=True, help="Include hex colour tags.")
@click.option("--json", "json_output", is_flag=True, help="Emit the tag list as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def list_tags(
    ctx: click.Context,
    root: str | None,
    refresh: bool,
    show_color_tags: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Show every tag used under the root with its file count.

    System tags are listed first.
    """

    try:
        config = _load_config(_root_overrides(root, show_color_tags))
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)

        engine = _build_engine(config, _build_cache(config))
        engine.state.load_limit = sys.maxsize
        asyncio.run(engine.refresh(force=refresh))

        vocabulary = engine.all_tags()
        counts = Counter(tag for file in engine.files for tag in file.tags)

        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(engine.cache.service.root)},
                    "tags": [{"name": tag, "files": counts[tag]} for tag in vocabulary],
                }
            )
            return

        if not vocabulary:
            _emit_message("[yellow]No tags found.[/yellow]", mode="warning", quiet=quiet_enabled)
            return

        table = Table(title=f"Tags in {escape(str(engine.cache.service.root))}")
        table.add_column("Tag")
        table.add_column("Files", justify="right")
        for tag in vocabulary:
            table.add_row(_tag_markup(tag, engine.system_tags), str(counts[tag]))
        _emit_message(table, mode="detail", quiet=quiet_enabled)
        _emit_message(
            f"[green]{len(vocabulary)} tags across {engine.total_files} files.[/green]",
            mode="summary",
            quiet=quiet_enabled,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except DiscoveryError as exc:
        _handle_cli_error(str(exc), code="discovery_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while collecting tags: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command("new")
@click.argument("title")
@click.option(
    "--template",
    type=click.Choice(sorted(TEMPLATES)),
    default="basic",
    show_default=True,
    help="Template used for the note body.",
)
@click.option("--tags", default="", help="Comma-separated tags to add to the note.")
@click.option("--dir", "folder", default=None, help="Folder under the root to create the note in.")
@click.option("--root", type=click.Path(file_okay=False, path_type=str), help="Markdown directory.")
@click.option("--json", "json_output", is_flag=True, help="Emit the created path as JSON.")
def new_note(
    title: str,
    template: str,
    tags: str,
    folder: str | None,
    root: str | None,
    json_output: bool,
) -> None:
    """Create a Markdown note titled TITLE from a template.

    Raises:
        click.ClickException: If the note exists or cannot be written.
    """

    try:
        config = _load_config(_root_overrides(root))
        cache = _build_cache(config)
        notes_root = cache.service.root
        target_dir = (notes_root / folder).resolve() if folder else notes_root
        if not target_dir.is_relative_to(notes_root):
            raise click.ClickException(f"Folder {folder!r} is outside {notes_root}.")
        tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()]

        path = create_note(title, target_dir=target_dir, template=template, tags=tag_list)
        cache.invalidate()

        if json_output:
            console.print_json(data={"path": str(path), "template": template, "tags": tag_list})
            return
        console.print(f"[green]Created {escape(str(path))}[/green]")
    except NoteExistsError as exc:
        _handle_cli_error(str(exc), code="note_exists", json_output=json_output, original=exc)
    except (ValueError, OSError) as exc:
        _handle_cli_error(str(exc), code="note_error", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except DiscoveryError as exc:
        _handle_cli_error(str(exc), code="discovery_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.group()
def cache() -> None:
    """Manage cached discovery results."""


@cache.command("clear")
@click.option("--root", type=click.Path(file_okay=False, path_type=str), help="Markdown directory.")
def cache_clear(root: str | None) -> None:
    """Discard the cached file list so the next listing rescans."""

    try:
        config = _load_config(_root_overrides(root))
        result_cache = _build_cache(config)
    except (ConfigError, DiscoveryError) as exc:
        raise click.ClickException(str(exc)) from exc

    if result_cache.invalidate():
        root = escape(str(result_cache.service.root))
        console.print(f"[green]Cleared cached results for {root}.[/green]")
    else:
        console.print("[yellow]No cached results to clear.[/yellow]")


@cli.group()
def config() -> None:
    """Manage marknav configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.read_text().splitlines()
        file_data = manager.load_file_overrides()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'browse.page_size'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=MarknavConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    if diff:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=MarknavConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
