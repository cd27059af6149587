"""Configuration models describing marknav settings."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marknav.tags.vocabulary import DEFAULT_SYSTEM_TAGS


class MarknavBaseModel(BaseModel):
    """Shared configuration for marknav Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(MarknavBaseModel):
    """Location of the Markdown collection.

    Attributes:
        root: Directory scanned for notes; `~` is expanded.
        create_if_missing: Whether the root is created when it does not exist.
    """

    root: str = "~/Notes"
    create_if_missing: bool = True


class DiscoverySettings(MarknavBaseModel):
    """Options governing how Markdown files are located.

    Attributes:
        use_search_index: Whether to query the platform search index before walking.
        search_command: Executable queried for indexed Markdown files.
        search_query: Query passed to the search command.
        search_timeout_seconds: Time allowed for the search command before falling back.
        extensions: File suffixes treated as Markdown by the directory walk.
        excluded_directories: Directory names never descended into or reported.
        excluded_path_fragments: Path fragments that mark noise paths. Fragments starting
            with ``~`` match under the home directory; others match the root-relative path.
        follow_symlinks: Whether the directory walk follows symbolic links.
        max_concurrency: Maximum number of files read concurrently.
    """

    use_search_index: bool = True
    search_command: str = "mdfind"
    search_query: str = "kind:markdown"
    search_timeout_seconds: float = Field(default=10.0, gt=0)
    extensions: List[str] = Field(default_factory=lambda: [".md"])
    excluded_directories: List[str] = Field(default_factory=lambda: ["node_modules"])
    excluded_path_fragments: List[str] = Field(
        default_factory=lambda: [
            "~/Library/Application Support/Code/User/History/",
            "~/Library/",
        ]
    )
    follow_symlinks: bool = False
    max_concurrency: int = Field(default=16, ge=1)

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for suffix in value:
            suffix = suffix.strip().lower()
            if not suffix:
                continue
            normalized.append(suffix if suffix.startswith(".") else f".{suffix}")
        return normalized


class CacheSettings(MarknavBaseModel):
    """Result cache configuration.

    Attributes:
        enabled: Whether full discovery passes are cached between invocations.
        ttl_seconds: Age after which a cached pass is discarded.
        path: Location of the persistent key-value store.
    """

    enabled: bool = True
    ttl_seconds: int = Field(default=3600, ge=0)
    path: str = "~/.marknav/cache.json"


class TagSettings(MarknavBaseModel):
    """Tag presentation settings.

    Attributes:
        system_tags: System tag names mapped to an optional display colour.
        show_color_tags: Whether hex colour tags are shown by default.
    """

    system_tags: Dict[str, Optional[str]] = Field(default_factory=lambda: dict(DEFAULT_SYSTEM_TAGS))
    show_color_tags: bool = False


class BrowseSettings(MarknavBaseModel):
    """Pagination defaults for browsing.

    Attributes:
        page_size: Number of files shown per page.
        initial_load_limit: Number of files discovered before any "load more".
        load_increment: Amount the load limit grows on each "load more".
    """

    page_size: int = Field(default=20, ge=1)
    initial_load_limit: int = Field(default=50, ge=1)
    load_increment: int = Field(default=50, ge=1)


class LoggingSettings(MarknavBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(MarknavBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class MarknavConfig(MarknavBaseModel):
    """Top-level configuration struct for marknav."""

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    tags: TagSettings = Field(default_factory=TagSettings)
    browse: BrowseSettings = Field(default_factory=BrowseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MarknavBaseModel",
    "LibrarySettings",
    "DiscoverySettings",
    "CacheSettings",
    "TagSettings",
    "BrowseSettings",
    "LoggingSettings",
    "CLIOptions",
    "MarknavConfig",
]
