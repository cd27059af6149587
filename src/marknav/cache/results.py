"""Time-boxed cache of full discovery passes."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from pydantic import ValidationError

from marknav.discovery import DiscoveryError, DiscoveryService, MarkdownFile

from .errors import StoreError
from .models import CacheEntry

LOGGER = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "markdown-files"
DEFAULT_TTL = timedelta(hours=1)


class KeyValueStore(Protocol):
    """String key-value storage that persists across invocations."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultCache:
    """Serve full discovery results from the store for up to ``ttl``.

    Only unlimited passes are cached. Limited passes ("load more") always run
    discovery and never touch the store, so a partial listing can never stand
    in for the full one.
    """

    def __init__(
        self,
        service: DiscoveryService,
        store: KeyValueStore,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.service = service
        self.store = store
        self.ttl = ttl
        self._clock = clock or _utcnow
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        """Return the store key for the service's root."""
        return f"{CACHE_KEY_PREFIX}::{self.service.root}"

    async def get_all(self, *, force_refresh: bool = False) -> list[MarkdownFile]:
        """Return every Markdown file under the root, from cache when fresh.

        Concurrent callers share one discovery pass.

        Args:
            force_refresh: Skip the cached entry and run discovery.

        Raises:
            DiscoveryError: If discovery fails and no cached entry exists.
        """
        async with self._lock:
            entry = self._load()
            if entry is not None and not force_refresh and self._is_fresh(entry):
                LOGGER.debug("Serving %d cached files for %s", len(entry.files), self.service.root)
                return list(entry.files)

            try:
                files = await self.service.discover()
            except DiscoveryError as exc:
                if entry is None:
                    raise
                LOGGER.warning(
                    "Discovery failed, serving stale cache for %s: %s", self.service.root, exc
                )
                return list(entry.files)

            entry = CacheEntry(root=str(self.service.root), files=files, timestamp=self._clock())
            self._save(entry)
            return list(files)

    async def get_limited(self, limit: int) -> list[MarkdownFile]:
        """Run discovery capped at ``limit`` files, bypassing the cache."""
        return await self.service.discover(limit)

    def invalidate(self) -> bool:
        """Drop the cached entry for the root; return True when one existed."""
        try:
            return self.store.delete(self.key)
        except StoreError as exc:
            LOGGER.warning("Could not clear cache entry %s: %s", self.key, exc)
            return False

    def _is_fresh(self, entry: CacheEntry) -> bool:
        timestamp = entry.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return self._clock() - timestamp < self.ttl

    def _load(self) -> CacheEntry | None:
        try:
            payload = self.store.get(self.key)
        except StoreError as exc:
            LOGGER.warning("Ignoring unreadable cache store: %s", exc)
            return None
        if payload is None:
            return None

        try:
            entry = CacheEntry.model_validate_json(payload)
        except (ValidationError, ValueError) as exc:
            LOGGER.warning("Ignoring corrupt cache entry %s: %s", self.key, exc)
            return None
        if entry.root != str(self.service.root):
            return None
        return entry

    def _save(self, entry: CacheEntry) -> None:
        try:
            self.store.set(self.key, entry.model_dump_json())
        except StoreError as exc:
            LOGGER.warning("Could not write cache entry %s: %s", self.key, exc)


__all__ = ["ResultCache", "KeyValueStore", "CACHE_KEY_PREFIX", "DEFAULT_TTL"]
