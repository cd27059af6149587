"""Persistent string key-value store backed by a single JSON file."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict

from .errors import CorruptStoreError, StoreError

DEFAULT_STORE_PATH = Path("~/.marknav/cache.json")


class JsonFileStore:
    """Map string keys to string payloads in one JSON object on disk.

    Every write replaces the whole file atomically, so readers see either the
    previous or the next snapshot.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            path: File holding the JSON object; `~` is expanded.
        """
        self._path = (path or DEFAULT_STORE_PATH).expanduser()

    @property
    def path(self) -> Path:
        """Return the backing file path."""
        return self._path

    def get(self, key: str) -> str | None:
        """Return the payload stored under ``key``, or None.

        Raises:
            CorruptStoreError: If the store file cannot be decoded.
            StoreError: If the store file cannot be read.
        """
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous payload.

        A corrupt store file is discarded rather than blocking the write.

        Raises:
            StoreError: If the store file cannot be written.
        """
        try:
            data = self._read()
        except CorruptStoreError:
            data = {}
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return True when something was removed."""
        try:
            data = self._read()
        except CorruptStoreError:
            data = {}
        removed = data.pop(key, None) is not None
        if removed:
            self._write(data)
        return removed

    def keys(self) -> list[str]:
        """Return the stored keys."""
        return list(self._read())

    def _read(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Could not read {self._path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"Invalid store data in {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CorruptStoreError(f"Store file {self._path} must contain a JSON object.")
        return data

    def _write(self, data: Dict[str, object]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreError(f"Could not write {self._path}: {exc}") from exc


class MemoryStore:
    """In-process store; used when caching across invocations is disabled."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


__all__ = ["JsonFileStore", "MemoryStore", "DEFAULT_STORE_PATH"]
