"""Result caching for discovery passes."""

from .errors import CorruptStoreError, StoreError
from .models import CacheEntry
from .results import CACHE_KEY_PREFIX, DEFAULT_TTL, KeyValueStore, ResultCache
from .store import DEFAULT_STORE_PATH, JsonFileStore, MemoryStore

__all__ = [
    "CorruptStoreError",
    "StoreError",
    "CacheEntry",
    "CACHE_KEY_PREFIX",
    "DEFAULT_TTL",
    "KeyValueStore",
    "ResultCache",
    "DEFAULT_STORE_PATH",
    "JsonFileStore",
    "MemoryStore",
]
