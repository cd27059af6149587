"""Cache storage errors."""


class StoreError(Exception):
    """Base exception for key-value store operations."""


class CorruptStoreError(StoreError):
    """Raised when the store file exists but cannot be decoded."""
