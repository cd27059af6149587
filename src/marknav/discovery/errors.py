"""Discovery errors."""


class DiscoveryError(Exception):
    """Raised when no strategy could list the Markdown files under a root."""


class SearchIndexError(DiscoveryError):
    """Raised when the platform search index is unavailable or fails."""


class WalkError(DiscoveryError):
    """Raised when the recursive directory walk cannot complete."""
