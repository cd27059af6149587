"""Exceptions raised while loading marknav configuration."""


class ConfigError(Exception):
    """Raised when a configuration file or override cannot be parsed or validated."""
