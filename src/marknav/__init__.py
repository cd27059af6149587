"""Top-level package for marknav, a Markdown note browser."""

from importlib import metadata as _metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("marknav")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
