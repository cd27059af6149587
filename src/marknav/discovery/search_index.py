"""Platform search index access (Spotlight's ``mdfind``)."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Protocol

from .errors import SearchIndexError

LOGGER = logging.getLogger(__name__)


class SearchIndex(Protocol):
    """Anything that can list indexed Markdown files under a root."""

    async def search(self, root: Path) -> list[Path]: ...


class SpotlightIndex:
    """Query ``mdfind -onlyin ROOT QUERY`` and return the reported paths."""

    def __init__(
        self,
        *,
        command: str = "mdfind",
        query: str = "kind:markdown",
        timeout: float | None = 10.0,
    ) -> None:
        self.command = command
        self.query = query
        self.timeout = timeout

    def available(self) -> bool:
        """Return True when the search command is on PATH."""
        return shutil.which(self.command) is not None

    async def search(self, root: Path) -> list[Path]:
        """Return the absolute paths the index reports under ``root``.

        Raises:
            SearchIndexError: If the command is missing, cannot start, exits
                non-zero, or does not finish within ``timeout`` seconds.
        """
        executable = shutil.which(self.command)
        if executable is None:
            raise SearchIndexError(f"Search command '{self.command}' is not available.")

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                "-onlyin",
                str(root),
                self.query,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SearchIndexError(f"Could not start '{self.command}': {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await _terminate(process)
            raise SearchIndexError(
                f"'{self.command}' did not finish within {self.timeout} seconds."
            ) from exc
        except asyncio.CancelledError:
            await _terminate(process)
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise SearchIndexError(
                f"'{self.command}' exited with status {process.returncode}: "
                f"{message or 'no output'}"
            )

        paths = [
            Path(line.strip())
            for line in stdout.decode("utf-8", errors="replace").splitlines()
            if line.strip()
        ]
        LOGGER.debug("%s reported %d paths under %s", self.command, len(paths), root)
        return paths


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    await process.wait()


__all__ = ["SearchIndex", "SpotlightIndex"]
