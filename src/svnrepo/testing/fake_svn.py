"""
In-memory SVN tree for testing.

``FakeSvnTree`` stands in for ``ListingClient``: it answers ``ls`` and
``cat`` from a dictionary of URLs, records every call, and can simulate
failures and slow servers.
"""

import asyncio
import logging
from typing import Any

from ..errors import ListingError, ListingTimeoutError
from ..repository.listing import parse_svn_list

logger = logging.getLogger(__name__)


def _key(url: str) -> str:
    return url.rstrip("/")


class FakeSvnTree:
    """In-memory listing client for tests."""

    def __init__(
        self,
        tree: dict[str, list[str]] | None = None,
        files: dict[str, str] | None = None,
        failures: dict[str, str] | None = None,
        timeouts: set[str] | None = None,
        response_delay: float = 0.0,
    ) -> None:
        """
        Initialize fake SVN tree.

        Args:
            tree: Directory URL to entry list (directories end with ``/``)
            files: File URL to contents
            failures: URL to the error message its listing fails with
            timeouts: URLs whose listing times out
            response_delay: Artificial delay in seconds per call
        """
        self.tree = {_key(url): list(entries) for url, entries in (tree or {}).items()}
        self.files = {_key(url): contents for url, contents in (files or {}).items()}
        self.failures = {_key(url): message for url, message in (failures or {}).items()}
        self.timeouts = {_key(url) for url in timeouts or ()}
        self.response_delay = response_delay
        self.calls: list[tuple[str, str]] = []

    def add_directory(self, url: str, entries: list[str]) -> None:
        self.tree[_key(url)] = list(entries)

    def fail(self, url: str, message: str = "svn: E170000: URL doesn't exist") -> None:
        self.failures[_key(url)] = message

    def call_count(self, command: str | None = None, url: str | None = None) -> int:
        return sum(
            1 for call in self.calls
            if (command is None or call[0] == command) and (url is None or call[1] == _key(url))
        )

    def reset_calls(self) -> None:
        self.calls.clear()

    async def execute(self, command: str, url: str, timeout: float | None = None) -> str:
        """Answer an svn command from the in-memory tree."""
        key = _key(url)
        self.calls.append((command, key))
        logger.debug(f"Fake svn {command} {url}")

        if self.response_delay:
            await asyncio.sleep(self.response_delay)

        if key in self.timeouts:
            raise ListingTimeoutError(url, timeout or 0)
        if key in self.failures:
            raise ListingError(url, self.failures[key], 1)

        if command == "ls" and key in self.tree:
            return "\n".join(self.tree[key]) + "\n"
        if command == "cat" and key in self.files:
            return self.files[key]
        raise ListingError(url, f"svn: E170000: URL '{url}' non-existent in revision 1", 1)

    async def ls(self, url: str, timeout: float | None = None) -> list[str]:
        return parse_svn_list(await self.execute("ls", url, timeout))

    async def cat(self, url: str, timeout: float | None = None) -> str:
        return await self.execute("cat", url, timeout)

    async def exists(self, url: str) -> bool:
        return True

    def get_stats(self) -> dict[str, Any]:
        return {
            "directories": len(self.tree),
            "files": len(self.files),
            "calls": len(self.calls),
        }
