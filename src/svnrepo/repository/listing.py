"""
SVN listing client.

Runs ``svn ls`` and ``svn cat`` as subprocesses and parses their flat text
output. Every call is bounded by a timeout: remote listings have no timeout
of their own and would otherwise hang on a network partition.
"""

import asyncio
import logging
import re
import subprocess

from ..errors import ListingError, ListingTimeoutError

logger = logging.getLogger(__name__)

_LIST_SEPARATORS = re.compile(r"[ \r\n/]+")


def parse_svn_list(response: str) -> list[str]:
    """
    Parse an ``svn ls`` response into item names.

    Splitting on spaces, newlines and slashes both separates entries and
    strips the trailing slash that marks directories.

    Args:
        response: Raw command output

    Returns:
        Item names (possibly empty)
    """
    return [item for item in _LIST_SEPARATORS.split(response) if item]


class ListingClient:
    """Executes remote directory listings against SVN URLs."""

    def __init__(
        self,
        trust_cert: bool = False,
        timeout: float = 300,
        svn_binary: str = "svn",
    ) -> None:
        """
        Initialize listing client.

        Args:
            trust_cert: Trust HTTPS server certificates without prompting
            timeout: Seconds before a single command is abandoned
            svn_binary: Name or path of the svn executable
        """
        self.trust_cert = trust_cert
        self.timeout = timeout
        self.svn_binary = svn_binary

    def build_command(self, command: str, url: str) -> list[str]:
        """Build the argument vector for an svn command against ``url``."""
        cmd = [self.svn_binary, command]
        if url[:5].lower() == "https" and self.trust_cert:
            # first connections to a host otherwise block on a trust prompt
            cmd.extend(["--non-interactive", "--trust-server-cert"])
        cmd.append(url)
        return cmd

    async def execute(self, command: str, url: str, timeout: float | None = None) -> str:
        """
        Execute an svn command and return its standard output.

        Args:
            command: svn subcommand, e.g. ``ls``
            url: URL to act upon
            timeout: Override for the client timeout

        Returns:
            Command output

        Raises:
            ListingError: If the command fails
            ListingTimeoutError: If the command does not finish in time
        """
        cmd = self.build_command(command, url)
        result = await self._run_command(cmd, url, timeout or self.timeout)
        if result.returncode != 0:
            raise ListingError(url, result.stderr.strip() or "svn exited with an error", result.returncode)
        return result.stdout

    async def ls(self, url: str, timeout: float | None = None) -> list[str]:
        """List the entries under ``url``."""
        return parse_svn_list(await self.execute("ls", url, timeout))

    async def cat(self, url: str, timeout: float | None = None) -> str:
        """Fetch the contents of the file at ``url``."""
        return await self.execute("cat", url, timeout)

    async def exists(self, url: str) -> bool:
        """Explicit paths are taken at face value; nothing is checked remotely."""
        return True

    async def _run_command(
        self, cmd: list[str], url: str, timeout: float
    ) -> subprocess.CompletedProcess:
        """Run a command asynchronously."""
        logger.debug(f"Running command: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ListingError(url, f"could not run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ListingTimeoutError(url, timeout) from e
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        return subprocess.CompletedProcess(
            args=cmd,
            returncode=process.returncode or 0,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )
