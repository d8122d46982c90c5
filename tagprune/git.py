"""
Asynchronous wrapper around the git command line.

Only the handful of commands needed to manage tags are exposed. Every call
runs ``git`` as a subprocess on the current event loop, so many remote
deletions can be in flight at once without tying up threads.
"""

import asyncio
from typing import List, Optional, Sequence

from tagprune.utils.logging import get_logger

log = get_logger("git")

# stderr fragments git prints when the tag is already gone
_NOT_FOUND_MARKERS = (
    "remote ref does not exist",
    "remote ref is at",
    "tag does not exist",
)


class GitCommandError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        super().__init__(
            f"git {' '.join(self.args_list)} failed ({returncode}): {self.stderr}"
        )


def is_tag_not_found(error: GitCommandError) -> bool:
    """
    Check whether a failed tag deletion means the tag no longer exists.

    :param error: Error raised by a delete command.
    :return: True if stderr matches one of git's "not found" messages.
    """
    stderr = error.stderr or ""
    return any(marker in stderr for marker in _NOT_FOUND_MARKERS)


class GitClient:
    """
    Runs git commands against one repository and one remote.
    """

    def __init__(self, binary: str = "git", remote: str = "origin", cwd: Optional[str] = None):
        """
        :param binary: git executable name or path.
        :param remote: Remote that tags are pushed to / deleted from.
        :param cwd: Repository directory. None means the current directory.
        """
        self.binary = binary
        self.remote = remote
        self.cwd = cwd

    async def run(self, *args: str) -> str:
        """
        Run a git command and return its stripped stdout.

        :raises GitCommandError: On a non-zero exit, or if the binary is missing.
        """
        log.debug(f"git {' '.join(args)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary, *args,
                cwd=self.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitCommandError(args, 127, str(e)) from e

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise GitCommandError(args, proc.returncode, stderr.decode(errors="replace"))
        return stdout.decode(errors="replace").strip()

    async def fetch_tags(self) -> None:
        """Sync local tags with the remote, pruning ones deleted upstream."""
        await self.run("fetch", "--prune", "--tags")

    async def list_tags(self) -> List[str]:
        """List local tag names."""
        output = await self.run("tag")
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def delete_remote_tag(self, tag: str) -> None:
        await self.run("push", self.remote, "--delete", tag)

    async def delete_local_tag(self, tag: str) -> None:
        await self.run("tag", "-d", tag)
