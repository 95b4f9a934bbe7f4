"""
Thin wrapper around the git command line.
"""
from __future__ import annotations

import logging
import subprocess
from contextlib import contextmanager
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)


class GitClient:
    """
    Runs git commands in a working tree. Failing commands raise
    subprocess.CalledProcessError.
    """
    def __init__(self, remote: str = "origin", cwd: Optional[str] = None):
        self.remote = remote
        self.cwd = cwd

    def _run(self, args: List[str]) -> None:
        subprocess.run(["git", *args], check=True, cwd=self.cwd)

    def _output(self, args: List[str]) -> str:
        result = subprocess.run(
            ["git", *args], check=True, cwd=self.cwd, capture_output=True, text=True
        )
        return result.stdout.strip()

    def current_branch(self) -> str:
        """
        Name of the checked-out branch, or the commit hash on a detached HEAD.
        """
        name = self._output(["rev-parse", "--abbrev-ref", "HEAD"])
        if name == "HEAD":
            return self.revision()
        return name

    def ref_exists(self, ref: str) -> bool:
        for candidate in (ref, f"{self.remote}/{ref}"):
            result = subprocess.run(
                ["git", "rev-parse", "--verify", "--quiet", candidate],
                cwd=self.cwd,
                capture_output=True,
                text=True,
            )
            if result.returncode == 0:
                return True
        return False

    def fetch(self) -> None:
        self._run(["fetch", "--all"])

    def checkout(self, ref: str) -> None:
        self._run(["checkout", ref])

    def revision(self) -> str:
        return self._output(["rev-parse", "HEAD"])

    @contextmanager
    def on_branch(self, branch: str) -> Iterator[str]:
        """
        Fetch and check out ``branch`` for the duration of the block, then
        return to the branch that was checked out before.

        Yields:
            The original branch name.
        """
        original = self.current_branch()
        logger.info("Fetching remotes and checking out %s (currently on %s)", branch, original)
        self.fetch()
        self.checkout(branch)
        try:
            yield original
        except BaseException:
            try:
                self.checkout(original)
            except subprocess.CalledProcessError:
                logger.exception("Could not restore branch %s", original)
            raise
        logger.info("Restoring branch %s", original)
        self.checkout(original)
