"""
Git repository access.

Shells out to the git executable rather than reading .git directly, so
worktrees, submodules and GIT_DIR overrides all behave as git itself sees them.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from .types import LintError

logger = logging.getLogger(__name__)

# owner/repo on the given host, in https or scp-like ssh form
REMOTE_URL_PATTERN = r"{host}[:/]([\w-]+)/([\w-]+)(?:\.git)?"


class RepositoryError(LintError):
    """Raised when git cannot answer a question about the repository."""


class GitRepository:
    """Read-only view of the git repository containing ``path``."""

    def __init__(self, path: Path, git: str = "git"):
        self.path = Path(path)
        self.git = git

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                [self.git, *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise RepositoryError(f"git {' '.join(args)} failed: {e}") from e
        return result.stdout

    def discover(self) -> Path:
        """
        Find the root of the working tree.

        Raises:
            RepositoryError: If ``path`` is not inside a git working tree.
        """
        root = self._run("rev-parse", "--show-toplevel").strip()
        if not root:
            raise RepositoryError(f"{self.path} is not inside a git working tree")
        return Path(root).resolve()

    def remotes(self) -> List[Tuple[str, str]]:
        """Return (name, url) pairs in the order git lists them."""
        remotes: List[Tuple[str, str]] = []
        for line in self._run("remote", "-v").splitlines():
            parts = line.split()
            if len(parts) < 2:
                continue
            pair = (parts[0], parts[1])
            if pair not in remotes:
                remotes.append(pair)
        return remotes

    def is_tracked(self, relpath: str) -> bool:
        """True if ``relpath`` is in the git index."""
        return bool(self._run("ls-files", "--", relpath).strip())


def parse_remote(url: str, host: str = "github.com") -> Optional[Tuple[str, str]]:
    """
    Extract (owner, repo) from a remote URL.

    Args:
        url: Remote URL, e.g. "git@github.com:acme/Widget.git".
        host: Host the URL must point at.

    Returns:
        (owner, repo), or None if the URL doesn't point at ``host``.
    """
    match = re.search(REMOTE_URL_PATTERN.format(host=re.escape(host)), url)
    if not match:
        return None
    return match.group(1), match.group(2)


def find_upstream(
    remotes: List[Tuple[str, str]], host: str = "github.com"
) -> Optional[Tuple[str, str]]:
    """
    Pick the owner/repo the project belongs to.

    An ``upstream`` remote wins over ``origin``. Only the first remote of the
    preferred kind is considered.
    """
    for preferred in ("upstream", "origin"):
        for name, url in remotes:
            if name == preferred:
                logger.debug(f"Using remote {name} -> {url}")
                return parse_remote(url, host=host)
    return None
