"""Git working copy inspection."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlparse

from .errors import ConfigError

logger = logging.getLogger(__name__)


def parse_remote_url(url: str) -> Tuple[str, str, str]:
    """
    Parse a git remote URL into (https_url, owner, name).

    SSH and git:// remotes are rewritten to https. Owner and name are
    empty strings when the path has fewer than two segments.

    Example:
        >>> parse_remote_url("git@github.com:octo/widgets.git")
        ('https://github.com/octo/widgets', 'octo', 'widgets')
    """
    for old, new in (
        ("git@", "https://"),
        ("git://", "https://"),
        (".git", ""),
        ("github.com:", "github.com/"),
    ):
        url = url.replace(old, new)

    parts = urlparse(url).path.split("/")
    if len(parts) > 2 and parts[1] and parts[2]:
        return url, parts[1], parts[2]
    return url, "", ""


class GitRepository:
    """
    Reads commit, branch, and remote information from a working copy.

    Args:
        path: Any directory inside the working copy
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _run_git(self, *args: str) -> Tuple[bool, str]:
        """Run a git command and return (success, stdout)."""
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=str(self.path),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ConfigError("Git not found in PATH") from e
        if result.returncode != 0:
            logger.debug("git %s failed: %s", " ".join(args), result.stderr.strip())
        return result.returncode == 0, result.stdout.strip()

    def root(self) -> Path:
        """
        Get the repository root directory.

        Raises:
            ConfigError: If the path is not inside a git repository
        """
        ok, out = self._run_git("rev-parse", "--show-toplevel")
        if not ok:
            raise ConfigError(f"Not a git repository: {self.path}")
        return Path(out)

    def current_commit(self) -> str:
        ok, out = self._run_git("rev-parse", "HEAD")
        if not ok:
            raise ConfigError(f"Unable to read the current commit in {self.path}")
        return out

    def current_branch(self) -> str:
        ok, out = self._run_git("rev-parse", "--abbrev-ref", "HEAD")
        return out if ok else ""

    def remote_url(self) -> str:
        """Get the push URL of the origin remote, or the first remote."""
        ok, out = self._run_git("remote")
        remotes = out.split() if ok else []
        if not remotes:
            return ""
        remote = "origin" if "origin" in remotes else remotes[0]
        ok, url = self._run_git("remote", "get-url", "--push", remote)
        return url if ok else ""

    def is_dirty(self) -> bool:
        """Check if there are uncommitted changes."""
        ok, out = self._run_git("status", "--porcelain")
        return ok and bool(out)


def find_repository(path: Optional[Union[str, Path]] = None) -> GitRepository:
    """Open the repository containing path (default: current directory)."""
    repo = GitRepository(path or Path.cwd())
    return GitRepository(repo.root())
