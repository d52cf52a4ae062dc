"""
Run configuration.

Options come from the command line and the environment. Environment
files (``.env``) are loaded before options are resolved so that they can
provide ``GITHUB_TOKEN`` and ``YAML_TASKS_STATUS_URL``.

Precedence:
- github token: GITHUB_TOKEN environment variable, then --github-token
- status url: --status-url, then YAML_TASKS_STATUS_URL
- hostname: --hostname, then the local host name
"""

import argparse
import logging
import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TESTS_FILE = "tests.yml"


@dataclass(frozen=True)
class Options:
    """
    Resolved command line options.

    Attributes:
        tests_file: Path to the tests manifest, as given
        github_token: GitHub token, or empty when none was found
        ignore_dirty: Allow testing a working copy with uncommitted changes
        dry_run: Run tests without posting to GitHub
        ignore_ssl: Disable TLS certificate verification for the API
        hostname: Host name shown in status descriptions and comments
        status_url: Target URL for the status "Details" link
        filters: Test name substrings to select tests by
        verbose: Print debug logging and tracebacks
    """
    tests_file: str = DEFAULT_TESTS_FILE
    github_token: str = ""
    ignore_dirty: bool = False
    dry_run: bool = False
    ignore_ssl: bool = False
    hostname: str = ""
    status_url: str = ""
    filters: List[str] = field(default_factory=list)
    verbose: bool = False

    @classmethod
    def from_args(
        cls, args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
    ) -> "Options":
        """Build options from parsed arguments and the environment."""
        environ = os.environ if environ is None else environ
        return cls(
            tests_file=args.tests_file or DEFAULT_TESTS_FILE,
            github_token=environ.get("GITHUB_TOKEN") or args.github_token or "",
            ignore_dirty=args.ignore_dirty,
            dry_run=args.dry_run,
            ignore_ssl=args.ignore_ssl,
            hostname=args.hostname or socket.gethostname(),
            status_url=args.status_url or environ.get("YAML_TASKS_STATUS_URL", ""),
            filters=list(args.filter or []),
            verbose=args.verbose,
        )


def resolve_tests_file(tests_file: str, working_dir: Union[str, Path]) -> Path:
    """
    Resolve the tests file relative to the working directory.

    Raises:
        ConfigError: If the file does not exist
    """
    working_dir = Path(working_dir)
    path = (working_dir / tests_file).resolve()
    if not path.is_file():
        raise ConfigError(
            f"Specified tests file does not exist at {working_dir}/{tests_file}"
        )
    return path


def load_environment(directories: Iterable[Union[str, Path, None]]) -> List[Path]:
    """
    Load ``.env`` files from the given directories.

    Variables already present in the environment are never overridden.
    Directories without a ``.env`` file are skipped.

    Returns:
        The env files that were loaded
    """
    loaded = []
    for directory in directories:
        if not directory:
            continue
        env_file = Path(directory) / ".env"
        if env_file.is_file():
            load_dotenv(env_file, override=False)
            logger.debug("Loaded environment from %s", env_file)
            loaded.append(env_file)
    return loaded
