"""
Command-line interface for yaml-tests.

Usage:
    yaml-tests                             # Run all tests in tests.yml
    yaml-tests --tests-file=ci.yml         # Use a different manifest
    yaml-tests lint build                  # Run tests whose name contains lint or build
    yaml-tests --dry-run                   # Run tests without posting to GitHub
    yaml-tests --version                   # Show version

Exit codes:
    0  all tests passed, or failed with ignore-failure set
    1  a test failed, or the filter matched no tests
    2  configuration, manifest, or GitHub API error
"""

import argparse
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Callable, Dict, List, Optional

from . import __version__
from .config import DEFAULT_TESTS_FILE, Options, load_environment, resolve_tests_file
from .console import Console
from .context import RunContext, resolve_context
from .errors import YamlTestsError
from .git import find_repository
from .github import ADD_TOKEN_URL, GitHubClient
from .manifest import Test, filter_tests, load_manifest
from .presenter import ResultPresenter
from .reporter import CommentReporter, StatusReporter
from .runner import YamlTestRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yaml-tests",
        description=(
            "Read tests.yml and run all commands in it, passing results to "
            "GitHub Commit Status API."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"yaml-tests {__version__}",
    )
    parser.add_argument(
        "--tests-file",
        type=str,
        default=DEFAULT_TESTS_FILE,
        help=f"Relative path to a yml file to run (default: {DEFAULT_TESTS_FILE})",
    )
    parser.add_argument(
        "--github-token",
        type=str,
        default=None,
        help=(
            "An active github token. The GITHUB_TOKEN environment variable takes "
            f"precedence. Create a new token at {ADD_TOKEN_URL}"
        ),
    )
    parser.add_argument(
        "--ignore-dirty",
        action="store_true",
        help="Allow testing even if git working copy is dirty (has modified files)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run tests but do not post to GitHub",
    )
    parser.add_argument(
        "--ignore-ssl",
        action="store_true",
        help=(
            "Ignore SSL certificate validation errors. This exposes your token to "
            "interception; use only if you cannot reach the GitHub API otherwise"
        ),
    )
    parser.add_argument(
        "--hostname",
        type=str,
        default=None,
        help="The hostname to use in the status description (default: this machine)",
    )
    parser.add_argument(
        "--status-url",
        type=str,
        default=None,
        help=(
            'The url to send to users via the "Details" link on GitHub.com '
            "(default: YAML_TASKS_STATUS_URL)"
        ),
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output, including tracebacks on errors",
    )
    parser.add_argument(
        "filter",
        nargs="*",
        help="A list of strings to filter tests by",
    )
    return parser


def tests_to_rows(tests: Dict[str, Test]) -> List[List[str]]:
    return [[test.name, test.command_view] for test in tests.values()]


def run(
    args: argparse.Namespace,
    console: Console,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
) -> int:
    """Load the manifest, resolve the run context, and run the tests."""
    working_dir = Path.cwd()
    tests_path = resolve_tests_file(args.tests_file, working_dir)
    tests = load_manifest(tests_path)
    logger.debug("Loaded %d tests from %s", len(tests), tests_path)

    git = find_repository(working_dir)
    load_environment([os.environ.get("HOME"), git.path, working_dir])
    options = Options.from_args(args)

    if git.is_dirty() and not options.ignore_dirty:
        console.warning(
            "Git working copy has uncommitted changes. Results are reported against "
            "the last commit. Use --ignore-dirty to silence this warning."
        )

    dry_run = options.dry_run
    if not dry_run and not options.github_token:
        console.warning("No GitHub token found. forcing --dry-run")
        console.newline()
        dry_run = True

    client = None
    if not dry_run:
        client = client_factory(options.github_token, verify=not options.ignore_ssl)

    try:
        context = resolve_context(options, git, console, client)
        return run_tests(tests, options, context, console, client)
    finally:
        if client is not None:
            client.close()


def run_tests(
    tests: Dict[str, Test],
    options: Options,
    context: RunContext,
    console: Console,
    client: Optional[GitHubClient] = None,
) -> int:
    """Filter the tests, run them, and render the summary."""
    console.table([f"Tests found in {options.tests_file}"], tests_to_rows(tests))

    if options.filters:
        filter_string = " ".join(options.filters)
        tests = filter_tests(tests, options.filters)
        if not tests:
            console.warning(
                f"The filter '{filter_string}' was specified but it did not match any tests."
            )
            return 1
        console.table([f"Tests to run based on filter '{filter_string}'"], tests_to_rows(tests))

    presenter = ResultPresenter(console)
    runner = YamlTestRunner(
        tests,
        context,
        console,
        status_reporter=None if context.dry_run else StatusReporter(client, context, console),
        comment_reporter=None if context.dry_run else CommentReporter(client, context, console),
        on_test_complete=presenter.add,
    )
    runner.run()
    presenter.render()
    return presenter.exit_code()


def main(
    argv: Optional[List[str]] = None,
    console: Optional[Console] = None,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
    )
    console = console or Console()

    try:
        return run(args, console, client_factory)
    except YamlTestsError as e:
        if args.verbose:
            traceback.print_exc()
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
