"""
yaml-tests: run the tests in tests.yml and report them to GitHub.

Each named test in a YAML manifest is executed as a shell command. Results
are posted as GitHub commit statuses, and failures are posted as commit
comments with the command output.

Quick Start:
    from yaml_tests import Console, load_manifest, YamlTestRunner, RunContext

    tests = load_manifest("tests.yml")
    context = RunContext(owner="", repo="", sha="HEAD", dry_run=True)
    outcomes = YamlTestRunner(tests, context, Console()).run()

Command line:
    yaml-tests                       # Run every test in tests.yml
    yaml-tests lint unit             # Run tests whose name contains lint or unit
    yaml-tests --dry-run             # Run tests without posting to GitHub
"""

__version__ = "0.1.0"

from .errors import (
    CommentTooLongError,
    ConfigError,
    ManifestError,
    RemoteApiError,
    YamlTestsError,
)

from .manifest import (
    Test,
    filter_tests,
    load_manifest,
    normalize_entry,
    parse_manifest,
)

from .console import Console

from .runner import (
    RunResult,
    TestOutcome,
    YamlTestRunner,
    build_environment,
    run_command,
)

from .reporter import (
    CommentReporter,
    StatusReporter,
    build_status,
    render_comment,
    truncate_description,
)

from .presenter import ResultPresenter
from .context import RunContext, resolve_context
from .github import GitHubClient

__all__ = [
    "__version__",
    # Errors
    "YamlTestsError",
    "ManifestError",
    "ConfigError",
    "RemoteApiError",
    "CommentTooLongError",
    # Manifest
    "Test",
    "load_manifest",
    "parse_manifest",
    "normalize_entry",
    "filter_tests",
    # Runner
    "Console",
    "RunResult",
    "TestOutcome",
    "YamlTestRunner",
    "build_environment",
    "run_command",
    # Reporting
    "StatusReporter",
    "CommentReporter",
    "build_status",
    "render_comment",
    "truncate_description",
    "ResultPresenter",
    # Context
    "RunContext",
    "resolve_context",
    "GitHubClient",
]
