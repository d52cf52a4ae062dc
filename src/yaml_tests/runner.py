"""
Test runner - sequential execution engine.

Each test's command lines are joined with ``&&`` and executed as a single
shell invocation in the current working directory. Tests run one at a
time, in manifest order. There is no timeout: a test runs until its
command exits.

A failing command is not an error. The exit code is returned as data and
classified into an outcome:
- Passed: exit code 0, reported upstream as ``success``
- Failed: non-zero exit, reported upstream as ``failure``
- Failed (Ignoring): non-zero exit on a test with ``ignore-failure``,
  reported upstream as ``success``

Example usage:
    runner = YamlTestRunner(tests, context, console)
    outcomes = runner.run()
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional

from .console import Console
from .manifest import Test

if TYPE_CHECKING:
    from .context import RunContext
    from .reporter import CommentReporter, StatusReporter

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """
    Result of executing one test's commands.

    Attributes:
        exit_code: Process exit code
        output: Combined stdout and stderr, or None when output was hidden
        duration: Wall-clock execution time in seconds
    """
    exit_code: int
    output: Optional[str]
    duration: float

    @property
    def passed(self) -> bool:
        return self.exit_code == 0

    @property
    def duration_text(self) -> str:
        return f"{self.duration:.2f}s"


@dataclass
class TestOutcome:
    """
    Classified outcome of one test.

    Attributes:
        test: The test that was run
        result: Its run result
        state: Commit status state to report (success or failure)
        label: Result label shown in the summary table
        ignored: True when a real failure was masked by ignore-failure
    """
    __test__ = False

    test: Test
    result: RunResult
    state: str
    label: str
    ignored: bool = False

    @classmethod
    def classify(cls, test: Test, result: RunResult) -> "TestOutcome":
        """Classify a run result according to the test's flags."""
        if result.passed:
            return cls(test, result, "success", "✔ Passed")
        if test.ignore_failure:
            return cls(test, result, "success", "✘ Failed (Ignoring)", ignored=True)
        return cls(test, result, "failure", "✘ Failed")

    @property
    def blocking(self) -> bool:
        """True when this outcome must fail the overall run."""
        return not self.result.passed and not self.test.ignore_failure


def build_environment(
    test: Test, base: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Build the environment for a test process.

    The inherited environment is extended with YAML_TESTS markers so the
    commands can tell they are running under yaml-tests.
    """
    env = dict(os.environ if base is None else base)
    env["YAML_TESTS"] = "1"
    env["YAML_TESTS_NAME"] = test.name
    env["YAML_TESTS_COMMAND"] = test.command_line
    env["YAML_TESTS_DESCRIPTION"] = test.display_description
    return env


def run_command(
    command: str,
    env: Optional[Mapping[str, str]] = None,
    show_output: bool = True,
    stream: Optional[Callable[[str], None]] = None,
    cwd: Optional[str] = None,
) -> RunResult:
    """
    Execute a shell command and capture its combined output.

    Args:
        command: Shell command line
        env: Full process environment (default: inherited)
        show_output: If False, output is discarded instead of captured
        stream: Optional callback receiving output as it is produced
        cwd: Working directory (default: current directory)

    Returns:
        RunResult; non-zero exit codes are returned, never raised
    """
    logger.debug("Running command: %s", command)
    start = time.time()

    if not show_output:
        proc = subprocess.run(
            command,
            shell=True,
            env=env,
            cwd=cwd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return RunResult(
            exit_code=proc.returncode,
            output=None,
            duration=time.time() - start,
        )

    chunks: List[str] = []
    with subprocess.Popen(
        command,
        shell=True,
        env=env,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
    ) as proc:
        for line in proc.stdout:
            chunks.append(line)
            if stream:
                stream(line)
        exit_code = proc.wait()

    duration = time.time() - start
    logger.debug("Command exited with %s after %.2fs", exit_code, duration)
    return RunResult(exit_code=exit_code, output="".join(chunks), duration=duration)


class YamlTestRunner:
    """
    Runs tests in order and reports each one.

    When the context is not a dry run, a pending status is posted for
    every test before the first one starts, and a final status is posted
    after each test completes. Failing tests get a commit comment unless
    they disable it with ``post-errors: false``.

    Args:
        tests: Mapping of test name to Test, in run order
        context: Run context resolved at startup
        console: Console for progress output
        status_reporter: Posts commit statuses (required unless dry run)
        comment_reporter: Posts failure comments (required unless dry run)
        environ: Base environment for test processes (default: os.environ)
        on_test_complete: Optional callback invoked after each test
    """

    def __init__(
        self,
        tests: Dict[str, Test],
        context: "RunContext",
        console: Console,
        status_reporter: Optional["StatusReporter"] = None,
        comment_reporter: Optional["CommentReporter"] = None,
        environ: Optional[Mapping[str, str]] = None,
        on_test_complete: Optional[Callable[[TestOutcome], None]] = None,
    ):
        self.tests = tests
        self.context = context
        self.console = console
        self.status_reporter = status_reporter
        self.comment_reporter = comment_reporter
        self.environ = environ
        self.on_test_complete = on_test_complete

        if not context.dry_run and (status_reporter is None or comment_reporter is None):
            raise ValueError("Reporters are required unless running in dry-run mode")

    def run_test(self, test: Test) -> RunResult:
        """Execute a single test's commands."""
        title = f"Running test {test.name}"
        if test.has_description:
            title += f": {test.description}"
        self.console.section(title)

        return run_command(
            test.command_line,
            env=build_environment(test, self.environ),
            show_output=test.show_output,
            stream=self.console.write,
        )

    def _report_failure(self, outcome: TestOutcome):
        test = outcome.test
        if not test.post_errors:
            self.console.warning(
                f"Skipped post of errors to GitHub, as configured in {self.context.tests_file}"
            )
            return
        self.comment_reporter.post(test, outcome.result)

    def run(self) -> List[TestOutcome]:
        """
        Run all tests and return their outcomes in order.

        Raises:
            RemoteApiError: If posting a commit status fails fatally
        """
        if self.context.dry_run:
            self.console.warning("Skipping commit status posting, dry-run enabled.")
        else:
            for test in self.tests.values():
                self.status_reporter.post("pending", test)

        self.console.newline()
        outcomes: List[TestOutcome] = []

        for test in self.tests.values():
            result = self.run_test(test)
            outcome = TestOutcome.classify(test, result)

            if outcome.blocking and not self.context.dry_run:
                self._report_failure(outcome)

            if not test.show_output:
                self.console.warning(
                    f"Output was hidden, as configured in {self.context.tests_file}"
                )

            if not self.context.dry_run:
                self.status_reporter.post(outcome.state, test, ignored=outcome.ignored)

            self.console.newline()
            outcomes.append(outcome)

            if self.on_test_complete:
                self.on_test_complete(outcome)

        return outcomes
