"""Summary table and exit code for a completed run."""

from typing import List

from .console import Console
from .runner import TestOutcome


class ResultPresenter:
    """
    Accumulates test outcomes and renders the final summary.

    The run fails (exit code 1) if any test failed without
    ``ignore-failure`` set; otherwise it succeeds (exit code 0).
    """

    def __init__(self, console: Console):
        self.console = console
        self.outcomes: List[TestOutcome] = []

    def add(self, outcome: TestOutcome):
        self.outcomes.append(outcome)

    @property
    def rows(self) -> List[List[str]]:
        return [
            [outcome.test.name, outcome.test.command_view, outcome.label]
            for outcome in self.outcomes
        ]

    @property
    def failed(self) -> List[str]:
        """Names of tests that fail the run."""
        return [outcome.test.name for outcome in self.outcomes if outcome.blocking]

    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def render(self):
        self.console.title("Executed all tests")
        self.console.table(["Test Results"], self.rows)
