"""
Console output for yaml-tests.

All user-facing output goes through a Console. Messages carry a level
that selects their glyph; tables and titles are rendered as plain text.

Example usage:
    console = Console()
    console.title("Yaml Tests Initialized")
    console.log("success", "Comment Created: https://...")
    console.table(["Test Results"], [["lint", "flake8 .", "✔ Passed"]])
"""

import re
import sys
from typing import List, Optional, Sequence, TextIO

ANSI_PATTERN = re.compile(r"\x1b\[[^A-Za-z]*[A-Za-z]")

GLYPHS = {
    "success": "✔",
    "error": "✘",
    "warning": "!",
    "pending": "⏺",
    "info": "",
}


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_PATTERN.sub("", text)


class Console:
    """
    Human-readable console output.

    Args:
        output: Output stream (default: sys.stdout)
    """

    def __init__(self, output: Optional[TextIO] = None):
        self.output = output or sys.stdout

    def _print(self, *args, **kwargs):
        print(*args, file=self.output, **kwargs)

    def write(self, text: str):
        """Write raw text without a trailing newline."""
        self.output.write(text)
        self.output.flush()

    def log(self, level: str, message: str):
        """Print a message prefixed with the glyph for its level."""
        if level not in GLYPHS:
            raise ValueError(f"Unknown console level: {level}")
        glyph = GLYPHS[level]
        self._print(f" {glyph} {message}" if glyph else f" {message}")

    def success(self, message: str):
        self.log("success", message)

    def error(self, message: str):
        self.log("error", message)

    def warning(self, message: str):
        self.log("warning", message)

    def info(self, message: str):
        self.log("info", message)

    def newline(self):
        self._print()

    def title(self, text: str):
        self._print()
        self._print(text)
        self._print("=" * len(text))
        self._print()

    def section(self, text: str):
        self._print()
        self._print(text)
        self._print("-" * len(text))
        self._print()

    def table(self, headers: Sequence[str], rows: Sequence[Sequence[str]]):
        """
        Print rows as a bordered table.

        Cells may contain newlines; each line of a cell is rendered on its
        own table line. Rows shorter than the header are padded.
        """
        columns = max([len(headers)] + [len(row) for row in rows])
        header_cells = [list(headers) + [""] * (columns - len(headers))]
        body = [[str(c) for c in row] + [""] * (columns - len(row)) for row in rows]

        widths = [0] * columns
        for row in header_cells + body:
            for i, cell in enumerate(row):
                for line in cell.split("\n"):
                    widths[i] = max(widths[i], len(line))

        border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

        def render(row: List[str]):
            cell_lines = [cell.split("\n") for cell in row]
            height = max(len(lines) for lines in cell_lines)
            for n in range(height):
                parts = []
                for i, lines in enumerate(cell_lines):
                    line = lines[n] if n < len(lines) else ""
                    parts.append(f" {line.ljust(widths[i])} ")
                self._print("|" + "|".join(parts) + "|")

        self._print(border)
        render(header_cells[0])
        self._print(border)
        for row in body:
            render(row)
        self._print(border)
