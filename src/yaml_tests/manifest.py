"""
Tests manifest loading.

A manifest is a YAML mapping of test name to test definition. Each
definition may take one of several shapes:

    lint: flake8 .

    unit:
      - pip install -e .
      - pytest tests/

    build:
      command: make
      description: Build the project
      show-output: false
      post-errors: false
      ignore-failure: true

Every shape is normalized into a single immutable ``Test`` record before
any other part of the tool sees it.

Example usage:
    from yaml_tests.manifest import load_manifest, filter_tests

    tests = load_manifest("tests.yml")
    tests = filter_tests(tests, ["lint"])
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import yaml

from .errors import ManifestError

OPTION_KEYS = ("description", "show-output", "post-errors", "ignore-failure")


@dataclass(frozen=True)
class Test:
    """
    One named test from the manifest.

    Attributes:
        name: Unique test name, also used as the commit status context
        command: Shell command lines, run joined with ``&&``
        description: Description text, or a boolean flag meaning "use the name"
        show_output: Stream and keep command output (default: True)
        post_errors: Post a commit comment when the test fails (default: True)
        ignore_failure: Report a failure as success upstream (default: False)
    """
    __test__ = False

    name: str
    command: Tuple[str, ...]
    description: Union[str, bool] = True
    show_output: bool = True
    post_errors: bool = True
    ignore_failure: bool = False

    @property
    def command_line(self) -> str:
        """The command lines joined into a single shell invocation."""
        return " && ".join(self.command)

    @property
    def command_view(self) -> str:
        """The command lines as displayed in tables, one per line."""
        return "\n".join(self.command)

    @property
    def display_description(self) -> str:
        """The description text, falling back to the test name."""
        if isinstance(self.description, str) and self.description:
            return self.description
        return self.name

    @property
    def has_description(self) -> bool:
        return isinstance(self.description, str) and bool(self.description)

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the manifest mapping shape."""
        return {
            "command": list(self.command),
            "description": self.description,
            "show-output": self.show_output,
            "post-errors": self.post_errors,
            "ignore-failure": self.ignore_failure,
        }


def _as_commands(name: str, values: Sequence[Any]) -> Tuple[str, ...]:
    commands = []
    for value in values:
        if value is None or isinstance(value, (dict, list)):
            raise ManifestError(f"Test '{name}' has an invalid command: {value!r}")
        commands.append(str(value))
    if not commands:
        raise ManifestError(f"Test '{name}' has no commands")
    return tuple(commands)


def normalize_entry(name: str, value: Any) -> Test:
    """
    Normalize one manifest entry into a Test.

    Accepted shapes, first match wins:
    - a string: a single command
    - a mapping with ``command`` as a string: a single command
    - a mapping without ``command``: its non-option values are the commands
    - a mapping with ``command`` as a list: the commands as given

    A plain list of strings is also accepted as the command list.

    Raises:
        ManifestError: If the entry has no usable commands
    """
    if isinstance(value, Test):
        return value

    name = str(name)
    options: Dict[str, Any] = {}

    if isinstance(value, str):
        commands = _as_commands(name, [value])
    elif isinstance(value, list):
        commands = _as_commands(name, value)
    elif isinstance(value, dict):
        options = value
        if isinstance(value.get("command"), str):
            commands = _as_commands(name, [value["command"]])
        elif "command" not in value:
            # Legacy shorthand: the mapping itself lists the commands.
            commands = _as_commands(
                name, [v for k, v in value.items() if k not in OPTION_KEYS]
            )
        elif isinstance(value["command"], list):
            commands = _as_commands(name, value["command"])
        else:
            raise ManifestError(
                f"Test '{name}' command must be a string or a list, "
                f"got {type(value['command']).__name__}"
            )
    else:
        raise ManifestError(
            f"Test '{name}' must be a string, a list, or a mapping, "
            f"got {type(value).__name__}"
        )

    description = options.get("description", True)
    if description is None:
        description = True
    if not isinstance(description, (str, bool)):
        description = str(description)

    return Test(
        name=name,
        command=commands,
        description=description,
        show_output=bool(options.get("show-output", True)),
        post_errors=bool(options.get("post-errors", True)),
        ignore_failure=bool(options.get("ignore-failure", False)),
    )


def parse_manifest(data: Any) -> Dict[str, Test]:
    """
    Normalize a parsed YAML document into an ordered mapping of tests.

    Raises:
        ManifestError: If the document is not a mapping of tests
    """
    if not isinstance(data, dict):
        raise ManifestError("Tests manifest must be a mapping of test name to command")
    if not data:
        raise ManifestError("Tests manifest does not define any tests")
    return {str(name): normalize_entry(name, value) for name, value in data.items()}


def load_manifest(path: Union[str, Path]) -> Dict[str, Test]:
    """
    Load and normalize tests from a YAML manifest file.

    Args:
        path: Path to the manifest

    Returns:
        Mapping of test name to Test, in file order

    Raises:
        ManifestError: If the file is missing, unreadable, or not valid YAML
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Tests file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ManifestError(f"Unable to read tests file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ManifestError(f"Empty tests file: {path}")

    return parse_manifest(data)


def filter_tests(tests: Dict[str, Test], filters: List[str]) -> Dict[str, Test]:
    """
    Keep only tests whose name contains at least one filter string.

    An empty filter list keeps every test.
    """
    if not filters:
        return dict(tests)
    return {
        name: test
        for name, test in tests.items()
        if any(f in name for f in filters)
    }
