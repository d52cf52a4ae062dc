"""
Reporting test results to GitHub.

Two reporters are provided:
- StatusReporter: posts a commit status per test (pending, then final)
- CommentReporter: posts a commit comment with the output of a failed test

Both enforce GitHub's size limits. Status descriptions are cut to 137
characters and always suffixed with "...". Comment bodies are kept within
65536 bytes by truncating the embedded output, never the other fields.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .console import Console, strip_ansi
from .errors import CommentTooLongError, RemoteApiError
from .manifest import Test

if TYPE_CHECKING:
    from .context import RunContext
    from .github import GitHubClient
    from .runner import RunResult

logger = logging.getLogger(__name__)

STATUS_DESCRIPTION_MAX_SIZE = 140
COMMENT_MAX_SIZE = 65536
TRUNCATE_MESSAGE = "... *(truncated)*"
OUTPUT_HIDDEN = "OUTPUT HIDDEN"
IGNORED_NOTE = " | TEST FAILED but is set to ignore."

COMMENT_TEMPLATE = """<details>
    <summary>:x: Test Failed: <code>{name}</code></summary>
    <pre>{command}</pre>

```
{output}
```

- **On:** {hostname}
- **In:** {duration}

</details>"""

STATE_LEVELS = {
    "pending": "pending",
    "success": "success",
    "failure": "error",
    "error": "error",
}


def truncate_description(description: str) -> str:
    """Cut a status description to fit GitHub's limit, always adding '...'."""
    return description[: STATUS_DESCRIPTION_MAX_SIZE - 3] + "..."


def build_status(
    state: str,
    test: Test,
    hostname: str,
    target_url: str = "",
    ignored: bool = False,
) -> Dict[str, Any]:
    """
    Build a commit status payload for a test.

    Args:
        state: pending, success, or failure
        test: The test being reported
        hostname: Host name shown in the description
        target_url: URL for the status "Details" link
        ignored: Append a note that a failure was ignored
    """
    description = f"{hostname} — {test.display_description}"
    if ignored:
        description += IGNORED_NOTE
    return {
        "state": state,
        "target_url": target_url,
        "description": truncate_description(description),
        "context": test.name,
    }


def render_comment(
    name: str,
    command: str,
    output: Optional[str],
    hostname: str,
    duration: str,
) -> str:
    """
    Render the failure comment body.

    The template overhead is measured first, then the output is cut so the
    complete body stays within COMMENT_MAX_SIZE bytes.

    Args:
        name: Test name
        command: Joined command line
        output: Combined output, or None when output was hidden
        hostname: Host the test ran on
        duration: Human-readable duration

    Raises:
        CommentTooLongError: If the rendered body still exceeds the limit
    """
    fields = dict(name=name, command=command, hostname=hostname, duration=duration)
    head, _, tail = COMMENT_TEMPLATE.partition("{output}")
    head = head.format(**fields)
    tail = tail.format(**fields)
    overhead = len(head.encode("utf-8")) + len(tail.encode("utf-8"))
    remaining = COMMENT_MAX_SIZE - overhead - len(TRUNCATE_MESSAGE.encode("utf-8"))

    text = OUTPUT_HIDDEN if output is None else strip_ansi(output).strip()
    encoded = text.encode("utf-8")
    if len(encoded) > remaining:
        text = encoded[: max(remaining, 0)].decode("utf-8", errors="ignore") + TRUNCATE_MESSAGE

    body = head + text + tail
    if len(body.encode("utf-8")) > COMMENT_MAX_SIZE:
        raise CommentTooLongError(
            f"Comment body is {len(body.encode('utf-8'))} bytes, "
            f"exceeding the {COMMENT_MAX_SIZE} byte limit"
        )
    return body


class StatusReporter:
    """
    Posts commit statuses for tests.

    Args:
        client: GitHub API client
        context: Run context (repository, commit, host, target URL)
        console: Console for progress output
    """

    def __init__(self, client: "GitHubClient", context: "RunContext", console: Console):
        self.client = client
        self.context = context
        self.console = console

    def post(self, state: str, test: Test, ignored: bool = False) -> Dict[str, Any]:
        """
        Post a status for a test.

        Non-2xx responses are printed as errors and the run continues.

        Raises:
            RemoteApiError: On transport failure or a 404 (token scope)
        """
        payload = build_status(
            state,
            test,
            hostname=self.context.hostname,
            target_url=self.context.status_url,
            ignored=ignored,
        )
        response = self.client.create_status(
            self.context.owner, self.context.repo, self.context.sha, payload
        )

        message = f"GitHub Status: {test.name}: {state}"
        if response.is_success:
            self.console.log(STATE_LEVELS.get(state, "info"), message)
        else:
            logger.debug("Status post returned %s: %s", response.status_code, response.text)
            self.console.error(f"{message} (HTTP {response.status_code})")
        return payload


class CommentReporter:
    """
    Posts a commit comment describing a failed test.

    Comments are always posted on the commit. A resolved pull request
    shows the comment through its commits.

    Args:
        client: GitHub API client
        context: Run context
        console: Console for progress output
    """

    def __init__(self, client: "GitHubClient", context: "RunContext", console: Console):
        self.client = client
        self.context = context
        self.console = console

    def build_payload(self, test: Test, result: "RunResult") -> Dict[str, Any]:
        return {
            "commit_id": self.context.sha,
            "position": 1,
            "body": render_comment(
                test.name,
                test.command_line,
                result.output,
                self.context.hostname,
                result.duration_text,
            ),
        }

    def post(self, test: Test, result: "RunResult") -> Optional[str]:
        """
        Post the failure comment.

        Returns:
            The created comment's URL, or None if posting failed
        """
        payload = self.build_payload(test, result)
        try:
            response = self.client.create_commit_comment(
                self.context.owner, self.context.repo, self.context.sha, payload
            )
        except RemoteApiError as e:
            logger.debug("Comment post failed", exc_info=True)
            self.console.error(f"Unable to create GitHub Commit Comment: {e}: {e.status_code}")
            return None

        url = response.get("html_url") if isinstance(response, dict) else None
        self.console.success(f"Comment Created: {url}")
        return url
