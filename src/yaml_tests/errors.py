"""Exception types raised by yaml-tests."""

from typing import Optional


class YamlTestsError(Exception):
    """Base class for all fatal yaml-tests errors."""


class ManifestError(YamlTestsError):
    """Raised when the tests manifest is missing, unreadable, or invalid YAML."""


class ConfigError(YamlTestsError):
    """Raised when the run cannot be configured (tests file, git repository)."""


class RemoteApiError(YamlTestsError):
    """
    Raised when a call to the GitHub API fails.

    Attributes:
        status_code: HTTP status code, or None for transport-level failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CommentTooLongError(YamlTestsError):
    """Raised when a rendered comment body exceeds the API size limit."""
