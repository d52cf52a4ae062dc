"""
GitHub REST API client.

A thin wrapper over ``httpx.Client`` covering the handful of endpoints
yaml-tests needs: commit and repository lookup, pull request lookup,
commit statuses, and commit comments.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import RemoteApiError

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
ADD_TOKEN_URL = (
    "https://github.com/settings/tokens/new"
    "?description=yaml-tests&scopes=repo:status,public_repo"
)


class GitHubClient:
    """
    HTTP client for the GitHub REST API.

    Args:
        token: Personal access token
        base_url: API base URL (default: https://api.github.com)
        verify: Verify TLS certificates. Disabling this exposes the token
            to interception; only use it when a proxy breaks verification.
        transport: Optional httpx transport, used by tests
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        token: str,
        base_url: str = API_URL,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ):
        if not verify:
            logger.warning("TLS certificate verification is disabled for the GitHub API")
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "yaml-tests",
            },
            verify=verify,
            transport=transport,
            timeout=timeout,
        )

    def close(self):
        self.client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, converting transport failures to RemoteApiError."""
        logger.debug("%s %s", method, path)
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteApiError(f"Unable to reach the GitHub API: {e}") from e

    def _json(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return its JSON body, raising on non-2xx."""
        response = self._request(method, path, **kwargs)
        if not response.is_success:
            raise RemoteApiError(
                f"GitHub API returned {response.status_code} for {method} {path}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError(
                f"GitHub API returned a non-JSON body for {method} {path}",
                status_code=response.status_code,
            ) from e

    def get_commit(self, owner: str, repo: str, sha: str) -> Dict[str, Any]:
        return self._json("GET", f"/repos/{owner}/{repo}/commits/{sha}")

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._json("GET", f"/repos/{owner}/{repo}")

    def list_pull_requests(self, owner: str, repo: str, head: str) -> List[Dict[str, Any]]:
        """List open pull requests whose head matches ``owner:branch``."""
        return self._json("GET", f"/repos/{owner}/{repo}/pulls", params={"head": head})

    def create_status(
        self, owner: str, repo: str, sha: str, payload: Dict[str, Any]
    ) -> httpx.Response:
        """
        Create a commit status.

        Returns the raw response so the caller can report non-2xx codes.

        Raises:
            RemoteApiError: On transport failure, or a 404 which GitHub
                returns when the token lacks the status scope
        """
        response = self._request("POST", f"/repos/{owner}/{repo}/statuses/{sha}", json=payload)
        if response.status_code == 404:
            raise RemoteApiError(
                "Unable to reach commit status API. Check the allowed scopes of your "
                "GitHub Token. Skip github interaction with --dry-run, or create a new "
                f"token with the right scopes at {ADD_TOKEN_URL}",
                status_code=404,
            )
        return response

    def create_commit_comment(
        self, owner: str, repo: str, sha: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return self._json("POST", f"/repos/{owner}/{repo}/commits/{sha}/comments", json=payload)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("message", response.text)
    return response.text
