"""Shared fixtures for yaml-tests."""

import json
import subprocess

import httpx
import pytest

from yaml_tests.github import GitHubClient

SHA = "0123456789abcdef0123456789abcdef01234567"


def _git(cwd, *args):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """A committed git working copy with a GitHub origin, used as cwd."""
    repo = tmp_path / "repo"
    repo.mkdir()
    home = tmp_path / "home"
    home.mkdir()

    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "ci@example.com")
    _git(repo, "config", "user.name", "CI")
    _git(repo, "config", "commit.gpgsign", "false")
    (repo / "README").write_text("widgets\n")
    _git(repo, "add", "README")
    _git(repo, "commit", "-q", "-m", "Initial commit")
    _git(repo, "checkout", "-q", "-B", "feature")
    _git(repo, "remote", "add", "origin", "git@github.com:octo/widgets.git")

    monkeypatch.chdir(repo)
    monkeypatch.setenv("HOME", str(home))
    for name in ("GITHUB_TOKEN", "YAML_TASKS_STATUS_URL", "TRAVIS_PULL_REQUEST_SHA", "TRAVIS_BUILD_DIR"):
        monkeypatch.delenv(name, raising=False)
    return repo


class FakeGitHub:
    """Records requests and answers them like the GitHub API."""

    def __init__(self):
        self.requests = []
        self.commit_status = 200
        self.status_status = 201
        self.comment_status = 201
        self.parent = None
        self.pulls = []
        self.comment_text = None
        self.status_unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and "/statuses/" in path:
            if self.status_unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.status_status, json={"state": "ok"})
        if request.method == "POST" and path.endswith("/comments"):
            if self.comment_status >= 400:
                return httpx.Response(self.comment_status, json={"message": "Server Error"})
            if self.comment_text is not None:
                return httpx.Response(self.comment_status, text=self.comment_text)
            return httpx.Response(
                self.comment_status,
                json={"html_url": "https://github.com/octo/widgets/commit/abc#comment-1"},
            )
        if request.method == "GET" and "/commits/" in path:
            if self.commit_status >= 400:
                return httpx.Response(self.commit_status, json={"message": "Not Found"})
            return httpx.Response(200, json={"html_url": f"https://github.com{path}"})
        if request.method == "GET" and path.endswith("/pulls"):
            return httpx.Response(200, json=self.pulls)
        if request.method == "GET":
            body = {"name": "widgets"}
            if self.parent:
                body["parent"] = self.parent
            return httpx.Response(200, json=body)
        return httpx.Response(405)

    def client(self, token="secret", verify=True) -> GitHubClient:
        return GitHubClient(token, verify=verify, transport=httpx.MockTransport(self.handler))

    def statuses(self):
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and "/statuses/" in r.url.path
        ]

    def comments(self):
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.path.endswith("/comments")
        ]


@pytest.fixture
def fake_github():
    return FakeGitHub()
