"""Tests for run context resolution."""

import io

import pytest

from yaml_tests import Console, RemoteApiError, resolve_context
from yaml_tests.config import Options
from yaml_tests.git import GitRepository


def options(**kwargs):
    kwargs.setdefault("hostname", "ci-1")
    return Options(**kwargs)


class TestResolveContextDryRun:
    """Tests for resolve_context without a GitHub client."""

    def test_repository_identity(self, git_repo):
        output = io.StringIO()
        git = GitRepository(git_repo)
        context = resolve_context(
            options(status_url="https://ci.example.com"), git, Console(output), environ={}
        )

        assert context.dry_run
        assert context.owner == "octo"
        assert context.repo == "widgets"
        assert context.sha == git.current_commit()
        assert context.branch == "feature"
        assert context.hostname == "ci-1"
        assert context.status_url == "https://ci.example.com"
        assert context.pull_request is None
        assert "Yaml Tests Initialized" in output.getvalue()
        assert "Git Remote: https://github.com/octo/widgets" in output.getvalue()

    def test_travis_pull_request_sha(self, git_repo):
        """Inside the Travis build directory the PR SHA is used."""
        output = io.StringIO()
        environ = {"TRAVIS_PULL_REQUEST_SHA": "f" * 40, "TRAVIS_BUILD_DIR": str(git_repo)}
        context = resolve_context(options(), GitRepository(git_repo), Console(output), environ=environ)
        assert context.sha == "f" * 40
        assert "Travis PR detected" in output.getvalue()

    def test_travis_other_directory_ignored(self, git_repo, tmp_path):
        environ = {"TRAVIS_PULL_REQUEST_SHA": "f" * 40, "TRAVIS_BUILD_DIR": str(tmp_path)}
        git = GitRepository(git_repo)
        context = resolve_context(options(), git, Console(io.StringIO()), environ=environ)
        assert context.sha == git.current_commit()

    def test_context_is_immutable(self, git_repo):
        context = resolve_context(
            options(), GitRepository(git_repo), Console(io.StringIO()), environ={}
        )
        with pytest.raises(AttributeError):
            context.sha = "other"  # type: ignore


class TestResolveContextGitHub:
    """Tests for resolve_context with a fake GitHub."""

    def test_commit_and_pull_request(self, git_repo, fake_github):
        output = io.StringIO()
        fake_github.pulls = [{"number": 7, "html_url": "https://github.com/octo/widgets/pull/7"}]
        context = resolve_context(
            options(), GitRepository(git_repo), Console(output), fake_github.client(), environ={}
        )

        assert not context.dry_run
        assert context.pull_request["number"] == 7
        assert context.commit_url.startswith("https://github.com/repos/octo/widgets/commits/")
        pulls_request = fake_github.requests[-1]
        assert pulls_request.url.params["head"] == "octo:feature"

    def test_no_pull_request_warning(self, git_repo, fake_github):
        output = io.StringIO()
        context = resolve_context(
            options(), GitRepository(git_repo), Console(output), fake_github.client(), environ={}
        )
        assert context.pull_request is None
        assert "No pull requests were found" in output.getvalue()

    def test_fork_posts_to_parent(self, git_repo, fake_github):
        """Statuses for a fork are posted to its parent repository."""
        output = io.StringIO()
        fake_github.parent = {"name": "gadgets", "owner": {"login": "upstream"}}
        context = resolve_context(
            options(), GitRepository(git_repo), Console(output), fake_github.client(), environ={}
        )
        assert (context.owner, context.repo) == ("upstream", "gadgets")
        assert "Forked repository" in output.getvalue()
        assert fake_github.requests[-1].url.path == "/repos/upstream/gadgets/pulls"

    def test_commit_not_found(self, git_repo, fake_github):
        fake_github.commit_status = 404
        with pytest.raises(RemoteApiError, match="Commit not found in the remote repository"):
            resolve_context(
                options(), GitRepository(git_repo), Console(io.StringIO()),
                fake_github.client(), environ={},
            )

    def test_bad_token(self, git_repo, fake_github):
        fake_github.commit_status = 401
        with pytest.raises(RemoteApiError, match="Bad token"):
            resolve_context(
                options(), GitRepository(git_repo), Console(io.StringIO()),
                fake_github.client(), environ={},
            )
