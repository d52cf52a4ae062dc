"""
Run context resolution.

The run context binds the run to a repository, commit, and (optionally)
pull request. It is resolved once at startup and is read-only afterwards.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import Options
from .console import Console
from .errors import RemoteApiError
from .git import GitRepository, parse_remote_url
from .github import ADD_TOKEN_URL, GitHubClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    """
    Repository and reporting details for one run.

    Attributes:
        owner: Repository owner statuses are posted to
        repo: Repository name statuses are posted to
        sha: Commit the statuses and comments are attached to
        branch: Local branch name
        remote_url: Remote URL, normalized to https
        hostname: Host name shown in statuses and comments
        status_url: Target URL for the status "Details" link
        tests_file: Tests manifest path, as given on the command line
        dry_run: If True, nothing is posted to GitHub
        pull_request: Pull request for the branch, if one was found
        commit_url: Web URL of the commit, when known
    """
    owner: str
    repo: str
    sha: str
    branch: str = ""
    remote_url: str = ""
    hostname: str = ""
    status_url: str = ""
    tests_file: str = "tests.yml"
    dry_run: bool = True
    pull_request: Optional[Dict[str, Any]] = None
    commit_url: str = ""


def resolve_sha(git: GitRepository, console: Console, environ: Mapping[str, str]) -> str:
    """
    Get the commit to report against.

    Travis builds pull requests from a merge commit, so when running in
    the Travis build directory the pull request's own SHA is used.
    """
    sha = git.current_commit()
    travis_sha = environ.get("TRAVIS_PULL_REQUEST_SHA")
    build_dir = environ.get("TRAVIS_BUILD_DIR")
    if travis_sha and build_dir and Path(build_dir).resolve() == git.root().resolve():
        console.warning(f"Travis PR detected. Using PR SHA: {travis_sha}")
        return travis_sha
    return sha


def resolve_context(
    options: Options,
    git: GitRepository,
    console: Console,
    client: Optional[GitHubClient] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RunContext:
    """
    Resolve the run context.

    Without a client the run is a dry run and GitHub is never contacted.
    With a client the commit is looked up, forks are redirected to their
    parent repository, and the pull request for the branch is found.

    Raises:
        RemoteApiError: If the commit cannot be found or the token is rejected
    """
    environ = os.environ if environ is None else environ
    sha = resolve_sha(git, console, environ)
    branch = git.current_branch()
    remote_url, owner, repo = parse_remote_url(git.remote_url())

    console.title("Yaml Tests Initialized")

    console.info(f"Git Remote: {remote_url}")
    console.info(f"Local Git Branch: {branch}")
    console.info(f"Working directory: {Path.cwd()}")
    console.info(f"Git Repository directory: {git.root()}")
    console.info(f"Git Commit: {sha}")
    console.info(f"Tests File: {options.tests_file}")

    pull_request = None
    commit_url = ""

    if client is not None:
        try:
            commit = client.get_commit(owner, repo, sha)
        except RemoteApiError as e:
            if e.status_code in (401, 403):
                raise RemoteApiError(
                    "Bad token. Set with --github-token option or GITHUB_TOKEN environment "
                    f"variable. Create a new token at {ADD_TOKEN_URL} Message: {e}",
                    status_code=e.status_code,
                ) from e
            if e.status_code in (404, 422):
                raise RemoteApiError(
                    "Commit not found in the remote repository. Yaml-tests cannot post "
                    "commit status until the commits are pushed to the remote repository, "
                    "and the token can read it. Create a token with the right scopes at "
                    f"{ADD_TOKEN_URL}",
                    status_code=e.status_code,
                ) from e
            raise
        commit_url = commit.get("html_url", "")
        console.info(f"GitHub Commit URL: {commit_url}")

        repository = client.get_repository(owner, repo)
        parent = repository.get("parent")
        if parent:
            console.success("Forked repository. Posting to the parent repo...")
            owner = parent["owner"]["login"]
            repo = parent["name"]

        pulls = client.list_pull_requests(owner, repo, head=f"{owner}:{branch}")
        if pulls:
            pull_request = pulls[0]
            console.info(f"Pull Request: {pull_request.get('html_url', '')}")
        else:
            console.warning(
                f"No pull requests were found using the current local branch {branch}. "
                "Errors will be sent as comments on the Commit, instead of on the Pull "
                "Request. This means error logs will appear on any Pull Request that "
                "contains the commit being tested."
            )

    logger.debug("Reporting against %s/%s at %s", owner, repo, sha)
    return RunContext(
        owner=owner,
        repo=repo,
        sha=sha,
        branch=branch,
        remote_url=remote_url,
        hostname=options.hostname,
        status_url=options.status_url,
        tests_file=options.tests_file,
        dry_run=client is None,
        pull_request=pull_request,
        commit_url=commit_url,
    )
