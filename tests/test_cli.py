"""Tests for the yaml-tests command line."""

import io

import pytest

from yaml_tests import Console
from yaml_tests.cli import main


def run_cli(*argv, client_factory=None):
    output = io.StringIO()
    kwargs = {"console": Console(output)}
    if client_factory is not None:
        kwargs["client_factory"] = client_factory
    code = main(list(argv), **kwargs)
    return code, output.getvalue()


def write_tests(repo, text, name="tests.yml"):
    (repo / name).write_text(text)


class TestMainDryRun:
    """Tests for runs that never contact GitHub."""

    def test_passing_test(self, git_repo):
        write_tests(git_repo, "lint: echo ok\n")
        code, output = run_cli("--dry-run")
        assert code == 0
        assert "✔ Passed" in output
        assert "Executed all tests" in output

    def test_no_token_forces_dry_run(self, git_repo):
        """Without a token nothing is posted and a warning is shown."""
        write_tests(git_repo, "lint: echo ok\n")

        def no_client(*args, **kwargs):
            raise AssertionError("client must not be created")

        code, output = run_cli(client_factory=no_client)
        assert code == 0
        assert "No GitHub token found. forcing --dry-run" in output

    def test_failure_exit_code(self, git_repo):
        write_tests(git_repo, "unit: 'false'\n")
        code, output = run_cli("--dry-run")
        assert code == 1
        assert "✘ Failed" in output

    def test_ignored_failure(self, git_repo):
        write_tests(git_repo, "build:\n  command: ['false']\n  ignore-failure: true\n")
        code, output = run_cli("--dry-run")
        assert code == 0
        assert "Failed (Ignoring)" in output

    def test_filter(self, git_repo):
        """Only tests matching the filter run and appear in the results."""
        write_tests(git_repo, "lint: echo linting\nunit: echo testing\n")
        code, output = run_cli("--dry-run", "lint")
        assert code == 0
        assert "Tests to run based on filter 'lint'" in output
        results = output.split("Executed all tests")[1]
        assert "lint" in results
        assert "unit" not in results
        assert "Running test unit" not in output

    def test_filter_without_match(self, git_repo):
        write_tests(git_repo, "lint: echo linting\n")
        code, output = run_cli("--dry-run", "deploy")
        assert code == 1
        assert "The filter 'deploy' was specified but it did not match any tests." in output
        assert "Running test" not in output

    def test_custom_tests_file(self, git_repo):
        write_tests(git_repo, "lint: echo ok\n", name="ci.yml")
        code, output = run_cli("--dry-run", "--tests-file=ci.yml")
        assert code == 0
        assert "Tests found in ci.yml" in output

    def test_dirty_warning(self, git_repo):
        write_tests(git_repo, "lint: echo ok\n")
        _, output = run_cli("--dry-run")
        assert "uncommitted changes" in output
        _, output = run_cli("--dry-run", "--ignore-dirty")
        assert "uncommitted changes" not in output


class TestMainErrors:
    """Tests for fatal errors."""

    def test_missing_tests_file(self, git_repo, capsys):
        code, _ = run_cli("--dry-run")
        assert code == 2
        assert "Specified tests file does not exist" in capsys.readouterr().err

    def test_invalid_yaml(self, git_repo, capsys):
        write_tests(git_repo, "lint: [unclosed\n")
        code, _ = run_cli("--dry-run")
        assert code == 2
        assert "Invalid YAML" in capsys.readouterr().err

    def test_verbose_prints_traceback(self, git_repo, capsys):
        code, _ = run_cli("--dry-run", "--verbose")
        assert code == 2
        assert "Traceback" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert "yaml-tests" in capsys.readouterr().out


class TestMainGitHub:
    """Tests for runs that post to a fake GitHub."""

    def test_statuses_and_comment(self, git_repo, fake_github, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        write_tests(git_repo, "lint: echo ok\nunit: echo boom && false\n")
        created = []

        def factory(token, verify=True):
            created.append((token, verify))
            return fake_github.client(token, verify)

        code, output = run_cli("--hostname=builder", client_factory=factory)

        assert code == 1
        assert created == [("secret", True)]
        states = [(s["context"], s["state"]) for s in fake_github.statuses()]
        assert states == [
            ("lint", "pending"),
            ("unit", "pending"),
            ("lint", "success"),
            ("unit", "failure"),
        ]
        assert fake_github.statuses()[0]["description"] == "builder — lint..."
        assert len(fake_github.comments()) == 1
        assert "GitHub Status: unit: failure" in output

    def test_ignore_ssl(self, git_repo, fake_github, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        write_tests(git_repo, "lint: echo ok\n")
        created = []

        def factory(token, verify=True):
            created.append(verify)
            return fake_github.client(token, verify)

        code, _ = run_cli("--ignore-ssl", client_factory=factory)
        assert code == 0
        assert created == [False]

    def test_dry_run_makes_no_requests(self, git_repo, fake_github, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        write_tests(git_repo, "lint: echo ok\n")
        code, _ = run_cli("--dry-run", client_factory=lambda *a, **k: fake_github.client())
        assert code == 0
        assert fake_github.requests == []

    def test_token_from_env_file(self, git_repo, fake_github, monkeypatch):
        """A .env file in the repository can provide the token."""
        monkeypatch.setenv("GITHUB_TOKEN", "placeholder")
        monkeypatch.delenv("GITHUB_TOKEN")
        (git_repo / ".env").write_text("GITHUB_TOKEN=from-dotenv\n")
        write_tests(git_repo, "lint: echo ok\n")
        created = []

        def factory(token, verify=True):
            created.append(token)
            return fake_github.client(token, verify)

        code, _ = run_cli(client_factory=factory)
        assert code == 0
        assert created == ["from-dotenv"]

    def test_unreachable_status_api(self, git_repo, fake_github, monkeypatch, capsys):
        """A connection failure while posting statuses exits with code 2."""
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        write_tests(git_repo, "lint: echo ok\n")
        fake_github.status_unreachable = True

        code, output = run_cli(client_factory=lambda token, verify=True: fake_github.client())

        assert code == 2
        assert "Error: Unable to reach the GitHub API" in capsys.readouterr().err
        assert "Running test lint" not in output
