"""Pytest fixtures for worktree-manager tests"""
import json
import logging
import tempfile
from pathlib import Path

import git
import pytest

from worktree_manager.models.issue import IssueMetadata
from worktree_manager.services.command_runner import CommandResult


class FakeCommandRunner:
    """Command runner that records calls and answers from canned results.

    Responses are keyed by an argv prefix tuple; the longest matching prefix
    wins and unmatched commands succeed with empty output.
    """

    def __init__(self, responses=None, installed=None):
        self.responses = dict(responses or {})
        self.installed = set(installed or [])
        self.calls = []

    def run(self, command, args=(), cwd=None, capture=True):
        argv = [command, *args]
        self.calls.append({"argv": argv, "cwd": cwd, "capture": capture})
        matches = [key for key in self.responses if tuple(argv[:len(key)]) == key]
        if matches:
            return self.responses[max(matches, key=len)]
        return CommandResult(0, "", "")

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.installed else None

    def commands(self):
        """argv lists of every call, in order."""
        return [call["argv"] for call in self.calls]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def fake_runner():
    return FakeCommandRunner()


@pytest.fixture
def test_logger():
    """Per-test logger, propagating so caplog sees it."""
    logger = logging.getLogger("worktree-manager-test")
    logger.setLevel(logging.DEBUG)
    return logger


def _init_repo(repo_path: Path) -> git.Repo:
    repo_path.mkdir(parents=True)
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    (repo_path / "README.md").write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")
    return repo


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo = _init_repo(temp_dir / "test_repo")

    # Remote without fetched refs, so origin/HEAD does not resolve
    repo.create_remote("origin", "git@github.com:test/test-repo.git")

    yield repo

    repo.close()


@pytest.fixture
def widgets_repo(temp_dir):
    """Repository named 'widgets', matching the issue URLs used in tests."""
    repo = _init_repo(temp_dir / "widgets")
    yield repo
    repo.close()


@pytest.fixture
def sample_issue():
    return IssueMetadata(
        number=456,
        title="Fix: Memory Leak in API!!",
        body="The API leaks memory when requests are cancelled.",
        state="OPEN",
        url="https://github.com/acme/widgets/issues/456",
        owner="acme",
        repo="widgets",
        labels=["bug"],
        assignees=["octocat"],
    )


DEFAULT_CONFIG = {
    "worktreeBasePath": "~/Developer/worktrees",
    "defaultBranch": "main",
    "autoInstallDeps": True,
    "packageManager": "auto",
    "copyEnvFiles": True,
    "openTerminal": True,
    "terminalApp": "Terminal",
    "integrations": {
        "github": {"enabled": True, "autoFetchIssue": True},
        "claude": {
            "enabled": True,
            "autoGenerateBranchName": False,
            "autoStartPlanMode": False,
        },
    },
    "cleanup": {"autoCleanMerged": False, "maxAge": 30, "keepRecent": 5},
    "hooks": {"preCreate": None, "postCreate": None, "preCleanup": None, "postCleanup": None},
}


@pytest.fixture
def config_dir(temp_dir):
    """Configuration directory holding default.json and a profiles/ folder."""
    directory = temp_dir / "config"
    (directory / "profiles").mkdir(parents=True)
    (directory / "default.json").write_text(json.dumps(DEFAULT_CONFIG, indent=2))
    return directory


def _gh_issue_json(number=7, title="Add OAuth support", body="We need OAuth.", owner="acme", repo="widgets"):
    """JSON as printed by `gh issue view --json ...`."""
    return json.dumps({
        "number": number,
        "title": title,
        "body": body,
        "state": "OPEN",
        "url": f"https://github.com/{owner}/{repo}/issues/{number}",
        "labels": [{"name": "enhancement"}],
        "assignees": [{"login": "octocat"}],
    })


@pytest.fixture
def gh_runner():
    """Fake runner with gh installed, authenticated and returning issue #7."""
    return FakeCommandRunner(
        responses={
            ("gh", "auth", "status"): CommandResult(0, "", "Logged in to github.com"),
            ("gh", "issue", "view"): CommandResult(0, _gh_issue_json(), ""),
        },
        installed={"gh"},
    )


@pytest.fixture
def gh_issue_json():
    """Factory for `gh issue view` JSON output."""
    return _gh_issue_json
