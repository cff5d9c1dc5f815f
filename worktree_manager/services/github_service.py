"""GitHub issue fetching through the gh CLI"""
import json
import os
import re
from typing import Optional

from github import Auth, Github
from github.GithubException import GithubException

from worktree_manager.constants import ISSUE_URL_PATTERN, ISSUE_VIEW_FIELDS
from worktree_manager.logging_config import get_logger
from worktree_manager.models.issue import IssueMetadata, IssueReference
from worktree_manager.services.command_runner import CommandRunner

_ISSUE_URL_RE = re.compile(ISSUE_URL_PATTERN)


def parse_issue_url(url: str) -> Optional[IssueReference]:
    """Parse owner, repo and number out of a GitHub issue URL, or None if it does not match."""
    if not url:
        return None
    match = _ISSUE_URL_RE.search(url)
    if not match:
        return None
    return IssueReference(owner=match.group(1), repo=match.group(2), number=int(match.group(3)))


class IssueFetcher:
    """Fetches issue metadata. Every failure is logged and reported as None."""

    def __init__(self, runner: Optional[CommandRunner] = None, github_token: Optional[str] = None, logger=None):
        self.runner = runner or CommandRunner()
        self.github_token = github_token or os.environ.get("GITHUB_TOKEN")
        self.logger = logger or get_logger(__name__)

    def parse_url(self, url: str) -> Optional[IssueReference]:
        return parse_issue_url(url)

    def is_gh_installed(self) -> bool:
        return self.runner.which("gh") is not None

    def is_authenticated(self) -> bool:
        return self.runner.run("gh", ["auth", "status"]).ok

    def fetch_issue(self, url: str) -> Optional[IssueMetadata]:
        """Fetch an issue by URL.

        Installation and authentication are checked first so the log names the
        step to fix. When gh is missing but a GitHub token is available the
        REST API is used instead.
        """
        ref = self.parse_url(url)
        if ref is None:
            self.logger.error(
                f"Invalid GitHub issue URL: {url} "
                "(expected https://github.com/<owner>/<repo>/issues/<number>)"
            )
            return None

        if not self.is_gh_installed():
            if self.github_token:
                self.logger.info("GitHub CLI (gh) not found, using the GitHub API with GITHUB_TOKEN")
                return self.fetch_issue_via_api(ref)
            self.logger.error(
                "GitHub CLI (gh) is not installed. Install it from https://cli.github.com "
                "or set GITHUB_TOKEN"
            )
            return None

        if not self.is_authenticated():
            self.logger.error("GitHub CLI is not authenticated. Run: gh auth login")
            return None

        self.logger.info(f"Fetching GitHub issue #{ref.number} from {ref.full_name}...")
        result = self.runner.run(
            "gh",
            ["issue", "view", str(ref.number), "--repo", ref.full_name, "--json", ISSUE_VIEW_FIELDS],
        )
        if not result.ok:
            self.logger.error(
                f"Failed to fetch issue #{ref.number} (exit {result.exit_code}): {result.stderr.strip()}"
            )
            return None

        try:
            data = json.loads(result.stdout)
            issue = IssueMetadata(
                number=int(data["number"]),
                title=data.get("title") or "",
                body=data.get("body") or "",
                state=data.get("state") or "",
                url=data.get("url") or url,
                owner=ref.owner,
                repo=ref.repo,
                labels=[label["name"] for label in data.get("labels") or []],
                assignees=[assignee["login"] for assignee in data.get("assignees") or []],
            )
        except (ValueError, KeyError, TypeError) as e:
            self.logger.error(f"Could not parse gh output for issue #{ref.number}: {e}")
            return None

        self.logger.info(f"Fetched issue: {issue.title}")
        return issue

    def fetch_issue_via_api(self, ref: IssueReference) -> Optional[IssueMetadata]:
        """Fetch an issue through the GitHub REST API."""
        try:
            github = Github(auth=Auth.Token(self.github_token))
            gh_issue = github.get_repo(ref.full_name).get_issue(ref.number)
            issue = IssueMetadata(
                number=gh_issue.number,
                title=gh_issue.title or "",
                body=gh_issue.body or "",
                state=gh_issue.state or "",
                url=gh_issue.html_url,
                owner=ref.owner,
                repo=ref.repo,
                labels=[label.name for label in gh_issue.labels],
                assignees=[assignee.login for assignee in gh_issue.assignees],
            )
        except (GithubException, OSError) as e:
            self.logger.error(f"GitHub API request for issue #{ref.number} failed: {e}")
            return None

        self.logger.info(f"Fetched issue: {issue.title}")
        return issue

    def issue_from_reference(self, url: str) -> Optional[IssueMetadata]:
        """Minimal metadata built from the URL alone, for when fetching is disabled."""
        ref = self.parse_url(url)
        if ref is None:
            self.logger.error(f"Invalid GitHub issue URL: {url}")
            return None
        return IssueMetadata(
            number=ref.number,
            title="",
            body="",
            state="",
            url=url,
            owner=ref.owner,
            repo=ref.repo,
        )
