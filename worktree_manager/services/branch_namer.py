"""Branch name generation from issue metadata."""

import json
import re
from typing import Optional

import git

from worktree_manager.constants import ASSISTANT_BODY_MAX_LENGTH, BRANCH_SLUG_MAX_LENGTH
from worktree_manager.logging_config import get_logger
from worktree_manager.models.issue import IssueMetadata
from worktree_manager.models.worktree import BranchName
from worktree_manager.services.command_runner import CommandRunner

VIA_ASSISTANT = "assistant"
VIA_HEURISTIC = "heuristic"

_VALID_BRANCH_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._/-]*$")


def is_valid_branch_name(name: str) -> bool:
    """Check a name with `git check-ref-format --branch`, which applies every ref naming rule."""
    if not _VALID_BRANCH_RE.match(name):
        return False
    try:
        git.Git().check_ref_format("--branch", name)
    except git.exc.GitCommandError:
        return False
    return True


PROMPT_TEMPLATE = """Suggest a git branch name for this GitHub issue.
Use kebab-case and at most {max_length} characters.

Issue #{number}: {title}

Description:
{body}

Reply with the branch name only."""


def slugify_title(title: str, max_length: int = BRANCH_SLUG_MAX_LENGTH) -> str:
    """Lower-case, drop punctuation, hyphenate whitespace and truncate."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug[:max_length].strip("-")


class BranchNamer:
    """Derives branch names, optionally asking the claude CLI first."""

    def __init__(self, runner: Optional[CommandRunner] = None, logger=None):
        self.runner = runner or CommandRunner()
        self.logger = logger or get_logger(__name__)

    def from_heuristic(self, issue: IssueMetadata) -> str:
        """issue-<number>-<slugified title>, or issue-<number> for an empty title."""
        slug = slugify_title(issue.title)
        if not slug:
            return f"issue-{issue.number}"
        return f"issue-{issue.number}-{slug}"

    def from_assistant(self, issue: IssueMetadata) -> str:
        """Ask the claude CLI for a name, falling back to from_heuristic on any failure."""
        return self.generate(issue, use_assistant=True).value

    def generate(self, issue: IssueMetadata, use_assistant: bool) -> BranchName:
        """Branch name tagged with the strategy that produced it."""
        if use_assistant:
            name = self._ask_assistant(issue)
            if name:
                return BranchName(name, VIA_ASSISTANT)
            self.logger.warning("Claude branch naming failed, using fallback branch name")
        return BranchName(self.from_heuristic(issue), VIA_HEURISTIC)

    def build_prompt(self, issue: IssueMetadata) -> str:
        return PROMPT_TEMPLATE.format(
            max_length=BRANCH_SLUG_MAX_LENGTH,
            number=issue.number,
            title=issue.title,
            body=issue.body[:ASSISTANT_BODY_MAX_LENGTH],
        )

    def _ask_assistant(self, issue: IssueMetadata) -> Optional[str]:
        if self.runner.which("claude") is None:
            self.logger.warning("Claude CLI (claude) is not installed")
            return None

        self.logger.info("Generating branch name with Claude CLI...")
        result = self.runner.run(
            "claude",
            [
                "-p",
                self.build_prompt(issue),
                "--output-format",
                "json",
                "--dangerously-skip-permissions",
            ],
        )
        if not result.ok:
            self.logger.warning(f"Claude CLI exited with code {result.exit_code}")
            return None

        try:
            output = json.loads(result.stdout)
        except ValueError:
            self.logger.warning("Claude CLI returned non-JSON output")
            return None

        name = output.get("result") if isinstance(output, dict) else None
        if not isinstance(name, str):
            self.logger.warning("Claude CLI response has no 'result' field")
            return None

        name = name.strip().strip("`'\"").strip()
        if not name or len(name) > BRANCH_SLUG_MAX_LENGTH:
            self.logger.warning(f"Claude suggested an unusable branch name: {name!r}")
            return None
        if not is_valid_branch_name(name):
            self.logger.warning(f"Claude suggested an invalid branch name: {name!r}")
            return None

        self.logger.info(f"Generated branch name: {name}")
        return name
