"""Issue data models."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class IssueReference:
    """Owner, repository and number parsed from an issue URL."""

    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class IssueMetadata:
    """Issue details as returned by the issue tracker."""

    number: int
    title: str
    body: str
    state: str
    url: str
    owner: str
    repo: str
    labels: List[str] = field(default_factory=list)
    assignees: List[str] = field(default_factory=list)

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"#{self.number} - {self.title}" if self.title else f"#{self.number}"
