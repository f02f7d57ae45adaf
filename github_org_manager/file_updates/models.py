"""Data models for pull-request based file updates."""

from dataclasses import dataclass
from typing import Any

from github_org_manager.github.abc import GitHubClientBase


@dataclass
class FileChange:
    """One pending write through the Contents API.

    ``sha`` is the blob SHA of the file being replaced, or None for a new file.
    ``message`` overrides the plan's commit subject for this file.
    """

    path: str
    content: str
    sha: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class PullRequestPlan:
    """Fixed branch, title, body and commit subject of a workflow."""

    branch_name: str
    title: str
    body: str
    commit_message: str


@dataclass
class RepositoryContext:
    """What a change collector needs to know about the repository being processed."""

    client: GitHubClientBase
    org: str
    repo_name: str
    default_branch: str
    ref: str
    existing_pull_request: Any | None = None

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.repo_name}"


class RepositorySkipped(Exception):
    """Raised by a change collector to file the repository in a result bucket without changing it."""

    def __init__(self, bucket: str, detail: str | None = None) -> None:
        super().__init__(detail or bucket)
        self.bucket = bucket
        self.detail = detail
