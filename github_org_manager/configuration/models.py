"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


class Permission(str, Enum):
    """Repository roles that can be granted to a team or a user."""

    READ = "read"
    TRIAGE = "triage"
    WRITE = "write"
    MAINTAIN = "maintain"
    ADMIN = "admin"


class RepositoryVisibility(str, Enum):
    """Visibility of newly created repositories."""

    PRIVATE = "private"
    PUBLIC = "public"
    INTERNAL = "internal"


@dataclass
class GitHubAuthentication:
    """Reconciled credentials used to build the GitHub client."""

    authentication_type: GitHubAuthenticationType
    github_api_url: str
    github_pat_token: str | None = None
    github_app_id: int | None = None
    github_app_private_key_path: Path | None = None
    github_app_installation_id: int | None = None


@dataclass
class HackathonConfig:
    """Hackathon provisioning settings shared by the repository and access commands."""

    org: str
    hackathon_name: str
    hackathon_prefix: str
    template_repo: str
    staff_team: str
    admins_team: str
    judges_team: str
    staff_permission: Permission
    admins_permission: Permission
    judges_permission: Permission
    team_permission: Permission
    default_visibility: RepositoryVisibility
    branch_protection: dict[str, Any] = field(default_factory=dict)
    remove_user: str | None = None
    default_admins: list[str] = field(default_factory=list)
    repository_limit: int = 1000

    @property
    def standing_teams(self) -> list[tuple[str, Permission]]:
        """Teams added to every hackathon repository, with their permission."""
        return [
            (self.staff_team, self.staff_permission),
            (self.admins_team, self.admins_permission),
            (self.judges_team, self.judges_permission),
        ]
