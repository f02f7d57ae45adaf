"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any, Literal


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients bound to an organization and, optionally, one repository."""

    owner: str
    repo_name: str | None

    @abstractmethod
    def with_repository(self, repo_name: str | None, owner: str | None = None) -> "GitHubClientBase":
        """Return a client bound to another repository (or to no repository) that shares this connection."""
        pass

    # Identity and organization
    @abstractmethod
    async def get_authenticated_user(self) -> Any:
        """Get the user the client is authenticated as."""
        pass

    @abstractmethod
    async def get_user(self, username: str) -> Any:
        """Get a user's public profile."""
        pass

    @abstractmethod
    async def get_organization(self, org: str | None = None) -> Any:
        """Get an organization."""
        pass

    # Repository CRUD
    @abstractmethod
    async def get_repository(self, repo_name: str | None = None) -> Any:
        """Get a repository."""
        pass

    @abstractmethod
    async def repository_exists(self, repo_name: str | None = None) -> bool:
        """Check whether a repository exists."""
        pass

    @abstractmethod
    async def list_organization_repositories(self, limit: int | None = None, **kwargs: Any) -> list[Any]:
        """List repositories of the organization."""
        pass

    @abstractmethod
    async def create_repository_from_template(
        self,
        template_repo: str,
        name: str,
        private: bool = True,
        description: str | None = None,
    ) -> Any:
        """Create a repository in the organization from a template repository."""
        pass

    @abstractmethod
    async def update_repository_visibility(self, visibility: Literal["public", "private", "internal"], repo_name: str | None = None) -> Any:
        """Change the visibility of a repository."""
        pass

    @abstractmethod
    async def set_branch_protection(self, branch: str, protection: dict[str, Any], repo_name: str | None = None) -> None:
        """Apply a branch protection payload to a branch."""
        pass

    # Teams
    @abstractmethod
    async def get_team(self, team_slug: str, org: str | None = None) -> Any | None:
        """Get a team by slug, or None if it does not exist."""
        pass

    @abstractmethod
    async def create_team(self, name: str, privacy: Literal["secret", "closed"] = "closed", description: str | None = None) -> Any:
        """Create a team in the organization."""
        pass

    @abstractmethod
    async def get_team_repository_permission(self, team_slug: str, repo_name: str | None = None) -> str | None:
        """Get the role a team has on a repository, or None if it has no access."""
        pass

    @abstractmethod
    async def add_team_to_repository(self, team_slug: str, permission: str, repo_name: str | None = None) -> None:
        """Grant a team a role on a repository."""
        pass

    @abstractmethod
    async def add_team_member(self, team_slug: str, username: str, role: Literal["member", "maintainer"] = "member") -> None:
        """Add or invite a user into a team."""
        pass

    @abstractmethod
    async def remove_team_member(self, team_slug: str, username: str) -> None:
        """Remove a user from a team."""
        pass

    @abstractmethod
    async def list_team_members(self, team_slug: str, org: str | None = None) -> list[str]:
        """List the logins of a team's members."""
        pass

    @abstractmethod
    async def list_repository_teams(self, repo_name: str | None = None) -> list[Any]:
        """List the teams that have access to a repository."""
        pass

    # Collaborators
    @abstractmethod
    async def list_collaborators(self, repo_name: str | None = None) -> list[Any]:
        """List a repository's collaborators."""
        pass

    @abstractmethod
    async def add_collaborator(self, username: str, permission: str, repo_name: str | None = None) -> None:
        """Grant a user a role on a repository."""
        pass

    # Branches
    @abstractmethod
    async def get_branch_sha(self, branch_name: str) -> str:
        """Get the commit SHA a branch points at."""
        pass

    @abstractmethod
    async def branch_exists(self, branch_name: str) -> bool:
        """Check if a branch exists in the repository."""
        pass

    @abstractmethod
    async def create_branch(self, branch_name: str, sha: str) -> None:
        """Create a branch pointing at a commit."""
        pass

    @abstractmethod
    async def delete_branch(self, branch_name: str) -> None:
        """Delete a branch."""
        pass

    # Contents
    @abstractmethod
    async def get_file(self, path: str, ref: str | None = None) -> tuple[str, str] | None:
        """Get the decoded text and blob SHA of a file, or None if it does not exist."""
        pass

    @abstractmethod
    async def create_or_update_file(self, path: str, content: str, message: str, branch: str, sha: str | None = None) -> None:
        """Create or update a file on a branch."""
        pass

    @abstractmethod
    async def search_code_paths(self, query: str) -> list[str]:
        """Search code in the repository and return the matching file paths."""
        pass

    # Pull Requests
    @abstractmethod
    async def list_open_pull_requests(self, head: str) -> list[Any]:
        """List open pull requests whose head is 'owner:branch'."""
        pass

    @abstractmethod
    async def create_pull_request(self, title: str, head: str, base: str, body: str | None = None) -> Any:
        """Create a pull request for a repository."""
        pass

    # Packages
    @abstractmethod
    async def list_organization_packages(self, package_type: str) -> list[Any]:
        """List the organization's packages of a given type."""
        pass

    @abstractmethod
    async def delete_organization_package(self, package_type: str, package_name: str) -> None:
        """Delete one of the organization's packages."""
        pass

    # Rate limit
    @abstractmethod
    async def get_rate_limit(self) -> Any:
        """Get the core REST API rate limit resource."""
        pass
