"""GitHub client adapter for the githubkit library."""

import base64
from functools import wraps
from typing import Any, Awaitable, Callable, Literal, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import (
    FullRepository,
    MinimalRepository,
    OrganizationFull,
    Package,
    PullRequest,
    PullRequestSimple,
    TeamFull,
)

from github_org_manager.configuration.models import GitHubAuthentication
from github_org_manager.utils.constants import DEFAULT_PER_PAGE
from github_org_manager.utils.retry import retry_on_rate_limit

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client
from .errors import is_not_found

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])
T = TypeVar("T")

# GitHub only returns the team's role on a repository with this media type.
REPOSITORY_MEDIA_TYPE = "application/vnd.github.v3.repository+json"


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code == 422:
                try:
                    error_data = exc.response.json()
                except Exception:
                    error_data = {}
                if not isinstance(error_data, dict):
                    error_data = {}
                message = error_data.get("message", "Unprocessable Entity")
                errors = error_data.get("errors", [])
                logger.error(
                    "GitHub 422 Unprocessable Entity",
                    function=func.__name__,
                    message=message,
                    errors=errors,
                    status_code=422,
                )
                raise ValueError(f"GitHub 422 error in {func.__name__}: {message} | errors: {errors}") from exc
            raise

    return wrapper  # type: ignore


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library.

    The adapter is bound to an owner (the organization) and, optionally, a
    repository. Repository scoped methods accept an explicit ``repo_name`` or
    fall back to the bound one; ``with_repository`` returns a sibling adapter
    that shares the same authenticated client.
    """

    def __init__(self, client: GitHubClient, owner: str, repo_name: str | None = None) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    def _repo(self, repo_name: str | None) -> str:
        """Resolve the repository a call applies to."""
        name = repo_name or self.repo_name
        if not name:
            raise ValueError("This operation requires a repository, but the adapter is not bound to one.")
        return name

    @classmethod
    async def create(cls, owner: str, authentication: GitHubAuthentication, repo_name: str | None = None) -> Self:
        """Create a new GitHub client adapter.

        Args:
            owner: Organization (or user) the adapter operates on
            authentication: Reconciled PAT or GitHub App credentials
            repo_name: Optional repository to bind the adapter to

        Returns:
            Configured GitHubKitAdapter instance
        """
        logger.info(
            "Creating client for GitHub instance and organization",
            github_api_url=authentication.github_api_url,
            owner=owner,
            repo_name=repo_name,
            authentication_type=authentication.authentication_type.value,
        )
        client = await get_github_client(authentication)
        return cls(client, owner, repo_name)

    def with_repository(self, repo_name: str | None, owner: str | None = None) -> "GitHubKitAdapter":
        """Return an adapter bound to another repository (or owner), sharing this client."""
        return GitHubKitAdapter(self.client, owner or self.owner, repo_name)

    async def _collect_pages(
        self,
        fetch_page: Callable[[int], Awaitable[list[T]]],
        per_page: int = DEFAULT_PER_PAGE,
        limit: int | None = None,
    ) -> list[T]:
        """Fetch pages until a short page is returned or the limit is reached."""
        items: list[T] = []
        page: int = 1
        while True:
            logger.debug("Fetching page", page=page, per_page=per_page)
            page_items = await fetch_page(page)
            if not page_items:
                break
            items.extend(page_items)
            if limit is not None and len(items) >= limit:
                return items[:limit]
            if len(page_items) < per_page:
                break
            page += 1
        return items

    # Identity and organization
    @retry_on_rate_limit()
    async def get_authenticated_user(self) -> Any:
        """Get the user the client is authenticated as."""
        response = await self.client.rest.users.async_get_authenticated()
        return response.parsed_data

    @retry_on_rate_limit()
    async def get_user(self, username: str) -> Any:
        """Get a user's public profile."""
        response = await self.client.rest.users.async_get_by_username(username=username)
        return response.parsed_data

    @retry_on_rate_limit()
    async def get_organization(self, org: str | None = None) -> OrganizationFull:
        """Get an organization (defaults to the bound owner)."""
        response: Response[OrganizationFull] = await self.client.rest.orgs.async_get(org=org or self.owner)
        return response.parsed_data

    # Repository CRUD
    @retry_on_rate_limit()
    async def get_repository(self, repo_name: str | None = None) -> FullRepository:
        """Get the repository for the current client."""
        response: Response[FullRepository] = await self.client.rest.repos.async_get(owner=self.owner, repo=self._repo(repo_name))
        return response.parsed_data

    async def repository_exists(self, repo_name: str | None = None) -> bool:
        """Check whether a repository exists."""
        try:
            await self.get_repository(repo_name)
        except RequestFailed as exc:
            if is_not_found(exc):
                return False
            raise
        return True

    async def list_organization_repositories(self, limit: int | None = None, **kwargs: Any) -> list[MinimalRepository]:
        """List repositories of the organization, handling pagination.

        Args:
            limit: Stop after this many repositories (None for all)
            **kwargs: Additional parameters to pass to the API
                - type: Filter by repository type ('all', 'public', 'private', 'forks', 'sources', 'member')
                - sort: Sort repositories ('created', 'updated', 'pushed', 'full_name')

        Returns:
            List of repositories in the organization
        """

        @retry_on_rate_limit()
        async def _fetch_page(page: int) -> list[MinimalRepository]:
            response: Response[list[MinimalRepository]] = await self.client.rest.repos.async_list_for_org(
                org=self.owner, per_page=DEFAULT_PER_PAGE, page=page, **kwargs
            )
            return response.parsed_data

        logger.info("Fetching repositories for organization", org=self.owner, limit=limit, filters=kwargs)
        repositories = await self._collect_pages(_fetch_page, limit=limit)
        logger.info("Fetched repositories for organization", org=self.owner, total_repos=len(repositories))
        return repositories

    @handle_github_422
    @retry_on_rate_limit()
    async def create_repository_from_template(
        self,
        template_repo: str,
        name: str,
        private: bool = True,
        description: str | None = None,
    ) -> FullRepository:
        """Create a repository in the organization from a template repository of the same organization."""
        params = self._omit_null_parameters(description=description)
        response: Response[FullRepository] = await self.client.rest.repos.async_create_using_template(
            template_owner=self.owner,
            template_repo=template_repo,
            owner=self.owner,
            name=name,
            private=private,
            include_all_branches=False,
            **params,
        )
        logger.info("Created repository from template", repository=f"{self.owner}/{name}", template=template_repo, private=private)
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def update_repository_visibility(self, visibility: Literal["public", "private", "internal"], repo_name: str | None = None) -> FullRepository:
        """Change the visibility of a repository."""
        response: Response[FullRepository] = await self.client.rest.repos.async_update(
            owner=self.owner,
            repo=self._repo(repo_name),
            visibility=visibility,
        )
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def set_branch_protection(self, branch: str, protection: dict[str, Any], repo_name: str | None = None) -> None:
        """Apply a branch protection payload to a branch.

        ``require_signatures`` is not part of the branch protection payload; when
        it is set, commit signature protection is enabled with a second call.
        """
        repo = self._repo(repo_name)
        payload = dict(protection)
        require_signatures = bool(payload.pop("require_signatures", False))
        await self.client.rest.repos.async_update_branch_protection(owner=self.owner, repo=repo, branch=branch, data=payload)
        if require_signatures:
            await self.client.rest.repos.async_create_commit_signature_protection(owner=self.owner, repo=repo, branch=branch)
        logger.info("Set branch protection", repository=f"{self.owner}/{repo}", branch=branch, require_signatures=require_signatures)

    # Teams
    @retry_on_rate_limit()
    async def get_team(self, team_slug: str, org: str | None = None) -> TeamFull | None:
        """Get a team by slug, or None if it does not exist."""
        try:
            response: Response[TeamFull] = await self.client.rest.teams.async_get_by_name(org=org or self.owner, team_slug=team_slug)
        except RequestFailed as exc:
            if is_not_found(exc):
                return None
            raise
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def create_team(self, name: str, privacy: Literal["secret", "closed"] = "closed", description: str | None = None) -> TeamFull:
        """Create a team in the organization."""
        params = self._omit_null_parameters(description=description)
        response: Response[TeamFull] = await self.client.rest.teams.async_create(org=self.owner, name=name, privacy=privacy, **params)
        logger.info("Created team", org=self.owner, team=name, privacy=privacy)
        return response.parsed_data

    @retry_on_rate_limit()
    async def get_team_repository_permission(self, team_slug: str, repo_name: str | None = None) -> str | None:
        """Get the role a team has on a repository, or None if it has no access."""
        try:
            response = await self.client.rest.teams.async_check_permissions_for_repo_in_org(
                org=self.owner,
                team_slug=team_slug,
                owner=self.owner,
                repo=self._repo(repo_name),
                headers={"Accept": REPOSITORY_MEDIA_TYPE},
            )
        except RequestFailed as exc:
            if is_not_found(exc):
                return None
            raise
        data = response.json()
        if not isinstance(data, dict):
            return None
        role_name = data.get("role_name")
        if role_name:
            return role_name
        permissions = data.get("permissions") or {}
        # Highest granted permission wins; 'push' and 'pull' are the API names of write and read.
        for permission, role in (("admin", "admin"), ("maintain", "maintain"), ("push", "write"), ("triage", "triage"), ("pull", "read")):
            if permissions.get(permission):
                return role
        return None

    @handle_github_422
    @retry_on_rate_limit()
    async def add_team_to_repository(self, team_slug: str, permission: str, repo_name: str | None = None) -> None:
        """Grant a team a role on a repository."""
        repo = self._repo(repo_name)
        await self.client.rest.teams.async_add_or_update_repo_permissions_in_org(
            org=self.owner,
            team_slug=team_slug,
            owner=self.owner,
            repo=repo,
            permission=permission,
        )
        logger.info("Granted team access to repository", team=team_slug, repository=f"{self.owner}/{repo}", permission=permission)

    @handle_github_422
    @retry_on_rate_limit()
    async def add_team_member(self, team_slug: str, username: str, role: Literal["member", "maintainer"] = "member") -> None:
        """Add or invite a user into a team."""
        await self.client.rest.teams.async_add_or_update_membership_for_user_in_org(
            org=self.owner,
            team_slug=team_slug,
            username=username,
            role=role,
        )
        logger.info("Added user to team", team=team_slug, username=username, role=role)

    @retry_on_rate_limit()
    async def remove_team_member(self, team_slug: str, username: str) -> None:
        """Remove a user from a team."""
        await self.client.rest.teams.async_remove_membership_for_user_in_org(org=self.owner, team_slug=team_slug, username=username)
        logger.info("Removed user from team", team=team_slug, username=username)

    async def list_team_members(self, team_slug: str, org: str | None = None) -> list[str]:
        """List the logins of a team's members, handling pagination."""

        @retry_on_rate_limit()
        async def _fetch_page(page: int) -> list[Any]:
            response = await self.client.rest.teams.async_list_members_in_org(
                org=org or self.owner, team_slug=team_slug, per_page=DEFAULT_PER_PAGE, page=page
            )
            return response.parsed_data

        members = await self._collect_pages(_fetch_page)
        return [member.login for member in members]

    async def list_repository_teams(self, repo_name: str | None = None) -> list[Any]:
        """List the teams that have access to a repository, handling pagination."""
        repo = self._repo(repo_name)

        @retry_on_rate_limit()
        async def _fetch_page(page: int) -> list[Any]:
            response = await self.client.rest.repos.async_list_teams(owner=self.owner, repo=repo, per_page=DEFAULT_PER_PAGE, page=page)
            return response.parsed_data

        return await self._collect_pages(_fetch_page)

    # Collaborators
    async def list_collaborators(self, repo_name: str | None = None) -> list[Any]:
        """List a repository's direct and inherited collaborators, handling pagination."""
        repo = self._repo(repo_name)

        @retry_on_rate_limit()
        async def _fetch_page(page: int) -> list[Any]:
            response = await self.client.rest.repos.async_list_collaborators(
                owner=self.owner, repo=repo, affiliation="all", per_page=DEFAULT_PER_PAGE, page=page
            )
            return response.parsed_data

        return await self._collect_pages(_fetch_page)

    @handle_github_422
    @retry_on_rate_limit()
    async def add_collaborator(self, username: str, permission: str, repo_name: str | None = None) -> None:
        """Grant a user a role on a repository (invites users who are not yet collaborators)."""
        repo = self._repo(repo_name)
        await self.client.rest.repos.async_add_collaborator(owner=self.owner, repo=repo, username=username, permission=permission)
        logger.info("Granted user access to repository", username=username, repository=f"{self.owner}/{repo}", permission=permission)

    # Branches
    @retry_on_rate_limit()
    async def get_branch_sha(self, branch_name: str) -> str:
        """Get the commit SHA a branch points at."""
        try:
            response = await self.client.rest.git.async_get_ref(owner=self.owner, repo=self._repo(None), ref=f"heads/{branch_name}")
        except RequestFailed as exc:
            # A 409 Conflict means the repository is empty.
            if exc.response.status_code == 409:
                logger.error(
                    "Base branch has no commits; a pull request cannot be created against it",
                    repository=f"{self.owner}/{self.repo_name}",
                    branch=branch_name,
                )
            raise
        return response.parsed_data.object_.sha

    @retry_on_rate_limit()
    async def branch_exists(self, branch_name: str) -> bool:
        """Check if a branch exists in the repository."""
        try:
            await self.client.rest.repos.async_get_branch(owner=self.owner, repo=self._repo(None), branch=branch_name)
        except RequestFailed as exc:
            if is_not_found(exc):
                return False
            raise
        return True

    @handle_github_422
    @retry_on_rate_limit()
    async def create_branch(self, branch_name: str, sha: str) -> None:
        """Create a branch pointing at a commit."""
        await self.client.rest.git.async_create_ref(
            owner=self.owner,
            repo=self._repo(None),
            ref=f"refs/heads/{branch_name}",
            sha=sha,
        )
        logger.info("Created branch", repository=f"{self.owner}/{self.repo_name}", branch=branch_name, sha=sha)

    @handle_github_422
    @retry_on_rate_limit()
    async def delete_branch(self, branch_name: str) -> None:
        """Delete a branch."""
        await self.client.rest.git.async_delete_ref(owner=self.owner, repo=self._repo(None), ref=f"heads/{branch_name}")
        logger.info("Deleted branch", repository=f"{self.owner}/{self.repo_name}", branch=branch_name)

    # Contents
    @retry_on_rate_limit()
    async def get_file(self, path: str, ref: str | None = None) -> tuple[str, str] | None:
        """Get the decoded text and blob SHA of a file, or None if it does not exist or is not a file."""
        params = self._omit_null_parameters(ref=ref)
        try:
            response = await self.client.rest.repos.async_get_content(owner=self.owner, repo=self._repo(None), path=path, **params)
        except RequestFailed as exc:
            if is_not_found(exc):
                return None
            raise
        content_file = response.parsed_data
        # Directories come back as a list; symlinks and submodules have another type.
        if isinstance(content_file, list) or getattr(content_file, "type", None) != "file":
            return None
        if getattr(content_file, "encoding", None) == "none":
            # Files over 1 MB come back without content.
            logger.warning("File content not returned by the Contents API", repository=f"{self.owner}/{self.repo_name}", file=path)
        text = base64.b64decode(content_file.content or "").decode("utf-8")
        return text, content_file.sha

    @handle_github_422
    @retry_on_rate_limit()
    async def create_or_update_file(self, path: str, content: str, message: str, branch: str, sha: str | None = None) -> None:
        """Create or update a file on a branch using the GitHub Contents API."""
        encoded_content = base64.b64encode(content.encode("utf-8")).decode("utf-8")
        params = self._omit_null_parameters(sha=sha)
        await self.client.rest.repos.async_create_or_update_file_contents(
            owner=self.owner,
            repo=self._repo(None),
            path=path,
            message=message,
            content=encoded_content,
            branch=branch,
            **params,
        )
        logger.info("Committed file to branch", repository=f"{self.owner}/{self.repo_name}", file=path, branch=branch)

    @retry_on_rate_limit()
    async def search_code_paths(self, query: str) -> list[str]:
        """Search code in the bound repository and return the matching file paths."""
        response = await self.client.rest.search.async_code(q=f"repo:{self.owner}/{self._repo(None)} {query}")
        return [item.path for item in response.parsed_data.items]

    # Pull Requests
    @retry_on_rate_limit()
    async def list_open_pull_requests(self, head: str) -> list[PullRequestSimple]:
        """List open pull requests whose head is 'owner:branch'."""
        response: Response[list[PullRequestSimple]] = await self.client.rest.pulls.async_list(
            owner=self.owner,
            repo=self._repo(None),
            state="open",
            head=head,
            per_page=DEFAULT_PER_PAGE,
        )
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def create_pull_request(self, title: str, head: str, base: str, body: str | None = None) -> PullRequest:
        """Create a pull request for a repository."""
        params = self._omit_null_parameters(body=body)
        response: Response[PullRequest] = await self.client.rest.pulls.async_create(
            owner=self.owner,
            repo=self._repo(None),
            title=title,
            head=head,
            base=base,
            **params,
        )
        logger.info("Created pull request", repository=f"{self.owner}/{self.repo_name}", url=response.parsed_data.html_url)
        return response.parsed_data

    # Packages
    async def list_organization_packages(self, package_type: str) -> list[Package]:
        """List the organization's packages of a given type, handling pagination."""

        @retry_on_rate_limit()
        async def _fetch_page(page: int) -> list[Package]:
            response: Response[list[Package]] = await self.client.rest.packages.async_list_packages_for_organization(
                org=self.owner, package_type=package_type, per_page=DEFAULT_PER_PAGE, page=page
            )
            return response.parsed_data

        return await self._collect_pages(_fetch_page)

    @retry_on_rate_limit()
    async def delete_organization_package(self, package_type: str, package_name: str) -> None:
        """Delete one of the organization's packages."""
        await self.client.rest.packages.async_delete_package_for_org(package_type=package_type, package_name=package_name, org=self.owner)
        logger.info("Deleted package", org=self.owner, package_type=package_type, package=package_name)

    # Rate limit
    async def get_rate_limit(self) -> Any:
        """Get the core REST API rate limit resource (limit, remaining, reset)."""
        response = await self.client.rest.rate_limit.async_get()
        return response.parsed_data.resources.core
