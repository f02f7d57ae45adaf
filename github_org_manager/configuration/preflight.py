"""Checks that must pass before a command changes anything."""

from dataclasses import dataclass

import structlog
from githubkit.exception import RequestFailed

from github_org_manager.configuration.exceptions import PreflightCheckError
from github_org_manager.github.abc import GitHubClientBase

logger = structlog.get_logger(__name__)


@dataclass
class AuthenticatedIdentity:
    """Who the run is authenticated as; name and email feed the DCO sign-off."""

    login: str
    name: str | None = None
    email: str | None = None


async def resolve_authenticated_identity(client: GitHubClientBase) -> AuthenticatedIdentity:
    """Resolve the authenticated user, or raise PreflightCheckError."""
    try:
        user = await client.get_authenticated_user()
    except RequestFailed as exc:
        raise PreflightCheckError(f"GitHub authentication failed: {exc}") from exc
    identity = AuthenticatedIdentity(
        login=user.login,
        name=getattr(user, "name", None) or None,
        email=getattr(user, "email", None) or None,
    )
    logger.info("Authenticated with GitHub", login=identity.login)
    return identity


async def check_organization(client: GitHubClientBase, org: str) -> None:
    """Raise PreflightCheckError unless the organization is accessible."""
    try:
        await client.get_organization(org)
    except RequestFailed as exc:
        raise PreflightCheckError(f"Organization '{org}' does not exist or is not accessible: {exc}") from exc
    logger.info("Organization is accessible", org=org)


async def check_template_repository(client: GitHubClientBase, template_repo: str) -> None:
    """Raise PreflightCheckError unless the template repository exists."""
    if not await client.repository_exists(template_repo):
        raise PreflightCheckError(f"Template repository '{template_repo}' does not exist.")
    logger.info("Template repository exists", template=template_repo)


async def run_preflight_checks(
    client: GitHubClientBase,
    orgs: list[str],
    template_repo: str | None = None,
) -> AuthenticatedIdentity:
    """Verify authentication, each organization, and optionally the template repository."""
    identity = await resolve_authenticated_identity(client)
    for org in orgs:
        await check_organization(client, org)
    if template_repo:
        try:
            await check_template_repository(client, template_repo)
        except RequestFailed as exc:
            raise PreflightCheckError(f"Could not check template repository '{template_repo}': {exc}") from exc
    return identity
