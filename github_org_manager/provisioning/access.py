"""Grants team and user access to hackathon repositories and invites team members."""

from typing import Any, Callable

import structlog
from githubkit.exception import GitHubException

from github_org_manager.configuration.exceptions import TeamNotFoundError
from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.github.errors import describe_error
from github_org_manager.github.ratelimit import RateLimitGuard
from github_org_manager.results import DRY_RUN, ERRORS, SKIPPED, UPDATED, RunResults

logger = structlog.get_logger(__name__)


async def select_repository_names(
    client: GitHubClientBase,
    predicate: Callable[[str], bool],
    limit: int | None = None,
) -> list[str]:
    """List the organization's repository names that satisfy a predicate."""
    repositories: list[Any] = await client.list_organization_repositories(limit=limit)
    names = [repo.name for repo in repositories if predicate(repo.name)]
    logger.info("Selected repositories", org=client.owner, total=len(repositories), selected=len(names))
    return names


async def ensure_team_permission(
    client: GitHubClientBase,
    team_slug: str,
    repo_name: str,
    permission: str,
    results: RunResults,
    dry_run: bool = False,
) -> None:
    """Grant a team a role on a repository unless it already has exactly that role."""
    target = f"{client.owner}/{repo_name}"
    current_permission = await client.get_team_repository_permission(team_slug, repo_name=repo_name)
    if current_permission == permission:
        logger.info("Team already has the requested access, skipping", team=team_slug, repository=target, permission=permission)
        results.record(SKIPPED, target, f"{team_slug} already {permission}")
        return
    if dry_run:
        logger.info("[DRY RUN] Would grant team access", team=team_slug, repository=target, current=current_permission, permission=permission)
        results.record(DRY_RUN, target, f"{team_slug}: {current_permission or 'none'} -> {permission}")
        return
    await client.add_team_to_repository(team_slug, permission, repo_name=repo_name)
    results.record(UPDATED, target, f"{team_slug}: {current_permission or 'none'} -> {permission}")


async def grant_teams_to_repositories(
    client: GitHubClientBase,
    teams: list[str],
    repo_filter: str,
    permission: str,
    dry_run: bool = False,
    limit: int | None = None,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Ensure each team has a role on every repository whose name contains the filter.

    Teams that do not exist are skipped with a warning.
    """
    results = RunResults(title="Team access")
    repo_names = await select_repository_names(client, lambda name: repo_filter in name, limit=limit)
    if not repo_names:
        logger.warning("No repositories matched the filter", filter=repo_filter)
        return results

    existing_teams: list[str] = []
    for team_slug in teams:
        if await client.get_team(team_slug) is None:
            logger.warning("Team does not exist, skipping", team=team_slug)
            results.record(SKIPPED, f"{client.owner}/{team_slug}", "team does not exist")
            continue
        existing_teams.append(team_slug)

    for repo_name in repo_names:
        if guard is not None:
            await guard.wait_if_needed()
        for team_slug in existing_teams:
            try:
                await ensure_team_permission(client, team_slug, repo_name, permission, results, dry_run=dry_run)
            except (GitHubException, ValueError) as exc:
                logger.error("Failed to update team access", team=team_slug, repository=f"{client.owner}/{repo_name}", error=str(exc))
                results.record(ERRORS, f"{client.owner}/{repo_name}", f"{team_slug}: {describe_error(exc)}")
    return results


async def add_team_to_repositories(
    client: GitHubClientBase,
    team_slug: str,
    role: str,
    repo_filter: str,
    dry_run: bool = False,
    limit: int | None = None,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Give a single team a role on every matching repository.

    Raises:
        TeamNotFoundError: If the team does not exist.
    """
    if await client.get_team(team_slug) is None:
        raise TeamNotFoundError(client.owner, team_slug)
    return await grant_teams_to_repositories(
        client,
        [team_slug],
        repo_filter,
        role,
        dry_run=dry_run,
        limit=limit,
        guard=guard,
    )


async def add_admins_to_repositories(
    client: GitHubClientBase,
    users: list[str],
    prefix: str,
    dry_run: bool = False,
    limit: int | None = None,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Grant each user the admin role on every repository named '<prefix>-...'."""
    results = RunResults(title="Admin access")
    repo_names = await select_repository_names(client, lambda name: name.startswith(f"{prefix}-"), limit=limit)
    for repo_name in repo_names:
        if guard is not None:
            await guard.wait_if_needed()
        target = f"{client.owner}/{repo_name}"
        for username in users:
            if dry_run:
                logger.info("[DRY RUN] Would add admin", username=username, repository=target)
                results.record(DRY_RUN, target, f"{username} as admin")
                continue
            try:
                await client.add_collaborator(username, "admin", repo_name=repo_name)
            except (GitHubException, ValueError) as exc:
                logger.error("Failed to add admin", username=username, repository=target, error=str(exc))
                results.record(ERRORS, target, f"{username}: {describe_error(exc)}")
                continue
            results.record(UPDATED, target, f"{username} as admin")
    return results


async def invite_team_members(
    client: GitHubClientBase,
    memberships: dict[str, list[str]],
    dry_run: bool = False,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Add or invite each listed user into their team, collecting failures per team."""
    results = RunResults(title="Team invitations")
    for team_slug, usernames in memberships.items():
        if guard is not None:
            await guard.wait_if_needed()
        target = f"{client.owner}/{team_slug}"
        logger.info("Inviting users to team", team=team_slug, users=len(usernames))
        failed: list[str] = []
        for username in usernames:
            if dry_run:
                logger.info("[DRY RUN] Would invite user", username=username, team=team_slug)
                results.record(DRY_RUN, target, username)
                continue
            try:
                await client.add_team_member(team_slug, username)
            except (GitHubException, ValueError) as exc:
                logger.warning("Failed to invite user", username=username, team=team_slug, error=str(exc))
                failed.append(username)
                continue
            results.record(UPDATED, target, username)
        if failed:
            results.record(ERRORS, target, f"failed to invite: {', '.join(failed)}")
        results.increment("teams_processed")
    return results
