"""Creates hackathon repositories from a template, one per team."""

import structlog
from githubkit.exception import GitHubException

from github_org_manager.configuration.models import HackathonConfig, RepositoryVisibility
from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.github.errors import describe_error
from github_org_manager.github.ratelimit import RateLimitGuard
from github_org_manager.results import CREATED, DRY_RUN, ERRORS, SKIPPED, WARNINGS, RunResults
from github_org_manager.utils.helpers import generate_repo_name, generate_team_name, unique_in_order

logger = structlog.get_logger(__name__)

PROTECTED_BRANCH = "main"


async def grant_standing_teams(
    client: GitHubClientBase,
    config: HackathonConfig,
    repo_name: str,
    dry_run: bool,
    results: RunResults,
) -> None:
    """Add the staff, admins and judges teams to a repository when those teams exist."""
    target = f"{config.org}/{repo_name}"
    for team_slug, permission in config.standing_teams:
        if await client.get_team(team_slug) is None:
            logger.warning("Team does not exist, skipping", team=team_slug, repository=target)
            continue
        if dry_run:
            logger.info("[DRY RUN] Would add team to repository", team=team_slug, permission=permission.value, repository=target)
            continue
        try:
            await client.add_team_to_repository(team_slug, permission.value, repo_name=repo_name)
        except (GitHubException, ValueError) as exc:
            logger.error("Failed to add team to repository", team=team_slug, repository=target, error=str(exc))
            results.record(WARNINGS, target, f"could not add team {team_slug}: {describe_error(exc)}")


async def provision_repository(
    client: GitHubClientBase,
    config: HackathonConfig,
    team_name: str,
    remove_user: str | None,
    results: RunResults,
    dry_run: bool = True,
    skip_existing: bool = True,
) -> None:
    """Create one hackathon repository with its team, protection and standing teams.

    Raises GitHub errors from the steps that are required (repository creation,
    team creation and the team grant); the caller records them.
    """
    repo_name = generate_repo_name(team_name, config.hackathon_prefix)
    team_slug = generate_team_name(repo_name)
    target = f"{config.org}/{repo_name}"
    logger.info("Processing hackathon team", team_name=team_name, repository=target, team=team_slug)

    exists = await client.repository_exists(repo_name)
    if exists and skip_existing:
        logger.warning("Repository already exists, skipping", repository=target)
        results.record(SKIPPED, target, "already exists")
        return
    if exists:
        logger.warning("Repository already exists, continuing anyway", repository=target)

    team_exists = await client.get_team(team_slug) is not None

    if dry_run:
        planned: list[str] = []
        if not exists:
            planned.append(f"create from template {config.org}/{config.template_repo} as {config.default_visibility.value}")
        planned.append(f"protect branch {PROTECTED_BRANCH}")
        if not team_exists:
            planned.append(f"create team {team_slug}")
        planned.append(f"grant {team_slug} {config.team_permission.value}")
        if remove_user:
            planned.append(f"remove {remove_user} from {team_slug}")
        logger.info("[DRY RUN] Would provision repository", repository=target, actions=planned)
        await grant_standing_teams(client, config, repo_name, dry_run, results)
        results.record(DRY_RUN, target, "; ".join(planned))
        return

    if not exists:
        await client.create_repository_from_template(
            config.template_repo,
            repo_name,
            private=config.default_visibility != RepositoryVisibility.PUBLIC,
        )
        if config.default_visibility == RepositoryVisibility.INTERNAL:
            await client.update_repository_visibility("internal", repo_name=repo_name)

    try:
        await client.set_branch_protection(PROTECTED_BRANCH, config.branch_protection, repo_name=repo_name)
    except (GitHubException, ValueError) as exc:
        logger.warning("Could not apply branch protection (branch may not exist yet)", repository=target, error=str(exc))
        results.record(WARNINGS, target, f"branch protection not applied: {describe_error(exc)}")

    if team_exists:
        logger.info("Team already exists", team=team_slug)
    else:
        created_team = await client.create_team(team_slug, privacy="closed")
        team_slug = getattr(created_team, "slug", None) or team_slug

    await client.add_team_to_repository(team_slug, config.team_permission.value, repo_name=repo_name)
    await grant_standing_teams(client, config, repo_name, dry_run, results)

    if remove_user:
        try:
            await client.remove_team_member(team_slug, remove_user)
        except (GitHubException, ValueError) as exc:
            logger.warning("Could not remove user from team (may not be a member)", team=team_slug, username=remove_user, error=str(exc))

    logger.info("Completed processing repository", repository=target)
    results.record(CREATED, target, f"team {team_slug}")


async def create_hackathon_repositories(
    client: GitHubClientBase,
    config: HackathonConfig,
    team_names: list[str],
    remove_user: str | None = None,
    dry_run: bool = True,
    skip_existing: bool = True,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Provision a repository for each hackathon team name.

    Duplicate team names are processed once. A failure on one repository is
    recorded and the loop moves on to the next.
    """
    results = RunResults(title="Repository creation")
    team_names = unique_in_order(team_names)
    logger.info(
        "Starting repository creation",
        hackathon=config.hackathon_name,
        template=f"{config.org}/{config.template_repo}",
        teams=len(team_names),
        dry_run=dry_run,
    )
    for team_name in team_names:
        if guard is not None:
            await guard.wait_if_needed()
        repo_name = generate_repo_name(team_name, config.hackathon_prefix)
        try:
            await provision_repository(client, config, team_name, remove_user, results, dry_run=dry_run, skip_existing=skip_existing)
        except (GitHubException, ValueError) as exc:
            logger.error("Failed to provision repository", repository=f"{config.org}/{repo_name}", error=str(exc))
            results.record(ERRORS, f"{config.org}/{repo_name}", describe_error(exc))
    return results
