"""Makes prefixed repositories public."""

import structlog
from githubkit.exception import GitHubException

from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.github.errors import describe_error
from github_org_manager.github.ratelimit import RateLimitGuard
from github_org_manager.results import DRY_RUN, ERRORS, SKIPPED, UPDATED, RunResults

logger = structlog.get_logger(__name__)


async def make_repositories_public(
    client: GitHubClientBase,
    prefix: str,
    dry_run: bool = False,
    limit: int | None = None,
    guard: RateLimitGuard | None = None,
) -> RunResults:
    """Flip every private repository whose name starts with the prefix to public."""
    results = RunResults(title="Repository visibility")
    repositories = await client.list_organization_repositories(limit=limit)
    for repo in repositories:
        if not repo.name.startswith(prefix):
            continue
        target = f"{client.owner}/{repo.name}"
        if not repo.private:
            logger.info("Repository is already public, skipping", repository=target)
            results.record(SKIPPED, target, "already public")
            continue
        if dry_run:
            logger.info("[DRY RUN] Would make repository public", repository=target)
            results.record(DRY_RUN, target, "private -> public")
            continue
        if guard is not None:
            await guard.wait_if_needed()
        try:
            await client.update_repository_visibility("public", repo_name=repo.name)
        except (GitHubException, ValueError) as exc:
            logger.error("Failed to change visibility", repository=target, error=str(exc))
            results.record(ERRORS, target, describe_error(exc))
            continue
        logger.info("Made repository public", repository=target)
        results.record(UPDATED, target, "private -> public")
    return results
