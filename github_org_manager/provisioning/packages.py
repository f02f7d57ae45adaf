"""Deletes GitHub Packages that were published from given repositories."""

import structlog
from githubkit.exception import GitHubException

from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.github.errors import describe_error
from github_org_manager.results import DRY_RUN, ERRORS, UPDATED, RunResults

logger = structlog.get_logger(__name__)

DEFAULT_PACKAGE_TYPES: list[str] = ["maven", "container"]


def package_repository_name(package: object) -> str | None:
    """Name of the repository a package belongs to, if GitHub reports one."""
    repository = getattr(package, "repository", None)
    return getattr(repository, "name", None) if repository is not None else None


async def delete_repository_packages(
    client: GitHubClientBase,
    repositories: list[str],
    package_types: list[str] | None = None,
    dry_run: bool = True,
) -> RunResults:
    """Delete the organization's packages whose source repository is one of the given repositories."""
    results = RunResults(title="Package deletion")
    package_types = package_types or DEFAULT_PACKAGE_TYPES
    for package_type in package_types:
        logger.info("Processing package type", org=client.owner, package_type=package_type)
        try:
            packages = await client.list_organization_packages(package_type)
        except (GitHubException, ValueError) as exc:
            logger.error("Failed to list packages", org=client.owner, package_type=package_type, error=str(exc))
            results.record(ERRORS, f"{client.owner}/{package_type}", describe_error(exc))
            continue

        for repo_name in repositories:
            target = f"{client.owner}/{repo_name}"
            matched = [package for package in packages if package_repository_name(package) == repo_name]
            if not matched:
                logger.info("No packages found", repository=target, package_type=package_type)
            for package in matched:
                results.increment("packages_matched")
                if dry_run:
                    logger.info("[DRY RUN] Would delete package", repository=target, package_type=package_type, package=package.name)
                    results.record(DRY_RUN, target, f"{package_type} package {package.name}")
                    continue
                try:
                    await client.delete_organization_package(package_type, package.name)
                except (GitHubException, ValueError) as exc:
                    logger.error("Failed to delete package", repository=target, package=package.name, error=str(exc))
                    results.record(ERRORS, target, f"{package_type} package {package.name}: {describe_error(exc)}")
                    continue
                results.record(UPDATED, target, f"deleted {package_type} package {package.name}")
            logger.info("Packages matched", repository=target, package_type=package_type, total=len(matched))
    return results
