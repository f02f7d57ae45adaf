"""Proposes file changes to repositories through pull requests.

Each repository goes through the same sequence: access check, open pull
request check, stale branch cleanup, change collection, then branch creation,
commits and the pull request itself. The branch name is fixed per workflow, so
a repository never has more than one open pull request for it. When a step
after branch creation fails, the branch is deleted again before the error is
recorded, and processing moves on to the next repository.
"""

from typing import Awaitable, Callable

import structlog
from githubkit.exception import GitHubException

from github_org_manager.configuration.exceptions import PreflightCheckError
from github_org_manager.configuration.preflight import AuthenticatedIdentity
from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.github.errors import describe_error
from github_org_manager.github.ratelimit import RateLimitGuard
from github_org_manager.results import (
    CREATED,
    DRY_RUN,
    ERRORS,
    INSUFFICIENT_ACCESS,
    NO_CHANGES,
    SKIPPED,
    UPDATED,
    RunResults,
)
from github_org_manager.utils.github import build_head_reference, split_repository_in_configuration
from github_org_manager.utils.helpers import build_commit_message

from .models import FileChange, PullRequestPlan, RepositoryContext, RepositorySkipped

logger = structlog.get_logger(__name__)

ChangeCollector = Callable[[RepositoryContext], Awaitable[list[FileChange]]]


class PullRequestWorkflow:
    """Runs a change collector over repositories and opens one pull request per changed repository."""

    def __init__(
        self,
        client: GitHubClientBase,
        plan: PullRequestPlan,
        collect_changes: ChangeCollector,
        title: str,
        dry_run: bool = True,
        skip_existing_pr: bool = True,
        identity: AuthenticatedIdentity | None = None,
        guard: RateLimitGuard | None = None,
        repository_limit: int | None = None,
    ) -> None:
        self.client = client
        self.plan = plan
        self.collect_changes = collect_changes
        self.dry_run = dry_run
        self.skip_existing_pr = skip_existing_pr
        self.identity = identity
        self.guard = guard
        self.repository_limit = repository_limit
        self.results = RunResults(title=title)
        self.results.counters["prs_created"] = 0

    def commit_message_for(self, change: FileChange) -> str:
        """Commit message for a change, with a DCO sign-off when the author is known."""
        subject = change.message or self.plan.commit_message
        if self.identity is None:
            return subject
        return build_commit_message(subject, self.identity.name or self.identity.login, self.identity.email)

    async def run(self, orgs: list[str], repo: str | None = None) -> RunResults:
        """Process a single 'org/repo', or every repository of each organization.

        Raises:
            ValueError: If ``repo`` is not in 'org/repo' form.
            PreflightCheckError: If ``repo`` does not exist or cannot be read.
        """
        if repo:
            org, repo_name = await split_repository_in_configuration(repo)
            try:
                exists = await self.client.with_repository(repo_name, owner=org).repository_exists()
            except GitHubException as exc:
                raise PreflightCheckError(f"Repository {org}/{repo_name} is not accessible: {exc}") from exc
            if not exists:
                raise PreflightCheckError(f"Repository {org}/{repo_name} does not exist or is not accessible.")
            logger.info("Processing single repository", repository=f"{org}/{repo_name}")
            await self._wait_for_rate_limit()
            await self.process_repository(org, repo_name)
            return self.results

        for org in orgs:
            logger.info("Processing organization", org=org)
            org_client = self.client.with_repository(None, owner=org)
            repositories = await org_client.list_organization_repositories(limit=self.repository_limit)
            if not repositories:
                logger.warning("No repositories found in organization", org=org)
                continue
            for repository in repositories:
                await self._wait_for_rate_limit()
                await self.process_repository(org, repository.name)
        return self.results

    async def _wait_for_rate_limit(self) -> None:
        if self.guard is not None:
            await self.guard.wait_if_needed()

    async def process_repository(self, org: str, repo_name: str) -> None:
        """Run the full sequence for one repository and record the outcome."""
        target = f"{org}/{repo_name}"
        logger.info("Processing repository", repository=target)
        repo_client = self.client.with_repository(repo_name, owner=org)

        try:
            repository = await repo_client.get_repository()
        except (GitHubException, ValueError) as exc:
            logger.error("Insufficient access to repository, skipping", repository=target, error=str(exc))
            self.results.record(INSUFFICIENT_ACCESS, target, describe_error(exc))
            return
        default_branch = getattr(repository, "default_branch", None)
        if not default_branch:
            logger.error("Repository has no default branch, skipping", repository=target)
            self.results.record(INSUFFICIENT_ACCESS, target, "no default branch")
            return

        try:
            await self._update_repository(repo_client, org, repo_name, default_branch)
        except RepositorySkipped as skipped:
            logger.warning("Skipping repository", repository=target, reason=skipped.bucket, detail=skipped.detail)
            self.results.record(skipped.bucket, target, skipped.detail)
        except (GitHubException, ValueError) as exc:
            logger.error("Failed to update repository", repository=target, error=str(exc))
            self.results.record(ERRORS, target, describe_error(exc))

    async def _update_repository(self, repo_client: GitHubClientBase, org: str, repo_name: str, default_branch: str) -> None:
        target = f"{org}/{repo_name}"
        branch_name = self.plan.branch_name

        open_pull_requests = await repo_client.list_open_pull_requests(build_head_reference(org, branch_name))
        existing_pull_request = open_pull_requests[0] if open_pull_requests else None
        if existing_pull_request is not None:
            if self.skip_existing_pr:
                raise RepositorySkipped(SKIPPED, "open pull request already exists")
            logger.warning("Open pull request already exists, updating its branch", repository=target, branch=branch_name)
        elif await repo_client.branch_exists(branch_name):
            if self.dry_run:
                logger.info("[DRY RUN] Would delete stale branch", repository=target, branch=branch_name)
            else:
                logger.warning("Branch exists without an open pull request, deleting it", repository=target, branch=branch_name)
                await repo_client.delete_branch(branch_name)

        context = RepositoryContext(
            client=repo_client,
            org=org,
            repo_name=repo_name,
            default_branch=default_branch,
            ref=branch_name if existing_pull_request is not None else default_branch,
            existing_pull_request=existing_pull_request,
        )
        changes = await self.collect_changes(context)
        if not changes:
            logger.info("No changes needed", repository=target)
            self.results.record(NO_CHANGES, target)
            return

        changed_paths = ", ".join(change.path for change in changes)
        if self.dry_run:
            logger.info("[DRY RUN] Would update files and open a pull request", repository=target, files=changed_paths, branch=branch_name)
            self.results.record(DRY_RUN, target, changed_paths)
            return

        if existing_pull_request is not None:
            await self._commit_changes(repo_client, changes)
            self.results.increment("prs_updated")
            self.results.record(UPDATED, target, f"{changed_paths} -> {existing_pull_request.html_url}")
            return

        branch_created = False
        try:
            base_sha = await repo_client.get_branch_sha(default_branch)
            await repo_client.create_branch(branch_name, base_sha)
            branch_created = True
            await self._commit_changes(repo_client, changes)
            pull_request = await repo_client.create_pull_request(
                title=self.plan.title,
                head=branch_name,
                base=default_branch,
                body=self.plan.body,
            )
        except (GitHubException, ValueError):
            if branch_created:
                await self._delete_branch_after_failure(repo_client, target)
            raise

        self.results.increment("prs_created")
        self.results.record(CREATED, target, pull_request.html_url)

    async def _commit_changes(self, repo_client: GitHubClientBase, changes: list[FileChange]) -> None:
        for change in changes:
            await repo_client.create_or_update_file(
                change.path,
                change.content,
                self.commit_message_for(change),
                branch=self.plan.branch_name,
                sha=change.sha,
            )

    async def _delete_branch_after_failure(self, repo_client: GitHubClientBase, target: str) -> None:
        logger.info("Cleaning up branch after failure", repository=target, branch=self.plan.branch_name)
        try:
            await repo_client.delete_branch(self.plan.branch_name)
        except (GitHubException, ValueError) as exc:
            logger.error("Could not delete branch after failure", repository=target, branch=self.plan.branch_name, error=str(exc))
