"""Generates MAINTAINERS.md files from repository collaborators and teams."""

from dataclasses import dataclass

import structlog
from githubkit.exception import GitHubException

from github_org_manager.github.abc import GitHubClientBase
from github_org_manager.results import FILE_EXISTS, NO_MAINTAINERS
from github_org_manager.utils.constants import (
    EMAIL_PLACEHOLDER,
    EXCLUDED_MAINTAINER_ACCOUNTS,
    MAINTAINER_PERMISSIONS,
    MAINTAINERS_BRANCH,
    MAINTAINERS_CHEATSHEET_URL,
    MAINTAINERS_FILE_LOCATIONS,
    MAINTAINERS_FILE_PATH,
    NAME_PLACEHOLDER,
)
from github_org_manager.utils.templates import get_bundled_template, render_template

from .models import FileChange, PullRequestPlan, RepositoryContext, RepositorySkipped
from .workflow import ChangeCollector

logger = structlog.get_logger(__name__)

MAINTAINERS_TEMPLATE = "maintainers.md.j2"
PR_BODY_TEMPLATE = "maintainers_pr_body.md.j2"


def escape_table_cell(value: str) -> str:
    """Make a value safe to place in a markdown table cell."""
    return " ".join(value.split()).replace("|", "\\|")


@dataclass
class Maintainer:
    """A maintainer as listed in MAINTAINERS.md."""

    username: str
    name: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return escape_table_cell(self.name) if self.name else NAME_PLACEHOLDER

    @property
    def display_email(self) -> str:
        return escape_table_cell(self.email) if self.email else EMAIL_PLACEHOLDER


def has_maintainer_permission(collaborator: object) -> bool:
    """True if a collaborator holds the maintain or admin permission."""
    permissions = getattr(collaborator, "permissions", None)
    if permissions is None:
        return False
    return bool(getattr(permissions, "maintain", False) or getattr(permissions, "admin", False))


async def is_foundation_team(client: GitHubClientBase, team_slug: str, foundation_org: str, team_prefix: str) -> bool:
    """Foundation teams (by prefix or by existing in the foundation organization) are not maintainers."""
    if team_slug.startswith(team_prefix):
        return True
    return await client.get_team(team_slug, org=foundation_org) is not None


async def get_excluded_admins(client: GitHubClientBase, foundation_org: str, admins_team: str) -> set[str]:
    try:
        members = await client.list_team_members(admins_team, org=foundation_org)
    except GitHubException as exc:
        logger.warning("Could not list foundation admin team members", org=foundation_org, team=admins_team, error=str(exc))
        return set()
    logger.info("Found foundation admin team members to exclude", team=admins_team, count=len(members))
    return set(members)


async def find_maintainer_logins(
    client: GitHubClientBase,
    foundation_org: str,
    admins_team: str,
    team_prefix: str,
) -> list[str]:
    """Collect the logins of a repository's maintainers, in discovery order and without duplicates.

    Maintainers are collaborators with the maintain or admin permission plus the
    members of non-foundation teams holding one of those roles on the repository.
    Service accounts and foundation admins are never included.
    """
    excluded_admins = await get_excluded_admins(client, foundation_org, admins_team)
    logins: list[str] = []

    def add(login: str) -> None:
        if login in EXCLUDED_MAINTAINER_ACCOUNTS:
            logger.debug("Excluding service account", username=login)
        elif login in excluded_admins:
            logger.debug("Excluding foundation admin", username=login)
        elif login not in logins:
            logins.append(login)

    for collaborator in await client.list_collaborators():
        if has_maintainer_permission(collaborator):
            add(collaborator.login)

    for team in await client.list_repository_teams():
        if team.permission not in MAINTAINER_PERMISSIONS:
            continue
        if await is_foundation_team(client, team.slug, foundation_org, team_prefix):
            logger.debug("Skipping foundation team", team=team.slug)
            continue
        logger.info("Found maintainer team", team=team.slug, permission=team.permission)
        for member in await client.list_team_members(team.slug):
            add(member)

    logger.info("Found maintainers", repository=f"{client.owner}/{client.repo_name}", count=len(logins))
    return logins


async def fetch_maintainer_profiles(client: GitHubClientBase, logins: list[str]) -> list[Maintainer]:
    """Look up the public name and email of each maintainer."""
    maintainers: list[Maintainer] = []
    for login in logins:
        try:
            user = await client.get_user(login)
        except GitHubException as exc:
            logger.warning("Could not fetch user profile", username=login, error=str(exc))
            maintainers.append(Maintainer(username=login))
            continue
        maintainers.append(Maintainer(username=login, name=getattr(user, "name", None) or None, email=getattr(user, "email", None) or None))
    return maintainers


def render_maintainers_file(maintainers: list[Maintainer]) -> str:
    """Render MAINTAINERS.md with one table row per maintainer, sorted by username."""
    template = get_bundled_template(MAINTAINERS_TEMPLATE)
    ordered = sorted(maintainers, key=lambda maintainer: maintainer.username.lower())
    return render_template(template, maintainers=ordered, cheatsheet_url=MAINTAINERS_CHEATSHEET_URL)


async def find_existing_maintainers_file(client: GitHubClientBase, ref: str) -> str | None:
    """Path of an existing maintainers file, checking common locations then code search."""
    for path in MAINTAINERS_FILE_LOCATIONS:
        if await client.get_file(path, ref=ref) is not None:
            return path
    try:
        matches = await client.search_code_paths("filename:maintainers.md")
    except GitHubException as exc:
        # Code search has a much lower rate limit; the explicit locations above still apply.
        logger.warning("Code search for maintainers file failed", repository=f"{client.owner}/{client.repo_name}", error=str(exc))
        return None
    return matches[0] if matches else None


def build_maintainers_plan(contact_email: str, foundation_name: str = "FINOS") -> PullRequestPlan:
    body = render_template(get_bundled_template(PR_BODY_TEMPLATE), contact_email=contact_email, foundation_name=foundation_name)
    return PullRequestPlan(
        branch_name=MAINTAINERS_BRANCH,
        title="Add MAINTAINERS.md file",
        body=body,
        commit_message="Add MAINTAINERS.md file",
    )


def maintainers_change_collector(foundation_org: str, admins_team: str, team_prefix: str) -> ChangeCollector:
    """Build the change collector that proposes a MAINTAINERS.md file."""

    async def collect(context: RepositoryContext) -> list[FileChange]:
        client = context.client
        logins = await find_maintainer_logins(client, foundation_org, admins_team, team_prefix)
        if not logins:
            raise RepositorySkipped(NO_MAINTAINERS)

        existing_path = await find_existing_maintainers_file(client, context.default_branch)
        if existing_path:
            raise RepositorySkipped(FILE_EXISTS, f"found at: {existing_path}")

        content = render_maintainers_file(await fetch_maintainer_profiles(client, logins))
        sha: str | None = None
        if context.existing_pull_request is not None:
            current = await client.get_file(MAINTAINERS_FILE_PATH, ref=context.ref)
            if current is not None:
                current_content, sha = current
                if current_content == content:
                    return []
        return [FileChange(path=MAINTAINERS_FILE_PATH, content=content, sha=sha)]

    return collect
