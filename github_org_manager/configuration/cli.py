"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import structlog
import typer
from dotenv import load_dotenv
from githubkit.exception import GitHubException
from typer import Option
from typing_extensions import Annotated

from github_org_manager.configuration.env import Settings, get_settings
from github_org_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    PreflightCheckError,
    TeamNotFoundError,
)
from github_org_manager.configuration.models import GitHubAuthenticationType, Permission
from github_org_manager.configuration.preflight import run_preflight_checks
from github_org_manager.configuration.reconcile import reconcile_github_authentication
from github_org_manager.file_updates.badges import (
    LABS_BADGE_PLAN,
    MATURITY_BADGE_PLAN,
    collect_labs_badge_changes,
    collect_maturity_badge_changes,
)
from github_org_manager.file_updates.maintainers import build_maintainers_plan, maintainers_change_collector
from github_org_manager.file_updates.models import PullRequestPlan
from github_org_manager.file_updates.workflow import ChangeCollector, PullRequestWorkflow
from github_org_manager.github.adapter import GitHubKitAdapter
from github_org_manager.github.ratelimit import RateLimitGuard
from github_org_manager.provisioning.access import (
    add_admins_to_repositories,
    add_team_to_repositories,
    grant_teams_to_repositories,
    invite_team_members,
)
from github_org_manager.provisioning.packages import DEFAULT_PACKAGE_TYPES, delete_repository_packages
from github_org_manager.provisioning.repositories import create_hackathon_repositories
from github_org_manager.provisioning.visibility import make_repositories_public
from github_org_manager.results import RunResults
from github_org_manager.utils.helpers import split_comma_separated
from github_org_manager.utils.logs import configure_logging
from github_org_manager.utils.yaml import load_hackathon_teams, load_team_memberships

load_dotenv()

logger = structlog.get_logger(__name__)

typer_app = typer.Typer(
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Automate administrative operations against a GitHub organization.",
)

T = TypeVar("T")

# Errors that stop a command before (or instead of) processing any repository.
FATAL_ERRORS = (
    GitHubAuthenticationConfigurationUndefinedError,
    PreflightCheckError,
    TeamNotFoundError,
    FileNotFoundError,
    ValueError,
)


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    org: Annotated[str | None, Option(envvar="ORG", help="GitHub organization to operate on.")] = None,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_pat_token: Annotated[
        str | None, Option(envvar=["GITHUB_PAT_TOKEN", "GITHUB_PAT"], help="GitHub Personal Access Token.", show_default=False)
    ] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = False,
) -> None:
    """Store global options and settings for the command being run."""
    settings = get_settings()
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["org"] = org or settings.ORG
    ctx.obj["github_api_url"] = github_api_url or settings.GITHUB_API_URL
    ctx.obj["github_pat_token"] = github_pat_token or settings.GITHUB_PAT_TOKEN
    ctx.obj["github_app_id"] = github_app_id or settings.GITHUB_APP_ID
    ctx.obj["github_app_private_key_path"] = github_app_private_key_path or settings.GITHUB_APP_PRIVATE_KEY_PATH
    ctx.obj["github_app_installation_id"] = github_app_installation_id or settings.GITHUB_APP_INSTALLATION_ID
    ctx.obj["debug"] = debug or settings.DEBUG


def start_command(ctx: typer.Context, command_name: str) -> Settings:
    """Set up logging for a command and return the settings."""
    settings: Settings = ctx.obj["settings"]
    log_path = configure_logging(command_name, settings.LOG_DIR, debug=ctx.obj["debug"])
    logger.info("Starting command", command=command_name, org=ctx.obj["org"], log_file=str(log_path))
    return settings


async def connect(ctx: typer.Context, org: str | None = None, require_pat: bool = False) -> GitHubKitAdapter:
    """Reconcile credentials and build an adapter for the organization."""
    authentication = await reconcile_github_authentication(
        github_api_url=ctx.obj["github_api_url"],
        github_pat_token=ctx.obj["github_pat_token"],
        github_app_id=ctx.obj["github_app_id"],
        github_app_private_key_path=ctx.obj["github_app_private_key_path"],
        github_app_installation_id=ctx.obj["github_app_installation_id"],
        allow_gh_cli=not require_pat,
    )
    if require_pat and authentication.authentication_type != GitHubAuthenticationType.PAT:
        raise GitHubAuthenticationConfigurationUndefinedError("This command requires a Personal Access Token. Set GITHUB_PAT (or GITHUB_PAT_TOKEN).")
    return await GitHubKitAdapter.create(org or ctx.obj["org"], authentication)


def build_guard(client: GitHubKitAdapter, settings: Settings) -> RateLimitGuard:
    return RateLimitGuard(
        client,
        warn_threshold=settings.RATE_LIMIT_WARN_THRESHOLD,
        pause_threshold=settings.RATE_LIMIT_PAUSE_THRESHOLD,
    )


def run_async(coroutine: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning configuration-time failures into exit code 1."""
    try:
        return asyncio.run(coroutine)
    except FATAL_ERRORS as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except GitHubException as exc:
        typer.echo(f"GitHub API error: {exc}", err=True)
        raise typer.Exit(1) from exc


def finish(results: RunResults, dry_run: bool = False) -> None:
    """Print the summary and exit with code 1 when any repository failed."""
    typer.echo("")
    if dry_run:
        typer.echo("DRY RUN - no changes were made")
    results.print_summary()
    if results.has_errors:
        sys.exit(1)


@typer_app.command(name="show-config")
def show_config_cli(ctx: typer.Context) -> None:
    """Print the effective configuration (credentials are masked)."""
    settings: Settings = ctx.obj["settings"]
    config = settings.hackathon_config(ctx.obj["org"])
    typer.echo(f"Organization:        {config.org}")
    typer.echo(f"Hackathon:           {config.hackathon_name}")
    typer.echo(f"Repository prefix:   {config.hackathon_prefix}")
    typer.echo(f"Template repository: {config.org}/{config.template_repo}")
    typer.echo(f"Default visibility:  {config.default_visibility.value}")
    typer.echo(f"Team permission:     {config.team_permission.value}")
    for team_slug, permission in config.standing_teams:
        typer.echo(f"Standing team:       {team_slug} ({permission.value})")
    typer.echo(f"Remove user:         {config.remove_user or '(authenticated user)'}")
    typer.echo(f"Default admins:      {', '.join(config.default_admins) or '(none)'}")
    typer.echo(f"Repository limit:    {config.repository_limit}")
    typer.echo(f"Log directory:       {settings.LOG_DIR}")
    typer.echo(f"GitHub API URL:      {ctx.obj['github_api_url']}")
    if ctx.obj["github_pat_token"]:
        authentication = "personal access token"
    elif ctx.obj["github_app_id"]:
        authentication = f"GitHub App {ctx.obj['github_app_id']}"
    else:
        authentication = "GitHub CLI token (if logged in)"
    typer.echo(f"Authentication:      {authentication}")


@typer_app.command(name="create-repos")
def create_repos_cli(
    ctx: typer.Context,
    teams_file: Annotated[Path | None, Option(envvar="TEAMS_FILE", help="YAML file with a 'teams' list of hackathon team names.")] = None,
    team_name: Annotated[list[str] | None, Option("--team-name", help="Hackathon team name (repeatable).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = True,
    skip_existing: Annotated[bool, Option("--skip-existing/--no-skip-existing", help="Skip repositories that already exist.")] = True,
    remove_user: Annotated[str | None, Option(help="User removed from each new team (defaults to the authenticated user).")] = None,
) -> None:
    """Create a repository and a team from the template for each hackathon team."""
    settings = start_command(ctx, "create-repos")
    config = settings.hackathon_config(ctx.obj["org"])

    team_names: list[str] = list(team_name or [])
    if teams_file is not None:
        try:
            team_names.extend(load_hackathon_teams(teams_file).teams)
        except (FileNotFoundError, ValueError) as exc:
            typer.echo(f"Error loading teams file: {exc}", err=True)
            raise typer.Exit(1) from exc
    if not team_names:
        typer.echo("No team names given. Use --teams-file or --team-name.", err=True)
        raise typer.Exit(1)

    async def _run() -> RunResults:
        client = await connect(ctx)
        identity = await run_preflight_checks(client, [config.org], template_repo=config.template_repo)
        return await create_hackathon_repositories(
            client,
            config,
            team_names,
            remove_user=remove_user or config.remove_user or identity.login,
            dry_run=dry_run,
            skip_existing=skip_existing,
            guard=build_guard(client, settings),
        )

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="add-teams")
def add_teams_cli(
    ctx: typer.Context,
    teams: Annotated[str | None, Option(help="Comma-separated team slugs (default: the admins and staff teams).")] = None,
    repo_filter: Annotated[str | None, Option("--filter", help="Only repositories whose name contains this (default: the hackathon prefix).")] = None,
    permission: Annotated[Permission, Option(help="Role to grant.")] = Permission.ADMIN,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = False,
) -> None:
    """Ensure teams have a role on every matching repository."""
    settings = start_command(ctx, "add-teams")
    team_slugs = split_comma_separated(teams) or [settings.FINOS_ADMINS_TEAM, settings.FINOS_STAFF_TEAM]

    async def _run() -> RunResults:
        client = await connect(ctx)
        await run_preflight_checks(client, [client.owner])
        return await grant_teams_to_repositories(
            client,
            team_slugs,
            repo_filter or settings.HACKATHON_PREFIX,
            permission.value,
            dry_run=dry_run,
            limit=settings.GITHUB_API_LIMIT,
            guard=build_guard(client, settings),
        )

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="add-team-to-repo")
def add_team_to_repo_cli(
    ctx: typer.Context,
    team: Annotated[str | None, Option(help="Team slug (default: the judges team).")] = None,
    role: Annotated[Permission | None, Option(help="Role to grant (default: the judges permission).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = False,
) -> None:
    """Give one team a role on every repository containing the hackathon prefix."""
    settings = start_command(ctx, "add-team-to-repo")
    team_slug = team or settings.judges_team
    permission = role or settings.JUDGES_PERMISSION

    async def _run() -> RunResults:
        client = await connect(ctx)
        await run_preflight_checks(client, [client.owner])
        return await add_team_to_repositories(
            client,
            team_slug,
            permission.value,
            settings.HACKATHON_PREFIX,
            dry_run=dry_run,
            limit=settings.GITHUB_API_LIMIT,
            guard=build_guard(client, settings),
        )

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="add-admins")
def add_admins_cli(
    ctx: typer.Context,
    users: Annotated[str | None, Option(help="Comma-separated users to make admins (default: DEFAULT_ADMINS).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = False,
) -> None:
    """Grant users the admin role on every '<prefix>-' repository."""
    settings = start_command(ctx, "add-admins")
    usernames = split_comma_separated(users) or list(settings.DEFAULT_ADMINS)

    async def _run() -> RunResults:
        client = await connect(ctx)
        await run_preflight_checks(client, [client.owner])
        return await add_admins_to_repositories(
            client,
            usernames,
            settings.HACKATHON_PREFIX,
            dry_run=dry_run,
            limit=settings.GITHUB_API_LIMIT,
            guard=build_guard(client, settings),
        )

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="add-users")
def add_users_cli(
    ctx: typer.Context,
    members_file: Annotated[Path, Option(envvar="MEMBERS_FILE", help="YAML file with a 'memberships' mapping of team slug to users.")],
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = False,
) -> None:
    """Invite users into their hackathon teams."""
    settings = start_command(ctx, "add-users")
    try:
        memberships = load_team_memberships(members_file).memberships
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Error loading members file: {exc}", err=True)
        raise typer.Exit(1) from exc

    async def _run() -> RunResults:
        client = await connect(ctx)
        await run_preflight_checks(client, [client.owner])
        return await invite_team_members(client, memberships, dry_run=dry_run, guard=build_guard(client, settings))

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="make-repos-public")
def make_repos_public_cli(
    ctx: typer.Context,
    prefix: Annotated[str | None, Option(help="Repository name prefix (default: the hackathon prefix).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = False,
) -> None:
    """Make every private repository with the prefix public."""
    settings = start_command(ctx, "make-repos-public")

    async def _run() -> RunResults:
        client = await connect(ctx)
        await run_preflight_checks(client, [client.owner])
        return await make_repositories_public(
            client,
            prefix or settings.HACKATHON_PREFIX,
            dry_run=dry_run,
            limit=settings.GITHUB_API_LIMIT,
            guard=build_guard(client, settings),
        )

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="delete-packages")
def delete_packages_cli(
    ctx: typer.Context,
    repo: Annotated[list[str], Option("--repo", help="Repository whose packages are deleted (repeatable).")],
    package_type: Annotated[list[str] | None, Option("--package-type", help="Package type (repeatable, default: maven and container).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Only list the packages that would be deleted.")] = True,
) -> None:
    """Delete the organization's packages published from the given repositories (requires a PAT)."""
    start_command(ctx, "delete-packages")

    async def _run() -> RunResults:
        client = await connect(ctx, require_pat=True)
        return await delete_repository_packages(client, list(repo), package_types=list(package_type or DEFAULT_PACKAGE_TYPES), dry_run=dry_run)

    finish(run_async(_run()), dry_run=dry_run)


def run_pull_request_workflow(
    ctx: typer.Context,
    command_name: str,
    title: str,
    plan: PullRequestPlan,
    collect_changes: ChangeCollector,
    orgs: list[str] | None,
    repo: str | None,
    dry_run: bool,
    skip_existing_pr: bool,
) -> None:
    """Run a pull-request based file update over a single repository or whole organizations."""
    settings = start_command(ctx, command_name)
    target_orgs = orgs or [ctx.obj["org"]]

    async def _run() -> RunResults:
        client = await connect(ctx)
        identity = await run_preflight_checks(client, [] if repo else target_orgs)
        workflow = PullRequestWorkflow(
            client,
            plan,
            collect_changes,
            title=title,
            dry_run=dry_run,
            skip_existing_pr=skip_existing_pr,
            identity=identity,
            guard=build_guard(client, settings),
            repository_limit=settings.GITHUB_API_LIMIT,
        )
        return await workflow.run(target_orgs, repo=repo)

    finish(run_async(_run()), dry_run=dry_run)


@typer_app.command(name="update-labs-badges")
def update_labs_badges_cli(
    ctx: typer.Context,
    org: Annotated[list[str] | None, Option("--org", help="Organization to process (repeatable, default: the global organization).")] = None,
    repo: Annotated[str | None, Option(help="Process a single repository (format: org/repo-name).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = True,
    skip_existing_pr: Annotated[bool, Option("--skip-existing-pr/--no-skip-existing-pr", help="Skip repositories with an open PR.")] = True,
) -> None:
    """Open PRs that wrap the Labs badge in a link to the Labs maturity page."""
    run_pull_request_workflow(
        ctx, "update-labs-badges", "Labs badge update", LABS_BADGE_PLAN, collect_labs_badge_changes, org, repo, dry_run, skip_existing_pr
    )


@typer_app.command(name="update-maturity-badges")
def update_maturity_badges_cli(
    ctx: typer.Context,
    org: Annotated[list[str] | None, Option("--org", help="Organization to process (repeatable, default: the global organization).")] = None,
    repo: Annotated[str | None, Option(help="Process a single repository (format: org/repo-name).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = True,
    skip_existing_pr: Annotated[bool, Option("--skip-existing-pr/--no-skip-existing-pr", help="Skip repositories with an open PR.")] = True,
) -> None:
    """Open PRs that point stage badges at the project lifecycle documentation."""
    run_pull_request_workflow(
        ctx,
        "update-maturity-badges",
        "Maturity badge update",
        MATURITY_BADGE_PLAN,
        collect_maturity_badge_changes,
        org,
        repo,
        dry_run,
        skip_existing_pr,
    )


@typer_app.command(name="add-maintainers-file")
def add_maintainers_file_cli(
    ctx: typer.Context,
    org: Annotated[list[str] | None, Option("--org", help="Organization to process (repeatable, default: the global organization).")] = None,
    repo: Annotated[str | None, Option(help="Process a single repository (format: org/repo-name).")] = None,
    dry_run: Annotated[bool, Option("--dry-run/--no-dry-run", help="Show what would be done without making changes.")] = True,
    skip_existing_pr: Annotated[bool, Option("--skip-existing-pr/--no-skip-existing-pr", help="Skip repositories with an open PR.")] = True,
) -> None:
    """Open PRs that add a MAINTAINERS.md generated from collaborators and teams."""
    settings: Settings = ctx.obj["settings"]
    run_pull_request_workflow(
        ctx,
        "add-maintainers-file",
        "MAINTAINERS.md creation",
        build_maintainers_plan(settings.MAINTAINERS_CONTACT_EMAIL),
        maintainers_change_collector(settings.FOUNDATION_ORG, settings.FOUNDATION_ADMINS_TEAM, settings.FOUNDATION_TEAM_PREFIX),
        org,
        repo,
        dry_run,
        skip_existing_pr,
    )
