"""Reconcile GitHub authentication configuration."""

import shutil
import subprocess
from pathlib import Path

import structlog

from github_org_manager.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from github_org_manager.configuration.models import GitHubAuthentication, GitHubAuthenticationType

logger = structlog.get_logger(__name__)

GH_CLI_TIMEOUT_SECONDS = 10


def get_gh_cli_token() -> str | None:
    """Return the token the GitHub CLI is logged in with, if any.

    Returns None when ``gh`` is not installed, not logged in, or does not answer in time.
    """
    gh_path = shutil.which("gh")
    if gh_path is None:
        return None
    try:
        completed = subprocess.run(
            [gh_path, "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=GH_CLI_TIMEOUT_SECONDS,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("GitHub CLI did not return a token", error=str(exc))
        return None
    token = completed.stdout.strip()
    return token or None


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the configuration is mixed, incomplete or missing.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    if github_pat_token and (github_app_id or github_app_private_key_path or github_app_installation_id):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path and github_app_installation_id:
        return GitHubAuthenticationType.APP

    if github_app_id or github_app_private_key_path or github_app_installation_id:
        missing_settings: list[tuple[str, str, str]] = []
        if not github_app_id:
            missing_settings.append(("GitHub App ID", "--github-app-id", "GITHUB_APP_ID"))
        if not github_app_private_key_path:
            missing_settings.append(("GitHub App private key path", "--github-app-private-key-path", "GITHUB_APP_PRIVATE_KEY_PATH"))
        if not github_app_installation_id:
            missing_settings.append(("GitHub App installation ID", "--github-app-installation-id", "GITHUB_APP_INSTALLATION_ID"))
        msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(
            f"{name} (command line option {cli_name}, environment variable {env_name})" for name, cli_name, env_name in missing_settings
        )
        raise GitHubAuthenticationConfigurationUndefinedError(msg)

    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub authentication configuration provided. Set GITHUB_PAT (or GITHUB_PAT_TOKEN), "
        "provide a GitHub App configuration, or log in with 'gh auth login'."
    )


async def reconcile_github_authentication(
    github_api_url: str,
    github_pat_token: str | None = None,
    github_app_id: int | None = None,
    github_app_private_key_path: Path | None = None,
    github_app_installation_id: int | None = None,
    allow_gh_cli: bool = True,
) -> GitHubAuthentication:
    """Resolve the credentials a command runs with.

    When neither a PAT nor any GitHub App setting is given, the GitHub CLI token
    is used as a PAT (unless ``allow_gh_cli`` is False).
    """
    no_app_settings = not (github_app_id or github_app_private_key_path or github_app_installation_id)
    if not github_pat_token and no_app_settings and allow_gh_cli:
        github_pat_token = get_gh_cli_token()
        if github_pat_token:
            logger.info("Using GitHub CLI token for authentication")

    authentication_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
    return GitHubAuthentication(
        authentication_type=authentication_type,
        github_api_url=github_api_url,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
