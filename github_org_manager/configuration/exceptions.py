"""Contains exceptions raised when reconciling application configuration."""


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when the GitHub authentication configuration is undefined."""

    pass


class PreflightCheckError(Exception):
    """Raised when a check that must pass before any mutation fails (auth, organization, template)."""

    pass


class TeamNotFoundError(Exception):
    """Raised when a team a command cannot run without does not exist."""

    def __init__(self, org: str, team_slug: str) -> None:
        super().__init__(f"Team '{team_slug}' does not exist in organization '{org}'.")
        self.org = org
        self.team_slug = team_slug
