"""Pydantic Settings model for application configuration."""

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_org_manager.configuration.models import HackathonConfig, Permission, RepositoryVisibility

DEFAULT_BRANCH_PROTECTION: dict[str, Any] = {
    "required_status_checks": None,
    "enforce_admins": False,
    "required_pull_request_reviews": {
        "required_approving_review_count": 1,
    },
    "restrictions": None,
    "require_signatures": True,
}


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    LOG_DIR: Path = Path("./logs")

    # Organization settings
    ORG: str = "finos-labs"

    # Hackathon settings
    HACKATHON_NAME: str = "learnaix-h-2025"
    HACKATHON_PREFIX: str = "learnaix-h-2025"
    TEMPLATE_REPO: str = "learnaix-h-2025"

    # Team settings
    FINOS_STAFF_TEAM: str = "finos-staff"
    FINOS_ADMINS_TEAM: str = "finos-admins"
    JUDGES_TEAM: str | None = None
    STAFF_PERMISSION: Permission = Permission.TRIAGE
    ADMINS_PERMISSION: Permission = Permission.MAINTAIN
    JUDGES_PERMISSION: Permission = Permission.TRIAGE
    TEAM_PERMISSION: Permission = Permission.ADMIN

    # Repository settings
    DEFAULT_VISIBILITY: RepositoryVisibility = RepositoryVisibility.PRIVATE
    BRANCH_PROTECTION: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_BRANCH_PROTECTION))

    # User management
    REMOVE_USER: str | None = None
    DEFAULT_ADMINS: list[str] = Field(default_factory=lambda: ["finos-admin"])

    # Maintainers settings
    FOUNDATION_ORG: str = "finos"
    FOUNDATION_ADMINS_TEAM: str = "finos-admins"
    FOUNDATION_TEAM_PREFIX: str = "finos-"
    MAINTAINERS_CONTACT_EMAIL: str = "help@finos.org"

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_API_LIMIT: int = 1000

    # Rate limit settings (percentage of remaining quota)
    RATE_LIMIT_WARN_THRESHOLD: int = 20
    RATE_LIMIT_PAUSE_THRESHOLD: int = 10

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = Field(default=None, validation_alias=AliasChoices("GITHUB_PAT_TOKEN", "GITHUB_PAT"))

    # GitHub App settings
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None

    @property
    def judges_team(self) -> str:
        """The judges team defaults to '<prefix>-judges-team'."""
        return self.JUDGES_TEAM or f"{self.HACKATHON_PREFIX}-judges-team"

    def hackathon_config(self, org: str | None = None) -> HackathonConfig:
        """Build the hackathon configuration, optionally for another organization."""
        return HackathonConfig(
            org=org or self.ORG,
            hackathon_name=self.HACKATHON_NAME,
            hackathon_prefix=self.HACKATHON_PREFIX,
            template_repo=self.TEMPLATE_REPO,
            staff_team=self.FINOS_STAFF_TEAM,
            admins_team=self.FINOS_ADMINS_TEAM,
            judges_team=self.judges_team,
            staff_permission=self.STAFF_PERMISSION,
            admins_permission=self.ADMINS_PERMISSION,
            judges_permission=self.JUDGES_PERMISSION,
            team_permission=self.TEAM_PERMISSION,
            default_visibility=self.DEFAULT_VISIBILITY,
            branch_protection=dict(self.BRANCH_PROTECTION),
            remove_user=self.REMOVE_USER,
            default_admins=list(self.DEFAULT_ADMINS),
            repository_limit=self.GITHUB_API_LIMIT,
        )


def get_settings() -> Settings:
    """Load settings from the environment and the .env file."""
    return Settings()
