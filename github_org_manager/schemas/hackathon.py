"""Pydantic schemas for the hackathon input files."""

from pydantic import BaseModel, Field, field_validator


class HackathonTeamsModel(BaseModel):
    """Team names that each get a repository and a GitHub team."""

    teams: list[str]

    @field_validator("teams")
    @classmethod
    def strip_team_names(cls, teams: list[str]) -> list[str]:
        """Drop surrounding whitespace and empty entries."""
        return [team.strip() for team in teams if team and team.strip()]


class TeamMembershipsModel(BaseModel):
    """Users to invite, keyed by team slug."""

    memberships: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("memberships")
    @classmethod
    def normalize_team_slugs(cls, memberships: dict[str, list[str]]) -> dict[str, list[str]]:
        """GitHub team slugs are lowercase."""
        return {team.strip().lower(): [user.strip() for user in users if user and user.strip()] for team, users in memberships.items()}
