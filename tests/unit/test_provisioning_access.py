"""Unit tests for granting access to hackathon repositories."""

from types import SimpleNamespace
from typing import Callable
from unittest.mock import MagicMock

import pytest
from githubkit.exception import RequestFailed

from github_org_manager.configuration.exceptions import TeamNotFoundError
from github_org_manager.provisioning.access import (
    add_admins_to_repositories,
    add_team_to_repositories,
    grant_teams_to_repositories,
    invite_team_members,
)
from github_org_manager.results import DRY_RUN, ERRORS, SKIPPED, UPDATED


@pytest.fixture
def org_client(fake_client: MagicMock) -> MagicMock:
    fake_client.owner = "finos-labs"
    fake_client.repo_name = None
    fake_client.list_organization_repositories.return_value = [
        SimpleNamespace(name="hack-2025-rocket"),
        SimpleNamespace(name="other-repo"),
        SimpleNamespace(name="old-hack-2025-data"),
    ]
    fake_client.get_team.side_effect = lambda slug, org=None: SimpleNamespace(slug=slug)
    return fake_client


@pytest.mark.asyncio
async def test_grant_teams_to_matching_repositories(org_client: MagicMock) -> None:
    permissions = {("finos-admins", "hack-2025-rocket"): "admin"}
    org_client.get_team_repository_permission.side_effect = lambda slug, repo_name=None: permissions.get((slug, repo_name))

    results = await grant_teams_to_repositories(org_client, ["finos-admins", "finos-staff"], "hack-2025", "admin", limit=100)

    org_client.list_organization_repositories.assert_awaited_once_with(limit=100)
    assert results.entries(SKIPPED) == ["finos-labs/hack-2025-rocket (finos-admins already admin)"]
    assert results.entries(UPDATED) == [
        "finos-labs/hack-2025-rocket (finos-staff: none -> admin)",
        "finos-labs/old-hack-2025-data (finos-admins: none -> admin)",
        "finos-labs/old-hack-2025-data (finos-staff: none -> admin)",
    ]
    assert org_client.add_team_to_repository.await_count == 3


@pytest.mark.asyncio
async def test_grant_teams_changes_a_different_role(org_client: MagicMock) -> None:
    org_client.get_team_repository_permission.return_value = "read"

    results = await grant_teams_to_repositories(org_client, ["finos-staff"], "rocket", "triage")

    assert results.entries(UPDATED) == ["finos-labs/hack-2025-rocket (finos-staff: read -> triage)"]
    org_client.add_team_to_repository.assert_awaited_once_with("finos-staff", "triage", repo_name="hack-2025-rocket")


@pytest.mark.asyncio
async def test_grant_teams_dry_run(org_client: MagicMock) -> None:
    org_client.get_team_repository_permission.return_value = None

    results = await grant_teams_to_repositories(org_client, ["finos-staff"], "rocket", "admin", dry_run=True)

    assert results.entries(DRY_RUN) == ["finos-labs/hack-2025-rocket (finos-staff: none -> admin)"]
    org_client.add_team_to_repository.assert_not_awaited()


@pytest.mark.asyncio
async def test_grant_teams_skips_missing_team(org_client: MagicMock) -> None:
    org_client.get_team.side_effect = lambda slug, org=None: None if slug == "ghost-team" else SimpleNamespace(slug=slug)
    org_client.get_team_repository_permission.return_value = None

    results = await grant_teams_to_repositories(org_client, ["ghost-team", "finos-staff"], "rocket", "admin")

    assert results.entries(SKIPPED) == ["finos-labs/ghost-team (team does not exist)"]
    assert results.count(UPDATED) == 1


@pytest.mark.asyncio
async def test_grant_teams_records_failures(org_client: MagicMock, request_failed: Callable[..., RequestFailed]) -> None:
    org_client.get_team_repository_permission.return_value = None
    org_client.add_team_to_repository.side_effect = request_failed(403)

    results = await grant_teams_to_repositories(org_client, ["finos-staff"], "hack-2025", "admin")

    assert results.count(ERRORS) == 2
    assert results.has_errors


@pytest.mark.asyncio
async def test_add_team_to_repositories_requires_team(org_client: MagicMock) -> None:
    org_client.get_team.side_effect = None
    org_client.get_team.return_value = None

    with pytest.raises(TeamNotFoundError, match="Team 'judges' does not exist in organization 'finos-labs'"):
        await add_team_to_repositories(org_client, "judges", "triage", "hack-2025")


@pytest.mark.asyncio
async def test_add_team_to_repositories(org_client: MagicMock) -> None:
    org_client.get_team_repository_permission.return_value = None

    results = await add_team_to_repositories(org_client, "judges", "triage", "hack-2025")

    assert results.count(UPDATED) == 2


@pytest.mark.asyncio
async def test_add_admins_only_to_prefixed_repositories(org_client: MagicMock) -> None:
    results = await add_admins_to_repositories(org_client, ["finos-admin", "lead"], "hack-2025")

    assert results.entries(UPDATED) == [
        "finos-labs/hack-2025-rocket (finos-admin as admin)",
        "finos-labs/hack-2025-rocket (lead as admin)",
    ]
    org_client.add_collaborator.assert_any_await("lead", "admin", repo_name="hack-2025-rocket")


@pytest.mark.asyncio
async def test_add_admins_dry_run(org_client: MagicMock) -> None:
    results = await add_admins_to_repositories(org_client, ["finos-admin"], "hack-2025", dry_run=True)

    assert results.count(DRY_RUN) == 1
    org_client.add_collaborator.assert_not_awaited()


@pytest.mark.asyncio
async def test_invite_team_members_collects_failures(org_client: MagicMock, request_failed: Callable[..., RequestFailed]) -> None:
    def add_team_member(team_slug: str, username: str) -> None:
        if username == "ghost":
            raise request_failed(422)

    org_client.add_team_member.side_effect = add_team_member

    results = await invite_team_members(org_client, {"rocket-team": ["alice", "ghost", "bob"], "data-team": ["carol"]})

    assert results.entries(UPDATED) == [
        "finos-labs/rocket-team (alice)",
        "finos-labs/rocket-team (bob)",
        "finos-labs/data-team (carol)",
    ]
    assert results.entries(ERRORS) == ["finos-labs/rocket-team (failed to invite: ghost)"]
    assert results.counters["teams_processed"] == 2


@pytest.mark.asyncio
async def test_invite_team_members_dry_run(org_client: MagicMock) -> None:
    results = await invite_team_members(org_client, {"rocket-team": ["alice"]}, dry_run=True)

    assert results.entries(DRY_RUN) == ["finos-labs/rocket-team (alice)"]
    org_client.add_team_member.assert_not_awaited()
