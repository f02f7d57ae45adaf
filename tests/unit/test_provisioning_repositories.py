"""Unit tests for hackathon repository creation."""

from types import SimpleNamespace
from typing import Callable
from unittest.mock import AsyncMock, MagicMock, call

import pytest
from githubkit.exception import RequestFailed

from github_org_manager.configuration.models import HackathonConfig, RepositoryVisibility
from github_org_manager.provisioning.repositories import create_hackathon_repositories
from github_org_manager.results import CREATED, DRY_RUN, ERRORS, SKIPPED, WARNINGS


@pytest.fixture
def org_client(fake_client: MagicMock) -> MagicMock:
    fake_client.owner = "finos-labs"
    fake_client.repo_name = None
    fake_client.repository_exists.return_value = False
    # Standing teams exist, the per-repository team does not.
    fake_client.get_team.side_effect = lambda slug, org=None: None if slug.endswith("-team-rocket-team") else SimpleNamespace(slug=slug)
    fake_client.create_team.side_effect = lambda name, privacy="closed": SimpleNamespace(slug=name)
    return fake_client


@pytest.mark.asyncio
async def test_creates_repository_with_team_and_standing_teams(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], remove_user="bot-user", dry_run=False)

    org_client.create_repository_from_template.assert_awaited_once_with("hack-2025-template", "hack-2025-team-rocket", private=True)
    org_client.update_repository_visibility.assert_not_awaited()
    org_client.set_branch_protection.assert_awaited_once_with("main", hackathon_config.branch_protection, repo_name="hack-2025-team-rocket")
    org_client.create_team.assert_awaited_once_with("hack-2025-team-rocket-team", privacy="closed")
    assert org_client.add_team_to_repository.await_args_list == [
        call("hack-2025-team-rocket-team", "admin", repo_name="hack-2025-team-rocket"),
        call("finos-staff", "triage", repo_name="hack-2025-team-rocket"),
        call("finos-admins", "maintain", repo_name="hack-2025-team-rocket"),
        call("hack-2025-judges-team", "triage", repo_name="hack-2025-team-rocket"),
    ]
    org_client.remove_team_member.assert_awaited_once_with("hack-2025-team-rocket-team", "bot-user")
    assert results.entries(CREATED) == ["finos-labs/hack-2025-team-rocket (team hack-2025-team-rocket-team)"]


@pytest.mark.asyncio
async def test_internal_visibility(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    hackathon_config.default_visibility = RepositoryVisibility.INTERNAL

    await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], dry_run=False)

    org_client.create_repository_from_template.assert_awaited_once_with("hack-2025-template", "hack-2025-team-rocket", private=True)
    org_client.update_repository_visibility.assert_awaited_once_with("internal", repo_name="hack-2025-team-rocket")


@pytest.mark.asyncio
async def test_existing_repository_is_skipped(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    org_client.repository_exists.return_value = True

    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], dry_run=False)

    assert results.entries(SKIPPED) == ["finos-labs/hack-2025-team-rocket (already exists)"]
    org_client.create_repository_from_template.assert_not_awaited()
    org_client.create_team.assert_not_awaited()


@pytest.mark.asyncio
async def test_existing_repository_is_reconfigured_without_skip(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    org_client.repository_exists.return_value = True

    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], dry_run=False, skip_existing=False)

    org_client.create_repository_from_template.assert_not_awaited()
    org_client.create_team.assert_awaited_once()
    assert results.count(CREATED) == 1


@pytest.mark.asyncio
async def test_dry_run_only_reads(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket", "Team Rocket"], remove_user="bot-user")

    assert results.count(DRY_RUN) == 1
    entry = results.entries(DRY_RUN)[0]
    assert "create team hack-2025-team-rocket-team" in entry
    assert "remove bot-user from hack-2025-team-rocket-team" in entry
    org_client.create_repository_from_template.assert_not_awaited()
    org_client.set_branch_protection.assert_not_awaited()
    org_client.create_team.assert_not_awaited()
    org_client.add_team_to_repository.assert_not_awaited()
    org_client.remove_team_member.assert_not_awaited()


@pytest.mark.asyncio
async def test_branch_protection_failure_is_a_warning(
    org_client: MagicMock, hackathon_config: HackathonConfig, request_failed: Callable[..., RequestFailed]
) -> None:
    org_client.set_branch_protection.side_effect = request_failed(404)

    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], dry_run=False)

    assert results.count(WARNINGS) == 1
    assert results.count(CREATED) == 1
    assert not results.has_errors


@pytest.mark.asyncio
async def test_missing_standing_team_is_skipped(org_client: MagicMock, hackathon_config: HackathonConfig) -> None:
    org_client.get_team.side_effect = lambda slug, org=None: SimpleNamespace(slug=slug) if slug == "finos-staff" else None

    await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket"], dry_run=False)

    granted = [awaited.args[0] for awaited in org_client.add_team_to_repository.await_args_list]
    assert granted == ["hack-2025-team-rocket-team", "finos-staff"]


@pytest.mark.asyncio
async def test_failure_on_one_repository_continues_with_the_next(
    org_client: MagicMock, hackathon_config: HackathonConfig, request_failed: Callable[..., RequestFailed]
) -> None:
    org_client.create_repository_from_template.side_effect = [request_failed(500), SimpleNamespace(name="hack-2025-data")]
    guard = MagicMock()
    guard.wait_if_needed = AsyncMock()

    results = await create_hackathon_repositories(org_client, hackathon_config, ["Team Rocket", "Data"], dry_run=False, guard=guard)

    assert results.count(ERRORS) == 1
    assert results.entries(ERRORS)[0].startswith("finos-labs/hack-2025-team-rocket (error: ")
    assert results.count(CREATED) == 1
    assert guard.wait_if_needed.await_count == 2
