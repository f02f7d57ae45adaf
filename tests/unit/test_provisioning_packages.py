"""Unit tests for deleting packages published from repositories."""

from types import SimpleNamespace
from typing import Callable
from unittest.mock import MagicMock

import pytest
from githubkit.exception import RequestFailed

from github_org_manager.provisioning.packages import delete_repository_packages, package_repository_name
from github_org_manager.results import DRY_RUN, ERRORS, UPDATED


def package(name: str, repository: str | None) -> SimpleNamespace:
    return SimpleNamespace(name=name, repository=SimpleNamespace(name=repository) if repository else None)


@pytest.fixture
def org_client(fake_client: MagicMock) -> MagicMock:
    fake_client.owner = "finos"
    packages = {
        "maven": [package("org.finos.legend.core", "legend"), package("org.finos.other", "other"), package("orphan", None)],
        "container": [package("legend-engine", "legend")],
    }
    fake_client.list_organization_packages.side_effect = lambda package_type: packages[package_type]
    return fake_client


def test_package_repository_name() -> None:
    assert package_repository_name(package("a", "legend")) == "legend"
    assert package_repository_name(package("a", None)) is None


@pytest.mark.asyncio
async def test_dry_run_lists_matching_packages(org_client: MagicMock) -> None:
    results = await delete_repository_packages(org_client, ["legend"])

    assert results.entries(DRY_RUN) == [
        "finos/legend (maven package org.finos.legend.core)",
        "finos/legend (container package legend-engine)",
    ]
    assert results.counters["packages_matched"] == 2
    org_client.delete_organization_package.assert_not_awaited()


@pytest.mark.asyncio
async def test_deletes_matching_packages(org_client: MagicMock) -> None:
    results = await delete_repository_packages(org_client, ["legend"], package_types=["maven"], dry_run=False)

    org_client.delete_organization_package.assert_awaited_once_with("maven", "org.finos.legend.core")
    assert results.entries(UPDATED) == ["finos/legend (deleted maven package org.finos.legend.core)"]


@pytest.mark.asyncio
async def test_listing_failure_is_recorded(org_client: MagicMock, request_failed: Callable[..., RequestFailed]) -> None:
    org_client.list_organization_packages.side_effect = request_failed(401)

    results = await delete_repository_packages(org_client, ["legend"], package_types=["maven"], dry_run=False)

    assert results.count(ERRORS) == 1
    assert results.entries(ERRORS)[0].startswith("finos/maven (")
