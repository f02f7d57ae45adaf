"""Unit tests for building the authenticated githubkit client."""

from pathlib import Path

import pytest
from githubkit import GitHub

from github_org_manager.configuration.models import GitHubAuthentication, GitHubAuthenticationType
from github_org_manager.github.client import get_github_client


@pytest.mark.asyncio
async def test_pat_client() -> None:
    authentication = GitHubAuthentication(
        authentication_type=GitHubAuthenticationType.PAT,
        github_api_url="https://github.example.com/api/v3",
        github_pat_token="test-token",
    )

    client = await get_github_client(authentication)

    assert isinstance(client, GitHub)


@pytest.mark.asyncio
async def test_pat_client_without_token() -> None:
    authentication = GitHubAuthentication(authentication_type=GitHubAuthenticationType.PAT, github_api_url="https://api.github.com")

    with pytest.raises(RuntimeError, match="requires github_pat_token"):
        await get_github_client(authentication)


@pytest.mark.asyncio
async def test_app_client_with_unreadable_private_key(tmp_path: Path) -> None:
    authentication = GitHubAuthentication(
        authentication_type=GitHubAuthenticationType.APP,
        github_api_url="https://api.github.com",
        github_app_id=1,
        github_app_private_key_path=tmp_path / "missing.pem",
        github_app_installation_id=2,
    )

    with pytest.raises(ValueError, match="Failed to read GitHub App private key"):
        await get_github_client(authentication)
