"""Unit tests for reconciling GitHub credentials, including the GitHub CLI fallback."""

import subprocess
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from github_org_manager.configuration import reconcile
from github_org_manager.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from github_org_manager.configuration.models import GitHubAuthenticationType
from github_org_manager.configuration.reconcile import get_gh_cli_token, reconcile_github_authentication

API_URL = "https://api.github.com"


@pytest.mark.asyncio
async def test_explicit_pat_is_used_without_gh_cli(monkeypatch: MonkeyPatch) -> None:
    gh_cli = MagicMock(return_value="cli-token")
    monkeypatch.setattr(reconcile, "get_gh_cli_token", gh_cli)

    authentication = await reconcile_github_authentication(API_URL, github_pat_token="pat-token")

    assert authentication.authentication_type == GitHubAuthenticationType.PAT
    assert authentication.github_pat_token == "pat-token"
    gh_cli.assert_not_called()


@pytest.mark.asyncio
async def test_gh_cli_token_is_used_as_fallback(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(reconcile, "get_gh_cli_token", MagicMock(return_value="cli-token"))

    authentication = await reconcile_github_authentication(API_URL)

    assert authentication.authentication_type == GitHubAuthenticationType.PAT
    assert authentication.github_pat_token == "cli-token"
    assert authentication.github_api_url == API_URL


@pytest.mark.asyncio
async def test_gh_cli_fallback_can_be_disabled(monkeypatch: MonkeyPatch) -> None:
    gh_cli = MagicMock(return_value="cli-token")
    monkeypatch.setattr(reconcile, "get_gh_cli_token", gh_cli)

    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        await reconcile_github_authentication(API_URL, allow_gh_cli=False)
    gh_cli.assert_not_called()


@pytest.mark.asyncio
async def test_no_credentials_and_no_gh_cli_token(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(reconcile, "get_gh_cli_token", MagicMock(return_value=None))

    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        await reconcile_github_authentication(API_URL)


@pytest.mark.asyncio
async def test_partial_app_configuration_does_not_fall_back_to_gh_cli(monkeypatch: MonkeyPatch) -> None:
    gh_cli = MagicMock(return_value="cli-token")
    monkeypatch.setattr(reconcile, "get_gh_cli_token", gh_cli)

    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError, match="Incomplete GitHub App configuration"):
        await reconcile_github_authentication(API_URL, github_app_id=1)
    gh_cli.assert_not_called()


def test_get_gh_cli_token_without_gh_installed(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(reconcile.shutil, "which", lambda _name: None)
    assert get_gh_cli_token() is None


def test_get_gh_cli_token_returns_stripped_token(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(reconcile.shutil, "which", lambda _name: "/usr/bin/gh")
    monkeypatch.setattr(reconcile.subprocess, "run", MagicMock(return_value=MagicMock(stdout="gho_token\n")))
    assert get_gh_cli_token() == "gho_token"


def test_get_gh_cli_token_when_not_logged_in(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(reconcile.shutil, "which", lambda _name: "/usr/bin/gh")
    monkeypatch.setattr(
        reconcile.subprocess,
        "run",
        MagicMock(side_effect=subprocess.CalledProcessError(1, ["gh", "auth", "token"])),
    )
    assert get_gh_cli_token() is None
