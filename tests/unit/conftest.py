"""Fixtures for unit tests."""

from typing import Callable, Generator
from unittest.mock import MagicMock

import pytest
import structlog
from githubkit.exception import RequestFailed

from github_org_manager.configuration.env import DEFAULT_BRANCH_PROTECTION
from github_org_manager.configuration.models import HackathonConfig, Permission, RepositoryVisibility
from github_org_manager.github.abc import GitHubClientBase


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def request_failed() -> Callable[..., RequestFailed]:
    """Factory for githubkit RequestFailed errors with a given status code."""

    def _make(status_code: int, headers: dict[str, str] | None = None) -> RequestFailed:
        response = MagicMock(status_code=status_code)
        response.headers = headers or {}
        return RequestFailed(response)

    return _make


@pytest.fixture
def fake_client() -> MagicMock:
    """A client double bound to 'org/repo'; ``with_repository`` returns the same double."""
    client = MagicMock(spec=GitHubClientBase)
    client.owner = "org"
    client.repo_name = "repo"
    client.with_repository.return_value = client
    return client


@pytest.fixture
def hackathon_config() -> HackathonConfig:
    return HackathonConfig(
        org="finos-labs",
        hackathon_name="Hack 2025",
        hackathon_prefix="hack-2025",
        template_repo="hack-2025-template",
        staff_team="finos-staff",
        admins_team="finos-admins",
        judges_team="hack-2025-judges-team",
        staff_permission=Permission.TRIAGE,
        admins_permission=Permission.MAINTAIN,
        judges_permission=Permission.TRIAGE,
        team_permission=Permission.ADMIN,
        default_visibility=RepositoryVisibility.PRIVATE,
        branch_protection=dict(DEFAULT_BRANCH_PROTECTION),
        remove_user="bot-user",
        default_admins=["finos-admin"],
    )
