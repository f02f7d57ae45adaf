"""Unit tests for the rate-limit retry decorator."""

import time
from typing import Callable
from unittest.mock import AsyncMock

import pytest
from githubkit.exception import RequestFailed
from pytest import MonkeyPatch

from github_org_manager.utils import retry
from github_org_manager.utils.retry import is_rate_limit_response, retry_on_rate_limit, wait_time_from_headers


@pytest.fixture
def sleep(monkeypatch: MonkeyPatch) -> AsyncMock:
    sleep_mock = AsyncMock()
    monkeypatch.setattr(retry.asyncio, "sleep", sleep_mock)
    return sleep_mock


@pytest.mark.asyncio
async def test_retries_rate_limited_call_then_succeeds(sleep: AsyncMock, request_failed: Callable[..., RequestFailed]) -> None:
    calls = AsyncMock(side_effect=[request_failed(429, {"retry-after": "5"}), "ok"])

    @retry_on_rate_limit(max_retries=3, initial_delay=1.0)
    async def call() -> str:
        return await calls()

    assert await call() == "ok"
    assert calls.await_count == 2
    sleep.assert_awaited_once_with(5.0)


@pytest.mark.asyncio
async def test_non_rate_limit_errors_are_not_retried(sleep: AsyncMock, request_failed: Callable[..., RequestFailed]) -> None:
    error = request_failed(404)
    calls = AsyncMock(side_effect=error)

    @retry_on_rate_limit()
    async def call() -> None:
        await calls()

    with pytest.raises(RequestFailed) as exc_info:
        await call()
    assert exc_info.value is error
    assert calls.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(sleep: AsyncMock, request_failed: Callable[..., RequestFailed]) -> None:
    calls = AsyncMock(side_effect=request_failed(403, {"x-ratelimit-remaining": "0"}))

    @retry_on_rate_limit(max_retries=2, initial_delay=1.0, max_delay=10.0)
    async def call() -> None:
        await calls()

    with pytest.raises(RequestFailed):
        await call()
    assert calls.await_count == 3
    assert [awaited.args[0] for awaited in sleep.await_args_list] == [1.0, 2.0]


def test_decorator_rejects_sync_functions() -> None:
    with pytest.raises(TypeError, match="must be async"):

        @retry_on_rate_limit()
        def call() -> None:
            pass


@pytest.mark.parametrize(
    "status_code,headers,expected",
    [
        (429, {}, True),
        (403, {"x-ratelimit-remaining": "0"}, True),
        (403, {"x-ratelimit-remaining": "42"}, False),
        (404, {}, False),
        (500, {"x-ratelimit-remaining": "0"}, False),
    ],
)
def test_is_rate_limit_response(
    request_failed: Callable[..., RequestFailed], status_code: int, headers: dict[str, str], expected: bool
) -> None:
    assert is_rate_limit_response(request_failed(status_code, headers)) is expected


def test_wait_time_prefers_retry_after() -> None:
    assert wait_time_from_headers({"retry-after": "30", "x-ratelimit-reset": "0"}, fallback=60.0) == 30.0


def test_wait_time_uses_reset_timestamp() -> None:
    reset = int(time.time()) + 100
    wait_time = wait_time_from_headers({"x-ratelimit-reset": str(reset)}, fallback=60.0)
    assert 99.0 <= wait_time <= 101.0


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"retry-after": "soon"},
        {"x-ratelimit-reset": "1"},
    ],
)
def test_wait_time_falls_back(headers: dict[str, str]) -> None:
    assert wait_time_from_headers(headers, fallback=60.0) == 60.0
