"""Retry decorator for GitHub API calls that run into rate limits.

Primary and secondary rate-limit errors, as well as raw 403/429 responses that
mention a rate limit, are retried with exponential backoff. The wait time
prefers what GitHub tells us (the ``retry-after`` header, then the
``x-ratelimit-reset`` timestamp) over the computed backoff. Every other error
propagates immediately.
"""

import asyncio
import functools
import time
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 60.0
DEFAULT_MAX_DELAY = 900.0


def is_rate_limit_response(exc: RequestFailed) -> bool:
    """Return True if a failed request was rejected because of a rate limit."""
    status_code = exc.response.status_code
    if status_code == 429:
        return True
    if status_code != 403:
        return False
    if exc.response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in str(exc).lower()


def wait_time_from_headers(headers: Any, fallback: float) -> float:
    """Derive how long to wait from GitHub's rate-limit response headers."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)

    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            seconds_until_reset = int(rate_limit_reset) - int(time.time())
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
        else:
            if seconds_until_reset > 0:
                return float(seconds_until_reset + 1)
    return fallback


def retry_on_rate_limit(
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async GitHub calls that hit a rate limit.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds between retries (default: 60.0)
        max_delay: Maximum delay in seconds between retries (default: 900.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_rate_limit()
        async def get_team(self, team_slug: str) -> Team:
            ...
    """

    def decorator(func: F) -> F:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as exc:
                    last_exception: Exception = exc
                    retry_after = getattr(exc, "retry_after", None)
                    wait_time = retry_after.total_seconds() if retry_after else delay
                    rate_limit_type = "primary" if isinstance(exc, PrimaryRateLimitExceeded) else "secondary"
                except RequestFailed as exc:
                    if not is_rate_limit_response(exc):
                        raise
                    last_exception = exc
                    wait_time = wait_time_from_headers(exc.response.headers, fallback=delay)
                    rate_limit_type = "response"

                if attempt >= max_retries:
                    logger.error(
                        "Max retries reached for GitHub rate limit error",
                        function=func.__name__,
                        attempts=attempt + 1,
                        rate_limit_type=rate_limit_type,
                    )
                    raise last_exception

                wait_time = min(wait_time, max_delay)
                attempt += 1
                logger.warning(
                    "GitHub rate limit hit, backing off",
                    function=func.__name__,
                    rate_limit_type=rate_limit_type,
                    attempt=attempt,
                    max_retries=max_retries,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
                delay = min(delay * exponential_base, max_delay)

        return wrapper  # type: ignore

    return decorator
