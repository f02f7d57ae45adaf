"""Proactive rate-limit guard for bulk operations.

Bulk loops call ``wait_if_needed`` before each repository. Below the warning
threshold a warning is logged; below the pause threshold the guard sleeps
until the quota resets (plus a small buffer) before any further call is made.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import structlog

from github_org_manager.utils.constants import RATE_LIMIT_RESET_BUFFER_SECONDS

from .abc import GitHubClientBase

logger = structlog.get_logger(__name__)


class RateLimitState(str, Enum):
    """Outcome of a rate-limit check."""

    OK = "ok"
    WARN = "warn"
    PAUSE = "pause"
    UNKNOWN = "unknown"


@dataclass
class RateLimitStatus:
    """Remaining core API quota."""

    remaining: int
    limit: int
    reset: int

    @property
    def percentage(self) -> int:
        """Remaining quota as a whole percentage of the limit."""
        if self.limit <= 0:
            return 0
        return self.remaining * 100 // self.limit


class RateLimitGuard:
    """Checks the remaining quota and pauses when it runs low."""

    def __init__(
        self,
        client: GitHubClientBase,
        warn_threshold: int = 20,
        pause_threshold: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.warn_threshold = warn_threshold
        self.pause_threshold = pause_threshold
        self._sleep = sleep
        self._clock = clock
        self.last_status: RateLimitStatus | None = None

    async def get_status(self) -> RateLimitStatus:
        core = await self.client.get_rate_limit()
        return RateLimitStatus(remaining=int(core.remaining), limit=int(core.limit), reset=int(core.reset))

    async def check(self) -> RateLimitState:
        """Read the quota and classify it against the thresholds."""
        try:
            status = await self.get_status()
        except Exception as exc:
            logger.warning("Could not read GitHub rate limit, proceeding", error=str(exc))
            return RateLimitState.UNKNOWN
        self.last_status = status
        if status.percentage < self.pause_threshold:
            return RateLimitState.PAUSE
        if status.percentage < self.warn_threshold:
            logger.warning(
                "GitHub API rate limit is running low",
                remaining=status.remaining,
                limit=status.limit,
                percentage=status.percentage,
            )
            return RateLimitState.WARN
        logger.debug("GitHub API rate limit", remaining=status.remaining, limit=status.limit, percentage=status.percentage)
        return RateLimitState.OK

    def seconds_until_reset(self, status: RateLimitStatus) -> float:
        return max(0.0, status.reset - self._clock()) + RATE_LIMIT_RESET_BUFFER_SECONDS

    async def wait_if_needed(self) -> RateLimitState:
        """Sleep until the quota resets when it is below the pause threshold."""
        state = await self.check()
        if state is RateLimitState.PAUSE and self.last_status is not None:
            wait_time = self.seconds_until_reset(self.last_status)
            logger.warning(
                "GitHub API rate limit critically low, pausing until reset",
                remaining=self.last_status.remaining,
                limit=self.last_status.limit,
                wait_seconds=int(wait_time),
            )
            await self._sleep(wait_time)
        return state
