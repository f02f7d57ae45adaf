"""Utility modules for shared functionality."""

from .constants import (
    LABS_BADGE_BRANCH,
    MAINTAINERS_BRANCH,
    MATURITY_BADGE_BRANCH,
    README_CANDIDATES,
    STAGE_MAPPINGS,
)
from .retry import retry_on_rate_limit

__all__ = [
    "LABS_BADGE_BRANCH",
    "MAINTAINERS_BRANCH",
    "MATURITY_BADGE_BRANCH",
    "README_CANDIDATES",
    "STAGE_MAPPINGS",
    "retry_on_rate_limit",
]
