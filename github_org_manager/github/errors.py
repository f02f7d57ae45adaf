"""Classifies GitHub API failures for per-repository error reporting."""

from enum import Enum

from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded


class ErrorCategory(str, Enum):
    """Coarse reason a GitHub call failed."""

    RATE_LIMIT = "rate limit exceeded"
    AUTH = "authentication or permission error"
    NOT_FOUND = "not found"
    VALIDATION = "validation failed"
    GENERIC = "error"


def is_not_found(exc: BaseException) -> bool:
    """Return True if the exception is a 404 response from GitHub."""
    return isinstance(exc, RequestFailed) and exc.response.status_code == 404


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Map an exception raised while talking to GitHub onto an ErrorCategory."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return ErrorCategory.RATE_LIMIT
    if isinstance(exc, RequestFailed):
        status_code = exc.response.status_code
        if status_code == 429 or (status_code == 403 and "rate limit" in str(exc).lower()):
            return ErrorCategory.RATE_LIMIT
        if status_code in (401, 403):
            return ErrorCategory.AUTH
        if status_code == 404:
            return ErrorCategory.NOT_FOUND
        if status_code == 422:
            return ErrorCategory.VALIDATION
        return ErrorCategory.GENERIC
    # handle_github_422 re-raises validation failures as ValueError
    if isinstance(exc, ValueError) and "422" in str(exc):
        return ErrorCategory.VALIDATION
    return ErrorCategory.GENERIC


def describe_error(exc: BaseException) -> str:
    """Short, human readable description used in run summaries."""
    category = categorize_error(exc)
    detail = str(exc).strip().splitlines()[0] if str(exc).strip() else type(exc).__name__
    return f"{category.value}: {detail}"
