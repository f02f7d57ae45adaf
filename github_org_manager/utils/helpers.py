"""General utility functions and helper classes."""

import re


def slugify(name: str) -> str:
    """Slugify a hackathon team name (lowercase, spaces and '+' to hyphens, no apostrophes)."""
    slug = name.lower()
    slug = re.sub(r"[ +]", "-", slug)
    slug = slug.replace("'", "")
    if slug.endswith("-"):
        slug = slug[:-1]
    return slug


def generate_repo_name(team_name: str, prefix: str) -> str:
    """Generate a repository name like '<prefix>-<team-slug>'."""
    return f"{prefix}-{slugify(team_name)}"


def generate_team_name(repo_name: str) -> str:
    """Generate the GitHub team name that owns a hackathon repository."""
    return f"{repo_name}-team"


def split_comma_separated(value: str | None) -> list[str]:
    """Split a comma-separated CLI value into a list of non-empty, stripped items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def unique_in_order(items: list[str]) -> list[str]:
    """Drop duplicates while keeping the first occurrence of each item."""
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def build_commit_message(subject: str, author_name: str | None = None, author_email: str | None = None) -> str:
    """Build a commit message, appending a DCO sign-off when both name and email are known."""
    if author_name and author_email:
        return f"{subject}\n\nSigned-off-by: {author_name} <{author_email}>"
    return subject
