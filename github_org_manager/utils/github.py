"""Contains utility functions for GitHub interactions."""


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits an 'org/repo' reference into organization and repository."""
    if repo is None:
        raise ValueError("A repository reference is required.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Invalid repository format: {repo!r}. Expected format: org/repo-name (e.g., finos/repo-name).")
    owner, repository = parts
    return owner, repository


def build_head_reference(owner: str, branch_name: str) -> str:
    """Build the 'owner:branch' head filter used when listing pull requests."""
    return f"{owner}:{branch_name}"
