"""README badge rewrites proposed through pull requests."""

import re
from typing import Callable

import structlog

from github_org_manager.utils.constants import (
    ACTIVE_BADGE_REPLACEMENTS,
    LABS_BADGE_BRANCH,
    LABS_BADGE_IMAGE,
    LABS_BADGE_LINK_URL,
    MATURITY_BADGE_BRANCH,
    NEW_STAGE_URL_TEMPLATE,
    OLD_STAGE_URL_PATTERN,
    README_CANDIDATES,
    STAGE_MAPPINGS,
)

from .models import FileChange, PullRequestPlan, RepositoryContext
from .workflow import ChangeCollector

logger = structlog.get_logger(__name__)

ContentTransform = Callable[[str], str | None]

LABS_BADGE_LINK = f"[{LABS_BADGE_IMAGE}]({LABS_BADGE_LINK_URL})"

# An image already preceded by '[' is the image part of a link.
UNWRAPPED_LABS_BADGE = re.compile(r"(?<!\[)" + re.escape(LABS_BADGE_IMAGE))

STAGE_URL_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(OLD_STAGE_URL_PATTERN.format(stage=re.escape(old_stage)), re.IGNORECASE),
        NEW_STAGE_URL_TEMPLATE.format(stage=new_stage),
    )
    for old_stage, new_stage in STAGE_MAPPINGS
]

LABS_BADGE_PLAN = PullRequestPlan(
    branch_name=LABS_BADGE_BRANCH,
    title="Update badge to be clickable link that points to the new maturity documentation",
    body=(
        "This PR updates the FINOS badge to be a clickable link pointing to the new maturity documentation.\n"
        "\n"
        f"- Badge is now wrapped in a link to: `{LABS_BADGE_LINK_URL}`"
    ),
    commit_message="Update badge to be clickable link",
)

MATURITY_BADGE_PLAN = PullRequestPlan(
    branch_name=MATURITY_BADGE_BRANCH,
    title="Update badge link to point to the new maturity documentation",
    body=(
        "This PR updates the badge link from `/stages/` to `/project-lifecycle#` to reflect the new FINOS documentation structure.\n"
        "\n"
        "- Old format: `https://community.finos.org/docs/governance/software-projects/stages/{stage}/`\n"
        "- New format: `https://community.finos.org/docs/governance/Software-Projects/project-lifecycle#{stage}`\n"
        "- Note: `active` stage has been changed to `graduated`"
    ),
    commit_message="Update badge link: stages → maturity",
)


def wrap_labs_badge(content: str) -> str | None:
    """Wrap every bare Labs badge image in a link to the Labs maturity page.

    Returns None when there is no bare badge, so running it twice is a no-op.
    """
    updated, count = UNWRAPPED_LABS_BADGE.subn(lambda _match: LABS_BADGE_LINK, content)
    return updated if count else None


def update_maturity_badge(content: str) -> str | None:
    """Point stage badges at the project lifecycle page and turn Active badges into Graduated ones.

    Returns None when nothing changed.
    """
    updated = content
    if "badge-active.svg" in updated:
        for old, new in ACTIVE_BADGE_REPLACEMENTS:
            updated = updated.replace(old, new)
    for pattern, new_url in STAGE_URL_PATTERNS:
        updated = pattern.sub(lambda _match, url=new_url: url, updated)
    return updated if updated != content else None


def readme_change_collector(transform: ContentTransform, commit_subject: str) -> ChangeCollector:
    """Build a change collector that applies a transform to each README candidate."""

    async def collect(context: RepositoryContext) -> list[FileChange]:
        changes: list[FileChange] = []
        for path in README_CANDIDATES:
            try:
                existing = await context.client.get_file(path, ref=context.ref)
            except UnicodeDecodeError:
                logger.warning("File is not valid UTF-8, skipping", repository=context.full_name, file=path)
                continue
            if existing is None:
                continue
            content, sha = existing
            updated = transform(content)
            if updated is None:
                logger.debug("Badge not found in file", repository=context.full_name, file=path)
                continue
            logger.info("Badge update found", repository=context.full_name, file=path)
            changes.append(FileChange(path=path, content=updated, sha=sha, message=f"{commit_subject} in {path}"))
        return changes

    return collect


collect_labs_badge_changes = readme_change_collector(wrap_labs_badge, LABS_BADGE_PLAN.commit_message)
collect_maturity_badge_changes = readme_change_collector(update_maturity_badge, MATURITY_BADGE_PLAN.commit_message)
