"""Shared constants used across the application."""

# Badge Constants
# ---------------

LABS_BADGE_IMAGE = "![badge-labs](https://user-images.githubusercontent.com/327285/230928932-7c75f8ed-e57b-41db-9fb7-a292a13a1e58.svg)"
"""Markdown image of the FINOS Labs badge, matched literally."""

LABS_BADGE_LINK_URL = "https://community.finos.org/docs/governance/software-projects/maturity/labs"
"""Maturity documentation page that the Labs badge links to."""

MATURITY_DOCS_BASE_URL = "https://community.finos.org/docs/governance/Software-Projects"
"""Base URL of the software project governance documentation."""

OLD_STAGE_URL_PATTERN = r"https://community\.finos\.org/docs/governance/software-projects/stages/{stage}/?"
"""Regex template (case-insensitive) for the retired per-stage documentation URLs."""

NEW_STAGE_URL_TEMPLATE = MATURITY_DOCS_BASE_URL + "/project-lifecycle#{stage}"
"""Replacement URL template pointing at the project lifecycle page."""

STAGE_MAPPINGS: list[tuple[str, str]] = [
    ("incubating", "incubating"),
    ("graduated", "graduated"),
    ("archived", "archived"),
    ("active", "graduated"),
]
"""Ordered (old stage, new stage) pairs. The active stage was folded into graduated."""

ACTIVE_BADGE_REPLACEMENTS: list[tuple[str, str]] = [
    ("badge-active.svg", "badge-graduated.svg"),
    ("FINOS - Active", "FINOS - Graduated"),
]
"""Literal replacements applied to the image part of an active badge."""

README_CANDIDATES: list[str] = ["README.md", "readme.md", "Readme.md", "README.rst", "README.txt"]
"""README paths inspected by the badge workflows, in order."""

# Pull Request Workflow Constants
# -------------------------------

LABS_BADGE_BRANCH = "update-badge-link"
MATURITY_BADGE_BRANCH = "update-badge-maturity-link"
MAINTAINERS_BRANCH = "add-maintainers-file"

MAINTAINERS_FILE_PATH = "MAINTAINERS.md"

MAINTAINERS_FILE_LOCATIONS: list[str] = [
    "MAINTAINERS.md",
    "maintainers.md",
    "Maintainers.md",
    "MAINTAINERS.MD",
    "docs/MAINTAINERS.md",
    "docs/maintainers.md",
    "docs/Maintainers.md",
    ".github/MAINTAINERS.md",
    ".github/maintainers.md",
    ".github/Maintainers.md",
]
"""Locations where an existing maintainers file is looked for before proposing a new one."""

MAINTAINER_PERMISSIONS = frozenset({"maintain", "admin"})
"""Repository roles that make a user or team a maintainer."""

EXCLUDED_MAINTAINER_ACCOUNTS = frozenset(
    {
        "finos-admin",
        "thelinuxfoundation",
        "finos-bot",
        "finos[bot]",
        "linuxfoundation",
        "lf-bot",
    }
)
"""Service accounts and bots that are never listed as maintainers."""

MAINTAINERS_CHEATSHEET_URL = "https://community.finos.org/docs/finos-maintainers-cheatsheet"

NAME_PLACEHOLDER = "*please add name*"
EMAIL_PLACEHOLDER = "*please add email*"

# Rate Limit Constants
# --------------------

RATE_LIMIT_RESET_BUFFER_SECONDS = 10
"""Extra seconds slept past the reported reset time."""

# Pagination
# ----------

DEFAULT_PER_PAGE = 100
"""Page size used for all paginated listings (GitHub's maximum)."""
