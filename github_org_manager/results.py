"""Accumulates per-repository outcomes of a bulk command and prints the summary."""

from dataclasses import dataclass, field
from typing import Callable

import typer

# Bucket names shared by the commands.
CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"
NO_CHANGES = "no_changes"
ERRORS = "errors"
INSUFFICIENT_ACCESS = "insufficient_access"
NO_MAINTAINERS = "no_maintainers"
FILE_EXISTS = "file_exists"
DRY_RUN = "dry_run"
WARNINGS = "warnings"

BUCKET_TITLES: dict[str, str] = {
    CREATED: "Created",
    UPDATED: "Updated",
    SKIPPED: "Skipped",
    NO_CHANGES: "No changes needed",
    DRY_RUN: "Would change (dry run)",
    INSUFFICIENT_ACCESS: "Insufficient access",
    NO_MAINTAINERS: "No maintainers found",
    FILE_EXISTS: "File already exists (manual review)",
    WARNINGS: "Warnings",
    ERRORS: "Errors",
}


@dataclass
class RunResults:
    """Ordered named buckets of 'org/repo (detail)' entries plus counters."""

    title: str
    buckets: dict[str, list[str]] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)

    def record(self, bucket: str, target: str, detail: str | None = None) -> None:
        """Append an entry to a bucket, creating the bucket on first use."""
        entry = f"{target} ({detail})" if detail else target
        self.buckets.setdefault(bucket, []).append(entry)

    def increment(self, counter: str, amount: int = 1) -> None:
        self.counters[counter] = self.counters.get(counter, 0) + amount

    def entries(self, bucket: str) -> list[str]:
        return list(self.buckets.get(bucket, []))

    def count(self, bucket: str) -> int:
        return len(self.buckets.get(bucket, []))

    @property
    def has_errors(self) -> bool:
        return self.count(ERRORS) > 0

    def summary_lines(self) -> list[str]:
        """Render the summary as lines: counters first, then each non-empty bucket."""
        lines = [f"=== {self.title} summary ==="]
        for counter, value in self.counters.items():
            lines.append(f"{counter.replace('_', ' ').capitalize()}: {value}")
        for bucket, entries in self.buckets.items():
            if not entries:
                continue
            lines.append(f"{BUCKET_TITLES.get(bucket, bucket.replace('_', ' ').capitalize())} ({len(entries)}):")
            lines.extend(f"  - {entry}" for entry in entries)
        return lines

    def print_summary(self, echo: Callable[[str], None] = typer.echo) -> None:
        for line in self.summary_lines():
            echo(line)
