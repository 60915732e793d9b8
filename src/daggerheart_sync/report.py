"""
Per-file statistics and the end-of-run summary.
"""

from pydantic import BaseModel, Field


class FileStats(BaseModel):
    """Outcome of running one updater over one destination file."""

    key: str = Field(description="Category key, e.g. 'classes' or 'voidDomains'")
    file: str = Field(description="Destination file name")
    total: int = Field(default=0, description="Entries visited")
    processed: int = Field(default=0, description="Entries the updater resolved")
    updated: int = Field(default=0, description="Resolved entries whose content changed")
    unchanged: list[str] = Field(default_factory=list, description="Resolved entries left as they were")
    missing: list[str] = Field(default_factory=list, description="Entries with no source counterpart")
    error: str | None = Field(default=None, description="Set when the file could not be processed")

    def exclude_missing(self, keys: set[str] | frozenset[str]) -> None:
        """Forget known-unresolvable entries so they are not reported."""
        dropped = [key for key in self.missing if key in keys]
        if dropped:
            self.total -= len(dropped)
            self.missing = [key for key in self.missing if key not in keys]


class SyncReport(BaseModel):
    """Statistics of a whole run, in task order."""

    files: list[FileStats] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list, description="'<feature>: <scope>' pairs with differing translations")

    @property
    def failed(self) -> list[FileStats]:
        return [stats for stats in self.files if stats.error]

    def format(self) -> str:
        """Format the summary and the missing-entries report as text."""
        lines: list[str] = ["Update summary:"]
        for stats in self.files:
            if stats.error:
                lines.append(f"- {stats.key}: FAILED ({stats.error})")
                continue
            lines.append(
                f"- {stats.key}: total {stats.total}, updated {stats.updated}, "
                f"unchanged {len(stats.unchanged)}, missing {len(stats.missing)}"
            )
            if not stats.updated and stats.unchanged and stats.total:
                sample = stats.unchanged[:3]
                more = ", ..." if len(stats.unchanged) > len(sample) else ""
                lines.append(f"  · Entries already matched API (sample unchanged keys: {', '.join(sample)}{more})")

        lines.append("Missing entries report:")
        for stats in self.files:
            if not stats.missing:
                continue
            lines.append(f"- {stats.key}: {len(stats.missing)} entries without updates")
            lines.extend(f"  * {key}" for key in stats.missing)

        if self.conflicts:
            lines.append("Conflicting feature translations detected:")
            lines.extend(f" - {conflict}" for conflict in self.conflicts)
        return "\n".join(lines)
