"""ScanOutcome — one scanner's complete result for one project."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from . import WARNING_SEVERITIES, Severity
from .issue import Issue


def severity_counts(issues: Iterable[Issue]) -> dict[Severity, int]:
    """Count *issues* per tier; every tier is present, zero when absent."""
    counts = {sev: 0 for sev in Severity}
    for issue in issues:
        counts[issue.severity] += 1
    return counts


@dataclass(frozen=True, slots=True)
class ScanOutcome:
    """Immutable per-(scanner, project) result.

    ``has_changes`` is ``None`` for scanners that do not track changes;
    only a reported ``True`` turns the project's flag on.  ``extra`` holds
    scanner-specific fields (git branch, dependency list, ...).
    """

    scanner_name: str
    files_checked: int = 0
    files_skipped: int = 0
    errors: int = 0
    warnings: int = 0
    issues: tuple[Issue, ...] = ()
    severity_summary: Mapping[Severity, int] = field(
        default_factory=lambda: MappingProxyType(severity_counts(()))
    )
    has_changes: Optional[bool] = None
    message: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        for name in ("files_checked", "files_skipped", "errors", "warnings"):
            if getattr(self, name) < 0:
                raise ValueError(f"ScanOutcome.{name} must be >= 0")
        # Freeze containers handed in by scanners.
        object.__setattr__(self, "issues", tuple(self.issues))
        object.__setattr__(self, "severity_summary", MappingProxyType(dict(self.severity_summary)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_issues(
        cls,
        scanner_name: str,
        issues: Iterable[Issue],
        *,
        files_checked: int = 0,
        files_skipped: int = 0,
        errors: int = 0,
        **kwargs: Any,
    ) -> "ScanOutcome":
        """Build an outcome whose ``warnings`` counts critical/high issues."""
        issues = tuple(issues)
        return cls(
            scanner_name=scanner_name,
            files_checked=files_checked,
            files_skipped=files_skipped,
            errors=errors,
            warnings=sum(1 for i in issues if i.severity in WARNING_SEVERITIES),
            issues=issues,
            severity_summary=severity_counts(issues),
            **kwargs,
        )

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.scanner_name,
            "files_checked": self.files_checked,
            "files_skipped": self.files_skipped,
            "errors": self.errors,
            "warnings": self.warnings,
            "issues": [i.to_dict() for i in self.issues],
            "summary": {sev.value: self.severity_summary.get(sev, 0) for sev in Severity},
        }
        if self.has_changes is not None:
            d["has_changes"] = self.has_changes
        if self.message:
            d["message"] = self.message
        for key, value in self.extra.items():
            d.setdefault(key, value)
        return d
