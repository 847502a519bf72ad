"""ProjectResult and RunResult — the immutable, schema-aligned run artifact."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from evidency_monitor import __version__
from evidency_monitor.model import RunStatus
from evidency_monitor.model.scan_outcome import ScanOutcome
from evidency_monitor.policy.status import status_from_totals


def now_iso_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class ProjectResult:
    """Merged outcome of all scanners for one project.

    Built through :meth:`from_outcomes` (every scanner ran) or
    :meth:`failed` (the project could not be scanned).  In the first case
    ``errors``/``warnings`` are the sums across ``scanner_results`` and are
    never set independently.
    """

    name: str
    path: str
    timestamp: str
    files_scanned: int = 0
    errors: int = 0
    warnings: int = 0
    has_changes: bool = False
    scanner_results: Mapping[str, ScanOutcome] = field(
        default_factory=lambda: MappingProxyType({})
    )
    error: Optional[str] = None

    @classmethod
    def from_outcomes(
        cls,
        name: str,
        path: str,
        timestamp: str,
        files_scanned: int,
        outcomes: Mapping[str, ScanOutcome],
    ) -> "ProjectResult":
        """Merge *outcomes* (scanner name → outcome) into a project result."""
        errors = 0
        warnings = 0
        has_changes = False
        for outcome in outcomes.values():
            errors += outcome.errors
            warnings += outcome.warnings
            # Sticky OR: once a scanner reports changes the flag stays on.
            if outcome.has_changes:
                has_changes = True
        return cls(
            name=name,
            path=path,
            timestamp=timestamp,
            files_scanned=files_scanned,
            errors=errors,
            warnings=warnings,
            has_changes=has_changes,
            scanner_results=MappingProxyType(dict(outcomes)),
        )

    @classmethod
    def failed(cls, name: str, path: str, timestamp: str, message: str) -> "ProjectResult":
        """A project that could not be scanned counts as exactly one error."""
        return cls(
            name=name,
            path=path,
            timestamp=timestamp,
            files_scanned=0,
            errors=1,
            warnings=0,
            error=message,
        )

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "timestamp": self.timestamp,
            "files_scanned": self.files_scanned,
            "errors": self.errors,
            "warnings": self.warnings,
            "has_changes": self.has_changes,
            "scanner_results": {
                name: outcome.to_dict() for name, outcome in self.scanner_results.items()
            },
        }
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True, slots=True)
class RunSummary:
    total_files: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    status: RunStatus = RunStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_errors": self.total_errors,
            "total_warnings": self.total_warnings,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class RunResult:
    """Merged outcome of all projects for one invocation.

    Constructed by ``core.runner.Orchestrator`` once every project is done;
    read-only for reporters and notifiers.
    """

    timestamp: str
    projects: Mapping[str, ProjectResult] = field(
        default_factory=lambda: MappingProxyType({})
    )
    summary: RunSummary = field(default_factory=RunSummary)
    tool_version: str = __version__

    @classmethod
    def from_projects(
        cls,
        projects: Mapping[str, ProjectResult],
        *,
        timestamp: str | None = None,
    ) -> "RunResult":
        total_files = sum(p.files_scanned for p in projects.values())
        total_errors = sum(p.errors for p in projects.values())
        total_warnings = sum(p.warnings for p in projects.values())
        return cls(
            timestamp=timestamp or now_iso_utc(),
            projects=MappingProxyType(dict(projects)),
            summary=RunSummary(
                total_files=total_files,
                total_errors=total_errors,
                total_warnings=total_warnings,
                status=status_from_totals(total_errors, total_warnings),
            ),
        )

    @property
    def status(self) -> RunStatus:
        return self.summary.status

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Produce the full run JSON matching ``run_result.schema.json``."""
        return {
            "schema_version": "evidency_run_result_v1",
            "tool_version": self.tool_version,
            "timestamp": self.timestamp,
            "projects": {name: p.to_dict() for name, p in self.projects.items()},
            "summary": self.summary.to_dict(),
        }
