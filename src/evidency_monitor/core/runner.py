"""Runner — orchestrates scanners over projects, merges outcomes, builds RunResult."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, TimeoutError as FuturesTimeoutError
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Sequence

from evidency_monitor.core.config import ConfigError, MonitorConfig, ProjectConfig
from evidency_monitor.core.discover import find_files
from evidency_monitor.model.run_result import ProjectResult, RunResult, now_iso_utc
from evidency_monitor.model.scan_outcome import ScanOutcome

if TYPE_CHECKING:
    from evidency_monitor.notify import Notifier
    from evidency_monitor.reports import Reporter
    from evidency_monitor.scanners import Scanner

_logger = logging.getLogger(__name__)

# Default per-scanner timeout in seconds.  Override with
# EVIDENCY_SCANNER_TIMEOUT env var (0 = no limit).
_DEFAULT_SCANNER_TIMEOUT = 300  # 5 minutes

FileFinder = Callable[[Path, Iterable[str], Iterable[str]], Sequence[Path]]


class RunState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    AGGREGATING = "aggregating"
    DONE = "done"


class ProjectScanError(Exception):
    """A project could not be scanned; becomes a failed ``ProjectResult``."""


def _scanner_timeout_from_env() -> Optional[float]:
    timeout_str = os.environ.get("EVIDENCY_SCANNER_TIMEOUT", "").strip()
    if not timeout_str:
        return _DEFAULT_SCANNER_TIMEOUT
    try:
        timeout = float(timeout_str)
    except ValueError as exc:
        raise ConfigError(
            f"EVIDENCY_SCANNER_TIMEOUT must be a number of seconds, got {timeout_str!r}"
        ) from exc
    if timeout < 0:
        raise ConfigError(f"EVIDENCY_SCANNER_TIMEOUT must not be negative, got {timeout_str!r}")
    return timeout or None


class Orchestrator:
    """Runs every scanner against every configured project.

    State machine over one run:
    ``IDLE → SCANNING(project) × N → AGGREGATING → DONE``.

    A failure in one project (missing directory, unreadable root, scanner
    exception or timeout) becomes a failed ``ProjectResult`` and the run
    moves on; no exception escapes :meth:`scan` for such failures.
    """

    def __init__(
        self,
        config: MonitorConfig,
        scanners: Sequence["Scanner"],
        *,
        reporters: Sequence["Reporter"] = (),
        notifiers: Sequence["Notifier"] = (),
        finder: FileFinder = find_files,
        scanner_timeout: Optional[float] = None,
        clock: Callable[[], str] = now_iso_utc,
    ) -> None:
        names = [s.name for s in scanners]
        if len(names) != len(set(names)):
            raise ValueError(f"scanner names must be unique: {names}")
        self.config = config
        self.scanners = tuple(scanners)
        self.reporters = list(reporters)
        self.notifiers = list(notifiers)
        self._finder = finder
        if scanner_timeout is None:
            self._timeout = _scanner_timeout_from_env()
        else:
            self._timeout = scanner_timeout or None  # 0 = no limit
        self._clock = clock
        self._cancelled = False
        self.state = RunState.IDLE
        self.current_project: Optional[str] = None
        self.result: Optional[RunResult] = None

    def add_notifier(self, notifier: "Notifier") -> "Orchestrator":
        self.notifiers.append(notifier)
        return self

    def cancel(self) -> None:
        """Stop after the project currently being scanned."""
        self._cancelled = True

    # ── scanning ────────────────────────────────────────────────────

    def scan(self) -> RunResult:
        """Scan every project and return the merged, read-only ``RunResult``."""
        self._cancelled = False
        timestamp = self._clock()
        projects: dict[str, ProjectResult] = {}

        for project in self.config.projects:
            if self._cancelled:
                _logger.warning("Run cancelled; %d project(s) not scanned",
                                len(self.config.projects) - len(projects))
                break
            self.state = RunState.SCANNING
            self.current_project = project.name
            _logger.info("Scanning: %s", project.name)
            projects[project.name] = self.scan_project(project)

        self.state = RunState.AGGREGATING
        self.current_project = None
        result = RunResult.from_projects(projects, timestamp=timestamp)
        self.result = result
        self.state = RunState.DONE
        _logger.info(
            "Run finished: %s (%d files, %d errors, %d warnings)",
            result.summary.status.value,
            result.summary.total_files,
            result.summary.total_errors,
            result.summary.total_warnings,
        )
        return result

    def scan_project(self, project: ProjectConfig) -> ProjectResult:
        """Scan one project; failures become a failed ``ProjectResult``."""
        timestamp = self._clock()
        path = str(project.path)
        try:
            files, outcomes = self._collect(project)
        except ProjectScanError as exc:
            _logger.warning("Project '%s' failed: %s", project.name, exc)
            return ProjectResult.failed(project.name, path, timestamp, str(exc))

        # Merge step runs only after every scanner has finished.
        return ProjectResult.from_outcomes(
            project.name, path, timestamp, len(files), outcomes
        )

    def _collect(self, project: ProjectConfig) -> tuple[Sequence[Path], dict[str, ScanOutcome]]:
        root = Path(project.path)
        if not root.is_dir():
            raise ProjectScanError(f"Directory not found: {project.path}")

        exclude = list(dict.fromkeys([*self.config.exclude_dirs, *project.exclude]))
        try:
            files = list(self._finder(root, exclude, self.config.file_extensions))
        except OSError as exc:
            raise ProjectScanError(f"Cannot read directory {project.path}: {exc}") from exc

        outcomes: dict[str, ScanOutcome] = {}
        for scanner in self.scanners:
            _logger.info("  Running %s scanner...", scanner.name)
            outcomes[scanner.name] = self._run_scanner(scanner, root, files)
        return files, outcomes

    def _run_scanner(self, scanner: "Scanner", root: Path, files: Sequence[Path]) -> ScanOutcome:
        # Each scanner gets its own copy of the file list.
        files = tuple(files)
        try:
            if self._timeout is None:
                return scanner.scan(root, files)
            return self._scan_with_deadline(scanner, root, files)
        except FuturesTimeoutError as exc:
            raise ProjectScanError(
                f"Scanner '{scanner.name}' timed out after {self._timeout:.0f}s"
            ) from exc
        except Exception as exc:
            _logger.exception("Scanner '%s' raised an exception", scanner.name)
            raise ProjectScanError(f"Scanner '{scanner.name}' failed: {exc}") from exc

    def _scan_with_deadline(
        self, scanner: "Scanner", root: Path, files: Sequence[Path]
    ) -> ScanOutcome:
        """Run *scanner* on a daemon thread and wait at most ``self._timeout``.

        A scanner that misses the deadline cannot be interrupted: its thread
        keeps running in the background until the scan returns, but its
        result is discarded and it does not hold up interpreter exit.
        """
        future: Future = Future()

        def _work() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(scanner.scan(root, files))
            except BaseException as exc:
                future.set_exception(exc)

        threading.Thread(
            target=_work, name=f"evidency-scanner-{scanner.name}", daemon=True
        ).start()
        return future.result(timeout=self._timeout)

    # ── hand-off ────────────────────────────────────────────────────

    def generate_reports(self, result: Optional[RunResult] = None) -> list[Path]:
        """Write every configured report; returns the files produced."""
        result = self._require_result(result)
        out_dir = Path(self.config.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        files: list[Path] = []
        for reporter in self.reporters:
            files.extend(reporter.generate(result, out_dir))
        return files

    def notify(self, result: Optional[RunResult] = None) -> dict[str, bool]:
        """Send *result* to every notifier; delivery failures are logged only."""
        result = self._require_result(result)
        delivered: dict[str, bool] = {}
        for notifier in self.notifiers:
            try:
                delivered[notifier.name] = bool(notifier.send(result))
            except Exception:
                _logger.exception("Notifier '%s' failed", notifier.name)
                delivered[notifier.name] = False
        return delivered

    def run(self) -> tuple[RunResult, list[Path]]:
        """Scan, write reports, notify."""
        result = self.scan()
        reports = self.generate_reports(result)
        self.notify(result)
        return result, reports

    def _require_result(self, result: Optional[RunResult]) -> RunResult:
        result = result or self.result
        if result is None:
            raise RuntimeError("no RunResult yet; call scan() first")
        return result
