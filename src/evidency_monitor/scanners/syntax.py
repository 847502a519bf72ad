"""Syntax scanner — validates PHP files with ``php -l``."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Sequence

from evidency_monitor.model import Severity
from evidency_monitor.model.issue import Issue
from evidency_monitor.model.scan_outcome import ScanOutcome, severity_counts
from evidency_monitor.rules import SYN_PARSE_001
from evidency_monitor.scanners import has_extension, normalize_extensions, relative_to_root
from evidency_monitor.scanners.process import DEFAULT_TOOL_TIMEOUT, ToolTimeout, run_tool

_logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"on line (\d+)")


class SyntaxScanner:
    """Runs the PHP linter once per recognized file.

    Every file that fails to lint counts as one error.  A file whose lint
    run times out is counted as skipped and listed under ``timed_out``;
    the scan carries on with the next file.  If the linter binary is
    missing the outcome is flagged ``linter_available=False`` with zero
    counts.
    """

    name: str = "syntax"
    version: str = "1.0.0"

    def __init__(
        self,
        *,
        php_binary: str = "php",
        extensions: Sequence[str] = ("php",),
        timeout: float = DEFAULT_TOOL_TIMEOUT,
    ) -> None:
        self.php_binary = php_binary
        self._extensions = normalize_extensions(extensions)
        self._timeout = timeout

    def scan(self, root: Path, files: Sequence[Path]) -> ScanOutcome:
        root = Path(root)
        files_checked = 0
        files_skipped = 0
        issues: list[Issue] = []
        timed_out: list[str] = []

        for f in files:
            path = Path(f)
            if not has_extension(path, self._extensions):
                files_skipped += 1
                continue

            try:
                proc = run_tool([self.php_binary, "-l", str(path)], timeout=self._timeout)
            except ToolTimeout:
                files_skipped += 1
                timed_out.append(relative_to_root(path, root))
                continue
            if proc is None:
                return ScanOutcome(
                    scanner_name=self.name,
                    message=f"PHP linter '{self.php_binary}' is not available",
                    extra={"linter_available": False},
                )

            files_checked += 1
            if proc.returncode == 0:
                continue

            output = "\n".join(s for s in (proc.stdout.strip(), proc.stderr.strip()) if s)
            issues.append(Issue(
                file=relative_to_root(path, root),
                line=_error_line(output) or 1,
                rule_id=SYN_PARSE_001,
                severity=Severity.CRITICAL,
                message=output or f"{self.php_binary} -l exited with {proc.returncode}",
            ))

        if issues:
            _logger.info("syntax: %d file(s) failed to lint", len(issues))
        return ScanOutcome(
            scanner_name=self.name,
            files_checked=files_checked,
            files_skipped=files_skipped,
            errors=len(issues),
            warnings=0,
            issues=tuple(issues),
            severity_summary=severity_counts(issues),
            extra={"linter_available": True, "timed_out": timed_out},
        )


def _error_line(output: str) -> Optional[int]:
    m = _LINE_RE.search(output)
    if m:
        line = int(m.group(1))
        return line if line >= 1 else None
    return None
