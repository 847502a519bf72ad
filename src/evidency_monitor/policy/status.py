"""Totals → status → exit-code policy — single source of truth.

Every layer (orchestrator, CLI exit code, reporters) must derive the run
status from this module instead of comparing totals locally.
"""

from __future__ import annotations

from evidency_monitor.model import RunStatus
from evidency_monitor.utils.exit_codes import ExitCode


def status_from_totals(total_errors: int, total_warnings: int) -> RunStatus:
    """Map run totals to a ``RunStatus``.

    Strict priority: any error forces ``ERRORS`` even when warnings are
    also present.
    """
    if total_errors > 0:
        return RunStatus.ERRORS
    if total_warnings > 0:
        return RunStatus.WARNINGS
    return RunStatus.OK


def exit_code_from_status(status: RunStatus | str) -> int:
    """Map a ``RunStatus`` to a CLI exit code.

    Policy: OK → 0, WARNINGS → 1, ERRORS → 2.
    """
    status = RunStatus(status)
    if status == RunStatus.OK:
        return ExitCode.SUCCESS
    if status == RunStatus.WARNINGS:
        return ExitCode.VIOLATION
    return ExitCode.ERROR
