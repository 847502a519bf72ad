"""Enums shared across the engine, scanners and reporters."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Fixed four-tier issue severity."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Tiers that count toward a scanner's ``warnings`` total.
WARNING_SEVERITIES = frozenset({Severity.CRITICAL, Severity.HIGH})

# Worst first; used for report ordering.
SEVERITY_ORDER = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


class RunStatus(str, Enum):
    """Overall health of a run, derived from the run totals."""

    OK = "OK"
    WARNINGS = "WARNINGS"
    ERRORS = "ERRORS"
