"""Status priority law and exit-code mapping."""

from __future__ import annotations

import pytest

from evidency_monitor.model import RunStatus
from evidency_monitor.policy.status import exit_code_from_status, status_from_totals
from evidency_monitor.utils.exit_codes import ExitCode


@pytest.mark.parametrize(
    "errors, warnings, expected",
    [
        (0, 0, RunStatus.OK),
        (0, 1, RunStatus.WARNINGS),
        (0, 250, RunStatus.WARNINGS),
        (1, 0, RunStatus.ERRORS),
        (3, 7, RunStatus.ERRORS),
    ],
)
def test_status_from_totals(errors, warnings, expected):
    assert status_from_totals(errors, warnings) is expected


@pytest.mark.parametrize(
    "status, code",
    [
        (RunStatus.OK, ExitCode.SUCCESS),
        (RunStatus.WARNINGS, ExitCode.VIOLATION),
        (RunStatus.ERRORS, ExitCode.ERROR),
        ("ERRORS", ExitCode.ERROR),
    ],
)
def test_exit_code_from_status(status, code):
    assert exit_code_from_status(status) == code


def test_exit_code_values_are_stable():
    assert [int(c) for c in ExitCode] == [0, 1, 2]


def test_unknown_status_rejected():
    with pytest.raises(ValueError):
        exit_code_from_status("MAYBE")
