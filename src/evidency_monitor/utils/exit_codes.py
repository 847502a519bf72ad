"""Centralized exit-code contract for all CLI commands.

Code  Meaning
----  -------
  0   Success — run status OK
  1   Violation — run status WARNINGS
  2   Error — run status ERRORS, usage error, bad config, runtime failure
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
