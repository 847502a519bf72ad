"""Reports — render a finished ``RunResult`` to text, JSON and HTML files.

Every reporter exposes ``name`` and ``generate(result, out_dir)`` returning
the paths it wrote.  Reporters only read the result.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from evidency_monitor.model.run_result import RunResult

_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9_-]")


class Reporter(Protocol):
    name: str

    def generate(self, result: RunResult, out_dir: Path) -> list[Path]:
        """Write report files for *result* into *out_dir*."""
        ...


def safe_name(name: str) -> str:
    """Project name → filename-safe stem."""
    return _UNSAFE_NAME_RE.sub("_", name)


def report_date(result: RunResult) -> str:
    """``YYYY-MM-DD`` prefix for report filenames, taken from the run timestamp."""
    return result.timestamp[:10]
