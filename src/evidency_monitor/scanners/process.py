"""Subprocess helper shared by the external-tool scanners.

Commands always run with ``cwd=`` set to the project instead of changing
the process working directory, so the orchestrator sees the same cwd
before and after every scanner.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

_logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 60  # seconds


class ToolTimeout(Exception):
    """A tool started but did not finish within its timeout."""

    def __init__(self, cmd: Sequence[str], timeout: float) -> None:
        super().__init__(f"{cmd[0]} timed out after {timeout:.0f}s")
        self.cmd = list(cmd)
        self.timeout = timeout


def run_tool(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    timeout: float = DEFAULT_TOOL_TIMEOUT,
) -> Optional[subprocess.CompletedProcess[str]]:
    """Run *cmd* and return the completed process.

    Returns ``None`` when the executable is missing or cannot be started;
    callers report that as a degraded outcome.  Raises :class:`ToolTimeout`
    when the command does not finish within *timeout*, so a slow run on
    one input is never mistaken for a missing tool.
    """
    try:
        return subprocess.run(
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        _logger.warning("Tool not found: %s", cmd[0])
    except subprocess.TimeoutExpired as exc:
        _logger.warning("Tool timed out after %.0fs: %s", timeout, " ".join(cmd))
        raise ToolTimeout(cmd, timeout) from exc
    except OSError as exc:
        _logger.warning("Tool failed to start (%s): %s", cmd[0], exc)
    return None
