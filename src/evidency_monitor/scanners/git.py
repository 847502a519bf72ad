"""Git scanner — branch, recent activity, uncommitted changes, contributors."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Sequence

from evidency_monitor.model.scan_outcome import ScanOutcome
from evidency_monitor.scanners.process import ToolTimeout, run_tool

_logger = logging.getLogger(__name__)

_SHORTLOG_RE = re.compile(r"^\s*(\d+)\s+(.+?)\s+<(.+?)>$")

_STATUS_TYPES = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "?": "untracked",
    "!": "ignored",
}


def status_type(status: str) -> str:
    status = status.strip()
    return _STATUS_TYPES.get(status[:1], "unknown")


def parse_last_commit(output: str) -> dict[str, str]:
    if not output:
        return {}
    parts = output.split("|", 5)
    parts += [""] * (6 - len(parts))
    return {
        "hash": parts[0],
        "short_hash": parts[1],
        "author": parts[2],
        "email": parts[3],
        "date": parts[4],
        "message": parts[5],
    }


def parse_oneline(output: str) -> list[dict[str, str]]:
    commits = []
    for line in output.splitlines():
        if not line.strip():
            continue
        commit_hash, _, message = line.partition(" ")
        commits.append({"hash": commit_hash, "message": message})
    return commits


def parse_porcelain(output: str) -> list[dict[str, str]]:
    changes = []
    for line in output.splitlines():
        if not line.strip():
            continue
        status = line[:2]
        changes.append({
            "status": status.strip(),
            "file": line[3:].strip(),
            "type": status_type(status),
        })
    return changes


def parse_shortlog(output: str) -> list[dict[str, Any]]:
    contributors = []
    for line in output.splitlines():
        m = _SHORTLOG_RE.match(line)
        if m:
            contributors.append({
                "commits": int(m.group(1)),
                "name": m.group(2),
                "email": m.group(3),
            })
    return contributors


class GitScanner:
    """Summarises a project's git repository.

    A directory without ``.git`` is reported with ``is_git_repo=False`` and
    one warning.  Otherwise ``has_changes`` is set when there are commits in
    the last *recent_days* days or uncommitted changes, and every
    uncommitted change counts as a warning.
    """

    name: str = "git"
    version: str = "1.0.0"

    _LAST_COMMIT_FORMAT = "%H|%h|%an|%ae|%ai|%s"

    def __init__(self, *, git_binary: str = "git", recent_days: int = 7, timeout: float = 30) -> None:
        self.git_binary = git_binary
        self.recent_days = recent_days
        self._timeout = timeout

    def scan(self, root: Path, files: Sequence[Path]) -> ScanOutcome:
        root = Path(root)
        extra: dict[str, Any] = {
            "is_git_repo": False,
            "current_branch": None,
            "last_commit": {},
            "recent_commits": [],
            "uncommitted_changes": [],
            "contributors": [],
            "stats": {},
        }

        if not (root / ".git").is_dir():
            return ScanOutcome(
                scanner_name=self.name,
                warnings=1,
                has_changes=False,
                message="Not a git repository",
                extra=extra,
            )

        extra["is_git_repo"] = True
        extra["current_branch"] = self._run_git(root, "rev-parse", "--abbrev-ref", "HEAD") or None
        extra["last_commit"] = parse_last_commit(
            self._run_git(root, "log", "-1", f"--format={self._LAST_COMMIT_FORMAT}")
        )
        extra["recent_commits"] = parse_oneline(
            self._run_git(root, "log", "--oneline", f"--since={self.recent_days} days ago")
        )
        extra["uncommitted_changes"] = parse_porcelain(
            self._run_git(root, "status", "--porcelain", strip=False)
        )
        extra["contributors"] = parse_shortlog(
            self._run_git(root, "shortlog", "-sne", "--all")
        )
        extra["stats"] = self._stats(root)

        changes = extra["uncommitted_changes"]
        return ScanOutcome(
            scanner_name=self.name,
            warnings=len(changes),
            has_changes=bool(extra["recent_commits"]) or bool(changes),
            extra=extra,
        )

    def _stats(self, root: Path) -> dict[str, Any]:
        count = self._run_git(root, "rev-list", "--count", "HEAD")
        dates = self._run_git(root, "log", "--reverse", "--format=%ai").splitlines()
        return {
            "total_commits": int(count) if count.isdigit() else 0,
            "first_commit_date": dates[0].strip() if dates else "",
            "last_commit_date": self._run_git(root, "log", "-1", "--format=%ai"),
        }

    def _run_git(self, root: Path, *args: str, strip: bool = True) -> str:
        """Run a git command in *root*; empty string on any failure."""
        try:
            proc = run_tool([self.git_binary, "-C", str(root), *args], timeout=self._timeout)
        except ToolTimeout:
            return ""
        if proc is None:
            return ""
        if proc.returncode != 0:
            _logger.debug("git %s failed: %s", " ".join(args), proc.stderr.strip())
            return ""
        return proc.stdout.strip() if strip else proc.stdout
