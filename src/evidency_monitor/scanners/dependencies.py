"""Dependency scanner — Composer manifest, security advisories, outdated packages.

Reads ``composer.json`` directly.  When ``composer.lock`` exists it also
runs ``composer audit`` (each advisory is one error) and
``composer outdated --direct`` (each significantly outdated package is one
warning).  A missing manifest, a missing ``composer`` binary or malformed
tool output all produce empty lists instead of failures.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Sequence

from evidency_monitor.model.scan_outcome import ScanOutcome
from evidency_monitor.scanners.process import DEFAULT_TOOL_TIMEOUT, ToolTimeout, run_tool

_logger = logging.getLogger(__name__)

_MAJOR_MINOR_RE = re.compile(r"^v?(\d+)\.(\d+)")


def parse_packages(composer: dict[str, Any]) -> list[dict[str, Any]]:
    """List ``require`` (minus ``php``/``ext-*``) and ``require-dev`` entries."""
    packages: list[dict[str, Any]] = []
    for name, version in (composer.get("require") or {}).items():
        if name == "php" or name.startswith("ext-"):
            continue
        packages.append({"name": name, "version": version, "dev": False})
    for name, version in (composer.get("require-dev") or {}).items():
        packages.append({"name": name, "version": version, "dev": True})
    return packages


def advisory_severity(advisory: dict[str, Any]) -> str:
    """Guess an advisory's severity from its title."""
    title = str(advisory.get("title") or "").lower()
    if "critical" in title or "remote code" in title:
        return "critical"
    if "sql injection" in title or "xss" in title:
        return "high"
    if "denial" in title or "dos" in title:
        return "medium"
    return "unknown"


def is_significant_update(current: str, latest: str) -> bool:
    """Newer major version, or same major and at least two minors ahead."""
    cur = _MAJOR_MINOR_RE.match(current or "")
    new = _MAJOR_MINOR_RE.match(latest or "")
    if not cur or not new:
        return False
    cur_major, cur_minor = int(cur.group(1)), int(cur.group(2))
    new_major, new_minor = int(new.group(1)), int(new.group(2))
    if new_major > cur_major:
        return True
    return new_major == cur_major and new_minor - cur_minor >= 2


def parse_audit(output: str) -> list[dict[str, Any]]:
    """Flatten ``composer audit --format=json`` advisories."""
    data = _load_json(output)
    advisories = data.get("advisories") if isinstance(data, dict) else None
    if not isinstance(advisories, dict):
        return []

    vulnerabilities: list[dict[str, Any]] = []
    for package, entries in advisories.items():
        # composer emits a list, or an index-keyed object for sparse arrays
        if isinstance(entries, dict):
            entries = list(entries.values())
        for advisory in entries or []:
            if not isinstance(advisory, dict):
                continue
            vulnerabilities.append({
                "package": package,
                "title": advisory.get("title") or "Unknown",
                "cve": advisory.get("cve"),
                "link": advisory.get("link"),
                "affected_versions": advisory.get("affectedVersions"),
                "severity": advisory_severity(advisory),
            })
    return vulnerabilities


def parse_outdated(output: str) -> list[dict[str, Any]]:
    """Keep only significant updates from ``composer outdated --format=json``."""
    data = _load_json(output)
    installed = data.get("installed") if isinstance(data, dict) else None
    if not isinstance(installed, list):
        return []

    outdated: list[dict[str, Any]] = []
    for package in installed:
        if not isinstance(package, dict):
            continue
        current = str(package.get("version") or "")
        latest = str(package.get("latest") or "")
        if is_significant_update(current, latest):
            outdated.append({
                "name": package.get("name") or "",
                "current": current,
                "latest": latest,
                "description": package.get("description") or "",
            })
    return outdated


def _load_json(output: str) -> Any:
    # composer may print warnings before the JSON document
    start = output.find("{")
    if start < 0:
        return None
    try:
        return json.loads(output[start:])
    except json.JSONDecodeError:
        _logger.debug("Malformed composer JSON output ignored")
        return None


class DependencyScanner:
    """Composer dependency audit for one project."""

    name: str = "dependencies"
    version: str = "1.0.0"

    def __init__(
        self,
        *,
        composer_binary: str = "composer",
        timeout: float = DEFAULT_TOOL_TIMEOUT * 2,
    ) -> None:
        self.composer_binary = composer_binary
        self._timeout = timeout

    def scan(self, root: Path, files: Sequence[Path]) -> ScanOutcome:
        root = Path(root)
        composer_file = root / "composer.json"
        lock_file = root / "composer.lock"

        extra: dict[str, Any] = {
            "has_composer": False,
            "has_lockfile": False,
            "packages": [],
            "vulnerabilities": [],
            "outdated": [],
        }
        if not composer_file.is_file():
            return ScanOutcome(scanner_name=self.name, extra=extra)

        extra["has_composer"] = True
        extra["has_lockfile"] = lock_file.is_file()

        composer = self._read_manifest(composer_file)
        if composer:
            extra["packages"] = parse_packages(composer)

        if extra["has_lockfile"]:
            extra["vulnerabilities"] = self._run_json("audit", root, parse_audit)
            extra["outdated"] = self._run_json("outdated", root, parse_outdated, "--direct")

        return ScanOutcome(
            scanner_name=self.name,
            errors=len(extra["vulnerabilities"]),
            warnings=len(extra["outdated"]),
            extra=extra,
        )

    @staticmethod
    def _read_manifest(path: Path) -> Optional[dict[str, Any]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("Could not parse %s: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None

    def _run_json(self, command: str, root: Path, parse, *args: str) -> list[dict[str, Any]]:
        try:
            proc = run_tool(
                [self.composer_binary, command, *args, "--format=json"],
                cwd=root,
                timeout=self._timeout,
            )
        except ToolTimeout:
            return []
        if proc is None:
            return []
        return parse(proc.stdout)
