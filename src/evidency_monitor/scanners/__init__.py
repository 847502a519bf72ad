"""Scanners produce a ``ScanOutcome`` for one project.

Every scanner exposes ``name``, ``version`` and
``scan(root, files) -> ScanOutcome``.  ``name`` is the key under which the
outcome is stored in ``ProjectResult.scanner_results``.

Recoverable conditions (missing manifest, missing external tool, a
directory that is not a repository, malformed tool output) are reported as
a degraded outcome, never raised.

Available scanners:
    - SecurityScanner: rule-table pattern matching with CWE metadata
    - SyntaxScanner: ``php -l`` lint per file
    - DependencyScanner: Composer manifest + ``composer audit``/``outdated``
    - GitScanner: branch, commits, uncommitted changes, contributors
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from evidency_monitor.model.scan_outcome import ScanOutcome


class Scanner(Protocol):
    """Every scanner must expose ``name``, ``version``, and ``scan()``."""

    name: str
    version: str

    def scan(self, root: Path, files: Sequence[Path]) -> ScanOutcome:
        """Scan *files* under *root* and return one outcome."""
        ...


def normalize_extensions(extensions: Sequence[str]) -> frozenset[str]:
    """``[".PHP", "inc"]`` → ``{"php", "inc"}``."""
    return frozenset(e.lower().lstrip(".") for e in extensions if e)


def has_extension(path: Path, extensions: frozenset[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def relative_to_root(path: Path, root: Path) -> str:
    """POSIX path of *path* relative to *root*, or *path* itself if outside."""
    try:
        return path.absolute().relative_to(root.absolute()).as_posix()
    except ValueError:
        return path.as_posix()


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    if name in ("SecurityScanner", "SecurityAnalysisEngine"):
        from . import security
        return getattr(security, name)
    if name == "SyntaxScanner":
        from .syntax import SyntaxScanner
        return SyntaxScanner
    if name == "DependencyScanner":
        from .dependencies import DependencyScanner
        return DependencyScanner
    if name == "GitScanner":
        from .git import GitScanner
        return GitScanner
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
