"""Issue — one concrete match of a rule against a file/line."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import Severity


@dataclass(frozen=True, slots=True)
class Issue:
    """Immutable scanner finding.

    ``severity``, ``message`` and ``cwe`` are copied from the rule when the
    match is made, so later changes to a rule table never alter issues that
    were already produced.
    """

    file: str
    line: int
    rule_id: str
    severity: Severity
    message: str
    cwe: Optional[str] = None
    code_snippet: str = ""

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError(f"Issue line must be >= 1, got {self.line}")

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "line": self.line,
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "cwe": self.cwe,
            "code_snippet": self.code_snippet,
        }
