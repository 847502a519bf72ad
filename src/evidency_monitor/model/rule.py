"""Rule and RuleTable — the ordered, severity/CWE-classified pattern set."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from . import Severity


@dataclass(frozen=True, slots=True)
class Rule:
    """A single named detection pattern."""

    id: str
    matcher: re.Pattern[str]
    severity: Severity
    message: str
    cwe: Optional[str] = None


class RuleTable:
    """Ordered mapping ``rule_id -> Rule``.

    Registration order is match order.  Registering an existing id replaces
    the rule in place (last writer wins, original position kept).  Engines
    take a snapshot via :meth:`all`, so registrations made after an engine
    is built do not affect it.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(
        self,
        rule_id: str,
        pattern: Union[str, re.Pattern[str]],
        severity: Union[Severity, str],
        message: str,
        cwe: Optional[str] = None,
        *,
        flags: int = 0,
    ) -> "RuleTable":
        """Add or replace the rule *rule_id*.  Returns ``self`` for chaining."""
        if not rule_id:
            raise ValueError("rule_id must be a non-empty string")
        matcher = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        self._rules[rule_id] = Rule(
            id=rule_id,
            matcher=matcher,
            severity=Severity(severity),
            message=message,
            cwe=cwe,
        )
        return self

    def all(self) -> tuple[Rule, ...]:
        """Return the rules in registration order."""
        return tuple(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.all())
