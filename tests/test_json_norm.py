"""stable_json_dumps — canonical ordering and type normalisation."""

from __future__ import annotations

import io
from pathlib import Path
from types import MappingProxyType

from evidency_monitor.model import RunStatus, Severity
from evidency_monitor.model.issue import Issue
from evidency_monitor.utils.json_norm import stable_json_dump, stable_json_dumps


def test_sorted_keys_and_trailing_newline():
    s = stable_json_dumps({"b": 1, "a": 2})
    assert s == '{\n  "a": 2,\n  "b": 1\n}\n'


def test_compact_mode():
    assert stable_json_dumps({"b": 1, "a": [1, 2]}, indent=None) == '{"a": [1, 2], "b": 1}\n'


def test_normalises_paths_enums_mappings_and_models():
    issue = Issue(file="a.php", line=2, rule_id="X", severity=Severity.HIGH, message="m")
    data = {
        "path": Path("a") / "b.php",
        "status": RunStatus.WARNINGS,
        "counts": MappingProxyType({Severity.LOW: 1}),
        "issues": (issue,),
    }
    s = stable_json_dumps(data, indent=None)

    assert '"path": "a/b.php"' in s
    assert '"status": "WARNINGS"' in s
    assert '"counts": {"low": 1}' in s
    assert '"severity": "high"' in s


def test_non_ascii_is_kept():
    assert "café" in stable_json_dumps({"msg": "café"})


def test_dump_to_stream():
    buf = io.StringIO()
    stable_json_dump({"a": 1}, buf, indent=None)
    assert buf.getvalue() == '{"a": 1}\n'
