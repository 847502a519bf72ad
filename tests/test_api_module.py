"""Programmatic API — component assembly from MonitorConfig and run_monitor."""

from __future__ import annotations

import pytest

import evidency_monitor
from evidency_monitor.api import (
    build_notifiers,
    build_reporters,
    build_rule_table,
    build_scanners,
    run_monitor,
)
from evidency_monitor.core.config import ConfigError, CustomRule, MonitorConfig
from evidency_monitor.model import RunStatus, Severity
from evidency_monitor.notify.webhook import WebhookNotifier
from evidency_monitor.scanners.security import SecurityScanner, default_rule_table

ONLY_SECURITY = {"syntax": False, "security": True, "dependencies": False, "git": False}


def test_package_exports():
    assert evidency_monitor.__version__
    assert evidency_monitor.run_monitor is run_monitor
    assert evidency_monitor.MonitorConfig is MonitorConfig


class TestBuild:
    def test_default_scanner_order(self):
        assert [s.name for s in build_scanners(MonitorConfig())] == [
            "syntax",
            "security",
            "dependencies",
            "git",
        ]

    def test_disabled_scanners_are_left_out(self):
        config = MonitorConfig(scanners=ONLY_SECURITY)
        scanners = build_scanners(config)

        assert [s.name for s in scanners] == ["security"]
        assert isinstance(scanners[0], SecurityScanner)

    def test_custom_rules_appended_and_override(self):
        config = MonitorConfig(custom_rules=(
            CustomRule("SEC_ASSERT_001", r"\bassert\s*\(", Severity.HIGH, "assert()", "CWE-95", True),
            CustomRule("SEC_EVAL_001", r"\beval\s*\(", Severity.LOW, "eval downgraded"),
        ))
        table = build_rule_table(config)
        ids = [r.id for r in table.all()]

        assert len(table) == len(default_rule_table()) + 1
        assert ids[0] == "SEC_EVAL_001"
        assert ids[-1] == "SEC_ASSERT_001"
        assert table.get("SEC_EVAL_001").severity is Severity.LOW
        assert table.get("SEC_ASSERT_001").matcher.search("ASSERT($x)")

    def test_invalid_custom_pattern(self):
        config = MonitorConfig(custom_rules=(CustomRule("BAD_RULE_001", "(", Severity.LOW, "bad"),))
        with pytest.raises(ConfigError, match="BAD_RULE_001"):
            build_rule_table(config)

    def test_invalid_skip_pattern(self):
        config = MonitorConfig(scanners=ONLY_SECURITY, skip_patterns=("[",))
        with pytest.raises(ConfigError):
            build_scanners(config)

    def test_skip_patterns_from_config(self):
        config = MonitorConfig(scanners=ONLY_SECURITY, skip_patterns=("^legacy_",))
        (security,) = build_scanners(config)

        assert security.is_excluded("legacy_api.php")
        assert not security.is_excluded("admin_users.php")

    def test_reporters_follow_toggles(self):
        config = MonitorConfig(reporters={"text": False, "json": True, "html": True})
        assert [r.name for r in build_reporters(config)] == ["json", "html"]

    def test_webhook_notifier_only_when_configured(self):
        assert build_notifiers(MonitorConfig()) == []
        (notifier,) = build_notifiers(MonitorConfig(webhook_url="https://hooks.example.com/x"))
        assert isinstance(notifier, WebhookNotifier)
        assert notifier.url == "https://hooks.example.com/x"


class TestRunMonitor:
    def test_requires_projects(self):
        with pytest.raises(ConfigError, match="no projects"):
            run_monitor(MonitorConfig())

    def test_ci_mode_run(self, tmp_path):
        project = tmp_path / "app"
        project.mkdir()
        (project / "index.php").write_text("<?php\nsystem($cmd);\n", encoding="utf-8")
        config = MonitorConfig(output_dir=tmp_path / "out", scanners=ONLY_SECURITY).with_project(
            "app", project
        )

        result, reports = run_monitor(config, ci_mode=True)

        assert result.timestamp == "2000-01-01T00:00:00+00:00"
        assert result.status is RunStatus.WARNINGS
        assert sorted(p.name for p in reports) == [
            "2000-01-01-SUMMARY.txt",
            "2000-01-01-app-no_changes.txt",
            "2000-01-01-app.json",
            "2000-01-01-full-report.json",
        ]

    def test_no_reports(self, tmp_path):
        project = tmp_path / "app"
        project.mkdir()
        config = MonitorConfig(output_dir=tmp_path / "out", scanners=ONLY_SECURITY).with_project(
            "app", project
        )

        result, reports = run_monitor(config, write_reports=False)

        assert reports == []
        assert not (tmp_path / "out").exists()
        assert result.status is RunStatus.OK
