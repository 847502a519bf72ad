"""
evidency_monitor.api
====================

Programmatic entrypoints for running the monitor from other code.

Goals:
  - No argparse / CLI dependencies
  - Deterministic mode support (ci_mode=True)
  - Components assembled from a ``MonitorConfig`` only

Usage::

    from evidency_monitor.api import run_monitor
    from evidency_monitor.core.config import MonitorConfig

    config = MonitorConfig().with_project("shop", "/srv/www/shop")
    result, reports = run_monitor(config, ci_mode=True)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from evidency_monitor.contracts.load import validate_instance as _validate_instance
from evidency_monitor.core.config import ConfigError, MonitorConfig
from evidency_monitor.core.runner import Orchestrator
from evidency_monitor.model.rule import RuleTable
from evidency_monitor.model.run_result import RunResult, now_iso_utc
from evidency_monitor.notify import Notifier
from evidency_monitor.reports import Reporter
from evidency_monitor.reports.exporters import REPORTERS
from evidency_monitor.scanners import Scanner
from evidency_monitor.scanners.dependencies import DependencyScanner
from evidency_monitor.scanners.git import GitScanner
from evidency_monitor.scanners.security import (
    DEFAULT_SKIP_PATTERNS,
    SecurityAnalysisEngine,
    SecurityScanner,
    default_rule_table,
)
from evidency_monitor.scanners.syntax import SyntaxScanner

_logger = logging.getLogger(__name__)

# Fixed timestamp for deterministic mode (matches CLI contract).
_DETERMINISTIC_TIMESTAMP = "2000-01-01T00:00:00+00:00"


# ── component assembly ──────────────────────────────────────────────


def build_rule_table(config: MonitorConfig) -> RuleTable:
    """Shipped rules plus ``config.custom_rules`` (same id replaces)."""
    table = default_rule_table()
    for rule in config.custom_rules:
        try:
            table.register(
                rule.id,
                rule.pattern,
                rule.severity,
                rule.message,
                rule.cwe,
                flags=re.IGNORECASE if rule.ignore_case else 0,
            )
        except re.error as exc:
            raise ConfigError(f"rule {rule.id!r}: invalid pattern: {exc}") from exc
    return table


def build_scanners(config: MonitorConfig) -> list[Scanner]:
    """Enabled scanners, in the fixed order syntax, security, dependencies, git."""
    scanners: list[Scanner] = []
    if config.scanner_enabled("syntax"):
        scanners.append(
            SyntaxScanner(php_binary=config.php_binary, extensions=config.file_extensions)
        )
    if config.scanner_enabled("security"):
        skip = DEFAULT_SKIP_PATTERNS if config.skip_patterns is None else config.skip_patterns
        try:
            security = SecurityScanner(
                SecurityAnalysisEngine(build_rule_table(config)),
                extensions=config.file_extensions,
                skip_patterns=skip,
            )
        except re.error as exc:
            raise ConfigError(f"security.skip_patterns: invalid pattern: {exc}") from exc
        scanners.append(security)
    if config.scanner_enabled("dependencies"):
        scanners.append(DependencyScanner(composer_binary=config.composer_binary))
    if config.scanner_enabled("git"):
        scanners.append(GitScanner(git_binary=config.git_binary, recent_days=config.recent_days))
    return scanners


def build_reporters(config: MonitorConfig) -> list[Reporter]:
    return [factory() for name, factory in REPORTERS.items() if config.reporter_enabled(name)]


def build_notifiers(config: MonitorConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.webhook_url:
        from evidency_monitor.notify.webhook import WebhookNotifier

        notifiers.append(WebhookNotifier(config.webhook_url))
    return notifiers


def build_orchestrator(
    config: MonitorConfig,
    *,
    ci_mode: bool = False,
    scanner_timeout: Optional[float] = None,
) -> Orchestrator:
    """Wire every enabled component of *config* into an ``Orchestrator``."""
    clock = (lambda: _DETERMINISTIC_TIMESTAMP) if ci_mode else now_iso_utc
    return Orchestrator(
        config,
        build_scanners(config),
        reporters=build_reporters(config),
        notifiers=build_notifiers(config),
        scanner_timeout=scanner_timeout,
        clock=clock,
    )


# ── run_monitor ─────────────────────────────────────────────────────


def run_monitor(
    config: MonitorConfig,
    *,
    ci_mode: bool = False,
    write_reports: bool = True,
    notify: bool = True,
) -> tuple[RunResult, list[Path]]:
    """Scan every configured project.

    Returns ``(result, report_paths)``.  *report_paths* is empty when
    *write_reports* is False.

    Raises ``ConfigError`` if *config* holds no projects or an invalid
    custom rule.
    """
    if not config.projects:
        raise ConfigError("no projects configured")

    orchestrator = build_orchestrator(config, ci_mode=ci_mode)
    result = orchestrator.scan()
    reports = orchestrator.generate_reports(result) if write_reports else []
    if notify:
        orchestrator.notify(result)
    return result, reports


# ── validate_instance ───────────────────────────────────────────────


def validate_instance(instance: Any, schema_name: str) -> None:
    """Validate *instance* against a bundled schema.

    Raises ``jsonschema.ValidationError`` on failure.
    """
    _validate_instance(instance, schema_name)
