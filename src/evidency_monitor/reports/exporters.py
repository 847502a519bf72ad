"""Multi-format exporters for run results.

Supports:

*  **Text** — one report per project plus a ``SUMMARY`` table.
*  **JSON** — full run plus one document per project, stable key order.
*  **HTML** — self-contained HTML document with embedded CSS.

The ``render_*`` / ``export_*`` functions return strings; the reporter
classes write them to disk.
"""

from __future__ import annotations

import html as html_mod
from pathlib import Path
from typing import Any, Callable, Mapping

from evidency_monitor.model import SEVERITY_ORDER, Severity
from evidency_monitor.model.run_result import ProjectResult, RunResult
from evidency_monitor.model.scan_outcome import ScanOutcome
from evidency_monitor.reports import report_date, safe_name
from evidency_monitor.utils.json_norm import stable_json_dumps

_SEP = "=" * 70
_SEP_MINI = "-" * 70


# ════════════════════════════════════════════════════════════════════
# Text exporter
# ════════════════════════════════════════════════════════════════════


def _format_syntax(outcome: ScanOutcome) -> list[str]:
    if outcome.extra.get("linter_available") is False:
        return [f"Status: SKIPPED - {outcome.message}"]
    if not outcome.issues:
        return [
            "Status: OK - No syntax errors found",
            f"Files checked: {outcome.files_checked}",
        ]
    lines = [f"Status: ERRORS FOUND ({len(outcome.issues)})", ""]
    for issue in outcome.issues:
        lines.append(f"File: {issue.file} (line {issue.line})")
        lines.append(f"Error: {issue.message}")
        lines.append("")
    return lines


def _format_security(outcome: ScanOutcome) -> list[str]:
    if not outcome.issues:
        return [
            "Status: OK - No security issues found",
            f"Files checked: {outcome.files_checked}, skipped: {outcome.files_skipped}",
        ]
    lines = ["Status: ISSUES FOUND", "", "Summary:"]
    for sev in SEVERITY_ORDER:
        label = f"{sev.value.capitalize()}:"
        lines.append(f"  {label:<9} {outcome.severity_summary.get(sev, 0)}")
    lines.append("")

    for sev in SEVERITY_ORDER:
        bucket = [i for i in outcome.issues if i.severity == sev]
        if not bucket:
            continue
        lines.append(f"{sev.value.upper()} Issues:")
        for issue in bucket:
            lines.append(f"  [{issue.cwe or '-'}] {issue.file}:{issue.line}")
            lines.append(f"    {issue.message}")
            if issue.code_snippet:
                lines.append(f"    > {issue.code_snippet}")
        lines.append("")
    return lines


def _format_git(outcome: ScanOutcome) -> list[str]:
    extra = outcome.extra
    if not extra.get("is_git_repo"):
        return ["Not a git repository"]

    last = extra.get("last_commit") or {}
    lines = [
        f"Branch:      {extra.get('current_branch') or '-'}",
        f"Last commit: {last.get('short_hash', '')} - {last.get('message', '')}",
        f"Author:      {last.get('author', '')} <{last.get('email', '')}>",
        f"Date:        {last.get('date', '')}",
        "",
    ]
    recent = extra.get("recent_commits") or []
    if recent:
        lines.append(f"Recent commits: {len(recent)}")
        for commit in recent[:10]:
            lines.append(f"  {commit['hash']} {commit['message']}")
    else:
        lines.append("No recent commits")

    changes = extra.get("uncommitted_changes") or []
    if changes:
        lines.append("")
        lines.append(f"Uncommitted changes: {len(changes)}")
        for change in changes:
            lines.append(f"  [{change['status']}] {change['file']}")
    return lines


def _format_dependencies(outcome: ScanOutcome) -> list[str]:
    extra = outcome.extra
    if not extra.get("has_composer"):
        return ["No composer.json found"]

    lines = [f"Packages: {len(extra.get('packages') or [])}"]
    vulns = extra.get("vulnerabilities") or []
    if vulns:
        lines.append("")
        lines.append(f"VULNERABILITIES FOUND: {len(vulns)}")
        for vuln in vulns:
            lines.append(f"  [{vuln['severity']}] {vuln['package']}")
            lines.append(f"    {vuln['title']}")
            if vuln.get("cve"):
                lines.append(f"    CVE: {vuln['cve']}")
    else:
        lines.append("No known vulnerabilities")

    outdated = extra.get("outdated") or []
    if outdated:
        lines.append("")
        lines.append(f"Outdated packages: {len(outdated)}")
        for pkg in outdated:
            lines.append(f"  {pkg['name']}: {pkg['current']} -> {pkg['latest']}")
    return lines


_SECTION_FORMATTERS: Mapping[str, Callable[[ScanOutcome], list[str]]] = {
    "syntax": _format_syntax,
    "security": _format_security,
    "git": _format_git,
    "dependencies": _format_dependencies,
}


def _format_generic(outcome: ScanOutcome) -> list[str]:
    return stable_json_dumps(outcome.to_dict()).rstrip("\n").splitlines()


def render_text_project(project: ProjectResult) -> str:
    """Human-readable report for one project."""
    lines = [
        _SEP,
        f"CODE VALIDATION REPORT - {project.name}",
        _SEP,
        "",
        f"Timestamp:      {project.timestamp}",
        f"Project:        {project.name}",
        f"Path:           {project.path}",
        f"Files scanned:  {project.files_scanned}",
        f"Errors:         {project.errors}",
        f"Warnings:       {project.warnings}",
        "",
    ]
    if project.error:
        lines += [f"ERROR: {project.error}", ""]

    for scanner_name, outcome in project.scanner_results.items():
        lines += [_SEP_MINI, f"{scanner_name.upper()} SCANNER", _SEP_MINI]
        lines += _SECTION_FORMATTERS.get(scanner_name, _format_generic)(outcome)
        lines.append("")

    lines += [_SEP, "END OF REPORT", _SEP]
    return "\n".join(lines) + "\n"


def render_text_summary(result: RunResult) -> str:
    """Cross-project summary table with run totals and status."""
    lines = [
        _SEP,
        "EVIDENCY MONITOR - SUMMARY REPORT",
        _SEP,
        "",
        f"Timestamp:   {result.timestamp}",
        f"Projects:    {len(result.projects)}",
        "",
        _SEP_MINI,
        f"{'Project':<20} | {'Files':<10} | {'Errors':<8} | {'Warnings':<10} | Changes",
        _SEP_MINI,
    ]
    for name, project in result.projects.items():
        changes = "YES" if project.has_changes else "NO"
        lines.append(
            f"{name[:20]:<20} | {project.files_scanned:<10d} | {project.errors:<8d} | "
            f"{project.warnings:<10d} | {changes}"
        )
    summary = result.summary
    lines += [
        _SEP_MINI,
        "",
        "TOTALS:",
        f"  Files:    {summary.total_files}",
        f"  Errors:   {summary.total_errors}",
        f"  Warnings: {summary.total_warnings}",
        "",
        f"STATUS: {summary.status.value}",
        "",
        _SEP,
    ]
    return "\n".join(lines) + "\n"


class TextReporter:
    """``<date>-<project>[-no_changes].txt`` per project plus ``<date>-SUMMARY.txt``."""

    name: str = "text"

    def generate(self, result: RunResult, out_dir: Path) -> list[Path]:
        date = report_date(result)
        files: list[Path] = []
        for name, project in result.projects.items():
            suffix = "" if project.has_changes else "-no_changes"
            path = out_dir / f"{date}-{safe_name(name)}{suffix}.txt"
            path.write_text(render_text_project(project), encoding="utf-8")
            files.append(path)

        summary_path = out_dir / f"{date}-SUMMARY.txt"
        summary_path.write_text(render_text_summary(result), encoding="utf-8")
        files.append(summary_path)
        return files


# ════════════════════════════════════════════════════════════════════
# JSON exporter
# ════════════════════════════════════════════════════════════════════


def export_json(result: RunResult, *, indent: int = 2) -> str:
    """Export a ``RunResult`` as indented JSON."""
    return stable_json_dumps(result.to_dict(), indent=indent)


class JsonReporter:
    """``<date>-full-report.json`` plus ``<date>-<project>.json`` per project."""

    name: str = "json"

    def generate(self, result: RunResult, out_dir: Path) -> list[Path]:
        date = report_date(result)
        full = out_dir / f"{date}-full-report.json"
        full.write_text(export_json(result), encoding="utf-8")
        files = [full]
        for name, project in result.projects.items():
            path = out_dir / f"{date}-{safe_name(name)}.json"
            path.write_text(stable_json_dumps(project.to_dict()), encoding="utf-8")
            files.append(path)
        return files


# ════════════════════════════════════════════════════════════════════
# HTML exporter
# ════════════════════════════════════════════════════════════════════

_SEVERITY_COLOR = {
    Severity.CRITICAL: "#dc3545",
    Severity.HIGH: "#fd7e14",
    Severity.MEDIUM: "#ffc107",
    Severity.LOW: "#17a2b8",
}

_STATUS_COLOR = {"OK": "#28a745", "WARNINGS": "#ffc107", "ERRORS": "#dc3545"}

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Evidency Monitor Report</title>
<style>
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 2rem; color: #212529; }}
  h1 {{ color: #343a40; }}
  .summary {{ background: #f8f9fa; padding: 1rem; border-radius: 6px; margin-bottom: 1.5rem; }}
  .badge {{ display: inline-block; padding: 2px 8px; border-radius: 4px; color: #fff; font-size: 0.85em; font-weight: 600; }}
  table {{ border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }}
  th, td {{ text-align: left; padding: 6px 12px; border-bottom: 1px solid #dee2e6; }}
  th {{ background: #e9ecef; }}
  .issue {{ margin-bottom: 0.75rem; }}
  .error {{ color: #dc3545; }}
  footer {{ margin-top: 2rem; color: #6c757d; font-size: 0.85em; }}
</style>
</head>
<body>
{body}
</body>
</html>
"""


def _badge(label: str, color: str) -> str:
    return f'<span class="badge" style="background:{color}">{html_mod.escape(label)}</span>'


def _html_project(project: ProjectResult) -> list[str]:
    esc = html_mod.escape
    parts = [
        f"<h2>{esc(project.name)}</h2>",
        f"<p><code>{esc(project.path)}</code> &mdash; {project.files_scanned} files, "
        f"{project.errors} errors, {project.warnings} warnings</p>",
    ]
    if project.error:
        parts.append(f'<p class="error">{esc(project.error)}</p>')

    for scanner_name, outcome in project.scanner_results.items():
        parts.append(
            f"<h3>{esc(scanner_name)}</h3>"
            f"<p>errors: {outcome.errors}, warnings: {outcome.warnings}</p>"
        )
        if outcome.message:
            parts.append(f"<p>{esc(outcome.message)}</p>")
        for issue in outcome.issues:
            loc = f"{issue.file}:{issue.line}"
            parts.append(
                f'<div class="issue">'
                f"{_badge(issue.severity.value.upper(), _SEVERITY_COLOR[issue.severity])} "
                f"<code>{esc(loc)}</code> {esc(issue.cwe or '')} &mdash; {esc(issue.message)}"
                f"</div>"
            )
    return parts


def export_html(result: RunResult) -> str:
    """Export a ``RunResult`` as a self-contained HTML document."""
    esc = html_mod.escape
    summary = result.summary
    status = summary.status.value

    parts = [
        "<h1>Evidency Monitor Report</h1>",
        '<div class="summary">',
        f"<p><strong>Timestamp:</strong> {esc(result.timestamp)}</p>",
        f"<p><strong>Status:</strong> {_badge(status, _STATUS_COLOR[status])}</p>",
        f"<p><strong>Files:</strong> {summary.total_files} &bull; "
        f"<strong>Errors:</strong> {summary.total_errors} &bull; "
        f"<strong>Warnings:</strong> {summary.total_warnings}</p>",
        "</div>",
        "<table><tr><th>Project</th><th>Files</th><th>Errors</th>"
        "<th>Warnings</th><th>Changes</th></tr>",
    ]
    for name, project in result.projects.items():
        parts.append(
            f"<tr><td>{esc(name)}</td><td>{project.files_scanned}</td>"
            f"<td>{project.errors}</td><td>{project.warnings}</td>"
            f"<td>{'YES' if project.has_changes else 'NO'}</td></tr>"
        )
    parts.append("</table>")

    for project in result.projects.values():
        parts.extend(_html_project(project))

    parts.append(f"<footer>Generated by evidency-monitor {esc(result.tool_version)}</footer>")
    return _HTML_TEMPLATE.format(body="\n".join(parts))


class HtmlReporter:
    """``<date>-report.html``."""

    name: str = "html"

    def generate(self, result: RunResult, out_dir: Path) -> list[Path]:
        path = out_dir / f"{report_date(result)}-report.html"
        path.write_text(export_html(result), encoding="utf-8")
        return [path]


REPORTERS: Mapping[str, Callable[[], Any]] = {
    "text": TextReporter,
    "json": JsonReporter,
    "html": HtmlReporter,
}
