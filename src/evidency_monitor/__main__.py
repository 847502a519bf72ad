"""CLI entry-point for evidency_monitor.

Usage:
    python -m evidency_monitor [scan] --project shop=/srv/www/shop [--project NAME=PATH ...]
    python -m evidency_monitor scan --config evidency.yaml [--out DIR] [--format text,json,html]
    python -m evidency_monitor scan --config evidency.yaml --json --no-reports
    python -m evidency_monitor validate <instance.json> <schema_name>
    python -m evidency_monitor rules [--json]
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from evidency_monitor import __version__
from evidency_monitor.api import run_monitor, validate_instance as _api_validate_instance
from evidency_monitor.core.config import REPORTER_NAMES, ConfigError, MonitorConfig
from evidency_monitor.policy.status import exit_code_from_status
from evidency_monitor.scanners.security import default_rule_table
from evidency_monitor.utils.exit_codes import ExitCode
from evidency_monitor.utils.json_norm import stable_json_dumps

_logger = logging.getLogger("evidency_monitor")

_KNOWN_COMMANDS = {"scan", "validate", "rules"}


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="evidency-monitor",
        description="Rule-based code evidence scanning for PHP projects.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    sub = p.add_subparsers(dest="command")

    # ── scan ────────────────────────────────────────────────────────
    scan_p = sub.add_parser("scan", help="Scan configured projects and write reports.")
    scan_p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file.",
    )
    scan_p.add_argument(
        "--project",
        dest="projects",
        action="append",
        default=[],
        metavar="NAME=PATH",
        help="Add a project to scan (repeatable).",
    )
    scan_p.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="DIR",
        help="Extra directory name to exclude from discovery (repeatable).",
    )
    scan_p.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Directory to write reports into (default: ./reports).",
    )
    scan_p.add_argument(
        "--format",
        dest="formats",
        default=None,
        help="Comma-separated report formats: text,json,html.",
    )
    scan_p.add_argument(
        "--json",
        dest="json_out",
        action="store_true",
        default=False,
        help="Print the full RunResult JSON to stdout.",
    )
    scan_p.add_argument(
        "--no-reports",
        dest="write_reports",
        action="store_false",
        default=True,
        help="Do not write report files.",
    )
    scan_p.add_argument(
        "--webhook",
        default=None,
        metavar="URL",
        help="POST the run summary to this URL.",
    )
    scan_p.add_argument(
        "--ci",
        "--deterministic",
        dest="ci_mode",
        action="store_true",
        default=False,
        help="Use a fixed timestamp so repeated runs produce identical output.",
    )
    scan_p.add_argument("-v", "--verbose", action="store_true", default=False)

    # ── validate ────────────────────────────────────────────────────
    val_p = sub.add_parser("validate", help="Validate a JSON file against a bundled schema.")
    val_p.add_argument("instance", type=Path, help="JSON file to validate.")
    val_p.add_argument("schema_name", help="Schema filename, e.g. run_result.schema.json.")

    # ── rules ───────────────────────────────────────────────────────
    rules_p = sub.add_parser("rules", help="List the shipped security rules.")
    rules_p.add_argument("--json", dest="json_out", action="store_true", default=False)

    return p


def _parse_project(spec: str) -> tuple[str, Path]:
    name, sep, path = spec.partition("=")
    if not sep or not name.strip() or not path.strip():
        raise ConfigError(f"--project expects NAME=PATH, got {spec!r}")
    return name.strip(), Path(path.strip())


def _parse_formats(value: str) -> dict[str, bool]:
    wanted = [f.strip().lower() for f in value.split(",") if f.strip()]
    unknown = sorted(set(wanted) - set(REPORTER_NAMES))
    if unknown:
        raise ConfigError(f"unknown report format(s): {unknown} (known: {list(REPORTER_NAMES)})")
    return {name: name in wanted for name in REPORTER_NAMES}


def _config_from_args(args: argparse.Namespace) -> MonitorConfig:
    config = MonitorConfig.load(args.config)
    for spec in args.projects:
        name, path = _parse_project(spec)
        config = config.with_project(name, path)
    if args.exclude:
        config = replace(
            config,
            exclude_dirs=tuple(dict.fromkeys([*config.exclude_dirs, *args.exclude])),
        )
    if args.out is not None:
        config = replace(config, output_dir=args.out)
    if args.formats is not None:
        config = replace(config, reporters=_parse_formats(args.formats))
    if args.webhook:
        config = replace(config, webhook_url=args.webhook)
    return config


def _print_summary(result) -> None:
    """Human-readable totals on stderr."""
    summary = result.summary
    for name, project in result.projects.items():
        detail = f" ({project.error})" if project.error else ""
        print(
            f"  {name}: {project.files_scanned} files, {project.errors} errors, "
            f"{project.warnings} warnings{detail}",
            file=sys.stderr,
        )
    print(
        f"STATUS: {summary.status.value} - {summary.total_files} files, "
        f"{summary.total_errors} errors, {summary.total_warnings} warnings",
        file=sys.stderr,
    )


def _handle_scan(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        config = _config_from_args(args)
        result, reports = run_monitor(
            config,
            ci_mode=args.ci_mode,
            write_reports=args.write_reports,
        )
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR

    for path in reports:
        _logger.info("Report written: %s", path)

    if args.json_out:
        sys.stdout.write(stable_json_dumps(result.to_dict()))
    else:
        _print_summary(result)
    return exit_code_from_status(result.status)


def _handle_validate(args: argparse.Namespace) -> int:
    import json as _json

    try:
        instance_dict = _json.loads(Path(args.instance).read_text(encoding="utf-8"))
        _api_validate_instance(instance_dict, args.schema_name)
    except Exception as e:
        # Exit code contract:
        #   1 = schema violation
        #   2 = runtime / schema not found / unexpected error
        import jsonschema

        if isinstance(e, jsonschema.exceptions.ValidationError):
            print(f"FAIL: {e.message}", file=sys.stderr)
            return ExitCode.VIOLATION
        print(f"ERROR: {e}", file=sys.stderr)
        return ExitCode.ERROR
    print("OK")
    return ExitCode.SUCCESS


def _handle_rules(args: argparse.Namespace) -> int:
    rules = default_rule_table().all()
    if args.json_out:
        rows = [
            {
                "id": r.id,
                "severity": r.severity.value,
                "cwe": r.cwe,
                "message": r.message,
                "pattern": r.matcher.pattern,
            }
            for r in rules
        ]
        sys.stdout.write(stable_json_dumps(rows))
        return ExitCode.SUCCESS
    for r in rules:
        print(f"{r.id:<28} {r.severity.value:<9} {r.cwe or '-':<9} {r.message}")
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Entry-point — returns an exit code (0 = OK, 1 = WARNINGS, 2 = ERRORS)."""
    effective_argv = list(argv) if argv is not None else sys.argv[1:]

    # `evidency-monitor --project a=/x` is shorthand for `evidency-monitor scan ...`.
    first_positional = next((a for a in effective_argv if not a.startswith("-")), None)
    top_level_flag = effective_argv[:1] in (["-h"], ["--help"], ["--version"])
    if not top_level_flag and first_positional not in _KNOWN_COMMANDS:
        effective_argv = ["scan", *effective_argv]

    args = _build_parser().parse_args(effective_argv)

    if args.command == "validate":
        return _handle_validate(args)
    if args.command == "rules":
        return _handle_rules(args)
    return _handle_scan(args)


if __name__ == "__main__":
    raise SystemExit(main())
