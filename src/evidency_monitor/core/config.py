"""Monitor configuration dataclasses and YAML loading.

Example ``evidency.yaml``::

    output_dir: reports
    projects:
      shop:
        path: /srv/www/shop
        exclude: [cache, uploads]
    scanners: {syntax: true, security: true, dependencies: true, git: true}
    reporters: {text: true, json: true, html: false}
    exclude_dirs: [vendor, node_modules, .git, tests]
    file_extensions: [php]
    security:
      skip_patterns: ['^admin[_-]']
      rules:
        - id: SEC_ASSERT_001
          pattern: '\\bassert\\s*\\('
          severity: high
          message: assert() with a string argument evaluates code
          cwe: CWE-95
          ignore_case: true
    tools: {php: php, composer: composer, git: git}
    git: {recent_days: 7}
    notify: {webhook_url: https://hooks.example.com/evidency}
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from evidency_monitor.core.discover import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXTENSIONS
from evidency_monitor.model import Severity

SCANNER_NAMES = ("syntax", "security", "dependencies", "git")
REPORTER_NAMES = ("text", "json", "html")

OUTPUT_DIR_ENV = "EVIDENCY_OUTPUT_DIR"


class ConfigError(ValueError):
    """Raised for invalid configuration before a run starts."""


@dataclass(frozen=True)
class ProjectConfig:
    """One project to scan; *exclude* is merged with the global exclusions."""

    name: str
    path: Path
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class CustomRule:
    """A rule registered on top of the shipped rule table."""

    id: str
    pattern: str
    severity: Severity
    message: str
    cwe: Optional[str] = None
    ignore_case: bool = False


@dataclass(frozen=True)
class MonitorConfig:
    """Immutable monitor configuration.

    Defaults: all scanners on, text and JSON reports on, HTML off.
    """

    output_dir: Path = Path("reports")
    projects: tuple[ProjectConfig, ...] = ()
    scanners: Mapping[str, bool] = field(
        default_factory=lambda: {name: True for name in SCANNER_NAMES}
    )
    reporters: Mapping[str, bool] = field(
        default_factory=lambda: {"text": True, "json": True, "html": False}
    )
    exclude_dirs: tuple[str, ...] = tuple(sorted(DEFAULT_EXCLUDE_DIRS))
    file_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    skip_patterns: Optional[tuple[str, ...]] = None  # None = shipped defaults
    custom_rules: tuple[CustomRule, ...] = ()
    php_binary: str = "php"
    composer_binary: str = "composer"
    git_binary: str = "git"
    recent_days: int = 7
    webhook_url: Optional[str] = None

    def with_project(
        self,
        name: str,
        path: Path | str,
        exclude: tuple[str, ...] | list[str] = (),
    ) -> "MonitorConfig":
        """Return a copy with project *name* added (or replaced)."""
        project = ProjectConfig(name=name, path=Path(path), exclude=tuple(exclude))
        others = tuple(p for p in self.projects if p.name != name)
        return replace(self, projects=others + (project,))

    def scanner_enabled(self, name: str) -> bool:
        return bool(self.scanners.get(name, False))

    def reporter_enabled(self, name: str) -> bool:
        return bool(self.reporters.get(name, False))

    # ── loading ─────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MonitorConfig":
        """Build a config from a plain mapping (e.g. parsed YAML)."""
        if not isinstance(data, Mapping):
            raise ConfigError("config root must be a mapping")

        kwargs: dict[str, Any] = {}
        if "output_dir" in data:
            kwargs["output_dir"] = Path(data["output_dir"])
        if "projects" in data:
            kwargs["projects"] = _parse_projects(data["projects"])
        if "scanners" in data:
            kwargs["scanners"] = _parse_toggles(data["scanners"], SCANNER_NAMES, "scanners")
        if "reporters" in data:
            kwargs["reporters"] = _parse_toggles(data["reporters"], REPORTER_NAMES, "reporters")
        if "exclude_dirs" in data:
            kwargs["exclude_dirs"] = _str_tuple(data["exclude_dirs"], "exclude_dirs")
        if "file_extensions" in data:
            kwargs["file_extensions"] = _str_tuple(data["file_extensions"], "file_extensions")

        security = data.get("security") or {}
        if "skip_patterns" in security:
            kwargs["skip_patterns"] = _str_tuple(security["skip_patterns"], "security.skip_patterns")
        if "rules" in security:
            kwargs["custom_rules"] = tuple(_parse_rule(r) for r in security["rules"] or [])

        tools = data.get("tools") or {}
        for key, attr in (("php", "php_binary"), ("composer", "composer_binary"), ("git", "git_binary")):
            if key in tools:
                kwargs[attr] = str(tools[key])

        git = data.get("git") or {}
        if "recent_days" in git:
            try:
                kwargs["recent_days"] = int(git["recent_days"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"git.recent_days must be an integer: {exc}") from exc

        notify = data.get("notify") or {}
        if notify.get("webhook_url"):
            kwargs["webhook_url"] = str(notify["webhook_url"])

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "MonitorConfig":
        """Load configuration from a YAML file."""
        import yaml

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "MonitorConfig":
        """Load from *path* (if given) and apply environment overrides."""
        config = cls.from_yaml(path) if path is not None else cls()
        env_out = os.getenv(OUTPUT_DIR_ENV)
        if env_out:
            config = replace(config, output_dir=Path(env_out))
        return config


# ── parsing helpers ─────────────────────────────────────────────────


def _str_tuple(value: Any, what: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"{what} must be a list of strings")
    return tuple(str(v) for v in value)


def _parse_toggles(value: Any, known: tuple[str, ...], what: str) -> dict[str, bool]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{what} must be a mapping of name -> bool")
    unknown = sorted(set(value) - set(known))
    if unknown:
        raise ConfigError(f"unknown {what}: {unknown} (known: {list(known)})")
    toggles = {name: False for name in known}
    toggles.update({name: bool(on) for name, on in value.items()})
    return toggles


def _parse_projects(value: Any) -> tuple[ProjectConfig, ...]:
    if not isinstance(value, Mapping):
        raise ConfigError("projects must be a mapping of name -> {path, exclude}")
    projects = []
    for name, spec in value.items():
        if isinstance(spec, str):
            spec = {"path": spec}
        if not isinstance(spec, Mapping) or "path" not in spec:
            raise ConfigError(f"project {name!r} needs a 'path'")
        exclude = _str_tuple(spec.get("exclude") or [], f"projects.{name}.exclude")
        projects.append(ProjectConfig(name=str(name), path=Path(spec["path"]), exclude=exclude))
    return tuple(projects)


def _parse_rule(value: Any) -> CustomRule:
    if not isinstance(value, Mapping):
        raise ConfigError("security.rules entries must be mappings")
    missing = [k for k in ("id", "pattern", "severity", "message") if k not in value]
    if missing:
        raise ConfigError(f"security rule is missing {missing}")
    try:
        severity = Severity(str(value["severity"]).lower())
    except ValueError as exc:
        raise ConfigError(
            f"rule {value['id']!r}: severity must be one of {[s.value for s in Severity]}"
        ) from exc
    return CustomRule(
        id=str(value["id"]),
        pattern=str(value["pattern"]),
        severity=severity,
        message=str(value["message"]),
        cwe=str(value["cwe"]) if value.get("cwe") else None,
        ignore_case=bool(value.get("ignore_case", False)),
    )
