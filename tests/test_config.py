"""MonitorConfig — defaults, dict/YAML loading, validation, env override."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from evidency_monitor.core.config import (
    OUTPUT_DIR_ENV,
    ConfigError,
    MonitorConfig,
)
from evidency_monitor.model import Severity


def write_yaml(path: Path, content: str) -> Path:
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults_mirror_monitor(self):
        config = MonitorConfig()

        assert config.output_dir == Path("reports")
        assert config.projects == ()
        assert all(config.scanner_enabled(n) for n in ("syntax", "security", "dependencies", "git"))
        assert config.reporter_enabled("text")
        assert config.reporter_enabled("json")
        assert not config.reporter_enabled("html")
        assert set(config.exclude_dirs) == {"vendor", "node_modules", ".git", "tests"}
        assert config.file_extensions == ("php",)
        assert config.recent_days == 7

    def test_with_project_adds_and_replaces(self, tmp_path):
        config = MonitorConfig().with_project("a", tmp_path).with_project("b", "/srv/b")
        config = config.with_project("a", "/srv/a2", ["cache"])

        assert [p.name for p in config.projects] == ["b", "a"]
        assert config.projects[1].path == Path("/srv/a2")
        assert config.projects[1].exclude == ("cache",)


class TestFromDict:
    def test_full_mapping(self):
        config = MonitorConfig.from_dict({
            "output_dir": "out",
            "projects": {
                "shop": {"path": "/srv/shop", "exclude": ["uploads"]},
                "blog": "/srv/blog",
            },
            "scanners": {"security": True, "git": False},
            "reporters": {"html": True},
            "security": {
                "skip_patterns": ["^legacy_"],
                "rules": [
                    {
                        "id": "SEC_ASSERT_001",
                        "pattern": r"\bassert\s*\(",
                        "severity": "HIGH",
                        "message": "assert() evaluates strings",
                        "cwe": "CWE-95",
                        "ignore_case": True,
                    }
                ],
            },
            "tools": {"php": "/usr/bin/php8.2"},
            "git": {"recent_days": "14"},
            "notify": {"webhook_url": "https://hooks.example.com/x"},
        })

        assert config.output_dir == Path("out")
        assert [(p.name, p.path, p.exclude) for p in config.projects] == [
            ("shop", Path("/srv/shop"), ("uploads",)),
            ("blog", Path("/srv/blog"), ()),
        ]
        assert config.scanner_enabled("security")
        assert not config.scanner_enabled("git")
        # toggles not listed are off once a section is given
        assert not config.scanner_enabled("syntax")
        assert config.reporter_enabled("html") and not config.reporter_enabled("text")
        assert config.skip_patterns == ("^legacy_",)
        rule = config.custom_rules[0]
        assert rule.severity is Severity.HIGH
        assert rule.ignore_case is True
        assert config.php_binary == "/usr/bin/php8.2"
        assert config.git_binary == "git"
        assert config.recent_days == 14
        assert config.webhook_url == "https://hooks.example.com/x"

    @pytest.mark.parametrize(
        "data",
        [
            ["not", "a", "mapping"],
            {"scanners": {"lint": True}},
            {"reporters": {"pdf": True}},
            {"projects": {"shop": {"exclude": []}}},
            {"projects": ["shop"]},
            {"exclude_dirs": "vendor"},
            {"security": {"rules": [{"id": "X", "pattern": "x", "severity": "urgent", "message": "m"}]}},
            {"security": {"rules": [{"id": "X", "pattern": "x"}]}},
            {"git": {"recent_days": "soon"}},
        ],
    )
    def test_invalid_config_raises_config_error(self, data):
        with pytest.raises(ConfigError):
            MonitorConfig.from_dict(data)

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestYaml:
    def test_from_yaml(self, tmp_path):
        path = write_yaml(tmp_path / "evidency.yaml", """
            output_dir: build/reports
            projects:
              shop:
                path: /srv/www/shop
            reporters: {text: false, json: true, html: true}
        """)
        config = MonitorConfig.from_yaml(path)

        assert config.output_dir == Path("build/reports")
        assert config.projects[0].name == "shop"
        assert config.reporter_enabled("html")
        assert not config.reporter_enabled("text")

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "empty.yaml", "")
        assert MonitorConfig.from_yaml(path) == MonitorConfig()

    def test_invalid_yaml(self, tmp_path):
        path = write_yaml(tmp_path / "bad.yaml", "projects: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            MonitorConfig.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read config"):
            MonitorConfig.from_yaml(tmp_path / "nope.yaml")


class TestEnvOverride:
    def test_output_dir_env_wins(self, tmp_path, monkeypatch):
        path = write_yaml(tmp_path / "c.yaml", "output_dir: from-file\n")
        monkeypatch.setenv(OUTPUT_DIR_ENV, str(tmp_path / "from-env"))

        assert MonitorConfig.load(path).output_dir == tmp_path / "from-env"
        assert MonitorConfig.load().output_dir == tmp_path / "from-env"

    def test_no_env_keeps_file_value(self, tmp_path, monkeypatch):
        path = write_yaml(tmp_path / "c.yaml", "output_dir: from-file\n")
        monkeypatch.delenv(OUTPUT_DIR_ENV, raising=False)

        assert MonitorConfig.load(path).output_dir == Path("from-file")
