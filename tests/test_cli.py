"""CLI contract — subcommands, exit codes and report files.

Exit codes:
  0   run status OK / validation passed
  1   run status WARNINGS / schema violation
  2   run status ERRORS / bad config / runtime error
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from evidency_monitor.__main__ import main
from evidency_monitor.scanners.security import default_rule_table


@pytest.fixture(autouse=True)
def _no_env_output_dir(monkeypatch):
    monkeypatch.delenv("EVIDENCY_OUTPUT_DIR", raising=False)


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "evidency.yaml"
    path.write_text(textwrap.dedent("""
        scanners:
          security: true
    """), encoding="utf-8")
    return path


def make_project(root: Path, name: str, php: str) -> Path:
    project = root / name
    project.mkdir()
    (project / "index.php").write_text(php, encoding="utf-8")
    return project


class TestScan:
    def test_warnings_exit_1_and_reports(self, tmp_path, config_file):
        hot = make_project(tmp_path, "shop", "<?php\neval($_GET['c']);\n")
        out = tmp_path / "reports"

        rc = main([
            "scan", "--config", str(config_file),
            "--project", f"shop={hot}",
            "--out", str(out),
            "--ci",
        ])

        assert rc == 1
        assert sorted(p.name for p in out.iterdir()) == [
            "2000-01-01-SUMMARY.txt",
            "2000-01-01-full-report.json",
            "2000-01-01-shop-no_changes.txt",
            "2000-01-01-shop.json",
        ]

    def test_default_command_is_scan(self, tmp_path, config_file, capsys):
        clean = make_project(tmp_path, "app", "<?php echo 'ok';\n")

        rc = main([
            "--config", str(config_file),
            "--project", f"app={clean}",
            "--no-reports", "--json", "--ci",
        ])

        assert rc == 0
        data = json.loads(capsys.readouterr().out)
        assert data["timestamp"] == "2000-01-01T00:00:00+00:00"
        assert data["summary"]["status"] == "OK"
        assert data["projects"]["app"]["files_scanned"] == 1

    def test_missing_project_exit_2(self, tmp_path, config_file, capsys):
        rc = main([
            "--config", str(config_file),
            "--project", f"ghost={tmp_path / 'ghost'}",
            "--no-reports",
        ])

        assert rc == 2
        assert "STATUS: ERRORS" in capsys.readouterr().err

    def test_exclude_and_format(self, tmp_path, config_file):
        project = make_project(tmp_path, "app", "<?php echo 'ok';\n")
        (project / "legacy").mkdir()
        (project / "legacy" / "old.php").write_text("<?php eval($x);", encoding="utf-8")
        out = tmp_path / "out"

        rc = main([
            "scan", "--config", str(config_file),
            "--project", f"app={project}",
            "--exclude", "legacy",
            "--format", "html",
            "--out", str(out),
            "--ci",
        ])

        assert rc == 0
        assert [p.name for p in out.iterdir()] == ["2000-01-01-report.html"]

    @pytest.mark.parametrize(
        "argv, message",
        [
            (["scan", "--project", "nope"], "NAME=PATH"),
            (["scan", "--project", "a=/x", "--format", "pdf"], "unknown report format"),
            (["scan"], "no projects configured"),
        ],
    )
    def test_config_errors_exit_2(self, argv, message, capsys):
        assert main(argv) == 2
        assert message in capsys.readouterr().err

    def test_invalid_config_file_exit_2(self, tmp_path, capsys):
        bad = tmp_path / "bad.yaml"
        bad.write_text("scanners: {lint: true}\n", encoding="utf-8")

        assert main(["scan", "--config", str(bad), "--project", f"a={tmp_path}"]) == 2
        assert "unknown scanners" in capsys.readouterr().err

    def test_bad_timeout_env_exit_2(self, tmp_path, config_file, monkeypatch, capsys):
        project = make_project(tmp_path, "app", "<?php echo 'ok';\n")
        monkeypatch.setenv("EVIDENCY_SCANNER_TIMEOUT", "abc")

        rc = main(["--config", str(config_file), "--project", f"app={project}", "--no-reports"])

        assert rc == 2
        assert "EVIDENCY_SCANNER_TIMEOUT" in capsys.readouterr().err


class TestValidate:
    def test_valid_report(self, tmp_path, config_file, capsys):
        project = make_project(tmp_path, "app", "<?php echo 'ok';\n")
        out = tmp_path / "out"
        main(["scan", "--config", str(config_file), "--project", f"app={project}",
              "--out", str(out), "--format", "json", "--ci"])
        report = out / "2000-01-01-full-report.json"

        assert main(["validate", str(report), "run_result.schema.json"]) == 0
        assert capsys.readouterr().out.strip() == "OK"

    def test_schema_violation_exit_1(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"schema_version": "evidency_run_result_v1"}), encoding="utf-8")

        assert main(["validate", str(bad), "run_result.schema.json"]) == 1
        assert capsys.readouterr().err.startswith("FAIL:")

    def test_missing_file_exit_2(self, tmp_path):
        assert main(["validate", str(tmp_path / "none.json"), "run_result.schema.json"]) == 2


class TestRules:
    def test_rules_json(self, capsys):
        assert main(["rules", "--json"]) == 0
        rows = json.loads(capsys.readouterr().out)

        assert len(rows) == len(default_rule_table())
        assert rows[0]["id"] == "SEC_EVAL_001"
        assert rows[0]["cwe"] == "CWE-95"

    def test_rules_table(self, capsys):
        assert main(["rules"]) == 0
        assert "SEC_EVAL_001" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "evidency-monitor" in capsys.readouterr().out
