"""RunResult JSON contract — bundled schema and validate_file."""

from __future__ import annotations

import copy
import json

import jsonschema
import pytest

from evidency_monitor.contracts.load import load_schema, validate_file, validate_instance
from evidency_monitor.core.config import MonitorConfig
from evidency_monitor.core.runner import Orchestrator
from evidency_monitor.scanners.security import SecurityScanner
from evidency_monitor.utils.json_norm import stable_json_dumps

SCHEMA = "run_result.schema.json"


@pytest.fixture
def run_dict(tmp_path):
    project = tmp_path / "app"
    project.mkdir()
    (project / "index.php").write_text("<?php\neval($_GET['c']);\n", encoding="utf-8")
    config = (
        MonitorConfig(output_dir=tmp_path / "reports")
        .with_project("app", project)
        .with_project("ghost", tmp_path / "ghost")
    )
    result = Orchestrator(config, [SecurityScanner()], scanner_timeout=0).scan()
    return result.to_dict()


def test_schema_identity():
    schema = load_schema(SCHEMA)
    assert schema["$id"] == "evidency_run_result_v1"
    assert schema["properties"]["schema_version"]["const"] == "evidency_run_result_v1"


def test_real_run_validates(run_dict):
    validate_instance(run_dict, SCHEMA)
    assert run_dict["schema_version"] == "evidency_run_result_v1"


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d["summary"].update(status="FINE"),
        lambda d: d["projects"]["app"].update(errors=-1),
        lambda d: d["projects"]["app"]["scanner_results"]["security"]["issues"][0].update(line=0),
        lambda d: d["projects"]["app"]["scanner_results"]["security"]["issues"][0].update(severity="info"),
        lambda d: d.pop("summary"),
    ],
)
def test_invalid_instances_rejected(run_dict, mutate):
    broken = copy.deepcopy(run_dict)
    mutate(broken)
    with pytest.raises(jsonschema.ValidationError):
        validate_instance(broken, SCHEMA)


def test_validate_file_checks_schema_version(run_dict, tmp_path):
    good = tmp_path / "good.json"
    good.write_text(stable_json_dumps(run_dict), encoding="utf-8")
    validate_file(good, SCHEMA)

    wrong = dict(run_dict, schema_version="v0")
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps(wrong), encoding="utf-8")
    with pytest.raises(ValueError, match="schema_version"):
        validate_file(bad, SCHEMA)


def test_unknown_schema():
    with pytest.raises(FileNotFoundError):
        load_schema("nope.schema.json")
