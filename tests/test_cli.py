"""Tests for the devgate command-line interface."""

import json
import sys

import pytest
from typer.testing import CliRunner

from devgate.cli import app

runner = CliRunner()


def _py(code: str) -> list[str]:
    return [sys.executable, "-c", code]


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A project root with a .devgate.json whose steps are plain Python commands."""
    (tmp_path / ".git").mkdir()
    config = {
        "workflows": {
            "validate": [
                {"name": "typecheck", "command": _py("print('types ok')")},
                {"name": "lint", "command": _py("print('2 lint errors'); raise SystemExit(3)")},
                {"name": "test", "command": _py("print('tests ran')")},
            ],
            "smoke": [
                {"name": "one", "command": _py("print('one')")},
                {"name": "two", "command": ["devgate-missing-tool-42"], "fallback": _py("print('two')")},
            ],
        }
    }
    (tmp_path / ".devgate.json").write_text(json.dumps(config))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_passing_workflow_exits_zero(project):
    result = runner.invoke(app, ["run", "smoke"])
    assert result.exit_code == 0, result.output
    assert "Gate passed: all 2 steps passed" in result.output


def test_halted_gate_exits_one_and_names_step(project):
    result = runner.invoke(app, ["validate", "--quiet"])
    assert result.exit_code == 1
    assert "Gate halted at step 2/3: lint" in result.output
    assert "2 lint errors" in result.output
    assert "tests ran" not in result.output


def test_report_file_is_written(project):
    report_path = project / "gate-report.json"
    result = runner.invoke(app, ["validate", "--quiet", "--report-file", str(report_path)])
    assert result.exit_code == 1
    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["halted_at"] == 2
    assert data["not_run"] == ["test"]


def test_unknown_workflow_is_a_config_error(project):
    result = runner.invoke(app, ["run", "deploy"])
    assert result.exit_code == 2
    assert "Unknown workflow 'deploy'" in result.output


def test_invalid_commit_type_is_a_config_error(project):
    result = runner.invoke(app, ["complete-task", "add login", "--type", "feature"])
    assert result.exit_code == 2
    assert "Invalid commit type" in result.output


def test_broken_project_file_is_a_config_error(tmp_path, monkeypatch):
    (tmp_path / ".git").mkdir()
    (tmp_path / ".devgate.json").write_text("{")
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["validate"])
    assert result.exit_code == 2
    assert "Invalid .devgate.json" in result.output


def test_list_shows_builtin_and_project_workflows(project):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0, result.output
    assert "smoke" in result.output
    assert "sync-main" in result.output


def test_version_flag(project):
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip()


def test_bracketed_step_names_run_and_list(tmp_path, monkeypatch):
    (tmp_path / ".git").mkdir()
    config = {
        "workflows": {
            "bracketed": [
                {"name": "lint [/tmp]", "command": _py("print('ok')")},
                {"name": "test [unit]", "command": _py("print('[a-z] matched')")},
            ]
        }
    }
    (tmp_path / ".devgate.json").write_text(json.dumps(config))
    monkeypatch.chdir(tmp_path)

    listed = runner.invoke(app, ["list"])
    assert listed.exit_code == 0, listed.output
    assert "lint [/tmp]" in listed.output
    assert "test [unit]" in listed.output

    result = runner.invoke(app, ["run", "bracketed", "--quiet"])
    assert "lint [/tmp]" in result.output
    assert result.exit_code == 0, result.output
    assert "Gate passed: all 2 steps passed" in result.output
