"""Tests for report serialization and the terminal summary."""

import json

from devgate.models import RunReport, Step, StepOutcome, StepResult
from devgate.report import print_report, report_to_dict, write_report_json
from devgate.utils import console


def _halted_report(output="src/app.ts:3 unexpected any"):
    steps = (Step("typecheck", ("tsc",)), Step("lint", ("eslint",)), Step("test", ("vitest",)))
    results = (
        StepResult(steps[0], StepOutcome.PASSED, output="", exit_code=0, duration_seconds=1.23456),
        StepResult(steps[1], StepOutcome.FAILED, output=output, exit_code=1, used_fallback=True),
    )
    return RunReport(steps, results)


def test_report_to_dict_for_halted_run():
    data = report_to_dict(_halted_report())
    assert data["outcome"] == "halted"
    assert data["halted_at"] == 2
    assert data["failed_step"] == "lint"
    assert [s["outcome"] for s in data["steps"]] == ["passed", "failed"]
    assert data["steps"][0]["duration_seconds"] == 1.235
    assert data["steps"][1]["used_fallback"] is True
    assert data["not_run"] == ["test"]


def test_report_to_dict_for_passing_run():
    step = Step("build", ("vite", "build"))
    report = RunReport((step,), (StepResult(step, StepOutcome.PASSED, exit_code=0),))
    data = report_to_dict(report)
    assert data["outcome"] == "all_passed"
    assert data["halted_at"] is None
    assert data["failed_step"] is None
    assert data["not_run"] == []


def test_write_report_json(tmp_path):
    path = tmp_path / "report.json"
    write_report_json(_halted_report(), str(path))
    assert json.loads(path.read_text(encoding="utf-8"))["failed_step"] == "lint"


def test_print_report_names_failed_step_and_output():
    with console.capture() as capture:
        print_report(_halted_report())
    text = capture.get()
    assert "Gate halted at step 2/3: lint" in text
    assert "src/app.ts:3 unexpected any" in text
    assert "skipped" in text


def test_print_report_does_not_interpret_markup_in_output():
    with console.capture() as capture:
        print_report(_halted_report(output="expected [bold]value[/bold]"))
    assert "[bold]value[/bold]" in capture.get()


def test_print_report_marks_empty_output():
    with console.capture() as capture:
        print_report(_halted_report(output=""))
    assert "(no output)" in capture.get()


def test_summary_table_keeps_bracketed_step_names():
    steps = (Step("lint [/tmp]", ("eslint",)), Step("test [unit]", ("vitest",)))
    report = RunReport(steps, (StepResult(steps[0], StepOutcome.FAILED, output="boom", exit_code=1),))
    with console.capture() as capture:
        print_report(report)
    text = capture.get()
    assert "lint [/tmp]" in text
    assert "test [unit]" in text
    assert "Gate halted at step 1/2: lint [/tmp]" in text


def test_long_output_lines_are_not_wrapped():
    line = "src/components/" + "x" * 300 + ".ts:12:4 error"
    with console.capture() as capture:
        print_report(_halted_report(output=line))
    assert line in capture.get()
