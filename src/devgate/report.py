"""Rendering of a RunReport: terminal summary, halt message, JSON."""

import json

from rich.table import Table
from rich.text import Text

from devgate.models import RunReport, StepOutcome
from devgate.utils import console

_OUTCOME_STYLES = {
    StepOutcome.PASSED: "green",
    StepOutcome.FAILED: "bold red",
    StepOutcome.SKIPPED: "dim",
}


def report_to_dict(report: RunReport) -> dict:
    """Serialize a report to plain JSON-compatible data.

    Pure function. Steps that never ran are listed by name under 'not_run'.
    """
    failure = report.failure
    return {
        "outcome": report.outcome.value,
        "halted_at": report.halted_at,
        "failed_step": failure.step_name if failure else None,
        "steps": [
            {
                "index": index,
                "name": result.step.name,
                "outcome": result.outcome.value,
                "exit_code": result.exit_code,
                "used_fallback": result.used_fallback,
                "duration_seconds": round(result.duration_seconds, 3),
                "output": result.output,
            }
            for index, result in enumerate(report.results, start=1)
        ],
        "not_run": [step.name for step in report.not_run],
    }


def write_report_json(report: RunReport, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report_to_dict(report), f, indent=2)
        f.write("\n")


def build_summary_table(report: RunReport, title: str = "Gate summary") -> Table:
    """One row per step, including the ones that never ran (shown as skipped)."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Step", no_wrap=True)
    table.add_column("Result")
    table.add_column("Exit", justify="right")
    table.add_column("Time", justify="right")

    for index, result in enumerate(report.results, start=1):
        label = result.outcome.value
        if result.used_fallback:
            label += " (fallback)"
        table.add_row(
            str(index),
            Text(result.step.name),
            Text(label, style=_OUTCOME_STYLES[result.outcome]),
            "" if result.exit_code is None else str(result.exit_code),
            f"{result.duration_seconds:.1f}s",
        )
    skipped = Text(StepOutcome.SKIPPED.value, style=_OUTCOME_STYLES[StepOutcome.SKIPPED])
    for offset, step in enumerate(report.not_run, start=len(report.results) + 1):
        table.add_row(str(offset), Text(step.name), skipped.copy(), "", "")
    return table


def print_report(report: RunReport, title: str = "Gate summary", show_output: bool = True) -> None:
    """Print the summary table and, when halted, the failing step's output verbatim."""
    console.print()
    console.print(build_summary_table(report, title=title))
    failure = report.failure
    if failure is None:
        console.print(f"Gate passed: {report.describe()}.", style="bold green", markup=False)
        return

    total = len(report.steps)
    console.print(
        f"Gate halted at step {failure.index}/{total}: {failure.step_name} (exit {failure.exit_code})",
        style="bold red",
        markup=False,
    )
    if show_output:
        console.print(f"--- output of {failure.step_name} ---", style="red", markup=False)
        if failure.output:
            console.print(failure.output.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)
        else:
            console.print("(no output)", style="dim")
        console.print("--- end ---", style="red")
