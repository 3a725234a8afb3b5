"""Validate and run commands: execute a quality gate and report the outcome."""

import contextlib
import os
from collections.abc import Callable, Generator
from typing import Annotated

import typer

from devgate.config import BASE_BRANCH_ENV, load_project_config, resolve_base_branch
from devgate.models import Step
from devgate.report import print_report, write_report_json
from devgate.runner import run_gate
from devgate.utils import console, find_project_root, log
from devgate.workflows import custom_workflow_steps, validate_steps

# Exit codes for the command-line wrapper.
EXIT_HALTED = 1
EXIT_CONFIG_ERROR = 2

BaseOption = Annotated[
    str, typer.Option("--base", envvar=BASE_BRANCH_ENV, help="Base branch (default: .devgate.json or 'main')")
]
QuietOption = Annotated[bool, typer.Option("--quiet", "-q", help="Do not stream step output while running")]
ReportFileOption = Annotated[str, typer.Option("--report-file", help="Write the run report as JSON to this path")]


@contextlib.contextmanager
def config_errors() -> Generator[None, None, None]:
    """Turn SystemExit('message') from config and step building into exit code 2."""
    try:
        yield
    except SystemExit as exc:
        if isinstance(exc.code, str):
            console.print(f"ERROR: {exc.code}", style="bold red", markup=False)
            raise typer.Exit(EXIT_CONFIG_ERROR)
        raise


def execute_workflow(
    title: str,
    build: Callable[[dict, str, str], tuple[Step, ...]],
    base: str = "",
    quiet: bool = False,
    report_file: str = "",
) -> None:
    """Build a workflow's steps, run them from the project root and exit with the gate's verdict.

    *build* receives (project_config, base_branch, project_root). Exits 0
    when every step passed and 1 when the gate halted.
    """
    project_root = find_project_root(os.getcwd())
    with config_errors():
        project_config = load_project_config(project_root)
        base_branch = resolve_base_branch(base, project_config)
        steps = build(project_config, base_branch, project_root)

    log("gate", "======================================", style="bold yellow")
    log("gate", f" {title}: {len(steps)} steps", style="bold yellow")
    log("gate", "======================================", style="bold yellow")

    report = run_gate(steps, cwd=project_root, log_name="gate", echo=not quiet)
    print_report(report, title=title)
    log("gate", f"{title}: {report.describe()}", style="dim")

    if report_file:
        try:
            write_report_json(report, report_file)
        except OSError as exc:
            console.print(f"WARNING: Could not write report to {report_file}: {exc}", style="yellow", markup=False)

    if not report.passed:
        raise typer.Exit(EXIT_HALTED)


def register(app: typer.Typer) -> None:
    """Register gate commands on the shared app."""
    app.command()(validate)
    app.command(name="run")(run_workflow)


def validate(quiet: QuietOption = False, report_file: ReportFileOption = "") -> None:
    """Run the quality gate: typecheck, lint, test, build. Stops at the first failure."""
    execute_workflow(
        "validate",
        lambda config, base, root: validate_steps(config),
        quiet=quiet,
        report_file=report_file,
    )


def run_workflow(
    workflow: Annotated[str, typer.Argument(help="Workflow name, built-in or from .devgate.json")],
    base: BaseOption = "",
    quiet: QuietOption = False,
    report_file: ReportFileOption = "",
) -> None:
    """Run any named workflow. Only {base} and {remote} placeholders are filled in."""
    execute_workflow(
        workflow,
        lambda config, base_branch, root: custom_workflow_steps(workflow, base_branch, config),
        base=base,
        quiet=quiet,
        report_file=report_file,
    )
