"""Task workflow commands: start-task, sync-main, complete-task, create-pr."""

from typing import Annotated

import typer

from devgate.validator import BaseOption, QuietOption, ReportFileOption, execute_workflow
from devgate.workflows import complete_task_steps, create_pr_steps, start_task_steps, sync_main_steps


def register(app: typer.Typer) -> None:
    """Register task workflow commands on the shared app."""
    app.command(name="start-task")(start_task)
    app.command(name="sync-main")(sync_main)
    app.command(name="complete-task")(complete_task)
    app.command(name="create-pr")(create_pr)


def start_task(
    task: Annotated[str, typer.Argument(help="Short task description, used for the branch name")],
    base: BaseOption = "",
    quiet: QuietOption = False,
    report_file: ReportFileOption = "",
) -> None:
    """Check for a clean tree, update the base branch and create task/<slug>."""
    execute_workflow(
        "start-task",
        lambda config, base_branch, root: start_task_steps(task, base_branch, config),
        base=base,
        quiet=quiet,
        report_file=report_file,
    )


def sync_main(
    base: BaseOption = "",
    quiet: QuietOption = False,
    report_file: ReportFileOption = "",
) -> None:
    """Fetch the base branch and rebase the current branch onto it."""
    execute_workflow(
        "sync-main",
        lambda config, base_branch, root: sync_main_steps(base_branch, config),
        base=base,
        quiet=quiet,
        report_file=report_file,
    )


def complete_task(
    message: Annotated[str, typer.Argument(help="Commit subject")],
    commit_type: Annotated[str, typer.Option("--type", "-t", help="Conventional commit type")] = "feat",
    scope: Annotated[str, typer.Option("--scope", "-s", help="Conventional commit scope")] = "",
    body: Annotated[str, typer.Option("--body", "-b", help="Commit body")] = "",
    base: BaseOption = "",
    quiet: QuietOption = False,
    report_file: ReportFileOption = "",
) -> None:
    """Validate, then stage everything, commit and push the branch."""
    execute_workflow(
        "complete-task",
        lambda config, base_branch, root: complete_task_steps(
            message, commit_type=commit_type, scope=scope, body=body, base=base_branch, project_config=config,
        ),
        base=base,
        quiet=quiet,
        report_file=report_file,
    )


def create_pr(
    title: Annotated[str, typer.Option("--title", help="PR title (default: last commit subject)")] = "",
    body: Annotated[str, typer.Option("--body", help="PR body")] = "",
    base: BaseOption = "",
    quiet: QuietOption = False,
    report_file: ReportFileOption = "",
) -> None:
    """Validate, push and open a pull request with the gh CLI."""
    execute_workflow(
        "create-pr",
        lambda config, base_branch, root: create_pr_steps(
            base_branch, title=title, body=body, cwd=root, project_config=config,
        ),
        base=base,
        quiet=quiet,
        report_file=report_file,
    )
