"""CLI app definition and command registration."""

import os
from typing import Annotated

import typer
from rich.table import Table
from rich.text import Text

from devgate.config import WORKFLOWS, load_project_config, resolve_workflow_specs
from devgate.utils import console, find_project_root
from devgate.validator import config_errors
from devgate.version import get_version


def _version_callback(value: bool):
    if value:
        console.print(get_version())
        raise typer.Exit()


app = typer.Typer(
    help="Run developer workflows as sequential gates that stop at the first failing step.",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit.", callback=_version_callback, is_eager=True),
    ] = False,
) -> None:
    """Sequential gate runner for git, gh and npm workflows."""

# Register commands from submodules
from devgate import tasks as _tasks_mod
from devgate import validator as _validator_mod

_validator_mod.register(app)
_tasks_mod.register(app)


# ============================================
# Commands
# ============================================


@app.command(name="list")
def list_workflows() -> None:
    """Show every workflow and its steps, including overrides from .devgate.json."""
    with config_errors():
        project_config = load_project_config(find_project_root(os.getcwd()))
        overrides = project_config.get("workflows", {})
        names = sorted(set(WORKFLOWS) | set(overrides))
        tables = {name: resolve_workflow_specs(name, project_config) for name in names}

    table = Table(title="Workflows")
    table.add_column("Workflow", style="bold cyan", no_wrap=True)
    table.add_column("Step", no_wrap=True)
    table.add_column("Command")
    table.add_column("Fallback", style="dim")

    for name in names:
        specs = tables[name]
        label = f"{name} (project)" if name in overrides else name
        for position, spec in enumerate(specs):
            fallback = spec.get("fallback")
            table.add_row(
                Text(label if position == 0 else ""),
                Text(spec["name"]),
                Text(" ".join(spec["command"])),
                Text(" ".join(fallback) if fallback else ""),
            )
    console.print(table)
