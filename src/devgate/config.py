"""Configuration for the gate runner.

Built-in workflow step tables plus loading of per-project overrides from
.devgate.json at the project root. Each step entry maps to a Step: a name,
a primary command, an optional fallback tried only when the primary cannot
be invoked, and a description shown by 'devgate list'.
"""

import json
import os
import shlex

from devgate.models import Step

PROJECT_CONFIG_FILE = ".devgate.json"
BASE_BRANCH_ENV = "DEVGATE_BASE_BRANCH"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_REMOTE = "origin"
TASK_BRANCH_PREFIX = "task"


# ---------------------------------------------------------------------------
# Quality checks: project script first, underlying tool as fallback
# ---------------------------------------------------------------------------

VALIDATE_STEPS = [
    {
        "name": "typecheck",
        "command": ["npm", "run", "typecheck"],
        "fallback": ["npx", "tsc", "--noEmit"],
        "description": "Type-check the project",
    },
    {
        "name": "lint",
        "command": ["npm", "run", "lint"],
        "fallback": ["npx", "eslint", "."],
        "description": "Run the linter",
    },
    {
        "name": "test",
        "command": ["npm", "run", "test"],
        "fallback": ["npx", "vitest", "run"],
        "description": "Run the test suite once",
    },
    {
        "name": "build",
        "command": ["npm", "run", "build"],
        "fallback": ["npx", "vite", "build"],
        "description": "Produce a production build",
    },
]


# ---------------------------------------------------------------------------
# Git workflows. {base}, {remote}, {branch}, ... are filled in by workflows.py
# ---------------------------------------------------------------------------

START_TASK_STEPS = [
    {"name": "clean-tree", "command": ["git", "diff", "--quiet"], "description": "No unstaged changes"},
    {"name": "clean-index", "command": ["git", "diff", "--cached", "--quiet"], "description": "No staged changes"},
    {"name": "checkout-base", "command": ["git", "checkout", "{base}"], "description": "Switch to the base branch"},
    {"name": "pull-base", "command": ["git", "pull", "--ff-only", "{remote}", "{base}"], "description": "Fast-forward the base branch"},
    {"name": "create-branch", "command": ["git", "checkout", "-b", "{branch}"], "description": "Create the task branch"},
]

SYNC_MAIN_STEPS = [
    {"name": "fetch", "command": ["git", "fetch", "{remote}", "{base}"], "description": "Fetch the base branch"},
    {"name": "rebase", "command": ["git", "rebase", "{remote}/{base}"], "description": "Rebase onto the base branch"},
]

COMMIT_STEPS = [
    {"name": "stage", "command": ["git", "add", "-A"], "description": "Stage all changes"},
    {"name": "commit", "command": ["git", "commit", "-m", "{message}"], "description": "Commit with a conventional message"},
    {"name": "push", "command": ["git", "push", "-u", "{remote}", "HEAD"], "description": "Push the branch"},
]

CREATE_PR_STEPS = [
    {"name": "push", "command": ["git", "push", "-u", "{remote}", "HEAD"], "description": "Push the branch"},
    {
        "name": "open-pr",
        "command": ["gh", "pr", "create", "--base", "{base}", "--title", "{title}", "--body", "{body}"],
        "description": "Open a pull request",
    },
]


# ---------------------------------------------------------------------------
# Combined lookup: workflow name -> step table. {"include": name} entries
# expand to that workflow, honoring project overrides.
# ---------------------------------------------------------------------------

WORKFLOWS = {
    "validate": VALIDATE_STEPS,
    "start-task": START_TASK_STEPS,
    "sync-main": SYNC_MAIN_STEPS,
    "complete-task": [{"include": "validate"}] + COMMIT_STEPS,
    "create-pr": [{"include": "validate"}] + CREATE_PR_STEPS,
}

# Conventional Commits types accepted by complete-task.
COMMIT_TYPES = ("feat", "fix", "docs", "style", "refactor", "perf", "test", "build", "ci", "chore", "revert")


def _parse_command(value, where: str) -> list[str]:
    """Normalize a command given as a string or a list of strings into argv."""
    if isinstance(value, str):
        argv = shlex.split(value)
    elif isinstance(value, list) and all(isinstance(part, str) for part in value):
        argv = list(value)
    else:
        raise SystemExit(f"Invalid command in {where}: expected a string or a list of strings")
    if not argv:
        raise SystemExit(f"Invalid command in {where}: command is empty")
    return argv


def parse_step_specs(specs, where: str = "workflow") -> list[dict]:
    """Validate raw step entries and normalize their commands to argv lists.

    Pure function: raises SystemExit with a message naming the offending
    entry when a spec is malformed.
    """
    if not isinstance(specs, list) or not specs:
        raise SystemExit(f"Invalid {where}: expected a non-empty list of steps")
    parsed = []
    seen: set[str] = set()
    for position, spec in enumerate(specs, start=1):
        entry = f"{where} step {position}"
        if not isinstance(spec, dict):
            raise SystemExit(f"Invalid {entry}: expected an object")
        if "include" in spec:
            include = spec["include"]
            if not isinstance(include, str) or not include.strip() or len(spec) != 1:
                raise SystemExit(f"Invalid {entry}: 'include' must be the only key and name a workflow")
            parsed.append({"include": include})
            continue
        name = spec.get("name")
        if not isinstance(name, str) or not name.strip():
            raise SystemExit(f"Invalid {entry}: 'name' is required")
        if name in seen:
            raise SystemExit(f"Invalid {entry}: duplicate step name '{name}'")
        seen.add(name)
        if "command" not in spec:
            raise SystemExit(f"Invalid {entry}: 'command' is required")
        item = {
            "name": name,
            "command": _parse_command(spec["command"], entry),
            "description": str(spec.get("description", "")),
        }
        if spec.get("fallback") is not None:
            item["fallback"] = _parse_command(spec["fallback"], entry)
        parsed.append(item)
    return parsed


def load_project_config(project_root: str) -> dict:
    """Read .devgate.json from the project root. Returns {} if there is none.

    Workflow entries are validated eagerly so a broken file is reported
    before any step runs.
    """
    path = os.path.join(project_root, PROJECT_CONFIG_FILE)
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid {PROJECT_CONFIG_FILE}: {exc}")
    if not isinstance(data, dict):
        raise SystemExit(f"Invalid {PROJECT_CONFIG_FILE}: expected a JSON object")

    workflows = data.get("workflows", {})
    if not isinstance(workflows, dict):
        raise SystemExit(f"Invalid {PROJECT_CONFIG_FILE}: 'workflows' must be an object")
    data["workflows"] = {
        name: parse_step_specs(specs, where=f"workflow '{name}'")
        for name, specs in workflows.items()
    }
    base = data.get("base_branch")
    if base is not None and (not isinstance(base, str) or not base.strip()):
        raise SystemExit(f"Invalid {PROJECT_CONFIG_FILE}: 'base_branch' must be a non-empty string")
    return data


def resolve_workflow_specs(
    name: str, project_config: dict | None = None, _including: tuple[str, ...] = (),
) -> list[dict]:
    """Return the flat step table for a workflow, preferring the project's override.

    Include entries are expanded recursively. Include cycles and step names
    repeated after expansion raise SystemExit.
    """
    if name in _including:
        chain = " -> ".join(_including + (name,))
        raise SystemExit(f"Workflow include cycle: {chain}")
    overrides = (project_config or {}).get("workflows", {})
    if name in overrides:
        specs = overrides[name]
    elif name in WORKFLOWS:
        specs = WORKFLOWS[name]
    else:
        known = ", ".join(sorted(set(WORKFLOWS) | set(overrides)))
        raise SystemExit(f"Unknown workflow '{name}'. Known workflows: {known}")

    flat: list[dict] = []
    for spec in specs:
        if "include" in spec:
            flat.extend(resolve_workflow_specs(spec["include"], project_config, _including + (name,)))
        else:
            flat.append(spec)

    names = [spec["name"] for spec in flat]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise SystemExit(f"Workflow '{name}' has duplicate step names: {', '.join(duplicates)}")
    return flat


def resolve_base_branch(option: str | None, project_config: dict | None = None) -> str:
    """Pick the base branch: explicit option/env, then .devgate.json, then 'main'."""
    if option:
        return option
    configured = (project_config or {}).get("base_branch")
    if configured:
        return configured
    return DEFAULT_BASE_BRANCH


def build_steps(specs: list[dict], values: dict[str, str] | None = None) -> tuple[Step, ...]:
    """Turn step specs into Steps, substituting {placeholders} in each argument.

    Substitution is per argv element, so values containing spaces stay a
    single argument. Literal braces are written as {{ and }}. Unknown or
    malformed placeholders raise SystemExit.
    """
    values = values or {}

    def _fill(argv: list[str], step_name: str) -> tuple[str, ...]:
        try:
            return tuple(part.format(**values) if "{" in part or "}" in part else part for part in argv)
        except (KeyError, IndexError, AttributeError, ValueError) as exc:
            raise SystemExit(
                f"Step '{step_name}' uses an unknown placeholder: {exc}. "
                "Write literal braces as {{ and }}."
            )

    steps = []
    for spec in specs:
        fallback = spec.get("fallback")
        steps.append(
            Step(
                name=spec["name"],
                command=_fill(spec["command"], spec["name"]),
                fallback=_fill(fallback, spec["name"]) if fallback else None,
                description=spec.get("description", ""),
            )
        )
    return tuple(steps)
