"""Step-list builders for the predefined developer workflows."""

from devgate.config import DEFAULT_REMOTE, build_steps, resolve_workflow_specs
from devgate.git_helpers import current_branch, format_commit_message, last_commit_subject, task_branch_name
from devgate.models import Step


def _workflow(name: str, project_config: dict | None, **values: str) -> tuple[Step, ...]:
    values.setdefault("remote", DEFAULT_REMOTE)
    return build_steps(resolve_workflow_specs(name, project_config), values)


def validate_steps(project_config: dict | None = None) -> tuple[Step, ...]:
    """typecheck -> lint -> test -> build."""
    return _workflow("validate", project_config)


def start_task_steps(task: str, base: str, project_config: dict | None = None) -> tuple[Step, ...]:
    """Verify a clean tree, update the base branch and branch off it for the task."""
    return _workflow("start-task", project_config, base=base, branch=task_branch_name(task))


def sync_main_steps(base: str, project_config: dict | None = None) -> tuple[Step, ...]:
    return _workflow("sync-main", project_config, base=base)


def complete_task_steps(
    subject: str,
    commit_type: str = "feat",
    scope: str = "",
    body: str = "",
    base: str = "main",
    project_config: dict | None = None,
) -> tuple[Step, ...]:
    """Validate, then stage, commit and push.

    The commit message is formatted up front so an invalid type fails before
    any step runs.
    """
    message = format_commit_message(subject, commit_type=commit_type, scope=scope, body=body)
    return _workflow("complete-task", project_config, base=base, message=message)


def create_pr_steps(
    base: str,
    title: str = "",
    body: str = "",
    cwd: str | None = None,
    project_config: dict | None = None,
) -> tuple[Step, ...]:
    """Validate, push and open a pull request against base.

    Without a title, the subject of the last commit is used. Refuses to
    run from the base branch itself.
    """
    if current_branch(cwd) == base:
        raise SystemExit(f"Refusing to open a pull request from the base branch '{base}'")
    title = title.strip() or last_commit_subject(cwd)
    if not title:
        raise SystemExit("No pull request title given and the last commit subject could not be read")
    return _workflow("create-pr", project_config, base=base, title=title, body=body)


def custom_workflow_steps(name: str, base: str, project_config: dict | None = None) -> tuple[Step, ...]:
    """Steps for any named workflow, with only {base} and {remote} available."""
    return _workflow(name, project_config, base=base)
