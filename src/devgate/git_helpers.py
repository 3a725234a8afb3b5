"""Git helpers: task branch naming, commit message formatting, small queries."""

import re

from devgate.config import COMMIT_TYPES, TASK_BRANCH_PREFIX
from devgate.utils import run_cmd

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")
_MAX_SLUG_LENGTH = 50


def slugify(text: str) -> str:
    """Lowercase text and collapse every run of non-alphanumerics into one hyphen.

    Pure function: 'Fix login  bug!' -> 'fix-login-bug'.
    """
    slug = _SLUG_STRIP_RE.sub("-", text.lower()).strip("-")
    if len(slug) > _MAX_SLUG_LENGTH:
        slug = slug[:_MAX_SLUG_LENGTH].rstrip("-")
    return slug


def task_branch_name(task: str, prefix: str = TASK_BRANCH_PREFIX) -> str:
    """Build the branch name for a task, e.g. 'task/add-login-form'.

    Raises SystemExit when the task has no usable characters.
    """
    slug = slugify(task)
    if not slug:
        raise SystemExit(f"Cannot derive a branch name from task '{task}'")
    return f"{prefix}/{slug}" if prefix else slug


def format_commit_message(subject: str, commit_type: str = "feat", scope: str = "", body: str = "") -> str:
    """Format a Conventional Commits message: 'type(scope): subject'.

    Only the first line of the subject is used, without a trailing period.
    Raises SystemExit for an unknown type or an empty subject.
    """
    commit_type = commit_type.strip().lower()
    if commit_type not in COMMIT_TYPES:
        allowed = ", ".join(COMMIT_TYPES)
        raise SystemExit(f"Invalid commit type '{commit_type}'. Allowed types: {allowed}")
    lines = subject.strip().splitlines()
    first_line = lines[0].strip().rstrip(".").strip() if lines else ""
    if not first_line:
        raise SystemExit("Commit message subject must not be empty")
    scope = scope.strip()
    header = f"{commit_type}({scope}): {first_line}" if scope else f"{commit_type}: {first_line}"
    body = body.strip()
    return f"{header}\n\n{body}" if body else header


def git_stdout(args: list[str], cwd: str | None) -> str:
    """Run a git query and return its stripped stdout, or empty string on any failure.

    A missing git executable counts as a failure.
    """
    try:
        result = run_cmd(["git", *args], capture=True, cwd=cwd)
    except OSError:
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def current_branch(cwd: str | None = None) -> str:
    """Return the checked-out branch name, or empty string when it cannot be read."""
    return git_stdout(["rev-parse", "--abbrev-ref", "HEAD"], cwd)


def last_commit_subject(cwd: str | None = None) -> str:
    """Return the subject line of HEAD, or empty string on failure."""
    return git_stdout(["log", "-1", "--format=%s"], cwd)
