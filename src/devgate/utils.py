"""Core utility functions: logging, command resolution, platform detection."""

import json
import os
import shutil
import subprocess
import sys

from rich.console import Console

console = Console()

LOGS_DIR_ENV = "DEVGATE_LOGS_DIR"


def find_project_root(cwd: str) -> str:
    """Determine the project root from a working directory path.

    Walks up from cwd looking for a directory that contains .git and returns
    it. Returns cwd itself when no ancestor is a git checkout.
    """
    current = os.path.abspath(cwd)
    while True:
        if os.path.exists(os.path.join(current, ".git")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return os.path.abspath(cwd)
        current = parent


def resolve_logs_dir() -> str:
    """Find the logs directory, creating it if needed.

    DEVGATE_LOGS_DIR wins when set; otherwise logs/ under the project root.
    """
    logs_dir = os.environ.get(LOGS_DIR_ENV, "")
    if not logs_dir:
        logs_dir = os.path.join(find_project_root(os.getcwd()), "logs")
    os.makedirs(logs_dir, exist_ok=True)
    return logs_dir


def log_file_path(name: str) -> str:
    return os.path.join(resolve_logs_dir(), f"{name}.log")


def log(name: str, message: str, style: str = "") -> None:
    """Write a message to both the console (with optional style) and the named log file.

    Messages are plain text: step names and commands may contain brackets.
    """
    if style:
        console.print(message, style=style, markup=False)
    else:
        console.print(message, markup=False)

    try:
        with open(log_file_path(name), "a", encoding="utf-8") as f:
            f.write(message + "\n")
    except Exception:
        pass  # Never break the gate over logging


def write_log_entry(log_file: str, text: str) -> None:
    """Append text to a log file. Never raises."""
    try:
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(text)
    except Exception:
        pass


def is_windows() -> bool:
    return sys.platform == "win32"


def resolve_command(argv: list[str]) -> list[str] | None:
    """Resolve argv[0] to an executable path. Returns None if it is not installed.

    On Windows, npm and npx install .cmd wrappers that CreateProcess cannot
    launch directly, so those are routed through cmd /c.
    """
    if not argv:
        return None
    exe = shutil.which(argv[0])
    if not exe:
        return None
    if is_windows() and exe.lower().endswith((".bat", ".cmd")):
        return ["cmd", "/c", exe] + list(argv[1:])
    return [exe] + list(argv[1:])


def read_package_scripts(directory: str) -> dict[str, str] | None:
    """Return the "scripts" table of directory/package.json.

    Returns None when there is no readable package.json, and an empty dict
    when the file has no scripts table.
    """
    path = os.path.join(directory, "package.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    scripts = data.get("scripts") or {}
    return scripts if isinstance(scripts, dict) else {}


def run_cmd(
    args: list[str], capture: bool = False, quiet: bool = False, cwd: str | None = None,
) -> subprocess.CompletedProcess:
    """Run a shell command, optionally capturing output."""
    kwargs = {}
    if capture or quiet:
        kwargs["stdout"] = subprocess.PIPE
        kwargs["stderr"] = subprocess.PIPE
        kwargs["text"] = True
    return subprocess.run(args, cwd=cwd, **kwargs)
