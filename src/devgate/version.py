"""devgate version string for --version."""

import os
from importlib import metadata

from devgate.git_helpers import git_stdout

FALLBACK_VERSION = "0.3.0"

# Root of the devgate source checkout (src/devgate -> repo root).
_SOURCE_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def installed_version() -> str:
    try:
        return metadata.version("devgate")
    except metadata.PackageNotFoundError:
        return FALLBACK_VERSION


def format_version(version: str, head: str, dirty: bool) -> str:
    """Pure function: '0.3.0 (g3a7f2c1 2026-10-18, dirty)', or just the version.

    *head* is 'git log --format=%h %cs' output; empty when devgate is not
    running from a git checkout.
    """
    if not head:
        return version
    commit, _, date = head.partition(" ")
    details = f"g{commit} {date}".strip()
    if dirty:
        details += ", dirty"
    return f"{version} ({details})"


def get_version() -> str:
    """Installed version, plus the source commit when running from a checkout."""
    head = git_stdout(["-C", _SOURCE_ROOT, "log", "-1", "--format=%h %cs"], None)
    dirty = bool(head) and git_stdout(["-C", _SOURCE_ROOT, "status", "--porcelain", "--", "src"], None) != ""
    return format_version(installed_version(), head, dirty)
