"""Sequential gate runner: execute steps in order, stop at the first failure."""

import os
import subprocess
import sys
import time
from collections.abc import Sequence
from datetime import datetime

from devgate.models import RunReport, Step, StepOutcome, StepResult
from devgate.utils import log, log_file_path, read_package_scripts, resolve_command, write_log_entry

# Shell conventions for "command not found" and "found but cannot execute".
UNAVAILABLE_EXIT_CODE = 127
NOT_EXECUTABLE_EXIT_CODE = 126


def is_command_available(argv: Sequence[str], cwd: str | None = None) -> bool:
    """Return True if argv can actually be invoked from cwd.

    A command is unavailable when its executable is not on PATH, or when it
    is 'npm run <script>' and the package.json in cwd does not define the
    script. Unavailable is different from failing: the fallback only runs
    for the former.
    """
    if resolve_command(list(argv)) is None:
        return False
    if len(argv) >= 3 and argv[0] == "npm" and argv[1] in ("run", "run-script"):
        scripts = read_package_scripts(cwd or os.getcwd())
        if scripts is None or argv[2] not in scripts:
            return False
    return True


def _stream_and_capture(proc: subprocess.Popen, log_file: str, echo: bool) -> str:
    """Read a subprocess's combined output to EOF.

    Every line is appended to the log file, echoed to the terminal when
    *echo* is set, and returned as one string.
    """
    captured: list[str] = []
    try:
        f = open(log_file, "a", encoding="utf-8")
    except OSError:
        f = None
    try:
        for line in proc.stdout:
            captured.append(line)
            if echo:
                sys.stdout.write(line)
                sys.stdout.flush()
            if f is not None:
                try:
                    f.write(line)
                    f.flush()
                except OSError:
                    pass
    finally:
        if f is not None:
            f.close()
    return "".join(captured)


def _invoke(argv: Sequence[str], cwd: str | None, log_file: str, echo: bool) -> tuple[int, str] | None:
    """Run one command to completion. Returns (exit_code, output), or None if it could not be spawned.

    Spawn errors other than a missing or forbidden executable (e.g. a file
    with an unknown binary format) fail the command with exit code 126.
    """
    resolved = resolve_command(list(argv))
    if resolved is None:
        return None
    try:
        proc = subprocess.Popen(
            resolved,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except (FileNotFoundError, PermissionError):
        return None
    except OSError as exc:
        output = f"{argv[0]}: cannot execute: {exc}\n"
        write_log_entry(log_file, output)
        return NOT_EXECUTABLE_EXIT_CODE, output
    output = _stream_and_capture(proc, log_file, echo)
    proc.wait()
    return proc.returncode, output


def run_step(step: Step, cwd: str | None = None, log_name: str = "gate", echo: bool = True) -> StepResult:
    """Execute a single step and classify it as passed or failed.

    Tries the primary command; when it is unavailable, tries the fallback.
    When neither can be invoked the step fails with exit code 127.
    """
    log_file = log_file_path(log_name)
    started = time.monotonic()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    used_fallback = False
    invoked = None
    candidates = [step.command] + ([step.fallback] if step.fallback else [])
    for attempt, argv in enumerate(candidates):
        if not is_command_available(argv, cwd):
            continue
        write_log_entry(
            log_file,
            f"\n========== [{timestamp}] {step.name} ==========\n"
            f"Command: {' '.join(argv)}\n"
            f"--- output ---\n",
        )
        invoked = _invoke(argv, cwd, log_file, echo)
        if invoked is not None:
            used_fallback = attempt > 0
            break

    if invoked is None:
        tried = " / ".join(c[0] for c in candidates)
        exit_code, output = UNAVAILABLE_EXIT_CODE, f"{tried}: command not found\n"
        write_log_entry(log_file, f"\n========== [{timestamp}] {step.name} ==========\n{output}")
    else:
        exit_code, output = invoked
    write_log_entry(log_file, f"--- end (exit: {exit_code}) ---\n")

    outcome = StepOutcome.PASSED if exit_code == 0 else StepOutcome.FAILED
    return StepResult(
        step=step,
        outcome=outcome,
        output=output,
        exit_code=exit_code,
        used_fallback=used_fallback,
        duration_seconds=time.monotonic() - started,
    )


def run_gate(
    steps: Sequence[Step], cwd: str | None = None, log_name: str = "gate", echo: bool = True,
) -> RunReport:
    """Run steps one at a time, in order, halting at the first failure.

    Returns a RunReport whose results stop at the failing step. Nothing is
    retried or rolled back; the caller decides what to do with the report.
    """
    steps = tuple(steps)
    if not steps:
        raise ValueError("A gate needs at least one step")

    results: list[StepResult] = []
    total = len(steps)
    for index, step in enumerate(steps, start=1):
        log(log_name, f"[{index}/{total}] {step.name}", style="bold cyan")
        result = run_step(step, cwd=cwd, log_name=log_name, echo=echo)
        results.append(result)
        if result.used_fallback:
            log(log_name, f"  {step.name}: primary command unavailable, used fallback", style="yellow")
        if not result.passed:
            log(log_name, f"  {step.name}: FAILED (exit {result.exit_code})", style="bold red")
            break
        log(log_name, f"  {step.name}: passed ({result.duration_seconds:.1f}s)", style="green")

    return RunReport(steps=steps, results=tuple(results))
