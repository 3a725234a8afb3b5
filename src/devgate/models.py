"""Gate data model: steps, per-step results, and the run report."""

from dataclasses import dataclass, field
from enum import Enum


class StepOutcome(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    # Never produced by the runner; used when rendering steps that did not run.
    SKIPPED = "skipped"


class RunOutcome(str, Enum):
    ALL_PASSED = "all_passed"
    HALTED = "halted"


class StepFailed(Exception):
    """The one failure a gate run can end with: a step exited nonzero.

    Carries the step name and its captured output verbatim so the caller can
    surface both.
    """

    def __init__(self, step_name: str, output: str, index: int | None = None, exit_code: int | None = None):
        self.step_name = step_name
        self.output = output
        self.index = index
        self.exit_code = exit_code
        where = f" (step {index})" if index is not None else ""
        super().__init__(f"Step '{step_name}'{where} failed")


@dataclass(frozen=True)
class Step:
    """A single named command inside a gate.

    command and fallback are argv lists. The fallback is only tried when the
    primary command cannot be invoked at all, never when it merely fails.
    """

    name: str
    command: tuple[str, ...]
    fallback: tuple[str, ...] | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Step name must not be empty")
        if not self.command:
            raise ValueError(f"Step '{self.name}' has an empty command")
        # Accept lists from callers but store tuples so the step stays hashable.
        object.__setattr__(self, "command", tuple(self.command))
        if self.fallback is not None:
            if not self.fallback:
                raise ValueError(f"Step '{self.name}' has an empty fallback command")
            object.__setattr__(self, "fallback", tuple(self.fallback))


@dataclass(frozen=True)
class StepResult:
    step: Step
    outcome: StepOutcome
    output: str = ""
    exit_code: int | None = None
    used_fallback: bool = False
    duration_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.outcome is StepOutcome.PASSED


@dataclass(frozen=True)
class RunReport:
    """Ordered step results of one gate run plus the overall outcome.

    Results stop at the first non-passed step: steps after a failure never
    run, so they have no result. Construction rejects sequences that break
    that rule.
    """

    steps: tuple[Step, ...]
    results: tuple[StepResult, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "results", tuple(self.results))
        if len(self.results) > len(self.steps):
            raise ValueError("RunReport has more results than steps")
        for position, result in enumerate(self.results):
            if result.step != self.steps[position]:
                raise ValueError(f"Result {position + 1} does not belong to step '{self.steps[position].name}'")
            if not result.passed and position != len(self.results) - 1:
                raise ValueError("RunReport has results after a non-passed step")
        if self.results and self.results[-1].passed and len(self.results) < len(self.steps):
            raise ValueError("RunReport stops early without a failed step")
        if not self.results and self.steps:
            raise ValueError("RunReport has no results")

    @property
    def halted_at(self) -> int | None:
        """1-indexed position of the first non-passed step, or None."""
        for position, result in enumerate(self.results, start=1):
            if not result.passed:
                return position
        return None

    @property
    def outcome(self) -> RunOutcome:
        if self.halted_at is None:
            return RunOutcome.ALL_PASSED
        return RunOutcome.HALTED

    @property
    def passed(self) -> bool:
        return self.outcome is RunOutcome.ALL_PASSED

    @property
    def not_run(self) -> tuple[Step, ...]:
        return self.steps[len(self.results):]

    @property
    def failure(self) -> StepFailed | None:
        index = self.halted_at
        if index is None:
            return None
        result = self.results[index - 1]
        return StepFailed(result.step.name, result.output, index=index, exit_code=result.exit_code)

    def raise_for_failure(self) -> None:
        failure = self.failure
        if failure is not None:
            raise failure

    def describe(self) -> str:
        """Short outcome text, e.g. 'all 4 steps passed' or 'halted at step 2 (lint)'."""
        index = self.halted_at
        if index is None:
            return f"all {len(self.results)} steps passed"
        return f"halted at step {index} ({self.results[index - 1].step.name})"
