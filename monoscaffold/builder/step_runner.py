"""Sequential execution of external generator and installer commands.

A ``Step`` describes one external invocation.  ``StepRunner`` executes steps
one at a time, classifies each as succeeded or failed, and stops a sequence at
the first failure.  Failures are returned as ``StepResult`` values, never
raised, so callers branch on the result instead of catching exceptions.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.markup import escape

from monoscaffold.utils import (
    TIMEOUT_EXIT_CODE,
    console,
    format_command,
    format_duration,
    print_step_header,
    run_command,
    tail_lines,
)


class StepMode(str, Enum):
    """How a step's child process output is presented."""

    CAPTURE = "capture"
    INHERIT = "inherit"


@dataclass(frozen=True)
class Step:
    """Descriptor for a single external command invocation.

    Every step carries its own working directory; the runner never changes
    the process-wide current directory.
    """

    id: str
    command: list[str]
    cwd: Path
    timeout: float
    mode: StepMode = StepMode.CAPTURE
    description: str = ""

    @property
    def display(self) -> str:
        return format_command(self.command)

    @property
    def label(self) -> str:
        return self.description or self.id


@dataclass
class StepResult:
    """Outcome of running one ``Step``."""

    step_id: str
    succeeded: bool
    error_detail: str | None = None
    exit_code: int = -1
    duration_seconds: float = 0.0
    timed_out: bool = False
    stdout: str = field(default="", repr=False)
    stderr: str = field(default="", repr=False)

    def summary(self) -> str:
        """Return a one-line human-readable summary."""
        status = "[green]OK[/green]" if self.succeeded else "[red]FAILED[/red]"
        line = f"{self.step_id}: {status} ({format_duration(self.duration_seconds)})"
        if self.error_detail:
            first = self.error_detail.splitlines()[0]
            line += f" - {escape(first[:200])}"
        return line


class StepRunner:
    """Runs ``Step`` objects in declared order, one at a time.

    A non-zero exit code, an elapsed timeout, or a command that cannot be
    spawned all count as failure.  No step is ever retried.
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self.env = env

    async def run(self, step: Step, index: int = 1, total: int = 1) -> StepResult:
        """Execute a single step and return its result."""
        capture = step.mode is StepMode.CAPTURE
        start = time.monotonic()

        if not capture:
            print_step_header(index, total, step.label)
            console.print(f"[dim]$ {escape(step.display)}[/dim]")

        try:
            if capture:
                with console.status(f"{escape(step.label)}..."):
                    returncode, stdout, stderr = await run_command(
                        step.command,
                        cwd=step.cwd,
                        timeout=step.timeout,
                        capture=True,
                        env=self.env,
                    )
            else:
                returncode, stdout, stderr = await run_command(
                    step.command,
                    cwd=step.cwd,
                    timeout=step.timeout,
                    capture=False,
                    env=self.env,
                )
        except FileNotFoundError:
            return self._report(
                StepResult(
                    step_id=step.id,
                    succeeded=False,
                    error_detail=(
                        f"Command not found: '{step.command[0]}'. "
                        "Ensure it is installed and in PATH."
                    ),
                    duration_seconds=time.monotonic() - start,
                ),
                step,
            )
        except PermissionError:
            return self._report(
                StepResult(
                    step_id=step.id,
                    succeeded=False,
                    error_detail=f"Permission denied executing: '{step.command[0]}'.",
                    duration_seconds=time.monotonic() - start,
                ),
                step,
            )

        elapsed = time.monotonic() - start
        timed_out = returncode == TIMEOUT_EXIT_CODE and "timed out" in stderr

        if timed_out:
            detail: str | None = f"Timed out after {step.timeout}s: {step.display}"
        elif returncode != 0:
            output = tail_lines(stderr) or tail_lines(stdout)
            detail = f"Exited with code {returncode}: {step.display}"
            if output:
                detail += f"\n{output}"
        else:
            detail = None

        result = StepResult(
            step_id=step.id,
            succeeded=detail is None,
            error_detail=detail,
            exit_code=returncode,
            duration_seconds=elapsed,
            timed_out=timed_out,
            stdout=stdout,
            stderr=stderr,
        )
        return self._report(result, step)

    async def run_all(self, steps: list[Step]) -> list[StepResult]:
        """Run *steps* in order and stop after the first failure.

        Returns the results of every step that was started; the last entry
        is the failing one when the sequence did not complete.
        """
        results: list[StepResult] = []
        total = len(steps)
        for index, step in enumerate(steps, 1):
            result = await self.run(step, index=index, total=total)
            results.append(result)
            if not result.succeeded:
                break
        return results

    def _report(self, result: StepResult, step: Step) -> StepResult:
        duration = format_duration(result.duration_seconds)
        if result.succeeded:
            console.print(f"[green]✔[/green] {escape(step.label)} [dim]({duration})[/dim]")
        else:
            console.print(f"[red]✖[/red] {escape(step.label)} [dim]({duration})[/dim]")
        return result
