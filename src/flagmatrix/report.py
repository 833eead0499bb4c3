"""report.py – Progress output and the overall verdict for a matrix run.

One progress line per attempted combination goes to stdout, in generation
order.  Failures and the final summary go to stderr so CI logs show them next
to the child's own diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape

from flagmatrix.errors import BuildFailure, ProcessLaunchFailure
from flagmatrix.generator import Combination
from flagmatrix.invocation import Invocation

# Exit status used when the child's own status cannot be propagated
# (launch failure, killed by a signal).
FAILURE_EXIT_CODE = 1


@dataclass
class RunResult:
    """Outcome of one invocation."""

    combination: Combination
    invocation: Invocation
    exit_code: int | None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        d: dict[str, Any] = {
            "features": list(self.combination.flags),
            "baseline_run": self.combination.baseline_run,
            "command": self.invocation.argv,
            "exit_code": self.exit_code,
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class MatrixReport:
    """Aggregated results of a (possibly aborted) matrix run."""

    total: int
    results: list[RunResult] = field(default_factory=list)

    @property
    def failure(self) -> RunResult | None:
        """The failing run, if any.  Fail-fast means it is always the last."""
        if self.results and not self.results[-1].ok:
            return self.results[-1]
        return None

    @property
    def passed(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> None:
        """Raise BuildFailure or ProcessLaunchFailure if the run failed."""
        failure = self.failure
        if failure is None:
            return
        if failure.exit_code is None:
            raise ProcessLaunchFailure(failure.invocation, failure.error)
        raise BuildFailure(failure.combination, failure.exit_code)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def exit_code(self) -> int:
        """Process exit status: 0, the child's positive status, or 1."""
        failure = self.failure
        if failure is None:
            return 0
        if failure.exit_code is not None and failure.exit_code > 0:
            return failure.exit_code
        return FAILURE_EXIT_CODE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        failure = self.failure
        return {
            "passed": self.passed,
            "total": self.total,
            "attempted": self.attempted,
            "exit_code": self.exit_code,
            "failure": failure.to_dict() if failure else None,
        }


class Reporter:
    """Writes progress and verdict lines for a matrix run."""

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        show_commands: bool = True,
    ) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, highlight=False, soft_wrap=True)
        self.show_commands = show_commands

    def start(
        self, index: int, total: int, combination: Combination, invocation: Invocation
    ) -> None:
        line = f"[{index}/{total}] {combination.describe()}"
        self.console.print(escape(line), style="bold")
        if self.show_commands:
            self.console.print(f"[dim]$ {escape(invocation.command_line())}[/dim]")

    def failed(self, result: RunResult) -> None:
        label = escape(result.combination.describe())
        if result.error:
            detail = escape(f"could not launch {result.invocation.program}: {result.error}")
        else:
            detail = f"exit code {result.exit_code}"
        self.err_console.print(f"[red bold]FAILED:[/red bold] {label} ({detail})")

    def finish(self, report: MatrixReport) -> None:
        if report.passed:
            self.err_console.print(
                f"[green bold]All {report.total} combinations passed.[/green bold]"
            )
        else:
            skipped = report.total - report.attempted
            self.err_console.print(
                f"[red]Stopped after {report.attempted}/{report.total} combinations "
                f"({skipped} not attempted).[/red]"
            )
