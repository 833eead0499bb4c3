"""matrix.py – The fail-fast orchestration loop.

Builds and runs one invocation per combination, strictly in generation order,
and stops at the first failing build or launch failure.  Later combinations
are never attempted.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from flagmatrix.catalog import FlagCatalog
from flagmatrix.errors import ProcessLaunchFailure
from flagmatrix.generator import Combination, count_combinations, generate_combinations
from flagmatrix.invocation import (
    DEFAULT_FEATURE_OPTION,
    Invocation,
    build_invocation,
    run_invocation,
)
from flagmatrix.report import MatrixReport, Reporter, RunResult

RunFn = Callable[[Invocation], int]


def run_matrix(
    base_command: str | Sequence[str],
    combinations: Iterable[Combination],
    total: int,
    *,
    feature_option: str = DEFAULT_FEATURE_OPTION,
    run: RunFn = run_invocation,
    reporter: Reporter | None = None,
) -> MatrixReport:
    """Run every combination until one fails.

    Args:
        total: Number of combinations expected, used for progress lines only.
        run: Callable executing an Invocation and returning its exit status.
            Defaults to :func:`run_invocation`; tests pass a fake.
    """
    reporter = reporter or Reporter()
    report = MatrixReport(total=total)

    for index, combo in enumerate(combinations, start=1):
        invocation = build_invocation(base_command, combo, feature_option)
        reporter.start(index, total, combo, invocation)
        try:
            exit_code: int | None = run(invocation)
            error = ""
        except ProcessLaunchFailure as e:
            exit_code, error = None, e.reason

        result = RunResult(
            combination=combo, invocation=invocation, exit_code=exit_code, error=error
        )
        report.results.append(result)
        if not result.ok:
            reporter.failed(result)
            break

    reporter.finish(report)
    return report


def run_catalog(
    base_command: str | Sequence[str],
    catalog: FlagCatalog,
    *,
    feature_option: str = DEFAULT_FEATURE_OPTION,
    cwd: Path | None = None,
    run: RunFn | None = None,
    reporter: Reporter | None = None,
) -> MatrixReport:
    """Generate the full matrix for *catalog* and run it."""
    if run is None:
        run = functools.partial(run_invocation, cwd=cwd)

    return run_matrix(
        base_command,
        generate_combinations(catalog),
        count_combinations(catalog),
        feature_option=feature_option,
        run=run,
        reporter=reporter,
    )
