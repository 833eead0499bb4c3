"""Run the feature matrix and stop at the first broken combination.

Usage:
    flagmatrix run [--tier NAME] [--config PATH] [--dry-run] [--json]
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from flagmatrix.cli import (
    ConfigOption,
    TierOption,
    error_exit,
    get_catalog,
    get_config,
    json_print,
)
from flagmatrix.errors import BuildFailure, ProcessLaunchFailure
from flagmatrix.generator import count_combinations, generate_combinations
from flagmatrix.invocation import build_invocation, find_program
from flagmatrix.matrix import run_catalog
from flagmatrix.report import Reporter

app = typer.Typer(
    help="Build every feature combination, failing fast on the first broken one.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

flagmatrix run                       Run the default tier (or full matrix)

flagmatrix run --tier full           Expand every independent flag and group

flagmatrix run --dry-run             Print the commands without running them

flagmatrix run --json                Emit a JSON verdict after the run

flagmatrix run -n --json             Planned invocations as JSON

[bold]Order:[/bold]

The build with no optional features always runs first.  The matrix follows
in a fixed order, so CI logs are reproducible.

[dim]Exits 0 when every combination builds; otherwise exits with the failing
build's status (or 1) and names the failing combination.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    config: Path | None = ConfigOption,
    tier: str | None = TierOption,
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print invocations without executing them"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON verdict on stdout"),
) -> None:
    """Run the build command once per feature combination."""
    cfg = get_config(config, json_mode=json_output)
    catalog = get_catalog(cfg, tier, json_mode=json_output)
    total = count_combinations(catalog)

    if dry_run:
        planned = [
            (combo, build_invocation(cfg.base_command, combo, cfg.feature_option))
            for combo in generate_combinations(catalog)
        ]
        if json_output:
            json_print(
                {
                    "tier": tier or cfg.default_tier,
                    "total": total,
                    "invocations": [
                        {
                            "features": list(combo.flags),
                            "baseline_run": combo.baseline_run,
                            "command": invocation.argv,
                        }
                        for combo, invocation in planned
                    ],
                }
            )
            return
        for index, (_combo, invocation) in enumerate(planned, start=1):
            typer.echo(f"[{index}/{total}] {invocation.command_line()}")
        return

    if find_program(cfg.program, cwd=cfg.root) is None:
        error_exit(f"Build tool {cfg.program!r} not found", json_mode=json_output)

    if json_output:
        # stdout is reserved for the verdict
        reporter = Reporter(console=Console(stderr=True, highlight=False, soft_wrap=True))
    else:
        reporter = Reporter()
    report = run_catalog(
        cfg.base_command,
        catalog,
        feature_option=cfg.feature_option,
        cwd=cfg.root,
        reporter=reporter,
    )
    if json_output:
        json_print(report.to_dict())
    try:
        report.raise_for_failure()
    except (BuildFailure, ProcessLaunchFailure) as e:
        # Reporter has already printed the FAILED line
        raise typer.Exit(code=report.exit_code) from e


def main_entry() -> None:
    """Run the run CLI app."""
    app()


if __name__ == "__main__":
    main_entry()
