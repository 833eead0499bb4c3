"""List the feature combinations a run would test, without building.

Usage:
    flagmatrix list [--tier NAME] [--config PATH] [--json]
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from flagmatrix.cli import ConfigOption, TierOption, get_catalog, get_config, json_print
from flagmatrix.generator import count_combinations, generate_combinations

app = typer.Typer(
    help="List the feature combinations in the matrix.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

flagmatrix list                      Combinations of the default tier

flagmatrix list --tier full          Every combination

flagmatrix list --json               Machine-readable JSON output""",
)


@app.callback(invoke_without_command=True)
def main(
    config: Path | None = ConfigOption,
    tier: str | None = TierOption,
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Print every combination in generation order."""
    cfg = get_config(config, json_mode=json_output)
    catalog = get_catalog(cfg, tier, json_mode=json_output)
    combos = list(generate_combinations(catalog))

    if json_output:
        json_print(
            {
                "tier": tier or cfg.default_tier,
                "total": count_combinations(catalog),
                "combinations": [
                    {"features": list(c.flags), "baseline_run": c.baseline_run} for c in combos
                ],
            }
        )
        return

    tbl = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    tbl.add_column("#", justify="right", style="dim")
    tbl.add_column("Features")
    for index, combo in enumerate(combos, start=1):
        if combo.baseline_run:
            label = "[dim](no optional features)[/dim]"
        else:
            label = escape(combo.feature_arg)
        tbl.add_row(str(index), label or "[dim](none)[/dim]")

    console = Console()
    console.print(tbl)
    tier_name = escape(tier or cfg.default_tier)
    console.print(f"[bold]{len(combos)}[/bold] combinations (tier: {tier_name})")


def main_entry() -> None:
    """Run the list CLI app."""
    app()


if __name__ == "__main__":
    main_entry()
