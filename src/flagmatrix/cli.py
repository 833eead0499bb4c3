"""Shared CLI utilities for flagmatrix commands.

Provides common Typer options, config-loading helpers, and standardised
output / error helpers so that every command gets consistent ``--config``
and ``--tier`` support and error reporting without boilerplate.

Usage in a command::

    import typer
    from flagmatrix.cli import ConfigOption, TierOption, get_config, error_exit

    app = typer.Typer()

    @app.callback(invoke_without_command=True)
    def main(config: Path | None = ConfigOption, tier: str | None = TierOption) -> None:
        cfg = get_config(config)
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from flagmatrix.catalog import FlagCatalog
from flagmatrix.config import ProjectConfig, load_config
from flagmatrix.errors import ConfigurationError

# Re-usable Typer option for --config
ConfigOption: Path | None = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to flagmatrix.toml (default: search upward from the cwd).",
)

# Re-usable Typer option for --tier
TierOption: str | None = typer.Option(
    None,
    "--tier",
    "-T",
    help="Axis tier to expand: 'full' for every axis, or a name from [tiers] "
    "(default: 'default' if defined, else 'full').",
)


def get_config(config: Path | None = None, *, json_mode: bool = False) -> ProjectConfig:
    """Load the project config, exiting with a diagnostic on failure."""
    try:
        return load_config(config)
    except (FileNotFoundError, ConfigurationError) as e:
        error_exit(str(e), json_mode=json_mode)


def get_catalog(
    cfg: ProjectConfig, tier: str | None, *, json_mode: bool = False
) -> FlagCatalog:
    """Resolve the tier-restricted catalog, exiting on an unknown tier."""
    try:
        return cfg.catalog_for_tier(tier)
    except ConfigurationError as e:
        error_exit(str(e), json_mode=json_mode)


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True, soft_wrap=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))
