"""main.py – Umbrella CLI entry point for flagmatrix.

Imports and registers the subcommand typer apps.  Each module exposes
a single ``main`` callback, registered as a flat ``app.command()`` entry.
"""

import importlib

import typer

app = typer.Typer(
    help="Feature-matrix regression harness: build every feature combination.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  flagmatrix init              Create flagmatrix.toml
  flagmatrix list              Preview the combinations to test
  flagmatrix run               Build each combination, stop at the first failure
  flagmatrix run --tier full   Expand every feature axis

[dim]All subcommands read settings from flagmatrix.toml.
Run 'flagmatrix <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_COMMANDS: list[tuple[str, str, str]] = [
    ("run", "flagmatrix.run", "Build every feature combination, failing fast."),
    ("list", "flagmatrix.list_cmd", "List the feature combinations in the matrix."),
    ("init", "flagmatrix.init", "Create a starter flagmatrix.toml."),
]


for _name, _module, _help in _COMMANDS:
    _mod = importlib.import_module(_module)
    _epilog = getattr(_mod.app.info, "epilog", None)
    if not isinstance(_epilog, str):
        _epilog = None
    app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
