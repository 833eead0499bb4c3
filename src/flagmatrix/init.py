"""Initialize a flagmatrix.toml in the current directory.

Usage:
    flagmatrix init [--program CMD] [--args ARGS] [--feature-option OPT]
"""

import json
import shlex
from pathlib import Path

import typer

from flagmatrix.cli import error_exit
from flagmatrix.config import CONFIG_FILENAME

app = typer.Typer(
    help="Create a starter flagmatrix.toml.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

flagmatrix init                                    cargo check --no-default-features

flagmatrix init --args "clippy --no-default-features"

flagmatrix init --program "cargo +nightly"         Pin a toolchain

[dim]Edit the \\[features] section afterwards to describe your crate's flags.[/dim]""",
)

DEFAULT_FLAGMATRIX_TOML = """# flagmatrix configuration
# Describes the build command and the optional features whose combinations
# must all build.  Run 'flagmatrix list' to preview the matrix.

[command]
program = {program}
args = [{args}]
# Option that receives the comma-joined feature list
feature_option = {feature_option}

[features]
# Flags passed in every matrix combination
baseline = []
# Flags toggled on and off independently
independent = []

# Mutually exclusive alternatives: at most one choice per combination.
# A choice may bundle co-required flags, e.g. "gif,image".
# [[features.groups]]
# id = "imaging"
# choices = ["image", "gif,image"]

# Reduced matrices selected with --tier.  'default' is used when present.
# [tiers]
# default = []
"""


@app.callback(invoke_without_command=True)
def main(
    program: str = typer.Option("cargo", "--program", help="Build tool executable."),
    args: str = typer.Option(
        "check --no-default-features", "--args", help="Base arguments for every build."
    ),
    feature_option: str = typer.Option(
        "--features", "--feature-option", help="Option receiving the feature list."
    ),
) -> None:
    """Write flagmatrix.toml in the current directory."""
    toml_path = Path.cwd() / CONFIG_FILENAME
    if toml_path.exists():
        error_exit(f"A {CONFIG_FILENAME} already exists in {toml_path.parent}")

    try:
        arg_list = shlex.split(args)
    except ValueError as e:
        error_exit(f"Invalid --args {args!r}: {e}")
    # json.dumps output is a valid TOML basic string
    quoted_args = ", ".join(json.dumps(a) for a in arg_list)
    toml_path.write_text(
        DEFAULT_FLAGMATRIX_TOML.format(
            program=json.dumps(program),
            args=quoted_args,
            feature_option=json.dumps(feature_option),
        ),
        encoding="utf-8",
    )
    typer.secho(f"Created {toml_path.name}", fg=typer.colors.GREEN)
    typer.echo("Next: list your features under [features], then run 'flagmatrix list'.")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
