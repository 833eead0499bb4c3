"""invocation.py – Build and execute one build-tool invocation.

Arguments are always passed to the child as discrete tokens, never through a
shell, so feature values containing the delimiter need no quoting.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from flagmatrix.errors import ConfigurationError, ProcessLaunchFailure
from flagmatrix.generator import Combination

DEFAULT_FEATURE_OPTION = "--features"


@dataclass(frozen=True)
class Invocation:
    """A concrete command line: program plus ordered arguments."""

    program: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def command_line(self) -> str:
        """Shell-quoted rendering, for display only."""
        return shlex.join(self.argv)


def split_command(command: str | Sequence[str]) -> list[str]:
    """Normalise a command given as a string or a token list."""
    if isinstance(command, str):
        try:
            parts = shlex.split(command)
        except ValueError as e:
            raise ConfigurationError(f"Invalid command {command!r}: {e}") from e
    else:
        parts = [str(p) for p in command]
    if not parts:
        raise ConfigurationError("Build command is empty")
    return parts


def build_invocation(
    base_command: str | Sequence[str],
    combination: Combination,
    feature_option: str = DEFAULT_FEATURE_OPTION,
) -> Invocation:
    """Turn *combination* into an Invocation of *base_command*.

    An empty combination (the baseline run) yields the base command unmodified;
    otherwise ``feature_option`` and the comma-joined flags are appended.
    """
    parts = split_command(base_command)
    if not combination.is_empty():
        parts += [feature_option, combination.feature_arg]
    return Invocation(program=parts[0], args=tuple(parts[1:]))


def find_program(name: str, cwd: Path | None = None) -> Path | None:
    """Locate the build tool on PATH (or accept an existing explicit path).

    A relative explicit path is resolved against *cwd*, the directory the
    build will run in.
    """
    found = shutil.which(name)
    if found:
        return Path(found)
    candidate = (cwd or Path()) / name
    if candidate.is_file():
        return candidate
    return None


def run_invocation(invocation: Invocation, cwd: Path | None = None) -> int:
    """Run *invocation* to completion and return its exit status.

    The child inherits this process's environment and stdout/stderr, so its
    output lands in the CI log directly.
    """
    try:
        proc = subprocess.run(invocation.argv, cwd=cwd, check=False)
    except FileNotFoundError as e:
        raise ProcessLaunchFailure(invocation, f"program not found ({e})") from e
    except PermissionError as e:
        raise ProcessLaunchFailure(invocation, f"permission denied ({e})") from e
    except OSError as e:
        raise ProcessLaunchFailure(invocation, str(e)) from e
    return proc.returncode
