"""Exception types raised by flagmatrix."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flagmatrix.generator import Combination
    from flagmatrix.invocation import Invocation


class FlagMatrixError(Exception):
    """Base class for all flagmatrix errors."""


class ConfigurationError(FlagMatrixError, ValueError):
    """The flag catalog or project config is malformed."""


class BuildFailure(FlagMatrixError):
    """A build invocation exited with a non-zero status."""

    def __init__(self, combination: Combination, exit_code: int) -> None:
        self.combination = combination
        self.exit_code = exit_code
        super().__init__(f"{combination.describe()} failed with exit code {exit_code}")


class ProcessLaunchFailure(FlagMatrixError):
    """The build tool could not be started at all."""

    def __init__(self, invocation: Invocation, reason: str) -> None:
        self.invocation = invocation
        self.reason = reason
        super().__init__(f"Failed to launch {invocation.program!r}: {reason}")
