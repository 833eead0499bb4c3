"""Centralised project configuration loader for flagmatrix.

Reads ``flagmatrix.toml`` from the project root and exposes the build command
and the feature catalog as simple attributes.

Usage::

    from flagmatrix.config import load_config

    cfg = load_config()
    cfg.base_command            # ["cargo", "check", "--no-default-features"]
    cfg.catalog                 # FlagCatalog
    cfg.catalog_for_tier("default")
"""

from __future__ import annotations

import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flagmatrix.catalog import AlternativeGroup, FlagCatalog
from flagmatrix.errors import ConfigurationError
from flagmatrix.invocation import DEFAULT_FEATURE_OPTION, split_command

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_FILENAME = "flagmatrix.toml"

# Tier name that always means "every axis"
FULL_TIER = "full"
DEFAULT_TIER = "default"


@dataclass
class ProjectConfig:
    """Parsed project configuration."""

    # Directory holding flagmatrix.toml; builds run from here
    root: Path

    program: str = "cargo"
    args: list[str] = field(default_factory=lambda: ["check", "--no-default-features"])
    feature_option: str = DEFAULT_FEATURE_OPTION

    catalog: FlagCatalog = field(default_factory=FlagCatalog)

    # Tier name -> axis ids kept in the reduced matrix
    tiers: dict[str, list[str]] = field(default_factory=dict)

    @property
    def base_command(self) -> list[str]:
        return [self.program, *self.args]

    @property
    def default_tier(self) -> str:
        """``default`` when the config defines it, else the full matrix."""
        return DEFAULT_TIER if DEFAULT_TIER in self.tiers else FULL_TIER

    def tier_names(self) -> list[str]:
        return [FULL_TIER, *(t for t in self.tiers if t != FULL_TIER)]

    def catalog_for_tier(self, tier: str | None = None) -> FlagCatalog:
        """Return the catalog restricted to *tier* (``None`` = default tier)."""
        tier = tier or self.default_tier
        if tier == FULL_TIER:
            return self.catalog
        if tier not in self.tiers:
            raise ConfigurationError(
                f"Unknown tier {tier!r}, valid: {self.tier_names()}"
            )
        return self.catalog.restrict(self.tiers[tier])


def _string_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{where} must be a list of strings, got {value!r}")
    return list(value)


def _parse_groups(raw: Any) -> list[AlternativeGroup]:
    """Parse ``[[features.groups]]`` tables (or an ``id -> choices`` table)."""
    if isinstance(raw, dict):
        raw = [{"id": k, "choices": v} for k, v in raw.items()]
    if not isinstance(raw, list):
        raise ConfigurationError(f"features.groups must be an array of tables, got {raw!r}")
    groups = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"features.groups[{i}] must be a table")
        gid = entry.get("id", f"group{i}")
        if not isinstance(gid, str):
            raise ConfigurationError(f"features.groups[{i}].id must be a string")
        choices = _string_list(entry.get("choices", []), f"features.groups[{i}].choices")
        groups.append(AlternativeGroup(id=gid, choices=tuple(choices)))
    return groups


def parse_config(raw: dict[str, Any], root: Path) -> ProjectConfig:
    """Build a ProjectConfig from an already-parsed TOML document."""
    command = raw.get("command", {})
    features = raw.get("features", {})
    tiers_raw = raw.get("tiers", {})
    if not isinstance(command, dict) or not isinstance(features, dict):
        raise ConfigurationError("[command] and [features] must be tables")
    if not isinstance(tiers_raw, dict):
        raise ConfigurationError("[tiers] must be a table")

    cfg = ProjectConfig(root=root)
    if "program" in command or "args" in command:
        # program may carry leading args, e.g. "cargo +nightly"
        parts = split_command(command.get("program", cfg.program))
        args = command.get("args", [])
        if isinstance(args, str):
            try:
                extra = shlex.split(args)
            except ValueError as e:
                raise ConfigurationError(f"Invalid command.args {args!r}: {e}") from e
        else:
            extra = _string_list(args, "command.args")
        cfg.program, cfg.args = parts[0], [*parts[1:], *extra]
    if "feature_option" in command:
        if not isinstance(command["feature_option"], str) or not command["feature_option"]:
            raise ConfigurationError("command.feature_option must be a non-empty string")
        cfg.feature_option = command["feature_option"]

    cfg.catalog = FlagCatalog(
        baseline=tuple(_string_list(features.get("baseline", []), "features.baseline")),
        independent=tuple(_string_list(features.get("independent", []), "features.independent")),
        groups=tuple(_parse_groups(features.get("groups", []))),
    )

    for name, ids in tiers_raw.items():
        if name == FULL_TIER:
            raise ConfigurationError(f"Tier name {FULL_TIER!r} is reserved for the full matrix")
        cfg.tiers[name] = _string_list(ids, f"tiers.{name}")
        # Validate eagerly so a typo fails before any build runs
        cfg.catalog.restrict(cfg.tiers[name])

    return cfg


def _find_root(start: Path | None = None) -> Path:
    """Walk up from *start* (or cwd) to find flagmatrix.toml.

    Searches the current working directory upward, similar to how ``git``
    locates ``.git/``.
    """
    candidate = (start or Path.cwd()).resolve()
    while True:
        if (candidate / CONFIG_FILENAME).exists():
            return candidate
        if candidate == candidate.parent:
            break
        candidate = candidate.parent
    raise FileNotFoundError(
        f"Could not find {CONFIG_FILENAME} in any parent of the current directory. "
        "Run 'flagmatrix init' to create one, or pass --config."
    )


def load_config(path: Path | None = None) -> ProjectConfig:
    """Load flagmatrix.toml.

    Args:
        path: Explicit config file (or a directory containing one).  When
              ``None`` the file is searched for from the cwd upward.
    """
    if path is None:
        toml_path = _find_root() / CONFIG_FILENAME
    elif path.is_dir():
        toml_path = path / CONFIG_FILENAME
    else:
        toml_path = path
    if not toml_path.exists():
        raise FileNotFoundError(f"Config not found: {toml_path}")

    try:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {toml_path}: {e}") from e

    return parse_config(raw, root=toml_path.parent.resolve())
