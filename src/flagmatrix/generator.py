"""generator.py – Enumerate the feature combinations to test.

The matrix is a mixed-radix walk over independent axes: one radix-2 digit per
independent flag (absent / present) and one radix-(g+1) digit per alternative
group (absent / choice 1 .. choice g).  ``itertools.product`` gives exactly
that order, with the first axis varying slowest.

The dedicated baseline run (no optional features at all) is always yielded
first and is not part of the matrix proper.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterator
from dataclasses import dataclass

from flagmatrix.catalog import FEATURE_DELIMITER, FlagCatalog, split_bundle


@dataclass(frozen=True)
class Combination:
    """One concrete selection of feature flags for a single build."""

    flags: tuple[str, ...] = ()
    baseline_run: bool = False

    @property
    def flag_set(self) -> frozenset[str]:
        """The flag tokens as a set (bundles kept whole)."""
        return frozenset(self.flags)

    @property
    def atoms(self) -> frozenset[str]:
        """Every atomic flag, with bundles split apart."""
        return frozenset(a for tok in self.flags for a in split_bundle(tok))

    @property
    def feature_arg(self) -> str:
        """Value passed to the build tool's feature option."""
        return FEATURE_DELIMITER.join(self.flags)

    def is_empty(self) -> bool:
        return not self.flags

    def describe(self) -> str:
        """Human-readable label used in progress and failure lines."""
        if self.baseline_run:
            return "no optional features"
        if not self.flags:
            return "features: (none)"
        return f"features: {self.feature_arg}"


def parse_feature_arg(value: str) -> frozenset[str]:
    """Split a joined feature argument back into its atomic flags."""
    if not value:
        return frozenset()
    return frozenset(split_bundle(value))


def _axes(catalog: FlagCatalog) -> list[list[str | None]]:
    """Convert the catalog into product axes; ``None`` means "absent".

    Independent flag → [None, flag]
    Group            → [None, choice1, ..., choiceN]
    """
    axes: list[list[str | None]] = [[None, flag] for flag in catalog.independent]
    for group in catalog.groups:
        axes.append([None, *group.choices])
    return axes


def count_combinations(catalog: FlagCatalog) -> int:
    """Total runs for *catalog*: 1 baseline + 2^k × ∏(g_i + 1)."""
    matrix = 2 ** len(catalog.independent) * math.prod(len(g) + 1 for g in catalog.groups)
    return 1 + matrix


def iter_matrix(catalog: FlagCatalog) -> Iterator[Combination]:
    """Yield the matrix proper (without the baseline run), deduplicated."""
    seen: set[frozenset[str]] = set()
    for digits in itertools.product(*_axes(catalog)):
        chosen = [*catalog.baseline, *(tok for tok in digits if tok is not None)]
        chosen.sort(key=catalog.position)
        combo = Combination(flags=tuple(chosen))
        if combo.flag_set in seen:
            continue
        seen.add(combo.flag_set)
        yield combo


def generate_combinations(catalog: FlagCatalog) -> Iterator[Combination]:
    """Yield the baseline run followed by every matrix combination."""
    yield Combination(baseline_run=True)
    yield from iter_matrix(catalog)
