"""Feature flag catalog: the static description of what must be tested.

AlternativeGroup: mutually exclusive choices (pick one or none)
Independent flag: optional toggle (on or off)
Baseline flag:    always present in every matrix combination

Every axis has an id: an independent flag is its own id, a group carries an
explicit ``id``.  Tiers select a subset of axis ids to build a reduced matrix.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from flagmatrix.errors import ConfigurationError

# Separator used both to join a combination into one argument and to spell
# out a bundle of co-required flags inside a single group choice.
FEATURE_DELIMITER = ","


def split_bundle(token: str) -> list[str]:
    """Split a (possibly bundled) flag token into its atomic flags."""
    return token.split(FEATURE_DELIMITER)


@dataclass(frozen=True)
class AlternativeGroup:
    """A set of mutually exclusive feature choices (pick one or none)."""

    id: str
    choices: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.choices)


@dataclass(frozen=True)
class FlagCatalog:
    """Immutable description of baseline, independent and grouped flags."""

    baseline: tuple[str, ...] = ()
    independent: tuple[str, ...] = ()
    groups: tuple[AlternativeGroup, ...] = ()
    _order: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Normalise list inputs so the frozen value is hashable and stable
        object.__setattr__(self, "baseline", tuple(self.baseline))
        object.__setattr__(self, "independent", tuple(self.independent))
        object.__setattr__(self, "groups", tuple(self.groups))
        _validate(self)
        object.__setattr__(
            self, "_order", {tok: i for i, tok in enumerate(self.tokens())}
        )

    def tokens(self) -> list[str]:
        """Return every flag token in catalog (first-appearance) order."""
        out = list(self.baseline) + list(self.independent)
        for group in self.groups:
            out.extend(group.choices)
        return out

    def axis_ids(self) -> list[str]:
        """Return the ids of every togglable axis, independents first."""
        return list(self.independent) + [g.id for g in self.groups]

    def position(self, token: str) -> int:
        """Return the catalog position of *token* (used for join order)."""
        return self._order[token]

    def restrict(self, axis_ids: Iterable[str] | None) -> FlagCatalog:
        """Return a catalog keeping only the named axes.

        ``None`` keeps every axis (the full matrix).  Unknown ids raise
        :class:`ConfigurationError`.
        """
        if axis_ids is None:
            return self
        wanted = list(axis_ids)
        unknown = sorted(set(wanted) - set(self.axis_ids()))
        if unknown:
            raise ConfigurationError(
                f"Unknown axis id(s) {unknown}, valid: {self.axis_ids()}"
            )
        keep = set(wanted)
        return FlagCatalog(
            baseline=self.baseline,
            independent=tuple(f for f in self.independent if f in keep),
            groups=tuple(g for g in self.groups if g.id in keep),
        )


def _validate(catalog: FlagCatalog) -> None:
    """Enforce the catalog invariants, raising ConfigurationError eagerly."""
    owners: dict[str, str] = {}

    def _claim(token: str, owner: str) -> None:
        if not isinstance(token, str) or not token:
            raise ConfigurationError(f"Empty or non-string flag in {owner}: {token!r}")
        for atom in split_bundle(token):
            if not atom:
                raise ConfigurationError(f"Bundle {token!r} in {owner} has an empty member")
            if atom in owners:
                raise ConfigurationError(
                    f"Flag {atom!r} appears in both {owners[atom]} and {owner}"
                )
            owners[atom] = owner

    for flag in catalog.baseline:
        _claim(flag, "baseline")
    for flag in catalog.independent:
        _claim(flag, "independent")
        if FEATURE_DELIMITER in flag:
            raise ConfigurationError(
                f"Independent flag {flag!r} must not contain {FEATURE_DELIMITER!r}; "
                "use a group choice for bundles"
            )

    seen_ids = set(catalog.independent)
    for group in catalog.groups:
        if not group.id:
            raise ConfigurationError("Alternative group without an id")
        if group.id in seen_ids:
            raise ConfigurationError(f"Duplicate axis id {group.id!r}")
        seen_ids.add(group.id)
        if not group.choices:
            raise ConfigurationError(f"Alternative group {group.id!r} has no choices")
        # Choices of one group are exclusive, so they may share atoms with
        # each other, but not with any other section.
        seen_choices: set[frozenset[str]] = set()
        group_atoms: set[str] = set()
        for choice in group.choices:
            if not isinstance(choice, str) or not choice:
                raise ConfigurationError(
                    f"Empty or non-string choice in group {group.id!r}: {choice!r}"
                )
            atoms = frozenset(split_bundle(choice))
            if "" in atoms:
                raise ConfigurationError(
                    f"Bundle {choice!r} in group {group.id!r} has an empty member"
                )
            if atoms in seen_choices:
                raise ConfigurationError(
                    f"Group {group.id!r} lists the same choice twice: {choice!r}"
                )
            seen_choices.add(atoms)
            group_atoms |= atoms
        for atom in sorted(group_atoms):
            _claim(atom, f"group {group.id!r}")


def make_catalog(
    baseline: Sequence[str] = (),
    independent: Sequence[str] = (),
    groups: Sequence[Sequence[str]] | dict[str, Sequence[str]] = (),
) -> FlagCatalog:
    """Build a catalog from plain sequences.

    *groups* may be a mapping of ``id -> choices`` or a bare list of choice
    lists, in which case ids ``group0``, ``group1``, ... are assigned.
    """
    if isinstance(groups, dict):
        items = list(groups.items())
    else:
        items = [(f"group{i}", choices) for i, choices in enumerate(groups)]
    return FlagCatalog(
        baseline=tuple(baseline),
        independent=tuple(independent),
        groups=tuple(AlternativeGroup(id=gid, choices=tuple(ch)) for gid, ch in items),
    )
