"""Partition of species into equilibrium, kinetic and inert roles."""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Tuple

from splitkin.exceptions import InvalidPartitionError

ROLES = ("equilibrium", "kinetic", "inert")

_CLAUSE = re.compile(r"^\s*(?P<role>[A-Za-z_]+)\s*=\s*(?P<names>.*?)\s*$")


class SpeciesCatalog(Protocol):
    @property
    def num_species(self) -> int: ...

    def index_species(self, species) -> int: ...


def _as_indices(values: Iterable[int], role: str) -> Tuple[int, ...]:
    indices = []
    for value in values:
        try:
            index = operator.index(value)
        except TypeError:
            raise InvalidPartitionError(
                f"The {role} indices must be integers, got {value!r}."
            ) from None
        if index < 0:
            raise InvalidPartitionError(f"Negative {role} species index {index}.")
        indices.append(index)
    return tuple(indices)


@dataclass(frozen=True)
class Partition:
    """Classification of every species index into exactly one role.

    The three index collections must be pairwise disjoint and free of repeats;
    this is checked on construction. A partition carries no reference to a
    chemical system, so range and coverage are checked by :meth:`validate` where
    the partition is used.
    """

    equilibrium: Tuple[int, ...] = field(default=())
    kinetic: Tuple[int, ...] = field(default=())
    inert: Tuple[int, ...] = field(default=())

    def __post_init__(self) -> None:
        seen = {}
        for role in ROLES:
            indices = _as_indices(getattr(self, role), role)
            object.__setattr__(self, role, indices)
            for index in indices:
                if index in seen:
                    raise InvalidPartitionError(
                        f"Species index {index} is classified as both {seen[index]} and {role}."
                    )
                seen[index] = role

    @property
    def num_species(self) -> int:
        return len(self.equilibrium) + len(self.kinetic) + len(self.inert)

    def role_of(self, index: int) -> str:
        for role in ROLES:
            if index in getattr(self, role):
                return role
        raise InvalidPartitionError(f"Species index {index} is not classified.")

    def validate(self, num_species: int) -> None:
        """Check that the partition covers exactly ``range(num_species)``."""
        covered = set(self.equilibrium) | set(self.kinetic) | set(self.inert)
        outside = sorted(i for i in covered if i >= num_species)
        if outside:
            raise InvalidPartitionError(
                f"Species indices {outside} are out of range for {num_species} species."
            )
        missing = sorted(set(range(num_species)) - covered)
        if missing:
            raise InvalidPartitionError(f"Species indices {missing} have no role.")

    @classmethod
    def all_equilibrium(cls, system: SpeciesCatalog) -> "Partition":
        return cls(equilibrium=tuple(range(system.num_species)))

    @classmethod
    def all_kinetic(cls, system: SpeciesCatalog) -> "Partition":
        return cls(kinetic=tuple(range(system.num_species)))

    @classmethod
    def all_equilibrium_except(
        cls,
        system: SpeciesCatalog,
        kinetic: Iterable[int] = (),
        inert: Iterable[int] = (),
    ) -> "Partition":
        kinetic = _as_indices(kinetic, "kinetic")
        inert = _as_indices(inert, "inert")
        excluded = set(kinetic) | set(inert)
        equilibrium = tuple(i for i in range(system.num_species) if i not in excluded)
        return cls(equilibrium=equilibrium, kinetic=kinetic, inert=inert)

    @classmethod
    def all_kinetic_except(
        cls,
        system: SpeciesCatalog,
        equilibrium: Iterable[int] = (),
        inert: Iterable[int] = (),
    ) -> "Partition":
        equilibrium = _as_indices(equilibrium, "equilibrium")
        inert = _as_indices(inert, "inert")
        excluded = set(equilibrium) | set(inert)
        kinetic = tuple(i for i in range(system.num_species) if i not in excluded)
        return cls(equilibrium=equilibrium, kinetic=kinetic, inert=inert)

    @classmethod
    def parse(cls, system: SpeciesCatalog, text: str) -> "Partition":
        """Build a partition from a selector string.

        The string holds ``role = name name ...`` clauses separated by ``;``,
        for example ``"kinetic = Calcite; inert = Quartz"``. Roles left out take
        the remaining species: equilibrium if it is not named, kinetic otherwise.
        """
        named = {}
        for clause in filter(str.strip, text.split(";")):
            match = _CLAUSE.match(clause)
            if match is None:
                raise InvalidPartitionError(f"Malformed partition clause `{clause.strip()}`.")
            role = match.group("role").lower()
            if role not in ROLES:
                raise InvalidPartitionError(f"Unknown partition role `{role}`.")
            if role in named:
                raise InvalidPartitionError(f"Partition role `{role}` is given twice.")
            named[role] = tuple(system.index_species(name) for name in match.group("names").split())

        if "equilibrium" not in named:
            return cls.all_equilibrium_except(
                system, named.get("kinetic", ()), named.get("inert", ())
            )
        if "kinetic" not in named:
            return cls.all_kinetic_except(system, named["equilibrium"], named.get("inert", ()))
        return cls(named["equilibrium"], named["kinetic"], named.get("inert", ()))
