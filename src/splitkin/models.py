"""Data structures for species, phases and reactions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from splitkin.kinetics import KineticsModel


@dataclass(frozen=True)
class Species:
    name: str
    elements: Mapping[str, float]
    molar_mass: float  # kg/mol
    charge: float = 0.0


@dataclass(frozen=True)
class Phase:
    """A group of species sharing one activity model.

    Attributes:
        name: Phase name, unique within a system.
        species: Species in the order they appear in the system.
        kind: Activity model, one of ``"gas"``, ``"aqueous"`` or ``"ideal"``.
        solvent: Solvent species of an aqueous phase.
    """

    name: str
    species: Tuple[Species, ...]
    kind: str = "ideal"
    solvent: Optional[str] = None


@dataclass(frozen=True)
class Reaction:
    name: str
    stoichiometry: Mapping[str, float]
    kinetics: "KineticsModel"
