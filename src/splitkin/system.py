"""Chemical system catalog: species, elements and phases.

A :class:`ChemicalSystem` fixes the species order used by every amounts vector in
SplitKin. Species are stored phase by phase, so each phase owns a contiguous
block of indices. Elements are collected from the species formulas in order of
first appearance; when any species carries a charge, the pseudo-element ``Z``
is appended so that charge is balanced like any other element.
"""

from __future__ import annotations

import operator
from typing import Iterable, List, Sequence, Union

import numpy as np

from splitkin.exceptions import DimensionMismatchError, UnknownNameError
from splitkin.models import Phase, Species
from splitkin.thermo import PHASE_KINDS, ThermoInterface

CHARGE_ELEMENT = "Z"

SpeciesRef = Union[int, str]


class ChemicalSystem:
    def __init__(self, phases: Sequence[Phase], thermo: ThermoInterface):
        if not phases:
            raise ValueError("A chemical system needs at least one phase.")
        self.phases: tuple[Phase, ...] = tuple(phases)
        self.thermo = thermo

        species: List[Species] = []
        self._phase_starts: List[int] = []
        for phase in self.phases:
            if phase.kind not in PHASE_KINDS:
                raise ValueError(f"Unknown phase kind `{phase.kind}` in phase `{phase.name}`.")
            self._phase_starts.append(len(species))
            species.extend(phase.species)
        self.species: tuple[Species, ...] = tuple(species)

        self._species_index = _unique_index([sp.name for sp in self.species], "species")
        self._phase_index = _unique_index([ph.name for ph in self.phases], "phase")

        elements: List[str] = []
        for sp in self.species:
            for element in sp.elements:
                if element not in elements:
                    elements.append(element)
        if any(sp.charge != 0.0 for sp in self.species):
            elements.append(CHARGE_ELEMENT)
        self.elements: tuple[str, ...] = tuple(elements)
        self._element_index = {name: i for i, name in enumerate(self.elements)}

        self.formula_matrix = np.zeros((len(self.elements), len(self.species)))
        for j, sp in enumerate(self.species):
            for element, coeff in sp.elements.items():
                self.formula_matrix[self._element_index[element], j] = coeff
            if sp.charge != 0.0:
                self.formula_matrix[self._element_index[CHARGE_ELEMENT], j] = sp.charge
        self.formula_matrix.flags.writeable = False

        self.molar_masses = np.array([sp.molar_mass for sp in self.species])
        self.molar_masses.flags.writeable = False

        for phase in self.phases:
            if phase.kind == "aqueous" and phase.solvent is not None:
                if phase.solvent not in [sp.name for sp in phase.species]:
                    raise UnknownNameError(
                        f"Solvent `{phase.solvent}` is not a species of phase `{phase.name}`."
                    )

    @property
    def num_species(self) -> int:
        return len(self.species)

    @property
    def num_elements(self) -> int:
        return len(self.elements)

    @property
    def num_phases(self) -> int:
        return len(self.phases)

    @property
    def species_names(self) -> List[str]:
        return [sp.name for sp in self.species]

    def __repr__(self) -> str:
        return (
            f"ChemicalSystem(species={self.num_species}, elements={self.num_elements}, "
            f"phases={self.num_phases})"
        )

    # --- Index lookups ---

    def index_species(self, species: SpeciesRef) -> int:
        return _resolve(species, self._species_index, self.num_species, "species")

    def index_element(self, element: SpeciesRef) -> int:
        return _resolve(element, self._element_index, self.num_elements, "element")

    def index_phase(self, phase: SpeciesRef) -> int:
        return _resolve(phase, self._phase_index, self.num_phases, "phase")

    def index_first_species_in_phase(self, phase: SpeciesRef) -> int:
        return self._phase_starts[self.index_phase(phase)]

    def num_species_in_phase(self, phase: SpeciesRef) -> int:
        return len(self.phases[self.index_phase(phase)].species)

    def phase_slice(self, phase: SpeciesRef) -> slice:
        start = self.index_first_species_in_phase(phase)
        return slice(start, start + self.num_species_in_phase(phase))

    def species_indices(self, species: Iterable[SpeciesRef]) -> List[int]:
        return [self.index_species(s) for s in species]

    # --- Element balances ---

    def _check_amounts(self, amounts: np.ndarray) -> np.ndarray:
        n = np.asarray(amounts, dtype=float)
        if n.shape != (self.num_species,):
            raise DimensionMismatchError(
                f"Expected {self.num_species} species amounts, got shape {n.shape}."
            )
        return n

    def element_amounts(self, amounts: np.ndarray) -> np.ndarray:
        return self.formula_matrix @ self._check_amounts(amounts)

    def element_amounts_in_phase(self, phase: SpeciesRef, amounts: np.ndarray) -> np.ndarray:
        n = self._check_amounts(amounts)
        block = self.phase_slice(phase)
        return self.formula_matrix[:, block] @ n[block]

    def element_amounts_in_species(
        self, indices: Sequence[SpeciesRef], amounts: np.ndarray
    ) -> np.ndarray:
        n = self._check_amounts(amounts)
        idx = self.species_indices(indices)
        return self.formula_matrix[:, idx] @ n[idx]

    def element_amount(self, element: SpeciesRef, amounts: np.ndarray) -> float:
        return float(self.element_amounts(amounts)[self.index_element(element)])

    def element_amount_in_phase(
        self, element: SpeciesRef, phase: SpeciesRef, amounts: np.ndarray
    ) -> float:
        return float(self.element_amounts_in_phase(phase, amounts)[self.index_element(element)])

    def element_amount_in_species(
        self, element: SpeciesRef, indices: Sequence[SpeciesRef], amounts: np.ndarray
    ) -> float:
        return float(
            self.element_amounts_in_species(indices, amounts)[self.index_element(element)]
        )

    # --- Thermodynamic properties ---

    def standard_gibbs_energies(self, temperature: float, pressure: float) -> np.ndarray:
        return self.thermo.standard_gibbs_energies(self, temperature, pressure)

    def activities(self, temperature: float, pressure: float, amounts: np.ndarray) -> np.ndarray:
        return self.thermo.activities(self, temperature, pressure, self._check_amounts(amounts))

    def chemical_potentials(
        self, temperature: float, pressure: float, amounts: np.ndarray
    ) -> np.ndarray:
        return self.thermo.chemical_potentials(
            self, temperature, pressure, self._check_amounts(amounts)
        )

    def phase_volumes(
        self, temperature: float, pressure: float, amounts: np.ndarray
    ) -> np.ndarray:
        return self.thermo.phase_volumes(self, temperature, pressure, self._check_amounts(amounts))


def _unique_index(names: Sequence[str], kind: str) -> dict:
    index = {}
    for i, name in enumerate(names):
        if name in index:
            raise ValueError(f"Duplicate {kind} name `{name}`.")
        index[name] = i
    return index


def _resolve(ref: SpeciesRef, index: dict, size: int, kind: str) -> int:
    if isinstance(ref, str):
        try:
            return index[ref]
        except KeyError:
            raise UnknownNameError(f"There is no {kind} named `{ref}`.") from None
    if isinstance(ref, bool):
        raise TypeError(f"The {kind} index must be an integer or a name, got {ref!r}.")
    try:
        i = operator.index(ref)
    except TypeError:
        raise TypeError(f"The {kind} index must be an integer or a name, got {ref!r}.") from None
    if not 0 <= i < size:
        raise UnknownNameError(f"The {kind} index {i} is out of range [0, {size}).")
    return i
