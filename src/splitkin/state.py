"""Mutable chemical state bound to one chemical system.

A :class:`ChemicalState` holds temperature, pressure, species amounts and the
dual variables produced by equilibrium calculations. Every setter validates its
input completely before touching the stored values, so a failing call leaves
the state unchanged. Vector accessors return read-only views; copies are deep.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from splitkin.constants import REFERENCE_PRESSURE, REFERENCE_TEMPERATURE
from splitkin.exceptions import (
    DimensionMismatchError,
    InvalidStateError,
    UnsupportedUnitsError,
)
from splitkin.system import ChemicalSystem, SpeciesRef
from splitkin import units as unitconv

ArrayLike = Union[float, Sequence[float], np.ndarray]

_COLUMN_WIDTHS = (10, 20, 20, 20, 20, 20)
_COLUMNS = ("Index", "Species", "Amount", "Activity", "GibbsEnergy", "ChemicalPotential")


def _readonly(values: np.ndarray) -> np.ndarray:
    view = values.view()
    view.flags.writeable = False
    return view


def _non_negative(values: np.ndarray, what: str) -> None:
    # NaN fails this comparison as well
    if not np.all(values >= 0.0):
        raise InvalidStateError(f"Cannot set the {what}: negative or undefined value given.")


class ChemicalState:
    def __init__(self, system: ChemicalSystem):
        self._system = system
        self._temperature = REFERENCE_TEMPERATURE
        self._pressure = REFERENCE_PRESSURE
        self._n = np.zeros(system.num_species)
        self._y = np.zeros(system.num_elements)
        self._z = np.zeros(system.num_species)

    # --- Copy semantics ---

    def copy(self) -> "ChemicalState":
        other = ChemicalState.__new__(ChemicalState)
        other._system = self._system
        other._temperature = self._temperature
        other._pressure = self._pressure
        other._n = self._n.copy()
        other._y = self._y.copy()
        other._z = self._z.copy()
        return other

    __copy__ = copy

    def __deepcopy__(self, memo) -> "ChemicalState":
        # The system is an immutable catalog shared by all states.
        return self.copy()

    # --- Read accessors ---

    @property
    def system(self) -> ChemicalSystem:
        return self._system

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def pressure(self) -> float:
        return self._pressure

    @property
    def species_amounts(self) -> np.ndarray:
        return _readonly(self._n)

    @property
    def element_potentials(self) -> np.ndarray:
        return _readonly(self._y)

    @property
    def species_potentials(self) -> np.ndarray:
        return _readonly(self._z)

    def species_amount(self, species: SpeciesRef, units: Optional[str] = None) -> float:
        amount = float(self._n[self._system.index_species(species)])
        if units is None:
            return amount
        return unitconv.convert(amount, "mol", units)

    def element_amounts(self) -> np.ndarray:
        return self._system.element_amounts(self._n)

    def element_amounts_in_phase(self, phase: SpeciesRef) -> np.ndarray:
        return self._system.element_amounts_in_phase(phase, self._n)

    def element_amounts_in_species(self, indices: Sequence[SpeciesRef]) -> np.ndarray:
        return self._system.element_amounts_in_species(indices, self._n)

    def element_amount(self, element: SpeciesRef, units: Optional[str] = None) -> float:
        return _to_units(self._system.element_amount(element, self._n), units)

    def element_amount_in_phase(
        self, element: SpeciesRef, phase: SpeciesRef, units: Optional[str] = None
    ) -> float:
        return _to_units(self._system.element_amount_in_phase(element, phase, self._n), units)

    def element_amount_in_species(
        self,
        element: SpeciesRef,
        indices: Sequence[SpeciesRef],
        units: Optional[str] = None,
    ) -> float:
        return _to_units(
            self._system.element_amount_in_species(element, indices, self._n), units
        )

    def phase_volumes(self) -> np.ndarray:
        return self._system.phase_volumes(self._temperature, self._pressure, self._n)

    def volume(self) -> float:
        return float(np.sum(self.phase_volumes()))

    def activities(self) -> np.ndarray:
        return self._system.activities(self._temperature, self._pressure, self._n)

    def chemical_potentials(self) -> np.ndarray:
        return self._system.chemical_potentials(self._temperature, self._pressure, self._n)

    # --- Temperature and pressure ---

    def set_temperature(self, value: float, units: Optional[str] = None) -> None:
        if units is not None:
            value = unitconv.convert(value, units, "K")
        if not value > 0.0:
            raise InvalidStateError(
                f"Cannot set the temperature to {value} K: it must be positive."
            )
        self._temperature = float(value)

    def set_pressure(self, value: float, units: Optional[str] = None) -> None:
        if units is not None:
            value = unitconv.convert(value, units, "Pa")
        if not value > 0.0:
            raise InvalidStateError(f"Cannot set the pressure to {value} Pa: it must be positive.")
        self._pressure = float(value)

    # --- Species amounts ---

    def set_species_amounts(
        self, values: ArrayLike, indices: Optional[Sequence[SpeciesRef]] = None
    ) -> None:
        """Set species amounts (mol).

        - a scalar and no indices: broadcast to every species;
        - a vector and no indices: replace the whole amounts vector;
        - a vector and indices: replace the listed entries only.
        """
        values = np.asarray(values, dtype=float)
        if indices is None:
            if values.ndim == 0:
                _non_negative(values, "species amounts")
                self._n.fill(float(values))
                return
            if values.shape != self._n.shape:
                raise DimensionMismatchError(
                    f"Cannot set the species amounts: got {values.size} values "
                    f"for {self._n.size} species."
                )
            _non_negative(values, "species amounts")
            self._n[:] = values
            return

        idx = self._system.species_indices(indices)
        if values.ndim != 1 or values.size != len(idx):
            raise DimensionMismatchError(
                f"Cannot set the species amounts: got {values.size} values for {len(idx)} indices."
            )
        _non_negative(values, "species amounts")
        self._n[idx] = values

    def set_species_amount(
        self, species: SpeciesRef, amount: float, units: Optional[str] = None
    ) -> None:
        index = self._system.index_species(species)
        if units is not None:
            if unitconv.convertible(units, "mol"):
                amount = unitconv.convert(amount, units, "mol")
            elif unitconv.convertible(units, "kg"):
                amount = unitconv.convert(amount, units, "kg") / self._system.molar_masses[index]
            else:
                raise UnsupportedUnitsError(
                    f"Cannot set the amount of species `{self._system.species[index].name}`: "
                    f"units `{units}` are neither amount nor mass units."
                )
        _non_negative(np.asarray(amount, dtype=float), "species amount")
        self._n[index] = float(amount)

    # --- Dual variables ---

    def set_element_potentials(self, y: ArrayLike) -> None:
        y = np.asarray(y, dtype=float)
        if y.shape != self._y.shape:
            raise DimensionMismatchError(
                f"Expected {self._y.size} element potentials, got shape {y.shape}."
            )
        self._y[:] = y

    def set_species_potentials(self, z: ArrayLike) -> None:
        z = np.asarray(z, dtype=float)
        if z.shape != self._z.shape:
            raise DimensionMismatchError(
                f"Expected {self._z.size} species potentials, got shape {z.shape}."
            )
        self._z[:] = z

    # --- Volumes and scaling ---

    def set_volume(self, volume: float) -> None:
        """Scale all amounts so that the phases occupy ``volume`` (m³) in total."""
        if not volume >= 0.0:
            raise InvalidStateError(f"Cannot set the volume to {volume}: it is negative.")
        total = float(np.sum(self.phase_volumes()))
        self.scale_species_amounts(volume / total if total != 0.0 else 0.0)

    def set_phase_volume(self, phase: SpeciesRef, volume: float) -> None:
        iphase = self._system.index_phase(phase)
        if not volume >= 0.0:
            raise InvalidStateError(f"Cannot set the phase volume to {volume}: it is negative.")
        current = float(self.phase_volumes()[iphase])
        self.scale_species_amounts_in_phase(iphase, volume / current if current != 0.0 else 0.0)

    def scale_species_amounts(self, scalar: float) -> None:
        if not scalar >= 0.0:
            raise InvalidStateError(f"Cannot scale the species amounts by {scalar}.")
        self._n *= scalar

    def scale_species_amounts_in_phase(self, phase: SpeciesRef, scalar: float) -> None:
        block = self._system.phase_slice(phase)
        if not scalar >= 0.0:
            raise InvalidStateError(f"Cannot scale the species amounts by {scalar}.")
        self._n[block] *= scalar

    # --- Arithmetic ---

    def __add__(self, other: "ChemicalState") -> "ChemicalState":
        if not isinstance(other, ChemicalState):
            return NotImplemented
        if other._system is not self._system:
            raise DimensionMismatchError("Cannot add states of different chemical systems.")
        result = self.copy()
        result._n = self._n + other._n
        return result

    def __mul__(self, scalar: float) -> "ChemicalState":
        if not isinstance(scalar, (int, float, np.number)):
            return NotImplemented
        result = self.copy()
        result.scale_species_amounts(float(scalar))
        return result

    __rmul__ = __mul__

    # --- Rendering ---

    def format_table(self) -> str:
        T, P, n = self._temperature, self._pressure, self._n
        g0 = self._system.standard_gibbs_energies(T, P)
        mu = self._system.chemical_potentials(T, P, n)
        a = self._system.activities(T, P, n)

        def row(cells) -> str:
            return "".join(f"{str(c):<{w}}" for c, w in zip(cells, _COLUMN_WIDTHS)).rstrip()

        lines = [row(_COLUMNS)]
        for i, sp in enumerate(self._system.species):
            lines.append(row((i, sp.name, f"{n[i]:.6g}", f"{a[i]:.6g}", f"{g0[i]:.6g}", f"{mu[i]:.6g}")))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format_table()

    def __repr__(self) -> str:
        return (
            f"ChemicalState(T={self._temperature}, P={self._pressure}, "
            f"n={np.array2string(self._n, precision=6)})"
        )


def _to_units(amount: float, units: Optional[str]) -> float:
    if units is None:
        return amount
    return unitconv.convert(amount, "mol", units)
