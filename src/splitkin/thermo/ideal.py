"""Ideal gas and ideal solution thermodynamics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

import numpy as np

from splitkin.constants import (
    R_GAS,
    REFERENCE_PRESSURE,
    REFERENCE_TEMPERATURE,
    WATER_MOLAR_MASS,
    WATER_SPECIES,
)
from splitkin.exceptions import UnknownNameError
from splitkin.thermo.base import ThermoInterface

if TYPE_CHECKING:
    from splitkin.models import Phase
    from splitkin.system import ChemicalSystem

PHASE_KINDS = ("gas", "aqueous", "ideal")

# Floor for the solvent amount when computing molalities.
_MIN_SOLVENT = 1e-300


@dataclass(frozen=True)
class SpeciesProperties:
    heat_of_formation: float  # J/mol at the reference temperature
    standard_entropy: float = 0.0  # J/mol/K at the reference temperature
    heat_capacity: float = 0.0  # J/mol/K (constant)
    molar_volume: float = 0.0  # m3/mol, ignored for gas phases

    def standard_gibbs_energy(self, temperature: float) -> float:
        """G0(T) = H(T) - T*S(T) with constant heat capacity."""
        h = self.heat_of_formation + self.heat_capacity * (temperature - REFERENCE_TEMPERATURE)
        s = self.standard_entropy + self.heat_capacity * np.log(temperature / REFERENCE_TEMPERATURE)
        return h - temperature * s


class IdealSolutionThermo(ThermoInterface):
    """Ideal mixing in every phase.

    Activity models by phase kind:

    - ``gas``: a_i = x_i * P / P0
    - ``aqueous``: solutes use molality, m_i = n_i / (n_w * M_w); the solvent
      uses ln(a_w) = -M_w * sum(m_i), which keeps the model Gibbs-Duhem
      consistent.
    - ``ideal``: a_i = x_i
    """

    def __init__(self, properties: Mapping[str, SpeciesProperties]):
        self.properties = dict(properties)

    def species_properties(self, name: str) -> SpeciesProperties:
        try:
            return self.properties[name]
        except KeyError as exc:
            raise UnknownNameError(f"No thermodynamic properties for species `{name}`.") from exc

    def standard_gibbs_energies(
        self, system: "ChemicalSystem", temperature: float, pressure: float
    ) -> np.ndarray:
        return np.array(
            [
                self.species_properties(sp.name).standard_gibbs_energy(temperature)
                for sp in system.species
            ]
        )

    def activities(
        self,
        system: "ChemicalSystem",
        temperature: float,
        pressure: float,
        amounts: np.ndarray,
    ) -> np.ndarray:
        n = np.asarray(amounts, dtype=float)
        a = np.zeros_like(n)
        for iphase, phase in enumerate(system.phases):
            block = system.phase_slice(iphase)
            a[block] = _phase_activities(phase, pressure, n[block])
        return a

    def phase_volumes(
        self,
        system: "ChemicalSystem",
        temperature: float,
        pressure: float,
        amounts: np.ndarray,
    ) -> np.ndarray:
        n = np.asarray(amounts, dtype=float)
        volumes = np.zeros(system.num_phases)
        for iphase, phase in enumerate(system.phases):
            block = n[system.phase_slice(iphase)]
            if phase.kind == "gas":
                # V = n R T / P
                volumes[iphase] = np.sum(block) * R_GAS * temperature / pressure
            else:
                molar_volumes = np.array(
                    [self.species_properties(sp.name).molar_volume for sp in phase.species]
                )
                volumes[iphase] = float(block @ molar_volumes)
        return volumes


def _mole_fractions(n: np.ndarray) -> np.ndarray:
    total = np.sum(n)
    if total <= 0.0:
        return np.zeros_like(n)
    return n / total


def _phase_activities(phase: "Phase", pressure: float, n: np.ndarray) -> np.ndarray:
    if phase.kind == "gas":
        return _mole_fractions(n) * pressure / REFERENCE_PRESSURE
    if phase.kind == "aqueous":
        names = [sp.name for sp in phase.species]
        solvent = phase.solvent or WATER_SPECIES
        iw = names.index(solvent)
        n_w = max(n[iw], _MIN_SOLVENT)
        molalities = n / (n_w * WATER_MOLAR_MASS)
        solutes = np.ones_like(n, dtype=bool)
        solutes[iw] = False
        a = molalities.copy()
        a[iw] = np.exp(-WATER_MOLAR_MASS * np.sum(molalities[solutes]))
        return a
    return _mole_fractions(n)
