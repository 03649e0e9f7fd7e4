"""Base interface for thermodynamic models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from splitkin.constants import R_GAS

if TYPE_CHECKING:
    from splitkin.system import ChemicalSystem

# Smallest activity used when taking logarithms.
MIN_ACTIVITY = 1e-300


class ThermoInterface(ABC):
    """Abstract base class for thermodynamic property packages.

    Every method is a pure function of the system layout and of
    ``(temperature, pressure, amounts)``; vectors follow the species order of the
    system.
    """

    @abstractmethod
    def standard_gibbs_energies(
        self, system: "ChemicalSystem", temperature: float, pressure: float
    ) -> np.ndarray:
        """Standard molar Gibbs energies of the species (J/mol)."""
        pass

    @abstractmethod
    def activities(
        self,
        system: "ChemicalSystem",
        temperature: float,
        pressure: float,
        amounts: np.ndarray,
    ) -> np.ndarray:
        """Activities of the species (dimensionless)."""
        pass

    @abstractmethod
    def phase_volumes(
        self,
        system: "ChemicalSystem",
        temperature: float,
        pressure: float,
        amounts: np.ndarray,
    ) -> np.ndarray:
        """Volumes of the phases (m³)."""
        pass

    def chemical_potentials(
        self,
        system: "ChemicalSystem",
        temperature: float,
        pressure: float,
        amounts: np.ndarray,
    ) -> np.ndarray:
        """Chemical potentials mu = g0 + RT ln(a) (J/mol)."""
        g0 = self.standard_gibbs_energies(system, temperature, pressure)
        a = self.activities(system, temperature, pressure, amounts)
        return g0 + R_GAS * temperature * np.log(np.maximum(a, MIN_ACTIVITY))
