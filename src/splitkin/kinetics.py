"""Kinetics helpers, rate expressions and reaction systems."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Protocol, Sequence

import numpy as np

from splitkin.constants import R_GAS
from splitkin.models import Reaction
from splitkin.system import ChemicalSystem


class KineticsModel(Protocol):
    def rate(self, composition: Mapping[str, float], temperature: float) -> float:
        """Calculate reaction rate (mol/s) given species amounts (mol) and temperature."""
        ...


@dataclass(frozen=True)
class ArrheniusKinetics:
    pre_exponential: float
    activation_energy: float

    def rate_constant(self, temperature: float) -> float:
        return self.pre_exponential * np.exp(-self.activation_energy / (R_GAS * temperature))


@dataclass(frozen=True)
class PowerLawKinetics:
    arrhenius: ArrheniusKinetics
    exponents: Mapping[str, float]

    def rate(self, composition: Mapping[str, float], temperature: float) -> float:
        k = self.arrhenius.rate_constant(temperature)
        rate = k
        for species, exponent in self.exponents.items():
            rate *= composition.get(species, 0.0) ** exponent
        return rate


@dataclass(frozen=True)
class LHHWKinetics:
    """Langmuir-Hinshelwood / Eley-Rideal kinetics.

    Rate = (k * product(n_i^alpha_i)) / (1 + sum(K_j * n_j))^m
    """
    arrhenius: ArrheniusKinetics
    numerator_exponents: Mapping[str, float]
    adsorption_constants: Mapping[str, ArrheniusKinetics]
    denominator_exponent: float = 1.0

    def rate(self, composition: Mapping[str, float], temperature: float) -> float:
        # Numerator
        k = self.arrhenius.rate_constant(temperature)
        numerator = k
        for species, exponent in self.numerator_exponents.items():
            numerator *= composition.get(species, 0.0) ** exponent

        # Denominator
        denominator_sum = 1.0
        for species, ads_params in self.adsorption_constants.items():
            k_ads = ads_params.rate_constant(temperature)
            denominator_sum += k_ads * composition.get(species, 0.0)

        return numerator / (denominator_sum ** self.denominator_exponent)


class ReactionSystem:
    """Reactions with rate laws over the species of one chemical system.

    The stoichiometric matrix has shape (n_reactions, n_species): negative
    coefficients for reactants, positive for products. Species rates are
    ``nu^T r``.
    """

    def __init__(self, system: ChemicalSystem, reactions: Sequence[Reaction]):
        self.system = system
        self.reactions: tuple[Reaction, ...] = tuple(reactions)

        stoich = np.zeros((len(self.reactions), system.num_species))
        for i, reaction in enumerate(self.reactions):
            for species, nu in reaction.stoichiometry.items():
                stoich[i, system.index_species(species)] += nu
        stoich.flags.writeable = False
        self.stoichiometric_matrix = stoich

    @property
    def num_reactions(self) -> int:
        return len(self.reactions)

    def rates(self, temperature: float, amounts: np.ndarray) -> np.ndarray:
        """Reaction rates r_j (mol/s); amounts are clipped at zero before evaluation."""
        n = np.clip(np.asarray(amounts, dtype=float), 0.0, None)
        composition = dict(zip(self.system.species_names, n))
        return np.array(
            [float(reaction.kinetics.rate(composition, temperature)) for reaction in self.reactions]
        )

    def species_rates(self, temperature: float, amounts: np.ndarray) -> np.ndarray:
        """dn/dt for every species (mol/s)."""
        return self.stoichiometric_matrix.T @ self.rates(temperature, amounts)

    def element_imbalance(self) -> np.ndarray:
        """Element change per unit extent of each reaction, shape (n_reactions, n_elements)."""
        return self.stoichiometric_matrix @ self.system.formula_matrix.T

    def unbalanced_reactions(self, tol: float = 1e-9) -> List[str]:
        imbalance = self.element_imbalance()
        return [
            reaction.name
            for reaction, row in zip(self.reactions, imbalance)
            if np.any(np.abs(row) > tol)
        ]
