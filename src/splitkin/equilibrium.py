"""Equilibrium calculations by Gibbs energy minimization.

The kinetic solver only needs the :class:`Equilibrator` protocol; the
:class:`EquilibriumSolver` below is the default implementation. It minimizes
the total Gibbs energy G = sum_i n_i mu_i over a subset of species, the others
held fixed, subject to element balances restricted to that subset:

    min G(n)   s.t.   A_e n_e = b_e,   n_e >= 0

For ideal models dG/dn_i = mu_i, which is supplied as the analytical gradient.
When the element balances alone determine n_e (the reduced formula matrix has
full column rank) no minimization is needed.

Dual variables are recovered from the optimality condition
mu_e = A_e^T y + z, with z_i = 0 for species present in non-zero amount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import numpy as np
from scipy.optimize import minimize

from splitkin.constants import R_GAS
from splitkin.exceptions import DimensionMismatchError, EquilibrationFailedError
from splitkin.state import ChemicalState
from splitkin.system import ChemicalSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EquilibriumOptions:
    """Numerical settings for :class:`EquilibriumSolver`.

    Attributes:
        tolerance: Absolute tolerance on element balance residuals, scaled by the
            largest element amount when that exceeds one.
        max_iterations: Iteration limit passed to the optimizer.
        method: ``scipy.optimize.minimize`` method supporting bounds and linear
            equality constraints.
    """

    tolerance: float = 1e-10
    max_iterations: int = 500
    method: str = "SLSQP"

    def __post_init__(self) -> None:
        if self.tolerance <= 0.0:
            raise ValueError("tolerance must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.method not in ("SLSQP", "trust-constr"):
            raise ValueError(f"Unsupported equilibrium method `{self.method}`")


@dataclass(frozen=True)
class EquilibriumResult:
    """Solution for the equilibrium subset.

    ``amounts`` and ``species_potentials`` follow the order of the requested
    species indices; ``element_potentials`` has one entry per element.
    """

    amounts: np.ndarray
    element_potentials: np.ndarray
    species_potentials: np.ndarray
    iterations: int = 0


class Equilibrator(Protocol):
    def equilibrate(
        self,
        state: ChemicalState,
        indices: Sequence[int],
        element_amounts: np.ndarray,
    ) -> EquilibriumResult:
        ...


class EquilibriumSolver:
    def __init__(self, system: ChemicalSystem, options: Optional[EquilibriumOptions] = None):
        self.system = system
        self.options = options or EquilibriumOptions()

    def equilibrate(
        self,
        state: ChemicalState,
        indices: Sequence[int],
        element_amounts: np.ndarray,
    ) -> EquilibriumResult:
        """Equilibrate the species ``indices`` of ``state`` at ``element_amounts``.

        The state is not modified.
        """
        system = self.system
        idx = np.asarray(list(indices), dtype=int)
        b = np.asarray(element_amounts, dtype=float)
        if b.shape != (system.num_elements,):
            raise DimensionMismatchError(
                f"Expected {system.num_elements} element amounts, got shape {b.shape}."
            )
        if idx.size == 0:
            return EquilibriumResult(
                amounts=np.zeros(0),
                element_potentials=np.zeros(system.num_elements),
                species_potentials=np.zeros(0),
            )

        scale = max(1.0, float(np.max(np.abs(b))))
        tol = self.options.tolerance * scale

        A = system.formula_matrix[:, idx]
        rows = np.any(A != 0.0, axis=1)
        stray = np.abs(b[~rows]) > tol
        if np.any(stray):
            names = [e for e, bad in zip(np.asarray(system.elements)[~rows], stray) if bad]
            self._fail(f"elements {names} have non-zero amounts but no equilibrium species hold them")
        A_r, b_r = A[rows], b[rows]

        # An element carried only with non-negative coefficients needs b >= 0.
        nonneg = np.all(A_r >= 0.0, axis=1)
        if np.any(b_r[nonneg] < -tol):
            self._fail("negative element amounts are infeasible")

        n_full = np.array(state.species_amounts, dtype=float)
        T, P = state.temperature, state.pressure

        iterations = 0
        if _rank(A_r) == idx.size:
            x = np.linalg.lstsq(A_r, b_r, rcond=None)[0]
            logger.debug("Equilibrium amounts fixed by element balances for %d species.", idx.size)
        else:
            x, iterations = self._minimize(n_full, idx, A_r, b_r, T, P, scale)

        residual = np.max(np.abs(A_r @ x - b_r)) if b_r.size else 0.0
        if residual > 10.0 * tol:
            self._fail(f"element balance residual {residual:.3e} exceeds tolerance")
        if np.min(x) < -10.0 * tol:
            self._fail(f"negative equilibrium amount {np.min(x):.3e}")
        x = np.maximum(x, 0.0)

        n_full[idx] = x
        mu = system.chemical_potentials(T, P, n_full)[idx]
        present = x > tol
        y_r = np.zeros(A_r.shape[0])
        if A_r.size and np.any(present):
            y_r = np.linalg.lstsq(A_r[:, present].T, mu[present], rcond=None)[0]
        y = np.zeros(system.num_elements)
        y[rows] = y_r
        z = mu - A_r.T @ y_r

        return EquilibriumResult(
            amounts=x,
            element_potentials=y,
            species_potentials=z,
            iterations=iterations,
        )

    def _minimize(self, n_full, idx, A_r, b_r, T, P, scale):
        system = self.system
        RT = R_GAS * T
        keep = _independent_rows(A_r)
        A_c, b_c = A_r[keep], b_r[keep]

        def gibbs(x: np.ndarray):
            n = n_full.copy()
            n[idx] = np.maximum(x, 0.0)
            mu = system.chemical_potentials(T, P, n) / RT
            return float(n @ mu), mu[idx]

        x0 = np.maximum(n_full[idx], 1e-8 * scale)
        constraints = []
        if A_c.size:
            constraints.append({"type": "eq", "fun": lambda x: A_c @ x - b_c, "jac": lambda x: A_c})
        if self.options.method == "SLSQP":
            method_options = {"maxiter": self.options.max_iterations, "ftol": self.options.tolerance}
        else:
            method_options = {"maxiter": self.options.max_iterations, "gtol": self.options.tolerance}

        result = minimize(
            gibbs,
            x0,
            jac=True,
            method=self.options.method,
            bounds=[(0.0, None)] * idx.size,
            constraints=constraints,
            options=method_options,
        )
        if not result.success:
            self._fail(f"optimizer did not converge: {result.message}")
        logger.debug("Gibbs minimization converged in %s iterations.", result.nit)
        return np.asarray(result.x, dtype=float), int(result.nit)

    def _fail(self, reason: str) -> None:
        logger.warning("Equilibrium calculation failed: %s", reason)
        raise EquilibrationFailedError(f"Cannot equilibrate: {reason}.")


def _rank(matrix: np.ndarray) -> int:
    if matrix.size == 0:
        return 0
    return int(np.linalg.matrix_rank(matrix))


def _independent_rows(matrix: np.ndarray) -> list:
    keep: list = []
    for i in range(matrix.shape[0]):
        if _rank(matrix[keep + [i]]) > len(keep):
            keep.append(i)
    return keep


def equilibrate(
    state: ChemicalState, options: Optional[EquilibriumOptions] = None
) -> EquilibriumResult:
    """Equilibrate every species of ``state`` in place at its current element amounts."""
    solver = EquilibriumSolver(state.system, options)
    result = solver.equilibrate(state, range(state.system.num_species), state.element_amounts())
    state.set_species_amounts(result.amounts)
    state.set_element_potentials(result.element_potentials)
    state.set_species_potentials(result.species_potentials)
    return result
