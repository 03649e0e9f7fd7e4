"""Partitioned kinetic solver.

Species are split by a :class:`~splitkin.partition.Partition` into equilibrium,
kinetic and inert roles. Each step uses operator splitting:

1. reaction rates are evaluated from the current state;
2. the kinetic amounts are integrated over ``[t, t + h]`` with
   ``scipy.integrate.solve_ivp`` while equilibrium and inert amounts stay fixed;
3. the equilibrium species are re-equilibrated with the element budget that
   remains once the new kinetic and the inert contributions are subtracted from
   the element totals at the start of the step:

       b_e = b(t) - A_k n_k(t + h) - A_i n_i

4. the step size is adapted for the next call.

Since the equilibrium species absorb exactly the element budget left over by
the kinetic update, element totals are conserved at every accepted step up to
the tolerance of the equilibrium calculation.
"""

from __future__ import annotations

import enum
import logging
import math
import weakref
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from scipy.integrate import solve_ivp

from splitkin.equilibrium import Equilibrator, EquilibriumResult, EquilibriumSolver
from splitkin.exceptions import (
    DimensionMismatchError,
    SolverStateError,
    StepFailedError,
)
from splitkin.kinetics import ReactionSystem
from splitkin.partition import Partition
from splitkin.state import ChemicalState

logger = logging.getLogger(__name__)

INTEGRATION_METHODS = ("RK23", "RK45", "DOP853", "Radau", "BDF", "LSODA")


@dataclass(frozen=True)
class KineticOptions:
    """Numerical settings for :class:`KineticSolver`.

    Attributes:
        method: ``solve_ivp`` method used for the kinetic sub-step. Stiff rate
            laws are common, so the default is BDF.
        rtol: Relative tolerance of the kinetic integration.
        atol: Absolute tolerance of the kinetic integration (mol).
        initial_step: First step size (s). ``None`` chooses it from the
            initial rates.
        max_step: Upper bound for every step (s).
        growth_factor: Step growth after a step that the integrator took in
            one internal step without any retry.
        shrink_factor: Step reduction applied to a rejected trial step.
        max_retries: Rejected trials allowed within one step before
            :class:`~splitkin.exceptions.StepFailedError` is raised.
        balance_tolerance: Tolerance on element imbalance of reactions and on
            negative element budgets for the equilibrium species (mol).
    """

    method: str = "BDF"
    rtol: float = 1e-6
    atol: float = 1e-9
    initial_step: Optional[float] = None
    max_step: float = math.inf
    growth_factor: float = 2.0
    shrink_factor: float = 0.5
    max_retries: int = 10
    balance_tolerance: float = 1e-9

    def __post_init__(self) -> None:
        if self.method not in INTEGRATION_METHODS:
            raise ValueError(f"Unsupported integration method `{self.method}`")
        if self.rtol <= 0.0 or self.atol <= 0.0:
            raise ValueError("rtol and atol must be positive")
        if self.initial_step is not None and self.initial_step <= 0.0:
            raise ValueError("initial_step must be positive")
        if not self.max_step > 0.0:
            raise ValueError("max_step must be positive")
        if self.growth_factor < 1.0:
            raise ValueError("growth_factor must be at least 1")
        if not 0.0 < self.shrink_factor < 1.0:
            raise ValueError("shrink_factor must lie in (0, 1)")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.balance_tolerance < 0.0:
            raise ValueError("balance_tolerance must be non-negative")


class SolverPhase(enum.Enum):
    UNCONFIGURED = "unconfigured"
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    DONE = "done"


class KineticSolver:
    """Time integration of a partitioned reacting system.

    Typical use::

        solver = KineticSolver(reactions)
        solver.set_partition("kinetic = Calcite")
        solver.solve(state, 0.0, 3600.0)

    or, to check for cancellation between steps::

        solver.initialize(state, t)
        while t < t_end and not cancelled():
            t = solver.step(state, t, t_end - t)

    One solver instance serves one state at a time; ``step`` rejects any state
    other than the one passed to the last ``initialize``.
    """

    def __init__(
        self,
        reactions: ReactionSystem,
        equilibrium_solver: Optional[Equilibrator] = None,
        options: Optional[KineticOptions] = None,
    ):
        self.reactions = reactions
        self.system = reactions.system
        self.equilibrium_solver = equilibrium_solver or EquilibriumSolver(self.system)
        self.options = options or KineticOptions()
        self.phase = SolverPhase.UNCONFIGURED

        self._step_size: Optional[float] = None
        self._state_ref: Optional[weakref.ref] = None
        self.set_partition(Partition.all_kinetic(self.system))

    @property
    def partition(self) -> Partition:
        return self._partition

    @property
    def step_size(self) -> Optional[float]:
        """Size of the next trial step, available after :meth:`initialize`."""
        return self._step_size

    def configure(self, options: KineticOptions) -> None:
        if self.phase not in (SolverPhase.UNCONFIGURED, SolverPhase.INITIALIZED):
            raise SolverStateError(
                f"Cannot change options while the solver is {self.phase.value}; "
                "configure before stepping."
            )
        self.options = options
        self._check_balance()

    def set_partition(self, partition: Union[Partition, str]) -> None:
        """Install the active partition; it applies from the next step on."""
        if isinstance(partition, str):
            partition = Partition.parse(self.system, partition)
        partition.validate(self.system.num_species)
        self._partition = partition

        self._ie = np.array(partition.equilibrium, dtype=int)
        self._ik = np.array(partition.kinetic, dtype=int)
        self._ii = np.array(partition.inert, dtype=int)

        A = self.system.formula_matrix
        self._A_k = A[:, self._ik]
        self._A_i = A[:, self._ii]
        # Only elements carried with non-negative coefficients need a non-negative budget.
        self._sign_rows = np.all(A[:, self._ie] >= 0.0, axis=1)
        # Kinetic species rates: dn_k/dt = nu_k^T r
        self._stoich_k = self.reactions.stoichiometric_matrix[:, self._ik]

        self._check_balance()
        logger.debug(
            "Partition set: %d equilibrium, %d kinetic, %d inert species.",
            self._ie.size,
            self._ik.size,
            self._ii.size,
        )

    def initialize(self, state: ChemicalState, start_time: float = 0.0) -> None:
        n = state.species_amounts
        if n.shape != (self.system.num_species,):
            raise DimensionMismatchError(
                f"The state has {n.size} species but the reaction system has "
                f"{self.system.num_species}."
            )
        if self.options.initial_step is not None:
            h = self.options.initial_step
        else:
            h = self._initial_step(state)
        self._step_size = min(h, self.options.max_step)
        self._state_ref = weakref.ref(state)
        self.phase = SolverPhase.INITIALIZED
        logger.debug("Initialized at t=%g with step %g.", start_time, self._step_size)

    def step(self, state: ChemicalState, time: float, max_step: Optional[float] = None) -> float:
        """Advance ``state`` by one step of at most ``max_step``; return the new time."""
        if self.phase is SolverPhase.UNCONFIGURED or self._state_ref is None:
            raise SolverStateError("Call initialize before step.")
        if self._state_ref() is not state:
            raise SolverStateError("The solver was initialized with a different state.")
        if max_step is not None and not max_step > 0.0:
            raise ValueError(f"max_step must be positive, got {max_step}")

        limit = self.options.max_step if max_step is None else min(max_step, self.options.max_step)
        h = min(self._step_size, limit)

        n = np.array(state.species_amounts, dtype=float)
        b_total = self.system.element_amounts(n)
        b_inert = self._A_i @ n[self._ii]

        for attempt in range(self.options.max_retries + 1):
            end_time = time + h
            trial = self._integrate(state, n, time, end_time)
            if trial is not None:
                n_k, internal_steps = trial
                b_e = b_total - self._A_k @ n_k - b_inert
                if self._ie.size == 0 or np.all(
                    b_e[self._sign_rows] >= -self.options.balance_tolerance
                ):
                    break
                logger.debug("Step h=%g rejected: negative element budget for equilibrium.", h)
            h *= self.options.shrink_factor
        else:
            logger.warning(
                "Step at t=%g failed after %d retries (last h=%g).",
                time,
                self.options.max_retries,
                h / self.options.shrink_factor,
            )
            raise StepFailedError(
                f"Kinetic step at t={time} rejected {self.options.max_retries + 1} times."
            )

        n_new = n.copy()
        n_new[self._ik] = n_k
        if self._ie.size:
            trial_state = state.copy()
            trial_state.set_species_amounts(n_new)
            result = self.equilibrium_solver.equilibrate(trial_state, self._ie, b_e)
            self._check_result(result)
            n_new[self._ie] = result.amounts
            z = np.array(state.species_potentials, dtype=float)
            z[self._ie] = result.species_potentials
            state.set_species_amounts(n_new)
            state.set_element_potentials(result.element_potentials)
            state.set_species_potentials(z)
        else:
            state.set_species_amounts(n_new)

        self._step_size = self._next_step_size(h, internal_steps, retried=attempt > 0)
        self.phase = SolverPhase.STEPPING
        logger.debug(
            "Accepted step t=%g -> %g (h=%g, internal steps=%d, next h=%g).",
            time,
            end_time,
            h,
            internal_steps,
            self._step_size,
        )
        return end_time

    def solve(
        self,
        state: ChemicalState,
        start_time: float,
        end_time: float,
        dt: Optional[float] = None,
    ) -> float:
        """Integrate from ``start_time`` to ``end_time``; return the final time."""
        if end_time < start_time:
            raise ValueError("end_time must not precede start_time")
        if dt is not None and not dt > 0.0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.initialize(state, start_time)
        time = start_time
        steps = 0
        eps = 1e-12 * max(1.0, abs(end_time))
        while end_time - time > eps:
            remaining = end_time - time
            time = self.step(state, time, remaining if dt is None else min(dt, remaining))
            steps += 1
        self.phase = SolverPhase.DONE
        logger.info("Reached t=%g in %d steps.", end_time, steps)
        return end_time

    # --- Internals ---

    def _check_balance(self) -> None:
        unbalanced = self.reactions.unbalanced_reactions(self.options.balance_tolerance)
        if unbalanced and self._ie.size:
            logger.warning(
                "Reactions %s are not element balanced; the imbalance is charged to "
                "the equilibrium species.",
                unbalanced,
            )

    def _check_result(self, result: EquilibriumResult) -> None:
        expected = {
            "amounts": (self._ie.size,),
            "element_potentials": (self.system.num_elements,),
            "species_potentials": (self._ie.size,),
        }
        for field, shape in expected.items():
            actual = np.shape(getattr(result, field))
            if actual != shape:
                raise DimensionMismatchError(
                    f"The equilibrium result has {field} of shape {actual}, expected {shape}."
                )

    def _kinetic_rhs(self, state: ChemicalState, n: np.ndarray):
        temperature = state.temperature
        n_work = n.copy()
        ik = self._ik
        stoich_k = self._stoich_k

        def rhs(_t: float, n_k: np.ndarray) -> np.ndarray:
            n_work[ik] = n_k
            return stoich_k.T @ self.reactions.rates(temperature, n_work)

        return rhs

    def _integrate(
        self, state: ChemicalState, n: np.ndarray, time: float, end_time: float
    ) -> Optional[Tuple[np.ndarray, int]]:
        n_k0 = n[self._ik]
        if n_k0.size == 0:
            return n_k0, 1
        span = end_time - time
        if not span > 0.0:
            logger.debug("Step rejected: h is below the resolution of t=%g.", time)
            return None
        sol = solve_ivp(
            self._kinetic_rhs(state, n),
            (time, end_time),
            n_k0,
            method=self.options.method,
            rtol=self.options.rtol,
            atol=self.options.atol,
            first_step=span,
        )
        if not sol.success:
            logger.debug("Step h=%g rejected: %s", span, sol.message)
            return None
        n_k = sol.y[:, -1]
        if np.any(n_k < -self.options.atol):
            logger.debug("Step h=%g rejected: negative kinetic amounts.", span)
            return None
        # Round-off below atol
        return np.maximum(n_k, 0.0), len(sol.t) - 1

    def _initial_step(self, state: ChemicalState) -> float:
        n = np.array(state.species_amounts, dtype=float)
        n_k = n[self._ik]
        dndt = self._kinetic_rhs(state, n)(0.0, n_k)
        rate = float(np.max(np.abs(dndt))) if dndt.size else 0.0
        if rate == 0.0:
            return min(1.0, self.options.max_step)
        scale = float(np.max(np.abs(n_k))) + self.options.atol
        return 0.01 * scale / rate

    def _next_step_size(self, h: float, internal_steps: int, retried: bool) -> float:
        if retried:
            proposal = h
        elif internal_steps <= 1:
            proposal = h * self.options.growth_factor
        else:
            proposal = h / internal_steps
        return min(proposal, self.options.max_step)
