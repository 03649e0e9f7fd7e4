"""SplitKin core package."""

from splitkin.equilibrium import (
    EquilibriumOptions,
    EquilibriumResult,
    EquilibriumSolver,
    equilibrate,
)
from splitkin.kinetics import (
    ArrheniusKinetics,
    LHHWKinetics,
    PowerLawKinetics,
    ReactionSystem,
)
from splitkin.models import Phase, Reaction, Species
from splitkin.partition import Partition
from splitkin.query import extract
from splitkin.solver import KineticOptions, KineticSolver, SolverPhase
from splitkin.state import ChemicalState
from splitkin.system import ChemicalSystem

__all__ = [
    "ArrheniusKinetics",
    "ChemicalState",
    "ChemicalSystem",
    "EquilibriumOptions",
    "EquilibriumResult",
    "EquilibriumSolver",
    "KineticOptions",
    "KineticSolver",
    "LHHWKinetics",
    "Partition",
    "Phase",
    "PowerLawKinetics",
    "Reaction",
    "ReactionSystem",
    "SolverPhase",
    "Species",
    "equilibrate",
    "extract",
]
