from .base import ThermoInterface
from .ideal import PHASE_KINDS, IdealSolutionThermo, SpeciesProperties

__all__ = ["PHASE_KINDS", "ThermoInterface", "IdealSolutionThermo", "SpeciesProperties"]
